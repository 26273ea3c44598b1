"""Open the request modal in response to the slash command."""

from __future__ import annotations

import structlog

from slack_approval.slack_client import SlackClient

from .modal import build_request_modal


def open_request_modal(*, client, trigger_id: str | None, user_id: str | None, logger) -> bool:
    """Render the request modal for *user_id*; failures are logged only."""

    log = structlog.get_logger().bind(user_id=user_id)
    if not trigger_id:
        log.warning("modal_open_skipped", reason="missing_trigger_id")
        return False

    result = SlackClient(client=client).open_view(trigger_id=trigger_id, view=build_request_modal())
    if not result.ok:
        log.error("modal_open_failed", error=result.error)
        logger.error("Error opening modal", extra={"user_id": user_id, "error": result.error})
        return False

    log.info("modal_opened")
    return True
