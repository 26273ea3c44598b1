"""Resolve an approve/reject button press into a terminal request."""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from slack_approval.slack_client import SlackClient

from .messages import (
    APPROVE_ACTION_ID,
    REJECT_ACTION_ID,
    build_decision_update,
    build_outcome_notification,
)
from .models import ApprovalRequest, Decision
from .tokens import TokenError, decode_token

ACTION_DECISIONS = {
    APPROVE_ACTION_ID: Decision.APPROVE,
    REJECT_ACTION_ID: Decision.REJECT,
}


@dataclass(frozen=True)
class ResolutionResult:
    request: ApprovalRequest
    message_updated: bool
    requester_notified: bool


def decision_for_action(action_id: str | None) -> Decision | None:
    return ACTION_DECISIONS.get(action_id or "")


def resolve_decision(
    *,
    client,
    action_id: str | None,
    raw_token: str | None,
    acting_user_id: str | None,
    channel_id: str | None,
    message_ts: str | None,
    logger,
    token_secret: str | None = None,
) -> ResolutionResult | None:
    """Apply a decision carried by a button press.

    The acting user is the approver: only the recipient of the interactive
    message could press its buttons. Invalid input of any kind is logged and
    results in ``None`` with no message rewritten and nobody notified.

    No record of earlier decisions exists, so pressing a button twice simply
    repeats the same rewrite and notification.
    """

    log = structlog.get_logger().bind(action_id=action_id, acting_user_id=acting_user_id)

    decision = decision_for_action(action_id)
    if decision is None:
        log.warning("unknown_decision_action")
        return None

    try:
        pending = decode_token(raw_token, secret=token_secret)
    except TokenError as exc:
        log.warning("invalid_decision_token", error=str(exc))
        logger.warning("Ignoring decision with an invalid token", extra={"action_id": action_id})
        return None

    if not acting_user_id or not channel_id or not message_ts:
        log.warning(
            "decision_context_missing",
            has_user=bool(acting_user_id),
            has_channel=bool(channel_id),
            has_ts=bool(message_ts),
        )
        return None

    request = pending.transition(decision, decided_by=acting_user_id)
    log = log.bind(requester_id=request.requester_id, status=request.status.value)
    log.info("decision_recorded")

    slack_client = SlackClient(client=client)

    update = build_decision_update(request=request)
    update_result = slack_client.update_message(
        channel=channel_id,
        ts=message_ts,
        text=update["text"],
        blocks=update["blocks"],
    )
    if not update_result.ok:
        log.error("decision_message_update_failed", channel=channel_id, ts=message_ts, error=update_result.error)

    notification = build_outcome_notification(request=request)
    notify_result = slack_client.post_message(
        channel=request.requester_id,
        text=notification["text"],
        blocks=notification["blocks"],
    )
    if notify_result.ok:
        log.info("requester_notified")
    else:
        log.error("requester_notification_failed", error=notify_result.error)

    return ResolutionResult(
        request=request,
        message_updated=update_result.ok,
        requester_notified=notify_result.ok,
    )
