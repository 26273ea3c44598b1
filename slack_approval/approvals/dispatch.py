"""Turn a modal submission into an approval request and send it out."""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from slack_approval.slack_client import SlackClient

from .messages import build_approver_message, build_requester_confirmation
from .models import ApprovalRequest
from .tokens import TokenError, encode_token


@dataclass(frozen=True)
class DispatchResult:
    request: ApprovalRequest
    approver_notified: bool
    requester_notified: bool
    message_channel: str | None = None
    message_ts: str | None = None


def dispatch_request(
    *,
    client,
    requester_id: str,
    approver_id: str,
    request_text: str,
    logger,
    token_secret: str | None = None,
) -> DispatchResult | None:
    """Send the interactive request to the approver and a receipt to the requester.

    The two sends are independent: a failure posting one is logged and the
    other is still attempted. Returns ``None`` when the request cannot be
    encoded, in which case nothing is sent.
    """

    request = ApprovalRequest(
        requester_id=requester_id,
        approver_id=approver_id,
        request_text=request_text,
    )
    log = structlog.get_logger().bind(requester_id=requester_id, approver_id=approver_id)

    try:
        token = encode_token(request, secret=token_secret)
    except TokenError as exc:
        log.error("approval_request_not_encoded", error=str(exc), text_length=len(request_text))
        logger.error("Unable to encode approval request", extra={"requester_id": requester_id})
        return None

    slack_client = SlackClient(client=client)

    approver_payload = build_approver_message(request=request, token=token)
    approver_result = slack_client.post_message(
        channel=approver_id,
        text=approver_payload["text"],
        blocks=approver_payload["blocks"],
    )
    if approver_result.ok:
        log.info("approval_request_sent", channel=approver_result.channel, ts=approver_result.ts)
    else:
        log.error("approval_request_send_failed", error=approver_result.error)

    confirmation = build_requester_confirmation(request=request)
    requester_result = slack_client.post_message(
        channel=requester_id,
        text=confirmation["text"],
        blocks=confirmation["blocks"],
    )
    if requester_result.ok:
        log.info("requester_confirmation_sent")
    else:
        log.error("requester_confirmation_failed", error=requester_result.error)

    return DispatchResult(
        request=request,
        approver_notified=approver_result.ok,
        requester_notified=requester_result.ok,
        message_channel=approver_result.channel,
        message_ts=approver_result.ts,
    )
