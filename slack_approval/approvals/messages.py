"""Block Kit message builders for approval requests."""

from __future__ import annotations

from typing import Any, Dict, List

from .models import ApprovalRequest, ApprovalStatus

APPROVE_ACTION_ID = "approve_request"
REJECT_ACTION_ID = "reject_request"
DECISION_BLOCK_ID = "approval_actions"

_OUTCOME_MARKERS = {
    ApprovalStatus.APPROVED: ":white_check_mark:",
    ApprovalStatus.REJECTED: ":x:",
}
_OUTCOME_VERBS = {
    ApprovalStatus.APPROVED: "approved",
    ApprovalStatus.REJECTED: "rejected",
}


def escape_mrkdwn(text: str) -> str:
    """Escape the three control characters Slack reserves in mrkdwn."""

    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def _mention(user_id: str) -> str:
    return f"<@{user_id}>"


def _section(text: str) -> Dict[str, Any]:
    return {"type": "section", "text": {"type": "mrkdwn", "text": text}}


def _request_section(request: ApprovalRequest) -> Dict[str, Any]:
    return _section(f"*Request:*\n{escape_mrkdwn(request.request_text)}")


def _require_terminal(request: ApprovalRequest) -> None:
    if not request.status.is_terminal:
        raise ValueError(f"Request is still {request.status.value}.")


def _decision_buttons(token: str) -> Dict[str, Any]:
    return {
        "type": "actions",
        "block_id": DECISION_BLOCK_ID,
        "elements": [
            {
                "type": "button",
                "text": {"type": "plain_text", "text": "Approve", "emoji": True},
                "style": "primary",
                "action_id": APPROVE_ACTION_ID,
                "value": token,
            },
            {
                "type": "button",
                "text": {"type": "plain_text", "text": "Reject", "emoji": True},
                "style": "danger",
                "action_id": REJECT_ACTION_ID,
                "value": token,
            },
        ],
    }


def build_approver_message(*, request: ApprovalRequest, token: str) -> Dict[str, Any]:
    """Build the interactive message sent to the approver."""

    headline = f"You have a new approval request from {_mention(request.requester_id)}:"
    blocks: List[Dict[str, Any]] = [
        _section(headline),
        _request_section(request),
        _decision_buttons(token),
    ]
    return {"text": headline, "blocks": blocks}


def build_requester_confirmation(*, request: ApprovalRequest) -> Dict[str, Any]:
    """Build the receipt sent back to the requester after dispatch."""

    if request.approver_id is None:
        raise ValueError("A confirmation needs the chosen approver.")

    headline = f"Your approval request has been sent to {_mention(request.approver_id)}."
    return {"text": headline, "blocks": [_section(headline), _request_section(request)]}


def build_decision_update(*, request: ApprovalRequest) -> Dict[str, Any]:
    """Return the approver's message rewritten for a terminal *request*.

    The decision buttons are replaced by a static outcome marker. The result
    depends only on the request, so repeating it yields the same message.
    """

    _require_terminal(request)
    marker = _OUTCOME_MARKERS[request.status]
    headline = f"You {_OUTCOME_VERBS[request.status]} a request from {_mention(request.requester_id)}"
    blocks: List[Dict[str, Any]] = [
        _section(headline),
        _request_section(request),
        {
            "type": "context",
            "elements": [{"type": "mrkdwn", "text": f"{marker} {request.status.value}"}],
        },
    ]
    return {"text": headline, "blocks": blocks}


def build_outcome_notification(*, request: ApprovalRequest) -> Dict[str, Any]:
    """Tell the requester who decided and how."""

    _require_terminal(request)
    marker = _OUTCOME_MARKERS[request.status]
    decided_by = _mention(request.approver_id or "")
    if request.status is ApprovalStatus.APPROVED:
        headline = f"Your request has been approved by {decided_by}!"
    else:
        headline = f"Your request has been rejected by {decided_by}."
    return {
        "text": headline,
        "blocks": [_section(f"{marker} {headline}"), _request_section(request)],
    }

