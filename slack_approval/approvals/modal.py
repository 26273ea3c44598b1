"""Modal used to collect an approval request."""

from __future__ import annotations

from typing import Any, Dict

MODAL_CALLBACK_ID = "approval_modal"
APPROVER_BLOCK_ID = "approver_block"
APPROVER_ACTION_ID = "approver_select"
REQUEST_BLOCK_ID = "request_block"
REQUEST_ACTION_ID = "request_input"

# Keeps the JSON decision token below Slack's button value limit.
MAX_REQUEST_LENGTH = 900


def build_request_modal() -> Dict[str, Any]:
    """Return the two-field modal: one approver, one request body."""

    return {
        "type": "modal",
        "callback_id": MODAL_CALLBACK_ID,
        "title": {"type": "plain_text", "text": "Request Approval", "emoji": True},
        "submit": {"type": "plain_text", "text": "Submit", "emoji": True},
        "close": {"type": "plain_text", "text": "Cancel", "emoji": True},
        "blocks": [
            {
                "type": "input",
                "block_id": APPROVER_BLOCK_ID,
                "label": {"type": "plain_text", "text": "Approver", "emoji": True},
                "element": {
                    "type": "users_select",
                    "action_id": APPROVER_ACTION_ID,
                    "placeholder": {"type": "plain_text", "text": "Select an approver"},
                },
                "optional": False,
            },
            {
                "type": "input",
                "block_id": REQUEST_BLOCK_ID,
                "label": {"type": "plain_text", "text": "Request Details", "emoji": True},
                "element": {
                    "type": "plain_text_input",
                    "action_id": REQUEST_ACTION_ID,
                    "multiline": True,
                    "max_length": MAX_REQUEST_LENGTH,
                    "placeholder": {"type": "plain_text", "text": "What needs approval?"},
                },
                "optional": False,
            },
        ],
    }
