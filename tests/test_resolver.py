"""Tests for resolving approve/reject decisions."""

import json
import logging
from pathlib import Path
import sys

import pytest
from slack_sdk.errors import SlackApiError
from structlog.testing import capture_logs

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from slack_approval.approvals.messages import APPROVE_ACTION_ID, REJECT_ACTION_ID  # noqa: E402
from slack_approval.approvals.models import ApprovalRequest, ApprovalStatus, Decision  # noqa: E402
from slack_approval.approvals.resolver import decision_for_action, resolve_decision  # noqa: E402
from slack_approval.approvals.tokens import encode_token  # noqa: E402


class DummySlackWebClient:
    def __init__(self, fail_update=False, fail_post=False):
        self.fail_update = fail_update
        self.fail_post = fail_post
        self.update_calls = []
        self.post_calls = []

    def chat_update(self, **kwargs):
        self.update_calls.append(kwargs)
        if self.fail_update:
            raise SlackApiError("update failed", {"ok": False, "error": "message_not_found"})
        return {"ok": True, "channel": kwargs["channel"], "ts": kwargs["ts"]}

    def chat_postMessage(self, **kwargs):
        self.post_calls.append(kwargs)
        if self.fail_post:
            raise SlackApiError("post failed", {"ok": False, "error": "user_not_found"})
        return {"ok": True, "channel": "D1", "ts": "1700000001.000001"}


TOKEN = encode_token(ApprovalRequest(requester_id="U1", request_text="Deploy v2 to prod"))


def _resolve(client, **overrides):
    params = {
        "client": client,
        "action_id": APPROVE_ACTION_ID,
        "raw_token": TOKEN,
        "acting_user_id": "U2",
        "channel_id": "D2",
        "message_ts": "1700000000.000001",
        "logger": logging.getLogger(__name__),
    }
    params.update(overrides)
    return resolve_decision(**params)


def test_decision_for_action_is_closed_mapping():
    assert decision_for_action(APPROVE_ACTION_ID) is Decision.APPROVE
    assert decision_for_action(REJECT_ACTION_ID) is Decision.REJECT
    assert decision_for_action("approver_select") is None
    assert decision_for_action(None) is None


def test_approve_rewrites_message_and_notifies_requester():
    client = DummySlackWebClient()

    result = _resolve(client)

    assert result.request.status is ApprovalStatus.APPROVED
    assert result.request.approver_id == "U2"
    assert result.message_updated and result.requester_notified

    update = client.update_calls[0]
    assert (update["channel"], update["ts"]) == ("D2", "1700000000.000001")
    assert update["blocks"][-1]["elements"][0]["text"] == ":white_check_mark: Approved"
    assert "Deploy v2 to prod" in update["blocks"][1]["text"]["text"]
    assert all(block["type"] != "actions" for block in update["blocks"])

    notification = client.post_calls[0]
    assert notification["channel"] == "U1"
    assert notification["text"] == "Your request has been approved by <@U2>!"


def test_reject_marks_message_rejected():
    client = DummySlackWebClient()

    result = _resolve(client, action_id=REJECT_ACTION_ID)

    assert result.request.status is ApprovalStatus.REJECTED
    assert client.update_calls[0]["blocks"][-1]["elements"][0]["text"] == ":x: Rejected"
    assert client.post_calls[0]["text"] == "Your request has been rejected by <@U2>."


def test_repeated_decision_produces_identical_effects():
    client = DummySlackWebClient()

    first = _resolve(client)
    second = _resolve(client)

    assert first == second
    assert client.update_calls[0] == client.update_calls[1]
    assert client.post_calls[0] == client.post_calls[1]
    markers = [block for block in client.update_calls[1]["blocks"] if block["type"] == "context"]
    assert len(markers) == 1


@pytest.mark.parametrize(
    "overrides",
    [
        {"raw_token": "not-json"},
        {"raw_token": ""},
        {"raw_token": None},
        {"raw_token": json.dumps({"requesterUserId": "U1"})},
        {"action_id": "unknown_action"},
        {"action_id": None},
        {"message_ts": None},
        {"channel_id": ""},
        {"acting_user_id": None},
    ],
)
def test_invalid_input_has_no_side_effects(overrides):
    client = DummySlackWebClient()

    result = _resolve(client, **overrides)

    assert result is None
    assert client.update_calls == []
    assert client.post_calls == []


@pytest.mark.parametrize(
    "raw_token, token_secret",
    [
        ("[" * 1999, None),
        ('{"requesterUserId": "U1", "requestText": "a\\ud800b", "sig": "00"}', "s3cret"),
    ],
)
def test_pathological_token_returns_none_without_calls(raw_token, token_secret):
    client = DummySlackWebClient()

    with capture_logs() as logs:
        result = _resolve(client, raw_token=raw_token, token_secret=token_secret)

    assert result is None
    assert client.update_calls == []
    assert client.post_calls == []
    assert any(entry.get("event") == "invalid_decision_token" for entry in logs)


def test_invalid_token_is_logged():
    with capture_logs() as logs:
        _resolve(DummySlackWebClient(), raw_token="{broken")

    assert any(entry.get("event") == "invalid_decision_token" for entry in logs)


def test_signed_token_required_when_secret_configured():
    client = DummySlackWebClient()

    assert _resolve(client, token_secret="s3cret") is None
    assert client.update_calls == []

    signed = encode_token(ApprovalRequest(requester_id="U1", request_text="Deploy v2 to prod"), secret="s3cret")
    assert _resolve(client, raw_token=signed, token_secret="s3cret").request.status is ApprovalStatus.APPROVED


def test_update_failure_does_not_block_notification():
    client = DummySlackWebClient(fail_update=True)

    with capture_logs() as logs:
        result = _resolve(client)

    assert result.message_updated is False
    assert result.requester_notified is True
    assert len(client.post_calls) == 1
    assert any(entry.get("event") == "decision_message_update_failed" for entry in logs)


def test_notification_failure_does_not_undo_update():
    client = DummySlackWebClient(fail_post=True)

    result = _resolve(client, action_id=REJECT_ACTION_ID)

    assert result.message_updated is True
    assert result.requester_notified is False
    assert len(client.update_calls) == 1
