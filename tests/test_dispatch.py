"""Tests for dispatching approval requests."""

import json
import logging
from pathlib import Path
import sys

from slack_sdk.errors import SlackApiError
from structlog.testing import capture_logs

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from slack_approval.approvals.dispatch import dispatch_request  # noqa: E402
from slack_approval.approvals.models import ApprovalStatus  # noqa: E402
from slack_approval.approvals.tokens import decode_token  # noqa: E402


class DummySlackWebClient:
    def __init__(self, failing_channels=()):
        self.failing_channels = set(failing_channels)
        self.post_calls = []

    def chat_postMessage(self, **kwargs):
        self.post_calls.append(kwargs)
        if kwargs["channel"] in self.failing_channels:
            raise SlackApiError("post failed", {"ok": False, "error": "channel_not_found"})
        return {"ok": True, "channel": f"D-{kwargs['channel']}", "ts": "1700000000.000001"}


def _dispatch(client, **overrides):
    params = {
        "client": client,
        "requester_id": "U1",
        "approver_id": "U2",
        "request_text": "Deploy v2 to prod",
        "logger": logging.getLogger(__name__),
    }
    params.update(overrides)
    return dispatch_request(**params)


def _buttons(call):
    return call["blocks"][-1]["elements"]


def test_dispatch_posts_to_approver_then_requester():
    client = DummySlackWebClient()

    result = _dispatch(client)

    assert [call["channel"] for call in client.post_calls] == ["U2", "U1"]
    assert result.request.status is ApprovalStatus.PENDING
    assert result.approver_notified and result.requester_notified
    assert (result.message_channel, result.message_ts) == ("D-U2", "1700000000.000001")

    approver_call, requester_call = client.post_calls
    approve, reject = _buttons(approver_call)
    assert approve["value"] == reject["value"]
    assert approve["action_id"] != reject["action_id"]
    assert json.loads(approve["value"]) == {"requesterUserId": "U1", "requestText": "Deploy v2 to prod"}
    assert "Deploy v2 to prod" in approver_call["blocks"][1]["text"]["text"]
    assert "<@U2>" in requester_call["text"]


def test_dispatch_signs_token_when_secret_given():
    client = DummySlackWebClient()

    _dispatch(client, token_secret="s3cret")

    token = _buttons(client.post_calls[0])[0]["value"]
    assert decode_token(token, secret="s3cret").requester_id == "U1"


def test_approver_failure_does_not_block_confirmation():
    client = DummySlackWebClient(failing_channels={"U2"})

    with capture_logs() as logs:
        result = _dispatch(client)

    assert [call["channel"] for call in client.post_calls] == ["U2", "U1"]
    assert result.approver_notified is False
    assert result.requester_notified is True
    assert result.message_ts is None
    assert any(entry.get("event") == "approval_request_send_failed" for entry in logs)


def test_confirmation_failure_is_logged():
    client = DummySlackWebClient(failing_channels={"U1"})

    with capture_logs() as logs:
        result = _dispatch(client)

    assert result.approver_notified is True
    assert result.requester_notified is False
    assert any(entry.get("event") == "requester_confirmation_failed" for entry in logs)


def test_unencodable_request_sends_nothing():
    client = DummySlackWebClient()

    with capture_logs() as logs:
        result = _dispatch(client, request_text='"' * 1500)

    assert result is None
    assert client.post_calls == []
    assert any(entry.get("event") == "approval_request_not_encoded" for entry in logs)


def test_unsignable_request_sends_nothing():
    client = DummySlackWebClient()

    with capture_logs() as logs:
        result = _dispatch(client, request_text="a\ud800b", token_secret="s3cret")

    assert result is None
    assert client.post_calls == []
    assert any(entry.get("event") == "approval_request_not_encoded" for entry in logs)
