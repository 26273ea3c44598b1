"""Encode approval state into, and recover it from, decision-button values."""

from __future__ import annotations

import json

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from slack_approval.security import digests_match, keyed_digest

from .models import ApprovalRequest

# Slack rejects button values longer than this.
MAX_TOKEN_LENGTH = 2000

_SIGNATURE_KEY = "sig"


class TokenError(ValueError):
    """Raised when a decision token cannot be produced or trusted."""


class TokenPayload(BaseModel):
    """Wire shape of a decision token."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid", strict=True)

    requester_id: str = Field(..., alias="requesterUserId")
    request_text: str = Field(..., alias="requestText")

    @field_validator("requester_id")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("requesterUserId must not be empty")
        return value


def _canonical(payload: TokenPayload) -> str:
    return json.dumps(
        payload.model_dump(by_alias=True),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )


def _sign(secret: str, body: str) -> str:
    try:
        return keyed_digest(secret, body)
    except UnicodeEncodeError as exc:
        raise TokenError("Decision token text cannot be signed.") from exc


def encode_token(request: ApprovalRequest, secret: str | None = None) -> str:
    """Serialise the fields a decision needs into an opaque button value."""

    try:
        payload = TokenPayload(requester_id=request.requester_id, request_text=request.request_text)
    except ValidationError as exc:
        raise TokenError("Request cannot be encoded.") from exc

    body = _canonical(payload)
    if secret:
        data = payload.model_dump(by_alias=True)
        data[_SIGNATURE_KEY] = _sign(secret, body)
        body = json.dumps(data, sort_keys=True, separators=(",", ":"), ensure_ascii=False)

    if len(body) > MAX_TOKEN_LENGTH:
        raise TokenError("Request is too large to carry in a decision button.")
    return body


def decode_token(raw_value: str | None, secret: str | None = None) -> ApprovalRequest:
    """Rebuild a pending :class:`ApprovalRequest` from a button value."""

    if not isinstance(raw_value, str) or not raw_value:
        raise TokenError("Missing decision token.")

    try:
        data = json.loads(raw_value)
    except (json.JSONDecodeError, RecursionError) as exc:
        raise TokenError("Invalid decision token.") from exc

    if not isinstance(data, dict):
        raise TokenError("Invalid decision token.")

    signature = data.pop(_SIGNATURE_KEY, None)
    try:
        payload = TokenPayload.model_validate(data)
    except ValidationError as exc:
        raise TokenError("Invalid decision token.") from exc

    if secret:
        if not isinstance(signature, str) or not digests_match(_sign(secret, _canonical(payload)), signature):
            raise TokenError("Decision token signature mismatch.")

    return ApprovalRequest(requester_id=payload.requester_id, request_text=payload.request_text)
