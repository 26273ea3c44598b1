"""Parse the approval modal's submitted state."""

from __future__ import annotations

from typing import Any, Dict, Mapping

from pydantic import BaseModel, ValidationError

from .modal import APPROVER_ACTION_ID, APPROVER_BLOCK_ID, REQUEST_ACTION_ID, REQUEST_BLOCK_ID


class SubmissionValue(BaseModel):
    """Represents a single element's state coming from a Slack modal."""

    value: str | None = None
    selected_user: str | None = None


class SubmissionState(BaseModel):
    """Model to validate Slack modal state payloads."""

    values: Dict[str, Dict[str, SubmissionValue]]


def _element(state: SubmissionState, block_id: str, action_id: str) -> SubmissionValue:
    block = state.values.get(block_id, {})
    if action_id in block:
        return block[action_id]
    return next(iter(block.values()), SubmissionValue())


def parse_submission(state_values: Mapping[str, Any]) -> tuple[str, str]:
    """Return ``(approver_id, request_text)`` from ``view.state.values``."""

    try:
        state = SubmissionState.model_validate({"values": state_values})
    except ValidationError as exc:
        raise ValueError("Invalid submission payload") from exc

    approver_id = (_element(state, APPROVER_BLOCK_ID, APPROVER_ACTION_ID).selected_user or "").strip()
    if not approver_id:
        raise ValueError(f"{APPROVER_BLOCK_ID}: An approver is required.")

    request_text = _element(state, REQUEST_BLOCK_ID, REQUEST_ACTION_ID).value
    if request_text is None or not request_text.strip():
        raise ValueError(f"{REQUEST_BLOCK_ID}: Request details are required.")

    return approver_id, request_text
