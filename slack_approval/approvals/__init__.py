"""Approval workflow: intake modal, dispatch encoder and decision resolver."""

from .dispatch import DispatchResult, dispatch_request
from .intake import open_request_modal
from .messages import APPROVE_ACTION_ID, DECISION_BLOCK_ID, REJECT_ACTION_ID
from .modal import APPROVER_ACTION_ID, MODAL_CALLBACK_ID, build_request_modal
from .models import ApprovalRequest, ApprovalStatus, Decision, StatusTransitionError
from .resolver import ResolutionResult, decision_for_action, resolve_decision
from .submission import parse_submission
from .tokens import TokenError, decode_token, encode_token

__all__ = [
    "ApprovalRequest",
    "ApprovalStatus",
    "Decision",
    "StatusTransitionError",
    "TokenError",
    "encode_token",
    "decode_token",
    "build_request_modal",
    "open_request_modal",
    "parse_submission",
    "dispatch_request",
    "DispatchResult",
    "resolve_decision",
    "decision_for_action",
    "ResolutionResult",
    "APPROVE_ACTION_ID",
    "REJECT_ACTION_ID",
    "DECISION_BLOCK_ID",
    "APPROVER_ACTION_ID",
    "MODAL_CALLBACK_ID",
]
