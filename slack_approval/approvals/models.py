"""Approval request entity and its one-way status machine."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum


class ApprovalStatus(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"

    @property
    def is_terminal(self) -> bool:
        return self is not ApprovalStatus.PENDING


class Decision(str, Enum):
    APPROVE = "Approve"
    REJECT = "Reject"

    @property
    def outcome(self) -> ApprovalStatus:
        return _DECISION_OUTCOMES[self]


_DECISION_OUTCOMES = {
    Decision.APPROVE: ApprovalStatus.APPROVED,
    Decision.REJECT: ApprovalStatus.REJECTED,
}

_ALLOWED_TRANSITIONS = {
    ApprovalStatus.PENDING: {ApprovalStatus.APPROVED, ApprovalStatus.REJECTED},
    ApprovalStatus.APPROVED: set(),
    ApprovalStatus.REJECTED: set(),
}


class StatusTransitionError(Exception):
    """Raised when an invalid status transition is attempted."""


@dataclass(frozen=True)
class ApprovalRequest:
    """A single approval request as carried between callbacks.

    ``approver_id`` is ``None`` when the request was rebuilt from a decision
    token; it is bound to the acting user when a decision is applied.
    """

    requester_id: str
    request_text: str
    approver_id: str | None = None
    status: ApprovalStatus = ApprovalStatus.PENDING

    def transition(self, decision: Decision, *, decided_by: str) -> "ApprovalRequest":
        """Return the terminal request produced by *decision*."""

        new_status = decision.outcome
        if new_status not in _ALLOWED_TRANSITIONS[self.status]:
            raise StatusTransitionError(f"Cannot transition from {self.status.value} to {new_status.value}")
        return replace(self, status=new_status, approver_id=decided_by)
