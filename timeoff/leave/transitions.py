"""Leave request state machine.

    pending ──approve──▶ approved ──cancel──▶ cancelled
       │                                        ▲
       ├──reject───▶ rejected                   │
       └──cancel────────────────────────────────┘

Every status change goes through ``ensure_transition`` so that the allowed
moves live in exactly one table.
"""

from __future__ import annotations

from timeoff.common.constants import LeaveStatus
from timeoff.common.exceptions import InvalidTransition

ALLOWED_TRANSITIONS: dict[LeaveStatus, frozenset[LeaveStatus]] = {
    LeaveStatus.pending: frozenset(
        {LeaveStatus.approved, LeaveStatus.rejected, LeaveStatus.cancelled}
    ),
    LeaveStatus.approved: frozenset({LeaveStatus.cancelled}),
    LeaveStatus.rejected: frozenset(),
    LeaveStatus.cancelled: frozenset(),
}

_REFUSAL_MESSAGES: dict[LeaveStatus, str] = {
    LeaveStatus.approved: "Invalid or non-pending request.",
    LeaveStatus.rejected: "Invalid or non-pending request.",
    LeaveStatus.cancelled: "Only pending or approved requests can be cancelled.",
}


def can_transition(current: LeaveStatus, target: LeaveStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def is_terminal(status: LeaveStatus) -> bool:
    """True when no approve/reject may follow (approved, rejected, cancelled)."""
    return LeaveStatus.approved not in ALLOWED_TRANSITIONS[status] and (
        LeaveStatus.rejected not in ALLOWED_TRANSITIONS[status]
    )


def ensure_transition(current: LeaveStatus, target: LeaveStatus) -> None:
    """Raise ``InvalidTransition`` unless *current* → *target* is allowed."""
    if not can_transition(current, target):
        raise InvalidTransition(
            current=current.value,
            target=target.value,
            detail=_REFUSAL_MESSAGES.get(target, "Transition not allowed."),
        )
