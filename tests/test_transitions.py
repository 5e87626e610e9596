"""Leave request state machine."""

from __future__ import annotations

import pytest

from timeoff.common.constants import LeaveStatus
from timeoff.common.exceptions import InvalidTransition
from timeoff.leave.transitions import (
    ALLOWED_TRANSITIONS,
    can_transition,
    ensure_transition,
    is_terminal,
)

S = LeaveStatus

ALLOWED = {
    (S.pending, S.approved),
    (S.pending, S.rejected),
    (S.pending, S.cancelled),
    (S.approved, S.cancelled),
}


@pytest.mark.parametrize("current", list(S))
@pytest.mark.parametrize("target", list(S))
def test_transition_table(current, target):
    assert can_transition(current, target) is ((current, target) in ALLOWED)


@pytest.mark.parametrize("current", list(S))
def test_every_status_has_an_entry(current):
    assert current in ALLOWED_TRANSITIONS


def test_terminal_statuses():
    assert is_terminal(S.pending) is False
    assert is_terminal(S.approved) is True
    assert is_terminal(S.rejected) is True
    assert is_terminal(S.cancelled) is True


def test_ensure_transition_allows_valid_move():
    ensure_transition(S.pending, S.approved)
    ensure_transition(S.approved, S.cancelled)


@pytest.mark.parametrize(
    "current, target, message",
    [
        (S.approved, S.approved, "Invalid or non-pending request."),
        (S.rejected, S.approved, "Invalid or non-pending request."),
        (S.cancelled, S.rejected, "Invalid or non-pending request."),
        (S.rejected, S.cancelled, "Only pending or approved requests can be cancelled."),
        (S.cancelled, S.cancelled, "Only pending or approved requests can be cancelled."),
    ],
)
def test_ensure_transition_refuses(current, target, message):
    with pytest.raises(InvalidTransition) as exc_info:
        ensure_transition(current, target)
    exc = exc_info.value
    assert exc.status_code == 409
    assert exc.detail == message
    assert exc.current == current.value
    assert exc.target == target.value
