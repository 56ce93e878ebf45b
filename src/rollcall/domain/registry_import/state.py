"""Import session lifecycle."""

from __future__ import annotations

from enum import StrEnum


class SessionState(StrEnum):
    IDLE = "idle"
    PARSED = "parsed"
    RESOLVED = "resolved"
    STAGED = "staged"
    CANCELLED = "cancelled"
    COMMITTING = "committing"
    COMPLETED = "completed"
    PARTIALLY_COMPLETED = "partially_completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL


_TERMINAL = frozenset(
    {
        SessionState.CANCELLED,
        SessionState.COMPLETED,
        SessionState.PARTIALLY_COMPLETED,
        SessionState.FAILED,
    }
)

ALLOWED_TRANSITIONS: dict[SessionState, frozenset[SessionState]] = {
    SessionState.IDLE: frozenset({SessionState.PARSED, SessionState.FAILED}),
    SessionState.PARSED: frozenset({SessionState.RESOLVED, SessionState.FAILED}),
    SessionState.RESOLVED: frozenset({SessionState.STAGED, SessionState.FAILED}),
    SessionState.STAGED: frozenset({SessionState.CANCELLED, SessionState.COMMITTING}),
    SessionState.COMMITTING: frozenset(
        {SessionState.COMPLETED, SessionState.PARTIALLY_COMPLETED, SessionState.FAILED}
    ),
}


def can_transition(current: SessionState, target: SessionState) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())
