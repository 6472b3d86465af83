"""Builder lifecycle transition rules."""

from openvideo.errors import StateConflictError
from openvideo.schemas.builder import BuilderStatus

_TERMINAL_STATES: set[BuilderStatus] = {BuilderStatus.TRANSCODED}

_ALLOWED_TRANSITIONS: dict[BuilderStatus, set[BuilderStatus]] = {
    BuilderStatus.INITIATED: {BuilderStatus.UPLOADED},
    BuilderStatus.UPLOADED: {BuilderStatus.TRANSCODED},
    BuilderStatus.TRANSCODED: set(),
}


def allowed_next_statuses(status: BuilderStatus) -> list[BuilderStatus]:
    """Return deterministically ordered allowed successors for a status."""
    return sorted(_ALLOWED_TRANSITIONS.get(status, set()), key=lambda s: s.value)


def is_terminal(status: BuilderStatus) -> bool:
    return status in _TERMINAL_STATES


def ensure_transition(old_status: BuilderStatus, new_status: BuilderStatus) -> None:
    """Validate a forward-only builder transition."""
    if old_status in _TERMINAL_STATES:
        raise StateConflictError(
            "Terminal state cannot be mutated",
            code="FSM_TERMINAL_IMMUTABLE",
            details={
                "current_status": old_status,
                "attempted_status": new_status,
                "allowed_next_statuses": [],
            },
        )

    if new_status not in _ALLOWED_TRANSITIONS.get(old_status, set()):
        raise StateConflictError(
            "Invalid status transition",
            code="FSM_TRANSITION_INVALID",
            details={
                "current_status": old_status,
                "attempted_status": new_status,
                "allowed_next_statuses": allowed_next_statuses(old_status),
            },
        )
