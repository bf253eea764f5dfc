"""Data collection phase state machine."""

from enum import Enum
from typing import Set


class CollectionPhase(str, Enum):
    """Phases of a record collection dialogue."""

    # Asking the schema's required fields in order
    COLLECTING_REQUIRED = "collecting_required"

    # Asking for optional trailing notes
    COLLECTING_NOTES = "collecting_notes"

    # Record handed off (terminal)
    COMPLETE = "complete"


# Valid phase transitions
VALID_TRANSITIONS: dict[CollectionPhase, Set[CollectionPhase]] = {
    CollectionPhase.COLLECTING_REQUIRED: {
        CollectionPhase.COLLECTING_REQUIRED,  # Next required field
        CollectionPhase.COLLECTING_NOTES,
        CollectionPhase.COMPLETE,
    },
    CollectionPhase.COLLECTING_NOTES: {
        CollectionPhase.COMPLETE,
    },
    CollectionPhase.COMPLETE: set(),  # Terminal state
}


def can_transition(from_phase: CollectionPhase, to_phase: CollectionPhase) -> bool:
    """Check if a phase transition is valid."""
    return to_phase in VALID_TRANSITIONS.get(from_phase, set())


def is_terminal_phase(phase: CollectionPhase) -> bool:
    """Check if phase is terminal (no further transitions)."""
    return phase == CollectionPhase.COMPLETE


def is_collecting_phase(phase: CollectionPhase) -> bool:
    """Check if phase is still accepting answers."""
    return phase in {
        CollectionPhase.COLLECTING_REQUIRED,
        CollectionPhase.COLLECTING_NOTES,
    }
