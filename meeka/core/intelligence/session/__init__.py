"""
Dialogue session module.

A DialogueSession is owned by the controller of one conversation; the
SessionManager only keeps it between turns.
"""

from .models import NOTES_FIELD, DialogueSession, InvalidTransitionError
from .manager import SessionManager, get_session_manager
from .state import (
    VALID_TRANSITIONS,
    CollectionPhase,
    can_transition,
    is_collecting_phase,
    is_terminal_phase,
)

__all__ = [
    # State
    "CollectionPhase",
    "VALID_TRANSITIONS",
    "can_transition",
    "is_collecting_phase",
    "is_terminal_phase",
    # Models
    "DialogueSession",
    "InvalidTransitionError",
    "NOTES_FIELD",
    # Manager
    "SessionManager",
    "get_session_manager",
]
