"""
Dialogue session model.

One DialogueSession exists per conversation while a record is being
collected. It is a plain value: the controller that owns the conversation
mutates it once per turn and the SessionManager stores it between turns.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from .state import CollectionPhase, can_transition

# Marker used as current_field while the notes question is open
NOTES_FIELD = "notes"


def _utcnow() -> datetime:
    """Get current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


class InvalidTransitionError(Exception):
    """Raised when a session is moved to a phase it cannot reach."""


@dataclass
class DialogueSession:
    """
    State of one record collection dialogue.

    collected_data keeps insertion order, which is the order the user
    answered in.
    """

    conversation_id: str
    profile_id: Optional[str]
    table: str
    collected_data: dict[str, Any] = field(default_factory=dict)
    current_field: Optional[str] = None
    phase: CollectionPhase = CollectionPhase.COLLECTING_REQUIRED
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    @property
    def is_active(self) -> bool:
        """True while the session still accepts answers."""
        return self.phase != CollectionPhase.COMPLETE

    def move_to(self, phase: CollectionPhase, current_field: Optional[str]) -> None:
        """
        Change phase and the field being asked.

        Raises:
            InvalidTransitionError: If the phase cannot be reached from here
        """
        if not can_transition(self.phase, phase):
            raise InvalidTransitionError(
                f"Invalid transition: {self.phase.value} -> {phase.value}"
            )
        self.phase = phase
        self.current_field = current_field
        self.updated_at = _utcnow()

    def store(self, field_name: str, value: Any) -> None:
        """Record an answer."""
        self.collected_data[field_name] = value
        self.updated_at = _utcnow()

    def to_json(self) -> str:
        """Convert to JSON string for Redis storage."""
        data = {
            "conversation_id": self.conversation_id,
            "profile_id": self.profile_id,
            "table": self.table,
            "collected_data": self.collected_data,
            "current_field": self.current_field,
            "phase": self.phase.value,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }
        return json.dumps(data)

    @classmethod
    def from_json(cls, json_str: str) -> "DialogueSession":
        """Create from JSON string."""
        data = json.loads(json_str)
        return cls(
            conversation_id=data["conversation_id"],
            profile_id=data.get("profile_id"),
            table=data["table"],
            collected_data=data.get("collected_data", {}),
            current_field=data.get("current_field"),
            phase=CollectionPhase(data.get("phase", CollectionPhase.COLLECTING_REQUIRED.value)),
            created_at=datetime.fromisoformat(data["created_at"]),
            updated_at=datetime.fromisoformat(data["updated_at"]),
        )

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return json.loads(self.to_json())
