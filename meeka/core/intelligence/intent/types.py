"""Intent types for conversation classification."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional


class Intent(str, Enum):
    """What the user wants Meeka to do.

    Declaration order is the tie-break order when two intents score the same.
    """

    # Record creation
    ADD_SYMPTOM = "ADD_SYMPTOM"
    ADD_MEDICATION = "ADD_MEDICATION"
    ADD_APPOINTMENT = "ADD_APPOINTMENT"
    ADD_NOTE = "ADD_NOTE"
    ADD_MOOD = "ADD_MOOD"
    ADD_SLEEP = "ADD_SLEEP"

    # Questions about existing data
    QUERY_DATA = "QUERY_DATA"

    # AI analysis requests
    AI_SYMPTOM_ANALYSIS = "AI_SYMPTOM_ANALYSIS"
    AI_QUESTIONS = "AI_QUESTIONS"
    AI_TERMINOLOGY = "AI_TERMINOLOGY"
    AI_TRENDS = "AI_TRENDS"

    # Fallback
    UNKNOWN = "UNKNOWN"


RECORD_INTENTS = frozenset({
    Intent.ADD_SYMPTOM,
    Intent.ADD_MEDICATION,
    Intent.ADD_APPOINTMENT,
    Intent.ADD_NOTE,
    Intent.ADD_MOOD,
    Intent.ADD_SLEEP,
})

ANALYSIS_INTENTS = frozenset({
    Intent.AI_SYMPTOM_ANALYSIS,
    Intent.AI_QUESTIONS,
    Intent.AI_TERMINOLOGY,
    Intent.AI_TRENDS,
})


# Where the UI should take the user for each intent
INTENT_ROUTES: dict[Intent, str] = {
    Intent.ADD_SYMPTOM: "/patient/:patientId?symptom=true",
    Intent.ADD_MEDICATION: "/patient/:patientId?medication=true",
    Intent.ADD_APPOINTMENT: "/patient/:patientId?appointment=true",
    Intent.ADD_NOTE: "/patient/:patientId?note=true",
    Intent.ADD_MOOD: "/patient/:patientId?mood=true",
    Intent.ADD_SLEEP: "/patient/:patientId?sleep=true",
    Intent.QUERY_DATA: "/patient/:patientId?query=true",
    Intent.AI_SYMPTOM_ANALYSIS: "/patient/:patientId?analysis=symptom-analysis",
    Intent.AI_QUESTIONS: "/patient/:patientId?analysis=questions",
    Intent.AI_TERMINOLOGY: "/patient/:patientId?analysis=terminology",
    Intent.AI_TRENDS: "/patient/:patientId?analysis=trends",
}

_LABELS: dict[Intent, str] = {
    Intent.ADD_SYMPTOM: "Add Symptom",
    Intent.ADD_MEDICATION: "Add Medication",
    Intent.ADD_APPOINTMENT: "Add Appointment",
    Intent.ADD_NOTE: "Add Note",
    Intent.ADD_MOOD: "Add Mood",
    Intent.ADD_SLEEP: "Add Sleep",
    Intent.QUERY_DATA: "Query Health Data",
    Intent.AI_SYMPTOM_ANALYSIS: "Symptom Insights",
    Intent.AI_QUESTIONS: "Questions for Next Visit",
    Intent.AI_TERMINOLOGY: "Explain Terminology",
    Intent.AI_TRENDS: "Health Trends",
}


def intent_label(intent: Intent) -> str:
    """Short human label, e.g. "Add Symptom"."""
    return _LABELS.get(intent, intent.value.replace("_", " ").title())


def get_suggested_actions() -> list[dict[str, str]]:
    """Actions offered when the user has not said anything yet."""
    return [
        {"intent": Intent.ADD_SYMPTOM.value, "label": "Add Symptom", "description": "Record a new symptom or pain"},
        {"intent": Intent.ADD_MEDICATION.value, "label": "Add Medication", "description": "Log a new medication or supplement"},
        {"intent": Intent.ADD_APPOINTMENT.value, "label": "Add Appointment", "description": "Schedule a doctor visit"},
        {"intent": Intent.ADD_NOTE.value, "label": "Add Note", "description": "Write a general note or diary entry"},
        {"intent": Intent.ADD_MOOD.value, "label": "Add Mood", "description": "Track your mood and feelings"},
    ]


@dataclass(frozen=True)
class IntentScore:
    """Best confidence one intent reached for an utterance."""

    intent: Intent
    confidence: float  # 0.0 - 1.0


@dataclass(frozen=True)
class RankedIntents:
    """All intents that matched, best first."""

    scores: tuple[IntentScore, ...] = ()

    @property
    def top(self) -> Optional[IntentScore]:
        """Highest-ranked score, if anything matched."""
        return self.scores[0] if self.scores else None

    def __iter__(self) -> Iterator[IntentScore]:
        return iter(self.scores)

    def __len__(self) -> int:
        return len(self.scores)

    def __getitem__(self, index: int) -> IntentScore:
        return self.scores[index]


@dataclass(frozen=True)
class IntentMatch:
    """Result of intent detection."""

    intent: Intent
    confidence: float  # 0.0 - 1.0
    slots: dict[str, str] = field(default_factory=dict)
    route: str = ""

    @classmethod
    def unknown(cls) -> "IntentMatch":
        """The "no opinion" result."""
        return cls(intent=Intent.UNKNOWN, confidence=0.0, slots={}, route="")

    @property
    def is_unknown(self) -> bool:
        return self.intent == Intent.UNKNOWN

    @property
    def is_record_intent(self) -> bool:
        """Check if the user wants to create a record."""
        return self.intent in RECORD_INTENTS

    @property
    def is_analysis_intent(self) -> bool:
        """Check if the user asked for an AI analysis."""
        return self.intent in ANALYSIS_INTENTS

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "intent": self.intent.value,
            "confidence": self.confidence,
            "slots": dict(self.slots),
            "route": self.route,
        }


@dataclass(frozen=True)
class MultiIntentMatch:
    """Primary intent plus an optional "did you also mean" suggestion."""

    primary: IntentMatch
    secondary: Optional[IntentMatch] = None

    @property
    def has_secondary(self) -> bool:
        return self.secondary is not None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "primary": self.primary.to_dict(),
            "secondary": self.secondary.to_dict() if self.secondary else None,
        }
