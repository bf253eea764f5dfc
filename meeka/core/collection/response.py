"""
Response content for the chat surface.

Plain-text messages only; rendering is the caller's job.
"""

from datetime import datetime
from typing import Optional

from meeka.core.intelligence.intent.types import Intent, IntentMatch, intent_label
from .schemas import get_field_prompt, get_schema

GREETING = """Hi! I'm Meeka, your health assistant. What would you like to do today? I can help you:

• Add new symptoms, medications, or appointments
• Track your mood and sleep
• Write notes about your health
• Answer questions about your health patterns
• Suggest questions for your next doctor visit

What can I help you with?"""

LOW_CONFIDENCE = """I'm not quite sure what you'd like to do. Did you mean one of these?

• Add a symptom or pain
• Log a new medication
• Schedule an appointment
• Write a health note
• Track your mood

Or you can tell me what you need in your own words!"""

GENERIC_ERROR = "Sorry, I encountered an error. Please try again."

NO_PROFILE = "No patient selected. Please select a patient first."

PROCESSING = "Processing your request..."

# Slots worth echoing back, in display order
_CONFIRMATION_SLOTS = ("description", "medication_name", "dosage")


def _format_time(now: datetime) -> str:
    # 12-hour clock without a leading zero, e.g. "9:05 AM"
    hour = now.hour % 12 or 12
    suffix = "AM" if now.hour < 12 else "PM"
    return f"{hour}:{now.minute:02d} {suffix}"


def confirmation_message(
    intent: Intent,
    patient_name: str,
    slots: dict[str, str],
    now: Optional[datetime] = None,
) -> str:
    """
    Confirmation shown when an intent is acted on.

    Example:
        "Opening Add Medication for Sam • Today 9:05 AM • metformin • 500mg"
    """
    now = now or datetime.now()
    details = "".join(
        f" • {slots[name]}" for name in _CONFIRMATION_SLOTS if slots.get(name)
    )
    return (
        f"Opening {intent_label(intent)} for {patient_name} • Today {_format_time(now)}"
        f"{details}\n\nChange anything?"
    )


def opening_prompt(table: str) -> str:
    """First message of a collection dialogue: opening line plus first question."""
    schema = get_schema(table)
    if schema is None:
        return GENERIC_ERROR
    first = schema.next_required()
    return f"{schema.opening_line} {get_field_prompt(table, first)}"


def did_you_also_mean(secondary: IntentMatch) -> str:
    """Suggestion for the runner-up intent."""
    return f"Did you also want to {intent_label(secondary.intent).lower()}?"


def failure_message(label: str, reason: str) -> str:
    return f"Failed to add {label}: {reason}"
