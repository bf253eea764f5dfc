"""
Record schema registry.

One schema per table Meeka can write to: the required fields in the order
they are asked, the optional fields, and what to say when asking for each.
Loaded once at import and read-only afterwards.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional

from meeka.core.intelligence.intent.types import Intent

# Tables
SYMPTOMS = "symptoms"
MEDICATIONS = "medications"
MOOD_ENTRIES = "mood_entries"
DIARY_ENTRIES = "diary_entries"

GENERIC_NOTES_PROMPT = "Is there anything else you'd like to add?"


@dataclass(frozen=True)
class RecordSchema:
    """Fields and prompts for one table."""

    table: str
    label: str
    required: tuple[str, ...]
    optional: frozenset[str]
    prompts: Mapping[str, str]
    descriptions: Mapping[str, str]
    notes_prompt: str

    @property
    def fields(self) -> frozenset[str]:
        """Every field a collected record may carry."""
        return frozenset(self.required) | self.optional | {"notes"}

    @property
    def supports_notes(self) -> bool:
        return "notes" in self.optional

    @property
    def opening_line(self) -> str:
        return f"I'll help you add {_article(self.label)} {self.label}."

    def prompt_for(self, field_name: str) -> str:
        """Question to ask for a field."""
        return self.prompts.get(field_name) or f"What's the {field_name}?"

    def next_required(self, after: Optional[str] = None) -> Optional[str]:
        """Required field following ``after`` (first field when None)."""
        if after is None:
            return self.required[0] if self.required else None
        try:
            index = self.required.index(after)
        except ValueError:
            return None
        return self.required[index + 1] if index + 1 < len(self.required) else None


def _article(word: str) -> str:
    return "an" if word[:1].lower() in "aeiou" else "a"


def _schema(
    table: str,
    label: str,
    required: tuple[str, ...],
    optional: tuple[str, ...],
    prompts: dict[str, str],
    descriptions: dict[str, str],
    notes_prompt: str,
) -> RecordSchema:
    return RecordSchema(
        table=table,
        label=label,
        required=required,
        optional=frozenset(optional),
        prompts=MappingProxyType(prompts),
        descriptions=MappingProxyType(descriptions),
        notes_prompt=notes_prompt,
    )


SCHEMAS: Mapping[str, RecordSchema] = MappingProxyType({
    SYMPTOMS: _schema(
        table=SYMPTOMS,
        label="symptom",
        required=("description", "start_date", "severity"),
        optional=("end_date", "notes"),
        prompts={
            "description": "What's the description of the symptom?",
            "start_date": "When did the symptom start? (I'll use today if you don't specify)",
            "severity": "How severe is it? (Mild, Moderate, or Severe)",
            "end_date": "When did the symptom end? (optional)",
            "notes": "Any additional notes? (optional)",
        },
        descriptions={
            "description": "text - description of the symptom",
            "start_date": "date - when the symptom started",
            "end_date": "date - when the symptom ended (optional)",
            "severity": "enum - Mild, Moderate, or Severe",
            "notes": "text - additional notes (optional)",
        },
        notes_prompt=(
            "Is there anything else you'd like to add about this symptom? "
            "(e.g., triggers, patterns, related symptoms, or any other details)"
        ),
    ),
    MEDICATIONS: _schema(
        table=MEDICATIONS,
        label="medication",
        required=("medication_name", "start_date", "dosage", "status"),
        optional=("end_date", "prescribed_by", "notes"),
        prompts={
            "medication_name": "What's the name of the medication?",
            "start_date": "When did you start taking it? (I'll use today if you don't specify)",
            "dosage": "What's the dosage?",
            "status": "Is it Active or Inactive?",
            "end_date": "When did you stop taking it? (optional)",
            "prescribed_by": "Who prescribed it? (optional)",
            "notes": "Any additional notes? (optional)",
        },
        descriptions={
            "medication_name": "text - name of the medication",
            "start_date": "date - when medication was started",
            "end_date": "date - when medication was stopped (optional)",
            "dosage": "text - dosage instructions",
            "status": "enum - Active or Inactive",
            "prescribed_by": "text - who prescribed it (optional)",
            "notes": "text - additional notes (optional)",
        },
        notes_prompt=(
            "Is there anything else you'd like to add about this medication? "
            "(e.g., side effects, effectiveness, or any other details)"
        ),
    ),
    MOOD_ENTRIES: _schema(
        table=MOOD_ENTRIES,
        label="mood entry",
        required=("date", "body", "mind", "sleep", "mood"),
        optional=("notes",),
        prompts={
            "date": "What date is this mood entry for? (I'll use today if you don't specify)",
            "body": "Rate your physical well-being from 1-5 (1=poor, 5=excellent)",
            "mind": "Rate your mental well-being from 1-5 (1=poor, 5=excellent)",
            "sleep": "Rate your sleep quality from 1-5 (1=poor, 5=excellent)",
            "mood": "Rate your overall mood from 1-5 (1=poor, 5=excellent)",
            "notes": "Any additional notes? (optional)",
        },
        descriptions={
            "date": "date - date of the mood entry",
            "body": "integer 1-5 - physical well-being rating",
            "mind": "integer 1-5 - mental well-being rating",
            "sleep": "integer 1-5 - sleep quality rating",
            "mood": "integer 1-5 - overall mood rating",
            "notes": "text - additional notes (optional)",
        },
        notes_prompt=(
            "Is there anything else you'd like to add about your mood today? "
            "(e.g., what influenced your mood, activities, or any other details)"
        ),
    ),
    DIARY_ENTRIES: _schema(
        table=DIARY_ENTRIES,
        label="diary entry",
        required=("entry_type", "title", "date"),
        optional=("notes", "severity", "attendees"),
        prompts={
            "entry_type": (
                "What type of entry? (Symptom, Appointment, Diagnosis, Note, "
                "Treatment, Other, or AI)"
            ),
            "title": "What's the title of this entry?",
            "date": "What date is this for? (I'll use today if you don't specify)",
            "notes": "Any detailed notes? (optional)",
            "severity": "What's the severity level? (optional)",
            "attendees": "Who was present? (optional, separate names with commas)",
        },
        descriptions={
            "entry_type": "enum - Symptom, Appointment, Diagnosis, Note, Treatment, Other, AI",
            "title": "text - title of the entry",
            "date": "date - date of the entry",
            "notes": "text - detailed notes (optional)",
            "severity": "text - severity level (optional)",
            "attendees": "array - list of people present (optional)",
        },
        notes_prompt=(
            "Is there anything else you'd like to add to this entry? "
            "(e.g., additional context, follow-up actions, or any other details)"
        ),
    ),
})

# Record intents that open a collection dialogue
INTENT_TABLES: Mapping[Intent, str] = MappingProxyType({
    Intent.ADD_SYMPTOM: SYMPTOMS,
    Intent.ADD_MEDICATION: MEDICATIONS,
    Intent.ADD_MOOD: MOOD_ENTRIES,
    Intent.ADD_NOTE: DIARY_ENTRIES,
})


def get_schema(table: str) -> Optional[RecordSchema]:
    """Schema for a table, or None if Meeka cannot write to it."""
    return SCHEMAS.get(table)


def schema_for_intent(intent: Intent) -> Optional[RecordSchema]:
    """Schema an intent collects, or None (appointments, sleep, queries...)."""
    table = INTENT_TABLES.get(intent)
    return SCHEMAS.get(table) if table else None


def get_field_prompt(table: str, field_name: str) -> str:
    """Question for one field; unknown tables and fields get generic phrasing."""
    schema = SCHEMAS.get(table)
    if schema is None:
        return f"What's the {field_name}?"
    return schema.prompt_for(field_name)


def get_notes_prompt(table: str) -> str:
    """Trailing notes question for a table."""
    schema = SCHEMAS.get(table)
    return schema.notes_prompt if schema else GENERIC_NOTES_PROMPT
