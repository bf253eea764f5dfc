"""Tests for the record schema registry and response text."""

from datetime import datetime

import pytest

from meeka.core.collection.response import (
    confirmation_message,
    did_you_also_mean,
    failure_message,
    opening_prompt,
)
from meeka.core.collection.schemas import (
    DIARY_ENTRIES,
    GENERIC_NOTES_PROMPT,
    INTENT_TABLES,
    MEDICATIONS,
    MOOD_ENTRIES,
    SCHEMAS,
    SYMPTOMS,
    get_field_prompt,
    get_notes_prompt,
    get_schema,
    schema_for_intent,
)
from meeka.core.intelligence.intent import Intent, IntentMatch


class TestSchemas:
    """Test schema definitions."""

    def test_required_field_order(self):
        assert SCHEMAS[SYMPTOMS].required == ("description", "start_date", "severity")
        assert SCHEMAS[MEDICATIONS].required == (
            "medication_name", "start_date", "dosage", "status",
        )
        assert SCHEMAS[MOOD_ENTRIES].required == ("date", "body", "mind", "sleep", "mood")
        assert SCHEMAS[DIARY_ENTRIES].required == ("entry_type", "title", "date")

    def test_every_schema_supports_notes(self):
        for schema in SCHEMAS.values():
            assert schema.supports_notes
            assert "notes" in schema.fields

    def test_required_and_optional_disjoint(self):
        for schema in SCHEMAS.values():
            assert not set(schema.required) & schema.optional

    def test_registry_is_read_only(self):
        with pytest.raises(TypeError):
            SCHEMAS["sleep"] = SCHEMAS[SYMPTOMS]

    def test_next_required(self):
        schema = get_schema(SYMPTOMS)

        assert schema.next_required() == "description"
        assert schema.next_required("description") == "start_date"
        assert schema.next_required("severity") is None
        assert schema.next_required("colour") is None

    def test_unknown_table(self):
        assert get_schema("sleep_logs") is None


class TestPrompts:
    """Test prompt lookup."""

    def test_field_prompt(self):
        assert get_field_prompt(MEDICATIONS, "dosage") == "What's the dosage?"

    def test_unknown_field_prompt(self):
        assert get_field_prompt(SYMPTOMS, "colour") == "What's the colour?"
        assert get_field_prompt("sleep_logs", "hours") == "What's the hours?"

    def test_notes_prompt(self):
        assert get_notes_prompt(SYMPTOMS).startswith(
            "Is there anything else you'd like to add about this symptom?"
        )
        assert get_notes_prompt("sleep_logs") == GENERIC_NOTES_PROMPT

    def test_opening_prompt(self):
        assert opening_prompt(SYMPTOMS) == (
            "I'll help you add a symptom. What's the description of the symptom?"
        )
        assert opening_prompt(MOOD_ENTRIES).startswith("I'll help you add a mood entry. ")


class TestIntentTables:
    """Test which intents open a collection dialogue."""

    @pytest.mark.parametrize(
        "intent,table",
        [
            (Intent.ADD_SYMPTOM, SYMPTOMS),
            (Intent.ADD_MEDICATION, MEDICATIONS),
            (Intent.ADD_MOOD, MOOD_ENTRIES),
            (Intent.ADD_NOTE, DIARY_ENTRIES),
        ],
    )
    def test_collecting_intents(self, intent, table):
        assert INTENT_TABLES[intent] == table
        assert schema_for_intent(intent).table == table

    @pytest.mark.parametrize(
        "intent",
        [Intent.ADD_APPOINTMENT, Intent.ADD_SLEEP, Intent.QUERY_DATA, Intent.UNKNOWN],
    )
    def test_non_collecting_intents(self, intent):
        assert schema_for_intent(intent) is None


class TestResponses:
    """Test user-facing response text."""

    def test_confirmation_message(self):
        message = confirmation_message(
            Intent.ADD_MEDICATION,
            "Sam",
            {"medication_name": "metformin", "dosage": "500mg", "frequency": "daily"},
            now=datetime(2024, 5, 15, 9, 5),
        )

        assert message == (
            "Opening Add Medication for Sam • Today 9:05 AM • metformin • 500mg"
            "\n\nChange anything?"
        )

    def test_confirmation_afternoon(self):
        message = confirmation_message(
            Intent.ADD_APPOINTMENT, "Sam", {}, now=datetime(2024, 5, 15, 12, 30)
        )

        assert "Today 12:30 PM" in message

    def test_did_you_also_mean(self):
        secondary = IntentMatch(intent=Intent.ADD_SLEEP, confidence=0.5)
        assert did_you_also_mean(secondary) == "Did you also want to add sleep?"

    def test_failure_message(self):
        assert failure_message("symptom", "timeout") == "Failed to add symptom: timeout"
