"""Tests for rule-based slot extraction."""

import pytest

from meeka.core.intelligence.intent import Intent, SlotExtractor
from meeka.core.intelligence.vocabulary import RegionCode, get_vocabulary


class TestSlotExtractor:
    """Test slot extraction per intent."""

    @pytest.fixture
    def extractor(self):
        return SlotExtractor()

    @pytest.fixture
    def usa(self):
        return get_vocabulary(RegionCode.USA)

    def test_empty_text(self, extractor, usa):
        assert extractor.extract(Intent.ADD_SYMPTOM, "", usa) == {}

    def test_intent_without_rules(self, extractor, usa):
        assert extractor.extract(Intent.UNKNOWN, "anything at all", usa) == {}

    def test_missing_slots_are_omitted(self, extractor, usa):
        assert extractor.extract(Intent.ADD_SYMPTOM, "log a symptom", usa) == {}

    def test_symptom_slots(self, extractor, usa):
        slots = extractor.extract(
            Intent.ADD_SYMPTOM,
            "add a new symptom, severe headache since this morning",
            usa,
        )

        assert slots["severity"] == "severe"
        assert slots["onset"] == "this morning"
        assert slots["description"] == "headache"

    def test_symptom_body_part(self, extractor, usa):
        slots = extractor.extract(Intent.ADD_SYMPTOM, "my knee hurts since yesterday", usa)

        assert slots["body_part"] == "knee"
        assert slots["onset"] == "yesterday"

    def test_medication_slots(self, extractor, usa):
        slots = extractor.extract(
            Intent.ADD_MEDICATION,
            "i started taking 500mg of metformin twice daily",
            usa,
        )

        assert slots == {
            "dosage": "500mg",
            "frequency": "twice daily",
            "medication_name": "metformin",
        }

    def test_medication_name_without_dose(self, extractor, usa):
        slots = extractor.extract(Intent.ADD_MEDICATION, "i started lisinopril", usa)

        assert slots["medication_name"] == "lisinopril"
        assert "dosage" not in slots

    def test_medication_name_skips_generic_words(self, extractor, usa):
        slots = extractor.extract(Intent.ADD_MEDICATION, "start a new medication", usa)

        assert "medication_name" not in slots

    def test_appointment_slots(self, extractor, usa):
        slots = extractor.extract(
            Intent.ADD_APPOINTMENT,
            "book a telehealth appointment with my doctor tomorrow",
            usa,
        )

        assert slots["type"] == "telehealth"
        assert slots["provider"] == "doctor"
        assert slots["when"] == "tomorrow"

    def test_appointment_in_person(self, extractor, usa):
        slots = extractor.extract(Intent.ADD_APPOINTMENT, "in person visit next week", usa)

        assert slots["type"] == "in_person"
        assert slots["when"] == "next week"

    def test_provider_uses_region_vocabulary(self, extractor):
        text = "book in with the physio"

        au = extractor.extract(Intent.ADD_APPOINTMENT, text, get_vocabulary(RegionCode.AU))
        usa = extractor.extract(Intent.ADD_APPOINTMENT, text, get_vocabulary(RegionCode.USA))

        assert au["provider"] == "physio"
        assert "provider" not in usa

    def test_note_title(self, extractor, usa):
        slots = extractor.extract(Intent.ADD_NOTE, "add a note about my new diet", usa)

        assert slots == {"title": "my new diet"}

    def test_mood_slots(self, extractor, usa):
        slots = extractor.extract(Intent.ADD_MOOD, "feeling good, 4 out of 5", usa)

        assert slots == {"mood": "good", "rating": "4"}

    def test_sleep_slots(self, extractor, usa):
        slots = extractor.extract(Intent.ADD_SLEEP, "slept 7.5 hours, pretty restless", usa)

        assert slots == {"hours": "7.5", "quality": "restless"}

    def test_query_topic(self, extractor, usa):
        slots = extractor.extract(Intent.QUERY_DATA, "show me my medications", usa)

        assert slots == {"topic": "medications"}

    @pytest.mark.parametrize(
        "intent,analysis_type",
        [
            (Intent.AI_SYMPTOM_ANALYSIS, "symptom-analysis"),
            (Intent.AI_QUESTIONS, "questions"),
            (Intent.AI_TERMINOLOGY, "terminology"),
            (Intent.AI_TRENDS, "trends"),
        ],
    )
    def test_analysis_type(self, extractor, usa, intent, analysis_type):
        slots = extractor.extract(intent, "anything", usa)

        assert slots["analysis_type"] == analysis_type
