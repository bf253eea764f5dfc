"""Tests for rule-based intent classification."""

import pytest

from meeka.config import Settings
from meeka.core.intelligence.intent import (
    INTENT_ROUTES,
    Intent,
    IntentClassifier,
    IntentRule,
    ScoringConfig,
    classify_intent,
)
from meeka.core.intelligence.vocabulary import RegionCode


@pytest.fixture
def classifier():
    """Classifier with the built-in rule table and default scoring."""
    return IntentClassifier(scoring=ScoringConfig(), default_region=RegionCode.USA)


class TestScoringConfig:
    """The scoring constants are pinned."""

    def test_defaults(self):
        cfg = ScoringConfig()

        assert cfg.threshold == 0.4
        assert cfg.exact_match == 1.0
        assert cfg.long_match_ratio == 0.7
        assert cfg.long_match_boost == 0.2
        assert cfg.long_match_cap == 0.95
        assert cfg.keyword_bonus == 0.1
        assert cfg.partial_match_cap == 0.9

    def test_from_settings(self):
        cfg = ScoringConfig.from_settings(Settings(intent_confidence_threshold=0.6))

        assert cfg.threshold == 0.6
        assert cfg.exact_match == 1.0


class TestScoreMatch:
    """Test the confidence formula."""

    def test_exact_match(self, classifier):
        assert classifier.score_match("log my mood", "log my mood", True) == 1.0

    def test_long_match_boosted_and_capped(self, classifier):
        # 8 of 10 characters: 0.8 + 0.2, capped at 0.95
        assert classifier.score_match("a" * 8, "a" * 10, False) == 0.95

    def test_long_match_ratio_is_strict(self):
        classifier = IntentClassifier(scoring=ScoringConfig(long_match_ratio=0.5))

        # Exactly half the utterance is not a long match
        assert classifier.score_match("a" * 5, "a" * 10, True) == pytest.approx(0.6)
        assert classifier.score_match("a" * 6, "a" * 10, True) == pytest.approx(0.8)

    def test_partial_match_with_keyword(self, classifier):
        score = classifier.score_match("a" * 4, "a" * 20, True)
        assert score == pytest.approx(0.3)

    def test_partial_match_without_keyword(self, classifier):
        score = classifier.score_match("a" * 4, "a" * 20, False)
        assert score == pytest.approx(0.2)

    def test_empty(self, classifier):
        assert classifier.score_match("", "anything", True) == 0.0
        assert classifier.score_match("x", "", True) == 0.0


class TestClassify:
    """Test ranking of every matching intent."""

    def test_empty_utterance(self, classifier):
        assert len(classifier.classify("")) == 0
        assert len(classifier.classify("   ")) == 0

    def test_ranked_best_first(self, classifier):
        ranked = classifier.classify("log rest, log mood")
        confidences = [s.confidence for s in ranked]

        assert confidences == sorted(confidences, reverse=True)
        assert all(0.0 <= c <= 1.0 for c in confidences)

    def test_one_score_per_intent(self, classifier):
        ranked = classifier.classify("add a new symptom, severe headache since this morning")
        intents = [s.intent for s in ranked]

        assert len(intents) == len(set(intents))

    def test_deterministic(self, classifier):
        text = "i started taking 500mg of metformin twice daily"
        assert classifier.classify(text) == classifier.classify(text)

    def test_case_and_whitespace_insensitive(self, classifier):
        assert classifier.classify("  LOG MY MOOD ") == classifier.classify("log my mood")


class TestDetectTop1:
    """Test single-intent detection."""

    def test_unknown_for_empty(self, classifier):
        result = classifier.detect_top1("")

        assert result.intent == Intent.UNKNOWN
        assert result.confidence == 0.0
        assert result.slots == {}

    def test_unknown_for_unrelated_text(self, classifier):
        result = classifier.detect_top1("the weather is nice")

        assert result.is_unknown

    def test_exact_match_mood(self, classifier):
        result = classifier.detect_top1("log my mood")

        assert result.intent == Intent.ADD_MOOD
        assert result.confidence == 1.0
        assert result.route == INTENT_ROUTES[Intent.ADD_MOOD]

    def test_symptom_with_slots(self, classifier):
        result = classifier.detect_top1(
            "add a new symptom, severe headache since this morning"
        )

        assert result.intent == Intent.ADD_SYMPTOM
        assert result.confidence >= 0.4
        assert result.slots == {
            "severity": "severe",
            "onset": "this morning",
            "description": "headache",
        }

    def test_medication_with_slots(self, classifier):
        result = classifier.detect_top1("I started taking 500mg of metformin twice daily")

        assert result.intent == Intent.ADD_MEDICATION
        assert result.confidence == pytest.approx(0.9, abs=0.01)
        assert result.slots["dosage"] == "500mg"
        assert result.slots["frequency"] == "twice daily"
        assert result.slots["medication_name"] == "metformin"

    def test_medication_without_of(self, classifier):
        result = classifier.detect_top1("started taking 500mg metformin twice daily")

        assert result.intent == Intent.ADD_MEDICATION
        assert result.slots["dosage"] == "500mg"
        assert result.slots["frequency"] == "twice daily"

    def test_mood_feeling(self, classifier):
        result = classifier.detect_top1("i'm feeling really anxious")

        assert result.intent == Intent.ADD_MOOD
        assert result.slots["mood"] == "anxious"

    def test_sleep_hours(self, classifier):
        result = classifier.detect_top1("slept 6 hours")

        assert result.intent == Intent.ADD_SLEEP
        assert result.confidence == 1.0
        assert result.slots == {"hours": "6"}

    def test_symptom_analysis(self, classifier):
        result = classifier.detect_top1("analyze my symptoms")

        assert result.intent == Intent.AI_SYMPTOM_ANALYSIS
        assert result.is_analysis_intent
        assert result.slots["analysis_type"] == "symptom-analysis"

    def test_terminology_term(self, classifier):
        result = classifier.detect_top1("what does tachycardia mean")

        assert result.intent == Intent.AI_TERMINOLOGY
        assert result.slots["term"] == "tachycardia"

    def test_threshold_from_scoring(self):
        strict = IntentClassifier(scoring=ScoringConfig(threshold=0.99))
        result = strict.detect_top1("i started taking 500mg of metformin twice daily")

        assert result.is_unknown


class TestDetectTop2:
    """Test primary plus runner-up detection."""

    def test_tie_broken_by_declaration_order(self, classifier):
        match = classifier.detect_top2("log rest, log mood")

        assert match.primary.intent == Intent.ADD_MOOD
        assert match.secondary is not None
        assert match.secondary.intent == Intent.ADD_SLEEP
        assert match.primary.confidence == match.secondary.confidence

    def test_no_secondary_for_single_intent(self, classifier):
        match = classifier.detect_top2("log my mood")

        assert match.primary.intent == Intent.ADD_MOOD
        assert match.secondary is None
        assert not match.has_secondary

    def test_unknown_has_no_secondary(self, classifier):
        match = classifier.detect_top2("")

        assert match.primary.is_unknown
        assert match.secondary is None

    def test_to_dict(self, classifier):
        data = classifier.detect_top2("log rest, log mood").to_dict()

        assert data["primary"]["intent"] == "ADD_MOOD"
        assert data["secondary"]["intent"] == "ADD_SLEEP"


class TestRegions:
    """Test region-aware vocabulary in rules."""

    def test_au_gp_appointment(self, classifier):
        result = classifier.detect_top1("book a gp appointment", RegionCode.AU)

        assert result.intent == Intent.ADD_APPOINTMENT
        assert result.confidence == 1.0

    def test_gp_is_not_usa_vocabulary(self, classifier):
        result = classifier.detect_top1("book a gp appointment", RegionCode.USA)

        assert result.intent == Intent.ADD_APPOINTMENT
        assert result.confidence < 1.0

    def test_usa_pcp(self, classifier):
        result = classifier.detect_top1("see my pcp", RegionCode.USA)

        assert result.intent == Intent.ADD_APPOINTMENT
        assert result.confidence == 1.0
        assert result.slots["provider"] == "pcp"

    def test_pcp_unknown_in_au(self, classifier):
        assert classifier.detect_top1("see my pcp", RegionCode.AU).is_unknown

    def test_default_region_used(self, classifier):
        assert classifier.detect_top1("see my pcp").confidence == 1.0

    def test_unknown_region_uses_every_vocabulary(self, classifier):
        assert classifier.detect_top1("see my pcp", "NZ").confidence == 1.0
        assert classifier.detect_top1("book a gp appointment", "NZ").confidence == 1.0

    def test_pain_reliever_by_region(self, classifier):
        au = classifier.detect_top1("i took some panadol", RegionCode.AU)
        usa = classifier.detect_top1("i took some panadol", RegionCode.USA)

        assert au.intent == Intent.ADD_MEDICATION
        assert usa.intent != Intent.ADD_MEDICATION

    def test_questions_for_gp(self, classifier):
        match = classifier.detect_top2("what questions should i ask my gp", RegionCode.AU)

        assert match.primary.intent == Intent.AI_QUESTIONS
        assert match.primary.confidence == 1.0
        assert match.secondary is None


class TestCustomRules:
    """Test classifiers built from other rule tables."""

    def test_custom_rule_table(self):
        rules = (IntentRule(Intent.ADD_SLEEP, r"\bnap\b"),)
        classifier = IntentClassifier(rules=rules, scoring=ScoringConfig())

        assert classifier.detect_top1("nap").intent == Intent.ADD_SLEEP
        assert classifier.detect_top1("log my mood").is_unknown

    def test_classify_intent_helper(self):
        assert classify_intent("log my mood").intent == Intent.ADD_MOOD
