"""Intent classification module."""

from .classifier import (
    IntentClassifier,
    ScoringConfig,
    classify_intent,
    get_intent_classifier,
)
from .rules import ACTION_KEYWORDS, RULE_TABLE, TRIGGER_WORDS, IntentRule
from .slots import SLOT_RULES, SlotExtractor, SlotRule
from .types import (
    ANALYSIS_INTENTS,
    INTENT_ROUTES,
    RECORD_INTENTS,
    Intent,
    IntentMatch,
    IntentScore,
    MultiIntentMatch,
    RankedIntents,
    get_suggested_actions,
    intent_label,
)

__all__ = [
    # Types
    "Intent",
    "IntentMatch",
    "IntentScore",
    "MultiIntentMatch",
    "RankedIntents",
    "RECORD_INTENTS",
    "ANALYSIS_INTENTS",
    "INTENT_ROUTES",
    "get_suggested_actions",
    "intent_label",
    # Rules
    "IntentRule",
    "RULE_TABLE",
    "ACTION_KEYWORDS",
    "TRIGGER_WORDS",
    # Slots
    "SlotRule",
    "SlotExtractor",
    "SLOT_RULES",
    # Classifier
    "IntentClassifier",
    "ScoringConfig",
    "classify_intent",
    "get_intent_classifier",
]
