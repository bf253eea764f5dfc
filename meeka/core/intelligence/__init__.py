"""
Intelligence Layer Module

Provides regional vocabulary, intent classification, slot extraction and
dialogue session storage for Meeka.

Usage:
    from meeka.core.intelligence import (
        classify_intent,
        get_intent_classifier,
        get_session_manager,
        RegionCode,
    )

    # Classify intent
    result = classify_intent("log my mood", RegionCode.UK)
    print(result.intent)  # Intent.ADD_MOOD

    # Primary plus "did you also mean"
    match = get_intent_classifier().detect_top2("log rest, log mood")
    print(match.secondary.intent)  # Intent.ADD_SLEEP

    # Session storage
    manager = await get_session_manager()
    session = await manager.get("conversation-1")
"""

# Regional vocabulary
from meeka.core.intelligence.vocabulary import (
    RegionCache,
    RegionCode,
    RegionVocabulary,
    detect_region,
    get_vocabulary,
    parse_region,
)

# Intent Classification
from meeka.core.intelligence.intent import (
    Intent,
    IntentClassifier,
    IntentMatch,
    MultiIntentMatch,
    RankedIntents,
    SlotExtractor,
    classify_intent,
    get_intent_classifier,
)

# Dialogue sessions
from meeka.core.intelligence.session import (
    CollectionPhase,
    DialogueSession,
    SessionManager,
    get_session_manager,
)

__all__ = [
    # Vocabulary
    "RegionCache",
    "RegionCode",
    "RegionVocabulary",
    "detect_region",
    "get_vocabulary",
    "parse_region",
    # Intent
    "Intent",
    "IntentClassifier",
    "IntentMatch",
    "MultiIntentMatch",
    "RankedIntents",
    "SlotExtractor",
    "classify_intent",
    "get_intent_classifier",
    # Session
    "CollectionPhase",
    "DialogueSession",
    "SessionManager",
    "get_session_manager",
]
