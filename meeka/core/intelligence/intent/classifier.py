"""
Rule-based intent classification.

Every intent's rules are run against the utterance, each intent keeps its best
score, and the survivors are ranked. Pure and synchronous: no model calls, no
I/O, and it never raises for string input.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Union

from meeka.config import Settings, settings
from meeka.core.intelligence.vocabulary import (
    BROADEST_VOCABULARY,
    VOCABULARIES,
    RegionCode,
    RegionVocabulary,
    parse_region,
)
from .rules import RULE_TABLE, CompiledRule, IntentRule, compile_rules, keyword_pattern
from .slots import SlotExtractor
from .types import (
    INTENT_ROUTES,
    Intent,
    IntentMatch,
    IntentScore,
    MultiIntentMatch,
    RankedIntents,
)

logger = logging.getLogger(__name__)

# Tie-break order
_DECLARATION_ORDER = {intent: index for index, intent in enumerate(Intent)}


@dataclass(frozen=True)
class ScoringConfig:
    """Confidence constants. Hand-tuned; tests pin them as-is."""

    threshold: float = 0.4
    exact_match: float = 1.0
    long_match_ratio: float = 0.7
    long_match_boost: float = 0.2
    long_match_cap: float = 0.95
    keyword_bonus: float = 0.1
    partial_match_cap: float = 0.9

    @classmethod
    def from_settings(cls, config: Settings) -> "ScoringConfig":
        return cls(
            threshold=config.intent_confidence_threshold,
            exact_match=config.exact_match_confidence,
            long_match_ratio=config.long_match_ratio,
            long_match_boost=config.long_match_boost,
            long_match_cap=config.long_match_cap,
            keyword_bonus=config.keyword_bonus,
            partial_match_cap=config.partial_match_cap,
        )


class IntentClassifier:
    """
    Ranks intents for a free-text utterance.

    Rule tables are compiled once per region at construction and are
    read-only afterwards, so one instance can serve every conversation.
    """

    def __init__(
        self,
        rules: tuple[IntentRule, ...] = RULE_TABLE,
        scoring: Optional[ScoringConfig] = None,
        default_region: Union[RegionCode, str, None] = None,
        slot_extractor: Optional[SlotExtractor] = None,
    ):
        """Initialize classifier.

        Args:
            rules: Rule table (defaults to the built-in table)
            scoring: Confidence constants (defaults to settings)
            default_region: Region used when a call passes none
            slot_extractor: Optional extractor (for testing)
        """
        self._scoring = scoring or ScoringConfig.from_settings(settings)
        self._default_region = parse_region(default_region or settings.default_region)
        self._slot_extractor = slot_extractor or SlotExtractor()

        # None holds the broadest vocabulary, used for unrecognised regions
        self._rule_sets: dict[Optional[RegionCode], tuple[CompiledRule, ...]] = {
            code: compile_rules(vocabulary, rules)
            for code, vocabulary in VOCABULARIES.items()
        }
        self._rule_sets[None] = compile_rules(BROADEST_VOCABULARY, rules)

        self._keywords = {intent: keyword_pattern(intent) for intent in Intent}

    @property
    def scoring(self) -> ScoringConfig:
        return self._scoring

    def _resolve_region(
        self,
        region: Union[RegionCode, str, None],
    ) -> tuple[Optional[RegionCode], RegionVocabulary]:
        code = self._default_region if region is None else parse_region(region)
        if code is None:
            return None, BROADEST_VOCABULARY
        return code, VOCABULARIES[code]

    def score_match(self, matched: str, text: str, has_keyword: bool) -> float:
        """
        Confidence for one rule match.

        Args:
            matched: Text the rule matched
            text: Whole normalized utterance
            has_keyword: Whether an action or trigger keyword is present

        Returns:
            Confidence in [0, 1]
        """
        cfg = self._scoring
        if not text or not matched:
            return 0.0
        if matched == text:
            return cfg.exact_match

        base = len(matched) / len(text)
        if len(matched) > len(text) * cfg.long_match_ratio:
            score = min(cfg.long_match_cap, base + cfg.long_match_boost)
        elif has_keyword:
            score = min(cfg.partial_match_cap, base + cfg.keyword_bonus)
        else:
            score = base
        return max(0.0, min(1.0, score))

    def classify(
        self,
        utterance: str,
        region: Union[RegionCode, str, None] = None,
    ) -> RankedIntents:
        """
        Rank every intent with at least one matching rule.

        Args:
            utterance: Raw user text
            region: Region code; None means the default region

        Returns:
            RankedIntents, best first, ties in declaration order
        """
        text = (utterance or "").strip().lower()
        if not text:
            return RankedIntents()

        code, _ = self._resolve_region(region)
        best: dict[Intent, float] = {}

        for rule in self._rule_sets[code]:
            match = rule.regex.search(text)
            if match is None:
                continue
            has_keyword = self._keywords[rule.intent].search(text) is not None
            confidence = self.score_match(match.group(0), text, has_keyword)
            if confidence > best.get(rule.intent, -1.0):
                best[rule.intent] = confidence

        ranked = sorted(
            (IntentScore(intent=intent, confidence=conf) for intent, conf in best.items()),
            key=lambda s: _DECLARATION_ORDER[s.intent],
        )
        # Stable: equal confidences keep declaration order
        ranked.sort(key=lambda s: s.confidence, reverse=True)

        logger.debug(
            f"Classified {text[:60]!r} region={code.value if code else 'any'}: "
            + ", ".join(f"{s.intent.value}={s.confidence:.2f}" for s in ranked[:3])
        )
        return RankedIntents(scores=tuple(ranked))

    def _to_match(
        self,
        score: IntentScore,
        text: str,
        vocabulary: RegionVocabulary,
    ) -> IntentMatch:
        return IntentMatch(
            intent=score.intent,
            confidence=score.confidence,
            slots=self._slot_extractor.extract(score.intent, text, vocabulary),
            route=INTENT_ROUTES.get(score.intent, ""),
        )

    def detect_top1(
        self,
        utterance: str,
        region: Union[RegionCode, str, None] = None,
    ) -> IntentMatch:
        """
        Best intent with its slots, or UNKNOWN below the threshold.

        Args:
            utterance: Raw user text
            region: Region code; None means the default region

        Returns:
            IntentMatch
        """
        return self.detect_top2(utterance, region).primary

    def detect_top2(
        self,
        utterance: str,
        region: Union[RegionCode, str, None] = None,
    ) -> MultiIntentMatch:
        """
        Best intent plus a runner-up that also clears the threshold.

        Slots are only extracted for the intents returned.
        """
        ranked = self.classify(utterance, region)
        top = ranked.top
        if top is None or top.confidence < self._scoring.threshold:
            return MultiIntentMatch(primary=IntentMatch.unknown())

        text = utterance.strip().lower()
        _, vocabulary = self._resolve_region(region)
        primary = self._to_match(top, text, vocabulary)

        secondary = None
        if len(ranked) > 1 and ranked[1].confidence >= self._scoring.threshold:
            secondary = self._to_match(ranked[1], text, vocabulary)

        return MultiIntentMatch(primary=primary, secondary=secondary)


# Singleton
_classifier: Optional[IntentClassifier] = None


def get_intent_classifier() -> IntentClassifier:
    """Get singleton IntentClassifier."""
    global _classifier
    if _classifier is None:
        _classifier = IntentClassifier()
    return _classifier


def classify_intent(
    message: str,
    region: Union[RegionCode, str, None] = None,
) -> IntentMatch:
    """Convenience function to detect the top intent."""
    return get_intent_classifier().detect_top1(message, region)
