"""
Rule-based slot extraction.

Pulls structured values (severity, dosage, onset, mood, ...) out of an
utterance once its intent is known. Slots are opportunistic: a sub-pattern
that does not match simply leaves its slot out.
"""

import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, Optional

from meeka.core.intelligence.vocabulary import RegionVocabulary, expand_template
from .types import Intent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SlotRule:
    """
    A targeted sub-pattern that fills one slot.

    ``pattern`` may use the same ``{category}`` vocabulary placeholders as
    intent rules. When ``transform`` is given it receives the match and
    returns the slot value (or None to leave the slot empty); otherwise the
    stripped ``group`` is used.
    """

    name: str
    pattern: str
    group: int = 1
    transform: Optional[Callable[[re.Match], Optional[str]]] = None

    def value(self, match: re.Match) -> Optional[str]:
        """Slot value for a match of this rule."""
        if self.transform is not None:
            return self.transform(match)
        raw = match.group(self.group)
        if raw is None:
            return None
        raw = raw.strip()
        return raw or None


@dataclass(frozen=True)
class CompiledSlotRule:
    """A SlotRule compiled for one region's vocabulary."""

    rule: SlotRule
    regex: re.Pattern


# Relative time phrases shared by several intents
PAST_TIME = (
    r"(?:this|last|yesterday)\s+(?:morning|afternoon|evening|night|week|month)"
    r"|yesterday|today|tonight"
    r"|\d+\s+(?:hours?|days?|weeks?|months?)\s+ago"
    r"|(?:last\s+)?(?:monday|tuesday|wednesday|thursday|friday|saturday|sunday)"
)
FUTURE_TIME = (
    r"(?:this|next)\s+(?:morning|afternoon|evening|week|month)"
    r"|tomorrow(?:\s+(?:morning|afternoon|evening))?|today|tonight"
    r"|in\s+\d+\s+(?:days?|weeks?)"
    r"|(?:on\s+|next\s+)?(?:monday|tuesday|wednesday|thursday|friday|saturday|sunday)"
)
SEVERITY_WORDS = r"mild|moderate|severe|slight|light|bad|terrible|awful|excruciating|intense"
DOSE_UNITS = r"mg|mcg|g|ml|iu|units?"

_FILLER = {"a", "an", "the", "my", "some", "new"} | set(SEVERITY_WORDS.split("|"))


def _constant(value: str) -> Callable[[re.Match], Optional[str]]:
    return lambda match: value


def _description(match: re.Match) -> Optional[str]:
    """Symptom phrase without leading articles or severity words."""
    words = match.group(1).split()
    while words and words[0] in _FILLER:
        words.pop(0)
    return " ".join(words) or None


def _dosage(match: re.Match) -> Optional[str]:
    return f"{match.group(1)}{match.group(2)}"


# Earlier rules for the same slot take precedence
SLOT_RULES: dict[Intent, tuple[SlotRule, ...]] = {
    Intent.ADD_SYMPTOM: (
        SlotRule("severity", rf"\b({SEVERITY_WORDS})\b"),
        SlotRule("onset", rf"\b(?:since|from|started|starting|began)\s+({PAST_TIME})\b"),
        SlotRule(
            "description",
            r"\b((?:[a-z]+\s+)?(?:headache|migraine|pain|ache|nausea|fever|cough|rash|fatigue"
            r"|dizziness|sore\s+throat|cramps?|stomach\s*ache|backache|toothache))\b",
            transform=_description,
        ),
        SlotRule(
            "body_part",
            r"\b(head|back|neck|chest|stomach|throat|knee|shoulder|leg|arm|foot|ankle"
            r"|wrist|hip|ear|eye|tooth|jaw)\b",
        ),
    ),
    Intent.ADD_MEDICATION: (
        SlotRule("dosage", rf"\b(\d+(?:\.\d+)?)\s*({DOSE_UNITS})\b", transform=_dosage),
        SlotRule(
            "frequency",
            r"\b((?:once|twice|three\s+times|four\s+times|\d+\s+times)\s+(?:a\s+|per\s+)?(?:day|daily|week|weekly|month)"
            r"|every\s+(?:\d+\s+hours|morning|night|evening|day|other\s+day)"
            r"|daily|weekly|monthly|nightly|at\s+night|at\s+bedtime|as\s+needed)\b",
        ),
        SlotRule("medication_name", rf"\d+(?:\.\d+)?\s*(?:{DOSE_UNITS})\s+(?:of\s+)?([a-z][a-z\-]+)"),
        SlotRule(
            "medication_name",
            r"\b(?:start(?:ed|ing)?|taking|take|took|prescribed|add(?:ed)?|on)\s+"
            r"(?!(?:a|an|my|the|some|new|taking|medication|medicine|pill|tablet|prescription)\b)([a-z][a-z\-]+)",
        ),
    ),
    Intent.ADD_APPOINTMENT: (
        SlotRule("type", r"\b(telehealth|virtual|video|phone\s+call|online)\b", transform=_constant("telehealth")),
        SlotRule("type", r"\b(in\s+person|in-person|office|clinic|face\s+to\s+face)\b", transform=_constant("in_person")),
        SlotRule("provider", r"\b({doctor}|{specialist})\b"),
        SlotRule("when", rf"\b({FUTURE_TIME})\b"),
    ),
    Intent.ADD_NOTE: (
        SlotRule("title", r"\b(?:note|entry)\s+(?:about|on|regarding|re)\s+(.+)$"),
    ),
    Intent.ADD_MOOD: (
        SlotRule(
            "mood",
            r"\b(happy|sad|anxious|stressed|depressed|great|good|okay|ok|low|down|calm|angry"
            r"|irritable|content|overwhelmed|tired|exhausted|excited|lonely|frustrated)\b",
        ),
        SlotRule("rating", r"\b(\d{1,2})\s*(?:/|out\s+of)\s*(?:5|10)\b"),
    ),
    Intent.ADD_SLEEP: (
        SlotRule("hours", r"\b(\d+(?:\.\d+)?)\s*(?:hours?|hrs?)\b"),
        SlotRule("quality", r"\b(terribly|badly|poorly|well|great|fine|restless|restful|deep|light|broken)\b"),
    ),
    Intent.QUERY_DATA: (
        SlotRule("topic", r"\b(symptoms?|medications?|meds|appointments?|mood|sleep|diary|notes?)\b"),
    ),
    Intent.AI_SYMPTOM_ANALYSIS: (
        SlotRule("analysis_type", r"^", transform=_constant("symptom-analysis")),
    ),
    Intent.AI_QUESTIONS: (
        SlotRule("analysis_type", r"^", transform=_constant("questions")),
    ),
    Intent.AI_TERMINOLOGY: (
        SlotRule("analysis_type", r"^", transform=_constant("terminology")),
        SlotRule("term", r"\bwhat\s+does\s+(\S+)\s+mean\b"),
    ),
    Intent.AI_TRENDS: (
        SlotRule("analysis_type", r"^", transform=_constant("trends")),
    ),
}


@lru_cache(maxsize=16)
def _compile_slot_rules(
    vocabulary: RegionVocabulary,
) -> dict[Intent, tuple[CompiledSlotRule, ...]]:
    return {
        intent: tuple(
            CompiledSlotRule(
                rule=rule,
                regex=re.compile(expand_template(rule.pattern, vocabulary), re.IGNORECASE),
            )
            for rule in rules
        )
        for intent, rules in SLOT_RULES.items()
    }


class SlotExtractor:
    """Applies an intent's slot rules to a normalized utterance."""

    def extract(
        self,
        intent: Intent,
        text: str,
        vocabulary: RegionVocabulary,
    ) -> dict[str, str]:
        """
        Extract slots for one intent.

        Args:
            intent: Intent the utterance was classified as
            text: Normalized (trimmed, lowercased) utterance
            vocabulary: Region vocabulary for region-aware sub-patterns

        Returns:
            Mapping of slot name to value; missing slots are omitted
        """
        slots: dict[str, str] = {}
        if not text:
            return slots

        for compiled in _compile_slot_rules(vocabulary).get(intent, ()):
            name = compiled.rule.name
            if name in slots:
                continue
            match = compiled.regex.search(text)
            if match is None:
                continue
            value = compiled.rule.value(match)
            if value is not None:
                slots[name] = value

        if slots:
            logger.debug(f"Extracted slots for {intent.value}: {slots}")
        return slots
