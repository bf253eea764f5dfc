"""
Declarative intent rule table.

Each rule is a regex template tagged with the intent it votes for. Templates
may reference regional vocabulary with ``{doctor}``, ``{specialist}``,
``{pharmacy}``, ``{appointment}``, ``{pain_reliever}`` and ``{emergency}``;
these are expanded into alternations when the table is compiled for a region.

Rules are matched against the lowercased, trimmed utterance.
"""

import re
from dataclasses import dataclass
from typing import Pattern

from meeka.core.intelligence.vocabulary import (
    RegionVocabulary,
    expand_template,
    term_alternation,
)
from .types import Intent


@dataclass(frozen=True)
class IntentRule:
    """One pattern that votes for an intent."""

    intent: Intent
    pattern: str


@dataclass(frozen=True)
class CompiledRule:
    """An IntentRule with its template expanded for one region."""

    intent: Intent
    regex: Pattern[str]


# Words that signal the user wants something recorded, for every intent
ACTION_KEYWORDS: tuple[str, ...] = ("record", "log", "add", "track")

# Per-intent words that reinforce a partial match
TRIGGER_WORDS: dict[Intent, tuple[str, ...]] = {
    Intent.ADD_SYMPTOM: ("symptom", "symptoms", "pain", "headache", "ache", "hurts", "sore"),
    Intent.ADD_MEDICATION: (
        "medication", "medicine", "pill", "tablet", "dose", "dosage",
        "prescription", "prescribed", "taking", "mg",
    ),
    Intent.ADD_APPOINTMENT: ("appointment", "book", "schedule", "visit"),
    Intent.ADD_NOTE: ("note", "diary", "journal", "write"),
    Intent.ADD_MOOD: ("mood", "feeling", "feel"),
    Intent.ADD_SLEEP: ("sleep", "slept"),
    Intent.QUERY_DATA: ("show", "tell", "history", "pattern"),
    Intent.AI_SYMPTOM_ANALYSIS: ("analyse", "analyze", "analysis", "insights"),
    Intent.AI_QUESTIONS: ("questions", "suggest"),
    Intent.AI_TERMINOLOGY: ("explain", "mean", "terminology"),
    Intent.AI_TRENDS: ("trends", "trend", "better", "worse"),
}

_SYMPTOM_NOUNS = (
    r"(?:symptom|pain|headache|migraine|ache|discomfort|nausea|fever|cough|rash"
    r"|sore\s+throat|dizziness)"
)
_DOSE = r"\d+(?:\.\d+)?\s*(?:mg|mcg|g|ml|iu|units?)\b"
_MOOD_WORDS = (
    r"(?:happy|sad|anxious|stressed|depressed|great|good|okay|ok|low|down|calm"
    r"|angry|irritable|content|overwhelmed|tired|exhausted)"
)


# Order within an intent does not matter (the best rule wins); order of
# intents is set by the Intent enum.
RULE_TABLE: tuple[IntentRule, ...] = (
    # Symptoms
    IntentRule(Intent.ADD_SYMPTOM, r"\b(?:record|log|add|track|note)\s+(?:a\s+|an\s+|my\s+)?(?:new\s+)?(?:symptom|pain|headache|ache|discomfort|problem)s?\b"),
    IntentRule(Intent.ADD_SYMPTOM, r"\b(?:i\s+)?(?:have|having|had|experiencing|feeling|got)\s+(?:a\s+|an\s+|some\s+)?(?:(?:mild|moderate|severe|bad|terrible|slight)\s+)?" + _SYMPTOM_NOUNS + r"\b"),
    IntentRule(Intent.ADD_SYMPTOM, r"\b(?:symptom|pain|headache|ache|discomfort)\s+(?:started|began|occurred)\b"),
    IntentRule(Intent.ADD_SYMPTOM, r"\b(?:my\s+)?[a-z]+\s+(?:hurts|is\s+sore|aches)\b"),
    # Medications
    IntentRule(Intent.ADD_MEDICATION, r"\b(?:start(?:ed)?|begin|began|add|prescribed|taking|log|record)\s+(?:a\s+|an\s+|my\s+)?(?:new\s+)?(?:medication|medicine|drug|pill|tablet|prescription)s?\b"),
    IntentRule(Intent.ADD_MEDICATION, r"\b(?:new\s+)?(?:medication|medicine|drug|prescription)s?\b"),
    IntentRule(Intent.ADD_MEDICATION, r"\b(?:vitamin|supplement|dose|dosage)s?\b"),
    IntentRule(Intent.ADD_MEDICATION, r"\b(?:daily|weekly|monthly)\s+(?:medication|medicine|drug)s?\b"),
    IntentRule(Intent.ADD_MEDICATION, r"\b(?:(?:started|starting|been)\s+)?(?:taking|take|took|prescribed|on)\s+" + _DOSE + r"(?:\s+(?:of\s+)?[a-z][a-z\-]*)?"),
    IntentRule(Intent.ADD_MEDICATION, r"\b(?:took|taking|take|started)\s+(?:some\s+)?(?:{pain_reliever})\b"),
    IntentRule(Intent.ADD_MEDICATION, r"\b(?:picked\s+up|collected|got|filled)\s+(?:a\s+|my\s+)?(?:prescription|script|medication|meds)\s+(?:from|at)\s+(?:the\s+)?(?:{pharmacy})\b"),
    # Appointments
    IntentRule(Intent.ADD_APPOINTMENT, r"\b(?:book|schedule|make|add|log)\s+(?:in\s+)?(?:a\s+|an\s+|my\s+)?(?:new\s+)?(?:(?:{doctor}|{specialist})\s+)?(?:{appointment})\b"),
    IntentRule(Intent.ADD_APPOINTMENT, r"\b(?:see|seeing|saw|visit|visiting|appointment\s+with|book\s+in\s+with)\s+(?:a\s+|an\s+|my\s+|the\s+)?(?:{doctor}|{specialist})\b"),
    IntentRule(Intent.ADD_APPOINTMENT, r"\b(?:next\s+)?(?:{appointment})\b"),
    IntentRule(Intent.ADD_APPOINTMENT, r"\b(?:telehealth|in\s+person|virtual)\s+(?:{appointment}|call|session)\b"),
    IntentRule(Intent.ADD_APPOINTMENT, r"\b(?:{doctor}|{specialist})\b"),
    # Notes / diary
    IntentRule(Intent.ADD_NOTE, r"\b(?:add|write|create|make)\s+(?:a\s+|an\s+|my\s+)?(?:new\s+)?(?:note|entry|diary\s+entry|journal\s+entry)\b"),
    IntentRule(Intent.ADD_NOTE, r"\b(?:record|log)\s+(?:a\s+|an\s+)?(?:note|entry|diary)\b"),
    IntentRule(Intent.ADD_NOTE, r"\b(?:general|personal|diary|journal)\s+(?:note|entry)\b"),
    IntentRule(Intent.ADD_NOTE, r"\b(?:note|diary|journal)\b"),
    IntentRule(Intent.ADD_NOTE, r"\b(?:went\s+to|visited|been\s+to|ended\s+up\s+in)\s+(?:the\s+)?(?:{emergency})\b"),
    # Mood
    IntentRule(Intent.ADD_MOOD, r"\b(?:track|record|log|add)\s+(?:a\s+|my\s+)?(?:mood|feelings?|emotions?)(?:\s+entry)?\b"),
    IntentRule(Intent.ADD_MOOD, r"\b(?:mood|feelings?|emotions?|mental\s+state)\b"),
    IntentRule(Intent.ADD_MOOD, r"\b(?:i\s+am|i'm|im|feeling|feel)\s+(?:really\s+|very\s+|so\s+|pretty\s+|a\s+bit\s+)?" + _MOOD_WORDS + r"\b"),
    IntentRule(Intent.ADD_MOOD, r"\bhow\s+(?:i'm|i\s+am|im)\s+feeling\b"),
    # Sleep
    IntentRule(Intent.ADD_SLEEP, r"\b(?:track|record|log|add)\s+(?:my\s+|last\s+night'?s\s+)?(?:sleep|rest)\b"),
    IntentRule(Intent.ADD_SLEEP, r"\b(?:sleep|slept|rest|bedtime|insomnia)\b"),
    IntentRule(Intent.ADD_SLEEP, r"\bsleep\s+(?:pattern|schedule|quality)\b"),
    IntentRule(Intent.ADD_SLEEP, r"\bslept\s+(?:for\s+)?(?:about\s+)?\d+(?:\.\d+)?\s*(?:hours?|hrs?)\b"),
    # Queries
    IntentRule(Intent.QUERY_DATA, r"\bhow\s+(?:does|do|did)\s+(?:this|that|it)\s+(?:fit|relate|compare)\s+(?:with|to)\s+(?:my\s+)?(?:health\s+)?(?:history|records?)\b"),
    IntentRule(Intent.QUERY_DATA, r"\b(?:what|show|tell)\s+(?:me\s+)?(?:about\s+)?(?:my\s+)?(?:recent\s+)?(?:symptoms|medications|appointments|mood|sleep|diary|entries|records)\b"),
    IntentRule(Intent.QUERY_DATA, r"\b(?:pattern|trend|history)s?\s+(?:in|of)\s+(?:my\s+)?(?:health|symptoms|medications|mood|sleep)\b"),
    IntentRule(Intent.QUERY_DATA, r"\b(?:compare|correlate)\s+(?:my\s+)?(?:symptoms|medications|mood|sleep)\b"),
    IntentRule(Intent.QUERY_DATA, r"\b(?:when|how\s+often)\s+(?:did|was|have)\s+i\b"),
    # AI analysis
    IntentRule(Intent.AI_SYMPTOM_ANALYSIS, r"\b(?:analy[sz]e|analysis\s+of|insights?\s+(?:on|into|about))\s+(?:my\s+)?symptoms?\b"),
    IntentRule(Intent.AI_SYMPTOM_ANALYSIS, r"\bsymptom\s+(?:analysis|insights?)\b"),
    IntentRule(Intent.AI_QUESTIONS, r"\b(?:what\s+)?questions?\s+(?:should\s+i\s+ask|to\s+ask|for)\s+(?:my\s+|the\s+|at\s+my\s+)?(?:next\s+)?(?:{doctor}|{specialist}|{appointment})\b"),
    IntentRule(Intent.AI_QUESTIONS, r"\bsuggest\s+(?:some\s+)?questions?\b"),
    IntentRule(Intent.AI_TERMINOLOGY, r"\b(?:explain|what\s+(?:does|is))\s+(?:the\s+|this\s+)?(?:medical\s+)?(?:term|terminology|word|jargon)\b"),
    IntentRule(Intent.AI_TERMINOLOGY, r"\bwhat\s+does\s+\S+\s+mean\b"),
    IntentRule(Intent.AI_TERMINOLOGY, r"\bmedical\s+(?:terms?|terminology|jargon)\b"),
    IntentRule(Intent.AI_TRENDS, r"\b(?:health\s+)?trends?\s+(?:analysis|report)\b"),
    IntentRule(Intent.AI_TRENDS, r"\b(?:analy[sz]e|show)\s+(?:my\s+)?(?:health\s+)?trends?\b"),
    IntentRule(Intent.AI_TRENDS, r"\b(?:am\s+i|is\s+my\s+health)\s+(?:getting\s+)?(?:better|worse|improving|deteriorating)\b"),
)

def compile_rules(
    vocabulary: RegionVocabulary,
    rules: tuple[IntentRule, ...] = RULE_TABLE,
) -> tuple[CompiledRule, ...]:
    """Compile a rule table for one region's vocabulary."""
    return tuple(
        CompiledRule(
            intent=rule.intent,
            regex=re.compile(expand_template(rule.pattern, vocabulary), re.IGNORECASE),
        )
        for rule in rules
    )


def keyword_pattern(intent: Intent) -> Pattern[str]:
    """Regex that finds an action keyword or one of the intent's trigger words."""
    words = ACTION_KEYWORDS + TRIGGER_WORDS.get(intent, ())
    return re.compile(r"\b(?:" + term_alternation(words) + r")\b", re.IGNORECASE)
