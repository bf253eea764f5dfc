"""
Regional vocabulary and region detection.

Each region names the same things differently ("GP" in Australia and the UK,
"PCP" in the US). The classifier interpolates these terms into its rule
templates so one rule table serves every region.
"""

import logging
import re
import time
from dataclasses import dataclass, fields
from enum import Enum
from typing import Callable, Optional, Union

logger = logging.getLogger(__name__)


class RegionCode(str, Enum):
    """Supported data regions."""

    AU = "AU"
    UK = "UK"
    USA = "USA"


@dataclass(frozen=True)
class RegionVocabulary:
    """Terms a region uses for the things users talk about."""

    doctor: tuple[str, ...]
    specialist: tuple[str, ...]
    pharmacy: tuple[str, ...]
    appointment: tuple[str, ...]
    pain_reliever: tuple[str, ...]
    emergency: tuple[str, ...]

    def terms(self, category: str) -> tuple[str, ...]:
        """Get the terms for a category, e.g. ``"doctor"``."""
        return getattr(self, category)

    def merge(self, other: "RegionVocabulary") -> "RegionVocabulary":
        """Union of two vocabularies, keeping first-seen order."""
        merged = {}
        for f in fields(self):
            seen = list(getattr(self, f.name))
            for term in getattr(other, f.name):
                if term not in seen:
                    seen.append(term)
            merged[f.name] = tuple(seen)
        return RegionVocabulary(**merged)


VOCABULARIES: dict[RegionCode, RegionVocabulary] = {
    RegionCode.AU: RegionVocabulary(
        doctor=("gp", "doctor", "doc", "physician", "medical centre"),
        specialist=("specialist", "physio", "physiotherapist", "psychologist"),
        pharmacy=("chemist", "pharmacy", "pharmacist"),
        appointment=("appointment", "consult", "consultation", "check-up", "checkup"),
        pain_reliever=("paracetamol", "panadol", "nurofen", "ibuprofen"),
        emergency=("000", "emergency department", "ed"),
    ),
    RegionCode.UK: RegionVocabulary(
        doctor=("gp", "doctor", "doc", "surgery", "practice nurse"),
        specialist=("consultant", "specialist", "physio", "physiotherapist"),
        pharmacy=("chemist", "pharmacy", "pharmacist", "boots"),
        appointment=("appointment", "consultation", "check-up", "checkup"),
        pain_reliever=("paracetamol", "calpol", "ibuprofen", "nurofen"),
        emergency=("999", "a&e", "a and e", "111"),
    ),
    RegionCode.USA: RegionVocabulary(
        doctor=("pcp", "primary care", "primary care physician", "doctor", "doc", "physician"),
        specialist=("specialist", "physical therapist", "pt", "therapist"),
        pharmacy=("pharmacy", "drugstore", "pharmacist", "cvs", "walgreens"),
        appointment=("appointment", "visit", "office visit", "checkup", "check-up"),
        pain_reliever=("acetaminophen", "tylenol", "advil", "ibuprofen", "motrin"),
        emergency=("911", "er", "emergency room", "urgent care"),
    ),
}


def _broadest() -> RegionVocabulary:
    vocab = VOCABULARIES[RegionCode.AU]
    for region in (RegionCode.UK, RegionCode.USA):
        vocab = vocab.merge(VOCABULARIES[region])
    return vocab


# Union of every region; used when the region is not recognised
BROADEST_VOCABULARY = _broadest()

_ALIASES = {
    "US": RegionCode.USA,
    "USA": RegionCode.USA,
    "UNITED STATES": RegionCode.USA,
    "UK": RegionCode.UK,
    "GB": RegionCode.UK,
    "UNITED KINGDOM": RegionCode.UK,
    "AU": RegionCode.AU,
    "AUS": RegionCode.AU,
    "AUSTRALIA": RegionCode.AU,
}

_EUROPEAN_COUNTRIES = {
    "DE", "FR", "IT", "ES", "NL", "BE", "CH", "AT", "SE", "NO", "DK", "FI", "IE",
}

_DISPLAY_NAMES = {
    RegionCode.AU: "Australia",
    RegionCode.UK: "United Kingdom",
    RegionCode.USA: "United States",
}


def parse_region(value: Union[RegionCode, str, None]) -> Optional[RegionCode]:
    """Resolve a region code or alias. Returns None if unrecognised."""
    if value is None:
        return None
    if isinstance(value, RegionCode):
        return value
    return _ALIASES.get(value.strip().upper())


def get_vocabulary(region: Union[RegionCode, str, None]) -> RegionVocabulary:
    """Get the vocabulary for a region.

    Unknown or missing regions get the broadest vocabulary rather than an error.
    """
    code = parse_region(region)
    if code is None:
        if region is not None:
            logger.debug(f"Unknown region {region!r}, using broadest vocabulary")
        return BROADEST_VOCABULARY
    return VOCABULARIES[code]


def detect_region(
    timezone_name: Optional[str] = None,
    country_code: Optional[str] = None,
    saved_region: Optional[str] = None,
    default: RegionCode = RegionCode.USA,
) -> RegionCode:
    """
    Best-guess region for a user.

    Priority: explicit user choice, then timezone, then IP country code.

    Args:
        timezone_name: IANA timezone, e.g. "Australia/Sydney"
        country_code: ISO country code from geolocation, e.g. "GB"
        saved_region: Region the user picked themselves
        default: Returned when nothing else matches

    Returns:
        RegionCode
    """
    saved = parse_region(saved_region)
    if saved is not None:
        return saved

    if timezone_name:
        if timezone_name.startswith("Australia/"):
            return RegionCode.AU
        if timezone_name in ("Europe/London", "Europe/Dublin"):
            return RegionCode.UK
        if timezone_name.startswith("America/"):
            return RegionCode.USA
        # Rest of Europe is served from the UK region
        if timezone_name.startswith("Europe/"):
            return RegionCode.UK

    if country_code:
        code = country_code.strip().upper()
        if code == "AU":
            return RegionCode.AU
        if code in ("GB", "UK"):
            return RegionCode.UK
        if code == "US":
            return RegionCode.USA
        if code in _EUROPEAN_COUNTRIES:
            return RegionCode.UK

    return default


def region_display_name(region: Union[RegionCode, str]) -> str:
    """Human-readable region name."""
    code = parse_region(region)
    if code is None:
        return str(region)
    return _DISPLAY_NAMES[code]


class RegionCache:
    """
    Caller-owned cache for a resolved region.

    Region detection may touch storage or the network, so chat transports
    keep one of these per user and pass the cached value into the classifier.

    Usage:
        cache = RegionCache(ttl=1.0)
        region = cache.get(lambda: detect_region(timezone_name=tz))
    """

    def __init__(
        self,
        ttl: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._ttl = ttl
        self._clock = clock
        self._region: Optional[RegionCode] = None
        self._checked_at = 0.0

    @property
    def region(self) -> Optional[RegionCode]:
        """Last cached region, fresh or not."""
        return self._region

    def get(self, resolver: Callable[[], RegionCode]) -> RegionCode:
        """Return the cached region, calling ``resolver`` when stale."""
        now = self._clock()
        if self._region is not None and (now - self._checked_at) < self._ttl:
            return self._region

        self._region = resolver()
        self._checked_at = now
        return self._region

    def set(self, region: RegionCode) -> None:
        """Store a region the user picked explicitly."""
        self._region = region
        self._checked_at = self._clock()

    def clear(self) -> None:
        """Forget the cached region."""
        self._region = None
        self._checked_at = 0.0


_PLACEHOLDER = re.compile(r"\{(\w+)\}")


def term_alternation(terms: tuple[str, ...]) -> str:
    """Regex alternation for vocabulary terms, longest first."""
    ordered = sorted(terms, key=len, reverse=True)
    return "|".join(re.escape(term) for term in ordered)


def expand_template(template: str, vocabulary: RegionVocabulary) -> str:
    """Replace ``{category}`` placeholders with the region's terms.

    Braces that are not vocabulary categories (regex quantifiers) are left alone.
    """
    categories = {f.name for f in fields(vocabulary)}

    def _replace(match: re.Match) -> str:
        name = match.group(1)
        if name not in categories:
            return match.group(0)
        return term_alternation(vocabulary.terms(name))

    return _PLACEHOLDER.sub(_replace, template)
