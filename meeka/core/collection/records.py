"""
Typed records and answer normalization.

Collected answers are free text. ``normalize_record`` turns them into one
typed record per table, filling conservative defaults instead of rejecting
anything the user said.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Optional, Union

from .schemas import DIARY_ENTRIES, MEDICATIONS, MOOD_ENTRIES, SYMPTOMS

logger = logging.getLogger(__name__)


# Severity
SEVERITIES = ("Mild", "Moderate", "Severe")
_SEVERITY_ALIASES = {
    "mild": "Mild",
    "slight": "Mild",
    "light": "Mild",
    "minor": "Mild",
    "moderate": "Moderate",
    "medium": "Moderate",
    "severe": "Severe",
}

# Medication status
STATUSES = ("Active", "Inactive")

# Diary entry types
ENTRY_TYPES = ("Symptom", "Appointment", "Diagnosis", "Note", "Treatment", "Other", "AI")
_ENTRY_TYPE_LOOKUP = {value.lower(): value for value in ENTRY_TYPES}

# Mood ratings
RATING_MIN = 1
RATING_MAX = 5
RATING_NEUTRAL = 3
_NUMBER_WORDS = {"one": 1, "two": 2, "three": 3, "four": 4, "five": 5}

_DATE_FORMATS = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%d/%m/%Y",
    "%d-%m-%Y",
    "%d.%m.%Y",
    "%d %B %Y",
    "%d %b %Y",
    "%B %d %Y",
    "%b %d %Y",
    "%B %d, %Y",
    "%b %d, %Y",
)
_DAY_MONTH_FORMATS = ("%d %B", "%d %b", "%B %d", "%b %d", "%d/%m")
_RELATIVE_AGO = re.compile(r"^(\d+|a|an|one|two|three|four|five)\s+(day|week)s?\s+ago$")
_TODAY_WORDS = {"", "today", "now", "this morning", "this afternoon", "this evening", "tonight"}
_YESTERDAY_WORDS = {"yesterday", "last night", "yesterday morning", "yesterday evening"}


def resolve_date(value: Optional[str], today: date) -> date:
    """
    Resolve a spoken date.

    Unrecognized text resolves to today.

    Args:
        value: User's answer, e.g. "yesterday", "3 days ago", "2024-05-01"
        today: Reference date

    Returns:
        Resolved date
    """
    text = (value or "").strip().lower().rstrip(".")
    if text in _TODAY_WORDS:
        return today
    if text in _YESTERDAY_WORDS:
        return today - timedelta(days=1)
    if text == "tomorrow":
        return today + timedelta(days=1)

    match = _RELATIVE_AGO.match(text)
    if match:
        amount, unit = match.groups()
        try:
            count = int(amount) if amount.isdigit() else _NUMBER_WORDS.get(amount, 1)
            days = count * 7 if unit == "week" else count
            return today - timedelta(days=days)
        except (OverflowError, ValueError):
            logger.debug(f"Relative date {value!r} out of range, using today")
            return today

    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    # Day and month only: assume the current year
    for fmt in _DAY_MONTH_FORMATS:
        try:
            parsed = datetime.strptime(f"{text} {today.year}", f"{fmt} %Y")
            return parsed.date()
        except ValueError:
            continue

    logger.debug(f"Unrecognized date {value!r}, using today")
    return today


def optional_date(value: Optional[str], today: date) -> Optional[date]:
    """Like resolve_date, but blank answers stay empty."""
    if value is None or not str(value).strip():
        return None
    return resolve_date(value, today)


def normalize_severity(value: Optional[str]) -> str:
    """Mild, Moderate or Severe; anything else is Mild."""
    return _SEVERITY_ALIASES.get((value or "").strip().lower(), "Mild")


def normalize_status(value: Optional[str]) -> str:
    """Active or Inactive; anything else is Active."""
    normalized = (value or "").strip().lower()
    if normalized in ("inactive", "stopped", "no longer"):
        return "Inactive"
    return "Active"


def normalize_entry_type(value: Optional[str]) -> str:
    """Canonical diary entry type; unknown types are Note."""
    return _ENTRY_TYPE_LOOKUP.get((value or "").strip().lower(), "Note")


def parse_rating(value: Any) -> int:
    """
    Parse a 1-5 rating.

    Accepts digits ("4", "4/5", "4 out of 5") and number words. Out-of-range
    numbers are clamped; anything unparseable is the neutral midpoint.
    """
    if isinstance(value, int):
        return max(RATING_MIN, min(RATING_MAX, value))

    text = str(value or "").strip().lower()
    match = re.search(r"-?\d+", text)
    if match:
        digits = match.group(0)
        # Long digit runs are out of range either way; skip int() on them
        if len(digits.lstrip("-").lstrip("0")) > 2:
            return RATING_MIN if digits.startswith("-") else RATING_MAX
        return max(RATING_MIN, min(RATING_MAX, int(digits)))

    for word, number in _NUMBER_WORDS.items():
        if re.search(rf"\b{word}\b", text):
            return number

    return RATING_NEUTRAL


def split_list(value: Union[str, list, None]) -> list[str]:
    """Split a comma-separated answer, dropping empty items."""
    if value is None:
        return []
    items = value if isinstance(value, list) else str(value).split(",")
    return [item.strip() for item in items if item and item.strip()]


def _text(value: Any) -> str:
    return str(value or "").strip()


def _optional_text(value: Any) -> Optional[str]:
    text = _text(value)
    return text or None


@dataclass
class SymptomRecord:
    """Row for the symptoms table."""

    profile_id: str
    description: str
    start_date: date
    severity: str = "Mild"
    end_date: Optional[date] = None
    notes: Optional[str] = None

    table = SYMPTOMS

    def to_payload(self) -> dict:
        return {
            "profile_id": self.profile_id,
            "description": self.description,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "severity": self.severity,
            "notes": self.notes,
        }


@dataclass
class MedicationRecord:
    """Row for the medications table."""

    profile_id: str
    medication_name: str
    start_date: date
    dosage: str
    status: str = "Active"
    end_date: Optional[date] = None
    prescribed_by: Optional[str] = None
    notes: Optional[str] = None

    table = MEDICATIONS

    def to_payload(self) -> dict:
        return {
            "profile_id": self.profile_id,
            "medication_name": self.medication_name,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "dosage": self.dosage,
            "status": self.status,
            "prescribed_by": self.prescribed_by,
            "notes": self.notes,
        }


@dataclass
class MoodRecord:
    """Row for the mood_entries table. Ratings are 1-5."""

    profile_id: str
    date: date
    body: int = RATING_NEUTRAL
    mind: int = RATING_NEUTRAL
    sleep: int = RATING_NEUTRAL
    mood: int = RATING_NEUTRAL
    notes: Optional[str] = None

    table = MOOD_ENTRIES

    def to_payload(self) -> dict:
        return {
            "profile_id": self.profile_id,
            "date": self.date.isoformat(),
            "body": self.body,
            "mind": self.mind,
            "sleep": self.sleep,
            "mood": self.mood,
            "notes": self.notes,
        }


@dataclass
class DiaryRecord:
    """Row for the diary_entries table, including AI insight entries."""

    profile_id: str
    entry_type: str
    title: str
    date: date
    notes: Optional[str] = None
    severity: Optional[str] = None
    attendees: list[str] = field(default_factory=list)
    ai_type: Optional[str] = None
    source_entries: Optional[list[str]] = None

    table = DIARY_ENTRIES

    def to_payload(self) -> dict:
        payload = {
            "profile_id": self.profile_id,
            "entry_type": self.entry_type,
            "title": self.title,
            "date": self.date.isoformat(),
            "notes": self.notes,
            "severity": self.severity,
            "attendees": list(self.attendees),
        }
        if self.ai_type is not None:
            payload["ai_type"] = self.ai_type
            payload["source_entries"] = list(self.source_entries or [])
        return payload


Record = Union[SymptomRecord, MedicationRecord, MoodRecord, DiaryRecord]


class UnknownTableError(ValueError):
    """Raised when asked to normalize data for a table with no record type."""


def normalize_record(
    table: str,
    collected: dict[str, Any],
    profile_id: str,
    today: Optional[date] = None,
) -> Record:
    """
    Build the typed record for a finished dialogue.

    Args:
        table: Target table
        collected: Raw answers keyed by field name
        profile_id: Profile the record belongs to
        today: Reference date for relative dates (defaults to today)

    Returns:
        SymptomRecord, MedicationRecord, MoodRecord or DiaryRecord

    Raises:
        UnknownTableError: If the table has no record type
    """
    today = today or date.today()
    notes = _optional_text(collected.get("notes"))

    if table == SYMPTOMS:
        return SymptomRecord(
            profile_id=profile_id,
            description=_text(collected.get("description")),
            start_date=resolve_date(collected.get("start_date"), today),
            end_date=optional_date(collected.get("end_date"), today),
            severity=normalize_severity(collected.get("severity")),
            notes=notes,
        )

    if table == MEDICATIONS:
        end_date = optional_date(collected.get("end_date"), today)
        # A stopped medication cannot be active
        status = "Inactive" if end_date else normalize_status(collected.get("status"))
        return MedicationRecord(
            profile_id=profile_id,
            medication_name=_text(collected.get("medication_name")),
            start_date=resolve_date(collected.get("start_date"), today),
            end_date=end_date,
            dosage=_text(collected.get("dosage")),
            status=status,
            prescribed_by=_optional_text(collected.get("prescribed_by")),
            notes=notes,
        )

    if table == MOOD_ENTRIES:
        return MoodRecord(
            profile_id=profile_id,
            date=resolve_date(collected.get("date"), today),
            body=parse_rating(collected.get("body")),
            mind=parse_rating(collected.get("mind")),
            sleep=parse_rating(collected.get("sleep")),
            mood=parse_rating(collected.get("mood")),
            notes=notes,
        )

    if table == DIARY_ENTRIES:
        return DiaryRecord(
            profile_id=profile_id,
            entry_type=normalize_entry_type(collected.get("entry_type")),
            title=_text(collected.get("title")),
            date=resolve_date(collected.get("date"), today),
            notes=notes,
            severity=_optional_text(collected.get("severity")),
            attendees=split_list(collected.get("attendees")),
            ai_type=collected.get("ai_type"),
            source_entries=collected.get("source_entries"),
        )

    raise UnknownTableError(f"No record type for table: {table}")
