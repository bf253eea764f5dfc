"""
Data Collection Module

Schema registry, record normalization, the persistence gateway contract and
the per-conversation collection dialogue.

Usage:
    from meeka.core.collection import DataCollectionController, InMemoryGateway

    controller = DataCollectionController("conv-1", "profile-1", InMemoryGateway())
    step = controller.start(Intent.ADD_SYMPTOM)
    print(step.prompt)  # "I'll help you add a symptom. What's the description..."

    step = await controller.advance("sore throat")
"""

from .controller import DECLINE_PHRASES, DataCollectionController, NextStep, is_decline
from .gateway import (
    GatewayError,
    InMemoryGateway,
    InsertResult,
    PersistenceGateway,
    success_message,
)
from .records import (
    DiaryRecord,
    MedicationRecord,
    MoodRecord,
    Record,
    SymptomRecord,
    UnknownTableError,
    normalize_entry_type,
    normalize_record,
    normalize_severity,
    normalize_status,
    parse_rating,
    resolve_date,
    split_list,
)
from .schemas import (
    DIARY_ENTRIES,
    INTENT_TABLES,
    MEDICATIONS,
    MOOD_ENTRIES,
    SCHEMAS,
    SYMPTOMS,
    RecordSchema,
    get_field_prompt,
    get_notes_prompt,
    get_schema,
    schema_for_intent,
)

__all__ = [
    # Schemas
    "RecordSchema",
    "SCHEMAS",
    "INTENT_TABLES",
    "SYMPTOMS",
    "MEDICATIONS",
    "MOOD_ENTRIES",
    "DIARY_ENTRIES",
    "get_schema",
    "schema_for_intent",
    "get_field_prompt",
    "get_notes_prompt",
    # Records
    "Record",
    "SymptomRecord",
    "MedicationRecord",
    "MoodRecord",
    "DiaryRecord",
    "UnknownTableError",
    "normalize_record",
    "normalize_severity",
    "normalize_status",
    "normalize_entry_type",
    "parse_rating",
    "resolve_date",
    "split_list",
    # Gateway
    "GatewayError",
    "InsertResult",
    "PersistenceGateway",
    "InMemoryGateway",
    "success_message",
    # Controller
    "DataCollectionController",
    "NextStep",
    "DECLINE_PHRASES",
    "is_decline",
]
