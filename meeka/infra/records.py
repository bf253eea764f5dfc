"""
SQL persistence for collected records and concierge telemetry.

Implements the PersistenceGateway contract on top of the async SQLAlchemy
session. One insert per call, committed by ``get_db_context``.
"""

import logging
import uuid
from typing import Any, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from meeka.core.collection.gateway import GatewayError, InsertResult, success_message
from meeka.core.collection.records import (
    DiaryRecord,
    MedicationRecord,
    MoodRecord,
    Record,
    SymptomRecord,
)
from meeka.core.collection.response import failure_message
from meeka.core.collection.schemas import get_schema
from meeka.infra.database import get_db_context
from meeka.models.database import (
    Base,
    ConciergeEvent,
    ConciergeResult,
    DiaryEntry,
    Medication,
    MedicationStatus,
    MoodEntry,
    Severity,
    Symptom,
)

logger = logging.getLogger(__name__)

MOOD_ENTRY_EXISTS = (
    "A mood entry already exists for this date. Please edit the existing entry instead."
)


def _profile_uuid(profile_id: str) -> uuid.UUID:
    try:
        return uuid.UUID(str(profile_id))
    except ValueError as e:
        raise GatewayError(f"Invalid profile id: {profile_id}") from e


def to_model(record: Record) -> Base:
    """
    Build the ORM row for a typed record.

    Raises:
        GatewayError: If the record cannot be mapped
    """
    profile_id = _profile_uuid(record.profile_id)

    if isinstance(record, SymptomRecord):
        return Symptom(
            profile_id=profile_id,
            description=record.description,
            start_date=record.start_date,
            end_date=record.end_date,
            severity=Severity(record.severity),
            notes=record.notes,
        )
    if isinstance(record, MedicationRecord):
        return Medication(
            profile_id=profile_id,
            medication_name=record.medication_name,
            start_date=record.start_date,
            end_date=record.end_date,
            dosage=record.dosage,
            status=MedicationStatus(record.status),
            prescribed_by=record.prescribed_by,
            notes=record.notes,
        )
    if isinstance(record, MoodRecord):
        return MoodEntry(
            profile_id=profile_id,
            date=record.date,
            body=record.body,
            mind=record.mind,
            sleep=record.sleep,
            mood=record.mood,
            notes=record.notes,
        )
    if isinstance(record, DiaryRecord):
        return DiaryEntry(
            profile_id=profile_id,
            entry_type=record.entry_type,
            title=record.title,
            date=record.date,
            notes=record.notes,
            severity=record.severity,
            attendees=list(record.attendees),
            ai_type=record.ai_type,
            source_entries=record.source_entries,
        )

    raise GatewayError(f"No model for record type {type(record).__name__}")


class SqlAlchemyGateway:
    """PersistenceGateway backed by the application database."""

    async def insert(self, table: str, record: Record) -> InsertResult:
        """
        Insert one record.

        Args:
            table: Target table name
            record: Typed record for that table

        Returns:
            InsertResult with the new row id on success
        """
        schema = get_schema(table)
        label = schema.label if schema else f"{table} record"

        if record.table != table:
            return InsertResult(
                success=False,
                message=f"Unknown table: {table}",
                error=f"{type(record).__name__} does not belong to {table}",
            )

        try:
            row = to_model(record)
            async with get_db_context() as db:
                db.add(row)
                await db.flush()
                inserted_id = str(row.id)

        except IntegrityError as e:
            # One mood entry per profile per day
            if table == "mood_entries":
                logger.info(f"Duplicate mood entry for {record.profile_id} on {record.date}")
                return InsertResult(success=False, message=MOOD_ENTRY_EXISTS, error=str(e.orig))
            logger.error(f"Integrity error adding {label}: {e}")
            return InsertResult(
                success=False, message=failure_message(label, str(e.orig)), error=str(e)
            )

        except (GatewayError, SQLAlchemyError) as e:
            logger.error(f"Error adding {label}: {e}")
            return InsertResult(success=False, message=failure_message(label, str(e)), error=str(e))

        logger.info(f"Added {label} {inserted_id} for profile {record.profile_id}")
        return InsertResult(
            success=True,
            message=success_message(record),
            inserted_id=inserted_id,
        )


async def log_concierge_event(
    intent: str,
    confidence: float,
    route: str,
    result: ConciergeResult,
    meta: Optional[dict[str, Any]] = None,
    profile_id: Optional[str] = None,
) -> None:
    """
    Record one classification outcome.

    Telemetry must never break a chat turn: failures are logged and dropped.
    """
    try:
        profile = uuid.UUID(str(profile_id)) if profile_id else None
    except ValueError:
        profile = None

    try:
        async with get_db_context() as db:
            db.add(ConciergeEvent(
                profile_id=profile,
                intent=intent,
                confidence=confidence,
                route=route,
                result=result,
                meta=meta or {},
            ))
        logger.debug(f"Concierge event logged: {intent} ({confidence:.2f}) -> {result.value}")
    except (SQLAlchemyError, OSError) as e:
        logger.error(f"Failed to log concierge event: {e}")
