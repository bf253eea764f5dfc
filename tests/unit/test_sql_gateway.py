"""Tests for the SQLAlchemy persistence gateway."""

import uuid
from contextlib import asynccontextmanager
from datetime import date
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError

from meeka.core.collection.records import (
    DiaryRecord,
    MedicationRecord,
    MoodRecord,
    SymptomRecord,
)
from meeka.infra.records import (
    MOOD_ENTRY_EXISTS,
    SqlAlchemyGateway,
    log_concierge_event,
    to_model,
)
from meeka.models.database import (
    ConciergeEvent,
    ConciergeResult,
    DiaryEntry,
    MedicationStatus,
    Severity,
    Symptom,
)

PROFILE_ID = "7c9e6679-7425-40de-944b-e07fc1f90ae7"
TODAY = date(2024, 5, 15)


def _db_context(db):
    @asynccontextmanager
    async def _context():
        yield db

    return _context


@pytest.fixture
def mock_db():
    """Mock AsyncSession that assigns ids on add."""
    db = MagicMock()
    db.flush = AsyncMock()

    def _add(row):
        row.id = uuid.uuid4()

    db.add.side_effect = _add
    return db


@pytest.fixture
def symptom():
    return SymptomRecord(
        profile_id=PROFILE_ID,
        description="headache",
        start_date=TODAY,
        severity="Severe",
    )


class TestToModel:
    """Test record to ORM mapping."""

    def test_symptom(self, symptom):
        row = to_model(symptom)

        assert isinstance(row, Symptom)
        assert row.profile_id == uuid.UUID(PROFILE_ID)
        assert row.severity == Severity.SEVERE

    def test_medication_status(self):
        row = to_model(MedicationRecord(
            profile_id=PROFILE_ID,
            medication_name="metformin",
            start_date=TODAY,
            dosage="500mg",
            status="Inactive",
        ))

        assert row.status == MedicationStatus.INACTIVE

    def test_ai_diary_entry(self):
        row = to_model(DiaryRecord(
            profile_id=PROFILE_ID,
            entry_type="AI",
            title="AI Insights: Symptom Insights",
            date=TODAY,
            ai_type="symptom-analysis",
            source_entries=["a", "b"],
        ))

        assert isinstance(row, DiaryEntry)
        assert row.ai_type == "symptom-analysis"
        assert row.source_entries == ["a", "b"]


class TestSqlAlchemyGateway:
    """Test inserts through the gateway."""

    @pytest.fixture
    def gateway(self):
        return SqlAlchemyGateway()

    @pytest.mark.asyncio
    async def test_insert_symptom(self, gateway, mock_db, symptom):
        with patch("meeka.infra.records.get_db_context", _db_context(mock_db)):
            result = await gateway.insert("symptoms", symptom)

        assert result.success
        assert result.message == "Successfully added symptom: headache"
        assert uuid.UUID(result.inserted_id)
        mock_db.add.assert_called_once()
        mock_db.flush.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_table_mismatch(self, gateway, mock_db, symptom):
        with patch("meeka.infra.records.get_db_context", _db_context(mock_db)):
            result = await gateway.insert("medications", symptom)

        assert not result.success
        assert result.message == "Unknown table: medications"
        mock_db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_invalid_profile(self, gateway, mock_db):
        record = SymptomRecord(profile_id="not-a-uuid", description="cough", start_date=TODAY)

        with patch("meeka.infra.records.get_db_context", _db_context(mock_db)):
            result = await gateway.insert("symptoms", record)

        assert not result.success
        assert result.message.startswith("Failed to add symptom: Invalid profile id")

    @pytest.mark.asyncio
    async def test_duplicate_mood_entry(self, gateway, mock_db):
        mock_db.flush.side_effect = IntegrityError(
            "INSERT", {}, Exception("duplicate key value violates unique constraint")
        )
        record = MoodRecord(profile_id=PROFILE_ID, date=TODAY, body=4, mind=4, sleep=3, mood=4)

        with patch("meeka.infra.records.get_db_context", _db_context(mock_db)):
            result = await gateway.insert("mood_entries", record)

        assert not result.success
        assert result.message == MOOD_ENTRY_EXISTS

    @pytest.mark.asyncio
    async def test_database_error(self, gateway, mock_db):
        mock_db.flush.side_effect = OperationalError("INSERT", {}, Exception("connection lost"))
        record = MedicationRecord(
            profile_id=PROFILE_ID,
            medication_name="metformin",
            start_date=TODAY,
            dosage="500mg",
        )

        with patch("meeka.infra.records.get_db_context", _db_context(mock_db)):
            result = await gateway.insert("medications", record)

        assert not result.success
        assert result.message.startswith("Failed to add medication:")
        assert result.inserted_id is None


class TestConciergeEvents:
    """Test concierge telemetry."""

    @pytest.mark.asyncio
    async def test_logs_event(self, mock_db):
        with patch("meeka.infra.records.get_db_context", _db_context(mock_db)):
            await log_concierge_event(
                intent="ADD_MOOD",
                confidence=1.0,
                route="/patient/:patientId?mood=true",
                result=ConciergeResult.OPENED,
                profile_id=PROFILE_ID,
            )

        event = mock_db.add.call_args.args[0]
        assert isinstance(event, ConciergeEvent)
        assert event.intent == "ADD_MOOD"
        assert event.result == ConciergeResult.OPENED
        assert event.profile_id == uuid.UUID(PROFILE_ID)
        assert event.meta == {}

    @pytest.mark.asyncio
    async def test_failures_are_swallowed(self, mock_db):
        mock_db.add.side_effect = SQLAlchemyError("down")

        with patch("meeka.infra.records.get_db_context", _db_context(mock_db)):
            await log_concierge_event(
                intent="UNKNOWN",
                confidence=0.0,
                route="/chat",
                result=ConciergeResult.FAILED,
                profile_id="not-a-uuid",
            )

        mock_db.add.assert_called_once()
