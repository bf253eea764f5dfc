"""
Database Models

SQLAlchemy ORM models for the health-journal tables Meeka writes to.
"""

import uuid
import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import (
    Date, DateTime, Float, Index, Integer, String, Text, UniqueConstraint,
    Enum as SQLEnum, text
)
from sqlalchemy.dialects.postgresql import UUID, JSON
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


class TimestampMixin:
    """Mixin that adds created_at and updated_at timestamp columns."""

    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime,
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False
    )
    updated_at: Mapped[datetime.datetime] = mapped_column(
        DateTime,
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False
    )


class Severity(str, Enum):
    """Symptom severity."""
    MILD = "Mild"
    MODERATE = "Moderate"
    SEVERE = "Severe"


class MedicationStatus(str, Enum):
    """Medication status."""
    ACTIVE = "Active"
    INACTIVE = "Inactive"


class ConciergeResult(str, Enum):
    """Outcome recorded for a concierge event."""
    OPENED = "opened"
    FAILED = "failed"
    CANCELLED = "cancelled"


class Symptom(Base, TimestampMixin):
    """A symptom the profile experienced."""

    __tablename__ = "symptoms"
    __table_args__ = (
        Index("idx_symptom_profile", "profile_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    profile_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    start_date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    end_date: Mapped[Optional[datetime.date]] = mapped_column(Date, nullable=True)
    severity: Mapped[Severity] = mapped_column(
        SQLEnum(Severity, values_callable=lambda e: [m.value for m in e]),
        default=Severity.MILD
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Symptom(id={self.id}, description={self.description[:30]})>"


class Medication(Base, TimestampMixin):
    """A medication the profile takes or took."""

    __tablename__ = "medications"
    __table_args__ = (
        Index("idx_medication_profile", "profile_id"),
        Index("idx_medication_status", "profile_id", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    profile_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    medication_name: Mapped[str] = mapped_column(String(255), nullable=False)
    start_date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    end_date: Mapped[Optional[datetime.date]] = mapped_column(Date, nullable=True)
    dosage: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[MedicationStatus] = mapped_column(
        SQLEnum(MedicationStatus, values_callable=lambda e: [m.value for m in e]),
        default=MedicationStatus.ACTIVE
    )
    prescribed_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Medication(id={self.id}, name={self.medication_name})>"


class MoodEntry(Base):
    """Daily mood check-in. One per profile per day."""

    __tablename__ = "mood_entries"
    __table_args__ = (
        UniqueConstraint("profile_id", "date", name="uq_mood_entry_profile_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    profile_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    body: Mapped[int] = mapped_column(Integer, nullable=False)
    mind: Mapped[int] = mapped_column(Integer, nullable=False)
    sleep: Mapped[int] = mapped_column(Integer, nullable=False)
    mood: Mapped[int] = mapped_column(Integer, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime,
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False
    )

    def __repr__(self) -> str:
        return f"<MoodEntry(id={self.id}, date={self.date})>"


class DiaryEntry(Base, TimestampMixin):
    """Diary entry: notes, appointments, diagnoses and AI insights."""

    __tablename__ = "diary_entries"
    __table_args__ = (
        Index("idx_diary_profile_date", "profile_id", "date"),
        Index("idx_diary_type", "profile_id", "entry_type"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    profile_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    entry_type: Mapped[str] = mapped_column(String(50), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    severity: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    attendees: Mapped[list] = mapped_column(JSON, default=list)
    file_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    ai_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    source_entries: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)

    def __repr__(self) -> str:
        return f"<DiaryEntry(id={self.id}, type={self.entry_type}, title={self.title[:30]})>"


class ConciergeEvent(Base):
    """
    One classified chat message.

    Telemetry only: which intent was detected, how confident the classifier
    was, and what happened next.
    """

    __tablename__ = "concierge_events"
    __table_args__ = (
        Index("idx_concierge_profile_time", "profile_id", "occurred_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    profile_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), nullable=True)
    intent: Mapped[str] = mapped_column(String(50), nullable=False)
    confidence: Mapped[float] = mapped_column(Float, nullable=False)
    route: Mapped[str] = mapped_column(String(255), nullable=False)
    result: Mapped[ConciergeResult] = mapped_column(
        SQLEnum(ConciergeResult, values_callable=lambda e: [m.value for m in e]),
        nullable=False
    )
    meta: Mapped[dict] = mapped_column(JSON, default=dict)
    occurred_at: Mapped[datetime.datetime] = mapped_column(
        DateTime,
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False
    )

    def __repr__(self) -> str:
        return f"<ConciergeEvent(intent={self.intent}, result={self.result})>"
