"""
Persistence gateway contract.

The dialogue never talks to storage directly. It hands a finished record to a
PersistenceGateway and reports whatever InsertResult comes back.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Protocol, runtime_checkable
from uuid import uuid4

from .records import Record

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    """Raised by gateway adapters when a write cannot be attempted."""


@dataclass
class InsertResult:
    """Outcome of one insert."""

    success: bool
    message: str
    inserted_id: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "success": self.success,
            "message": self.message,
            "inserted_id": self.inserted_id,
            "error": self.error,
        }


@runtime_checkable
class PersistenceGateway(Protocol):
    """Writes one record to one table. Single-row atomic, no retries."""

    async def insert(self, table: str, record: Record) -> InsertResult:
        ...


def success_message(record: Record) -> str:
    """User-facing confirmation for a stored record."""
    table = record.table
    if table == "symptoms":
        return f"Successfully added symptom: {record.description}"
    if table == "medications":
        return f"Successfully added medication: {record.medication_name}"
    if table == "mood_entries":
        return f"Successfully added mood entry for {record.date.isoformat()}"
    if table == "diary_entries":
        return f"Successfully added {record.entry_type.lower()} entry: {record.title}"
    return f"Successfully added {table} record"


@dataclass
class InMemoryGateway:
    """
    Gateway that keeps inserted rows in a list.

    Used by tests and local runs. Set ``fail_with`` to make every insert fail
    with that message.
    """

    inserted: list[tuple[str, dict]] = field(default_factory=list)
    fail_with: Optional[str] = None

    async def insert(self, table: str, record: Record) -> InsertResult:
        if self.fail_with is not None:
            logger.error(f"In-memory insert into {table} failed: {self.fail_with}")
            return InsertResult(
                success=False,
                message=f"Failed to add {table} record: {self.fail_with}",
                error=self.fail_with,
            )

        row_id = str(uuid4())
        payload = record.to_payload()
        payload["id"] = row_id
        self.inserted.append((table, payload))
        logger.debug(f"In-memory insert into {table}: {row_id}")
        return InsertResult(success=True, message=success_message(record), inserted_id=row_id)

    def rows(self, table: str) -> list[dict]:
        """Rows inserted into one table."""
        return [payload for name, payload in self.inserted if name == table]
