"""
Data collection dialogue.

Walks a record schema one question per turn, optionally asks for notes, then
hands the normalized record to the persistence gateway exactly once.
"""

import logging
from dataclasses import dataclass, field as dataclass_field
from datetime import date
from typing import Any, Callable, Optional

from meeka.core.intelligence.intent.types import Intent
from meeka.core.intelligence.session import (
    NOTES_FIELD,
    CollectionPhase,
    DialogueSession,
)
from .gateway import InsertResult, PersistenceGateway
from .records import normalize_record
from .response import NO_PROFILE, failure_message, opening_prompt
from .schemas import INTENT_TABLES, RecordSchema, get_schema

logger = logging.getLogger(__name__)

# Answers to the notes question that mean "no notes"
DECLINE_PHRASES = frozenset({
    "no",
    "nope",
    "none",
    "nothing",
    "n/a",
    "not really",
    "skip",
    "no thanks",
    "no thank you",
})


def is_decline(answer: str) -> bool:
    """Check if a notes answer declines to add notes."""
    return answer.strip().lower() in DECLINE_PHRASES


@dataclass
class NextStep:
    """What the chat should do after a turn."""

    prompt: Optional[str] = None  # Next question, if any
    complete: bool = False  # Session finished successfully
    error: bool = False  # Session finished with a failure
    message: Optional[str] = None  # Terminal message for the user
    table: Optional[str] = None
    field: Optional[str] = None  # Field the prompt asks for
    collected: dict[str, Any] = dataclass_field(default_factory=dict)
    record: Optional[dict] = None  # Payload handed to the gateway
    refresh_table: Optional[str] = None  # Table the caller should reload
    inserted_id: Optional[str] = None
    busy: bool = False  # An insert is still in flight

    @property
    def is_noop(self) -> bool:
        """True when the turn did nothing."""
        return self.prompt is None and self.message is None and not self.busy

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "prompt": self.prompt,
            "complete": self.complete,
            "error": self.error,
            "message": self.message,
            "table": self.table,
            "field": self.field,
            "collected": dict(self.collected),
            "record": self.record,
            "refresh_table": self.refresh_table,
            "inserted_id": self.inserted_id,
            "busy": self.busy,
        }


class DataCollectionController:
    """
    Owns the collection dialogue of one conversation.

    At most one DialogueSession is active at a time. The session is cleared
    after the gateway call returns, never before, and answers that arrive
    while the insert is in flight get a busy step instead of being stored.
    """

    def __init__(
        self,
        conversation_id: str,
        profile_id: Optional[str],
        gateway: PersistenceGateway,
        session: Optional[DialogueSession] = None,
        today: Callable[[], date] = date.today,
    ):
        """Initialize controller.

        Args:
            conversation_id: Conversation this controller belongs to
            profile_id: Profile records are written for
            gateway: Where finished records go
            session: Session restored from storage, if any
            today: Reference date provider for relative dates
        """
        self.conversation_id = conversation_id
        self.profile_id = profile_id
        self._gateway = gateway
        self._session = session
        self._today = today
        self._in_flight = False

    @property
    def session(self) -> Optional[DialogueSession]:
        """The active session, if any."""
        return self._session

    @property
    def is_active(self) -> bool:
        return self._session is not None

    @property
    def is_busy(self) -> bool:
        """True while an insert is awaiting the gateway."""
        return self._in_flight

    def start(self, intent: Intent) -> Optional[NextStep]:
        """
        Open a session for an intent.

        Returns:
            The opening prompt step, or None if the intent has no schema
        """
        table = INTENT_TABLES.get(intent)
        if table is None:
            logger.warning(f"No schema for intent {intent.value}, not starting collection")
            return None
        return self.start_table(table)

    def start_table(self, table: str) -> Optional[NextStep]:
        """Open a session for a table; any active session is discarded."""
        schema = get_schema(table)
        if schema is None:
            logger.warning(f"Unknown table for data collection: {table}")
            return None

        if self._session is not None:
            logger.info(
                f"Discarding {self._session.table} session for {self.conversation_id}"
            )

        first = schema.next_required()
        self._session = DialogueSession(
            conversation_id=self.conversation_id,
            profile_id=self.profile_id,
            table=table,
            current_field=first,
        )
        logger.info(f"Started {table} collection for {self.conversation_id}")

        return NextStep(
            prompt=opening_prompt(table),
            table=table,
            field=first,
        )

    def cancel(self) -> bool:
        """
        Discard the active session.

        Returns:
            True if there was a session to discard
        """
        had_session = self._session is not None
        if had_session:
            logger.info(f"Cancelled {self._session.table} collection for {self.conversation_id}")
        self._session = None
        return had_session

    async def advance(self, answer: str) -> NextStep:
        """
        Apply one user turn.

        Args:
            answer: The user's reply to the current question

        Returns:
            NextStep: next prompt, terminal outcome, busy step or no-op
        """
        session = self._session
        if session is None:
            logger.debug(f"advance() without a session for {self.conversation_id}")
            return NextStep()

        if self._in_flight or session.phase == CollectionPhase.COMPLETE:
            return NextStep(table=session.table, busy=True)

        schema = get_schema(session.table)

        if session.phase == CollectionPhase.COLLECTING_NOTES:
            session.store(NOTES_FIELD, None if is_decline(answer) else answer)
            return await self._complete(session, schema)

        # Collecting required fields; answers are stored as given
        session.store(session.current_field, answer)
        next_field = schema.next_required(session.current_field)

        if next_field is not None:
            session.move_to(CollectionPhase.COLLECTING_REQUIRED, next_field)
            return NextStep(
                prompt=schema.prompt_for(next_field),
                table=session.table,
                field=next_field,
                collected=dict(session.collected_data),
            )

        if schema.supports_notes and not session.collected_data.get(NOTES_FIELD):
            session.move_to(CollectionPhase.COLLECTING_NOTES, NOTES_FIELD)
            return NextStep(
                prompt=schema.notes_prompt,
                table=session.table,
                field=NOTES_FIELD,
                collected=dict(session.collected_data),
            )

        return await self._complete(session, schema)

    async def _complete(self, session: DialogueSession, schema: RecordSchema) -> NextStep:
        """Hand the record off and tear the session down."""
        session.move_to(CollectionPhase.COMPLETE, None)
        collected = dict(session.collected_data)

        if not self.profile_id:
            logger.info(f"No profile selected, dropping {schema.table} record")
            self._finish(session)
            return NextStep(error=True, message=NO_PROFILE, table=schema.table, collected=collected)

        payload = None
        self._in_flight = True
        try:
            record = normalize_record(schema.table, collected, self.profile_id, self._today())
            payload = record.to_payload()
            logger.info(f"All required fields collected, inserting into {schema.table}")
            result = await self._gateway.insert(schema.table, record)
        except Exception as e:
            logger.error(f"Saving {schema.table} record failed: {e}")
            result = InsertResult(
                success=False,
                message=failure_message(schema.label, str(e)),
                error=str(e),
            )
        finally:
            self._in_flight = False
            self._finish(session)

        if not result.success:
            logger.error(f"Insert into {schema.table} failed: {result.error or result.message}")
            return NextStep(
                error=True,
                message=result.message,
                table=schema.table,
                collected=collected,
                record=payload,
            )

        logger.info(f"Inserted {schema.table} record {result.inserted_id}")
        return NextStep(
            complete=True,
            message=result.message,
            table=schema.table,
            collected=collected,
            record=payload,
            refresh_table=schema.table,
            inserted_id=result.inserted_id,
        )

    def _finish(self, session: DialogueSession) -> None:
        # A start() during the insert replaced the session; keep the new one
        if self._session is session:
            self._session = None
