"""Tests for per-turn chat routing."""

import asyncio
from datetime import date, datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

import pytest

from meeka.config import settings
from meeka.core.analysis import AnalysisResult
from meeka.core.chat import ConversationService
from meeka.core.collection import InMemoryGateway
from meeka.core.collection.response import (
    GREETING,
    LOW_CONFIDENCE,
    NO_PROFILE,
    PROCESSING,
    opening_prompt,
)
from meeka.core.intelligence.intent import Intent
from meeka.core.intelligence.session import SessionManager
from meeka.core.intelligence.vocabulary import RegionCode
from meeka.models.database import ConciergeResult

TODAY = date(2024, 5, 15)


@pytest.fixture
def session_manager():
    """Session manager running on its in-memory fallback."""
    with patch(
        "meeka.core.intelligence.session.manager.get_redis",
        return_value=None,
    ):
        yield SessionManager()


@pytest.fixture
def gateway():
    return InMemoryGateway()


@pytest.fixture
def event_logger():
    return AsyncMock()


@pytest.fixture
def service(gateway, session_manager, event_logger):
    return ConversationService(
        gateway,
        session_manager=session_manager,
        event_logger=event_logger,
        today=lambda: TODAY,
    )


def _last_result(event_logger):
    return event_logger.call_args.kwargs["result"]


class TestHandleMessage:
    """Test routing of fresh messages."""

    @pytest.mark.asyncio
    async def test_empty_message_greets(self, service, event_logger):
        reply = await service.handle_message("conv-1", "profile-1", "   ")

        assert reply.message == GREETING
        event_logger.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown(self, service, event_logger):
        reply = await service.handle_message("conv-1", "profile-1", "the weather is nice")

        assert reply.message == LOW_CONFIDENCE
        assert reply.intent == Intent.UNKNOWN
        assert reply.needs_conversation
        assert _last_result(event_logger) == ConciergeResult.FAILED

    @pytest.mark.asyncio
    async def test_opens_collection(self, service, session_manager, event_logger):
        reply = await service.handle_message("conv-1", "profile-1", "log my mood")

        assert reply.intent == Intent.ADD_MOOD
        assert reply.confidence == 1.0
        assert reply.message == opening_prompt("mood_entries")
        assert reply.step.field == "date"
        assert _last_result(event_logger) == ConciergeResult.OPENED

        stored = await session_manager.get("conv-1")
        assert stored.table == "mood_entries"

    @pytest.mark.asyncio
    async def test_record_intent_without_profile(self, service, session_manager, event_logger):
        reply = await service.handle_message("conv-1", None, "log my mood")

        assert reply.message == NO_PROFILE
        assert _last_result(event_logger) == ConciergeResult.FAILED
        assert await session_manager.get("conv-1") is None

    @pytest.mark.asyncio
    async def test_suggestion_for_second_intent(self, service):
        reply = await service.handle_message("conv-1", "profile-1", "log rest, log mood")

        assert reply.intent == Intent.ADD_MOOD
        assert reply.suggestion == "Did you also want to add sleep?"

    @pytest.mark.asyncio
    async def test_intent_without_dialogue_confirms(self, service, event_logger):
        reply = await service.handle_message(
            "conv-1", "profile-1", "book a gp appointment",
            region=RegionCode.AU, patient_name="Sam",
        )

        assert reply.intent == Intent.ADD_APPOINTMENT
        assert reply.message.startswith("Opening Add Appointment for Sam • Today ")
        assert reply.needs_conversation
        assert reply.step is None
        assert _last_result(event_logger) == ConciergeResult.OPENED

    @pytest.mark.asyncio
    async def test_analysis_intent(self, gateway, session_manager, event_logger):
        analysis = AsyncMock()
        analysis.run.return_value = AnalysisResult(
            success=True,
            message="Symptom Insights has been added to the diary",
        )
        service = ConversationService(
            gateway,
            session_manager=session_manager,
            analysis=analysis,
            event_logger=event_logger,
        )

        reply = await service.handle_message("conv-1", "profile-1", "analyze my symptoms")

        assert reply.message == "Symptom Insights has been added to the diary"
        assert reply.analysis.success
        analysis.run.assert_awaited_once()
        assert _last_result(event_logger) == ConciergeResult.OPENED

    @pytest.mark.asyncio
    async def test_failed_analysis_logged_as_failed(self, gateway, session_manager, event_logger):
        analysis = AsyncMock()
        analysis.run.return_value = AnalysisResult(success=False, message="Sorry")
        service = ConversationService(
            gateway,
            session_manager=session_manager,
            analysis=analysis,
            event_logger=event_logger,
        )

        reply = await service.handle_message("conv-1", "profile-1", "analyze my symptoms")

        assert reply.message == "Sorry"
        assert _last_result(event_logger) == ConciergeResult.FAILED

    @pytest.mark.asyncio
    async def test_analysis_without_service_goes_to_caller(self, service):
        reply = await service.handle_message("conv-1", "profile-1", "analyze my symptoms")

        assert reply.intent == Intent.AI_SYMPTOM_ANALYSIS
        assert reply.needs_conversation


class TestDialogue:
    """Test answers flowing into an open dialogue."""

    @pytest.mark.asyncio
    async def test_full_symptom_dialogue(self, service, gateway, session_manager):
        await service.handle_message("conv-1", "profile-1", "add a symptom")

        for answer in ("sore throat", "today", "Mild"):
            reply = await service.handle_message("conv-1", "profile-1", answer)
            assert not reply.step.complete

        reply = await service.handle_message("conv-1", "profile-1", "no")

        assert reply.message == "Successfully added symptom: sore throat"
        assert reply.step.complete
        assert reply.step.refresh_table == "symptoms"
        assert len(gateway.rows("symptoms")) == 1
        assert await session_manager.get("conv-1") is None

    @pytest.mark.asyncio
    async def test_answers_are_not_classified(self, service):
        await service.handle_message("conv-1", "profile-1", "add a symptom")

        reply = await service.handle_message("conv-1", "profile-1", "log my mood")

        assert reply.intent is None
        assert reply.step.collected == {"description": "log my mood"}

    @pytest.mark.asyncio
    async def test_dialogue_resumes_from_storage(self, gateway, session_manager, event_logger):
        first = ConversationService(
            gateway, session_manager=session_manager, event_logger=event_logger
        )
        await first.handle_message("conv-1", "profile-1", "add a symptom")
        await first.handle_message("conv-1", "profile-1", "cough")

        second = ConversationService(
            gateway, session_manager=session_manager, event_logger=event_logger
        )
        reply = await second.handle_message("conv-1", "profile-1", "today")

        assert reply.step.field == "severity"
        assert reply.step.collected == {"description": "cough", "start_date": "today"}

    @pytest.mark.asyncio
    async def test_conversations_are_independent(self, service):
        await service.handle_message("conv-1", "profile-1", "add a symptom")
        reply = await service.handle_message("conv-2", "profile-1", "log my mood")

        assert reply.intent == Intent.ADD_MOOD
        assert (await service.get_session("conv-1")).table == "symptoms"


class TestCancel:
    """Test cancelling a dialogue."""

    @pytest.mark.asyncio
    async def test_cancel(self, service, gateway, event_logger):
        await service.handle_message("conv-1", "profile-1", "add a symptom")

        assert await service.cancel("conv-1")
        assert event_logger.call_args.kwargs["intent"] == Intent.ADD_SYMPTOM.value
        assert _last_result(event_logger) == ConciergeResult.CANCELLED
        assert await service.get_session("conv-1") is None

        reply = await service.handle_message("conv-1", "profile-1", "log my mood")
        assert reply.intent == Intent.ADD_MOOD
        assert gateway.inserted == []

    @pytest.mark.asyncio
    async def test_cancel_without_dialogue(self, service, event_logger):
        assert not await service.cancel("conv-1")
        event_logger.assert_not_called()


class BlockingGateway(InMemoryGateway):
    """In-memory gateway whose insert waits until released."""

    def __init__(self):
        super().__init__()
        self.release = asyncio.Event()

    async def insert(self, table, record):
        await self.release.wait()
        return await super().insert(table, record)


class TestDialogueLifetime:
    """Test how long dialogues and their controllers live."""

    @pytest.mark.asyncio
    async def test_out_of_range_date_still_completes(self, service, gateway):
        await service.handle_message("conv-1", "profile-1", "add a symptom")
        for answer in ("cough", "1000000 days ago", "Mild"):
            await service.handle_message("conv-1", "profile-1", answer)

        reply = await service.handle_message("conv-1", "profile-1", "no")

        assert reply.step.complete
        assert gateway.rows("symptoms")[0]["start_date"] == "2024-05-15"

        reply = await service.handle_message("conv-1", "profile-1", "add a new medication")
        assert reply.intent == Intent.ADD_MEDICATION

    @pytest.mark.asyncio
    async def test_expired_session_is_not_resumed(self, service, session_manager):
        await service.handle_message("conv-1", "profile-1", "add a symptom")
        stored = await session_manager.get("conv-1")
        stored.updated_at = datetime.now(timezone.utc) - timedelta(
            seconds=settings.redis_session_ttl + 60
        )

        reply = await service.handle_message("conv-1", "profile-1", "log my mood")

        assert reply.intent == Intent.ADD_MOOD
        assert (await service.get_session("conv-1")).table == "mood_entries"

    @pytest.mark.asyncio
    async def test_no_controllers_held_between_turns(self, service):
        await service.handle_message("conv-1", "profile-1", "add a symptom")
        await service.handle_message("conv-1", "profile-1", "cough")
        await service.handle_message("conv-2", "profile-1", "log my mood")

        assert service._in_flight == {}

    @pytest.mark.asyncio
    async def test_message_during_insert_gets_busy_reply(self, session_manager, event_logger):
        gateway = BlockingGateway()
        service = ConversationService(
            gateway, session_manager=session_manager, event_logger=event_logger
        )
        await service.handle_message("conv-1", "profile-1", "add a symptom")
        for answer in ("cough", "today", "Mild"):
            await service.handle_message("conv-1", "profile-1", answer)

        task = asyncio.create_task(service.handle_message("conv-1", "profile-1", "no"))
        for _ in range(10):
            if "conv-1" in service._in_flight and service._in_flight["conv-1"].is_busy:
                break
            await asyncio.sleep(0)

        busy = await service.handle_message("conv-1", "profile-1", "log my mood")
        assert busy.message == PROCESSING
        assert busy.step.busy

        gateway.release.set()
        reply = await task

        assert reply.step.complete
        assert len(gateway.rows("symptoms")) == 1
        assert service._in_flight == {}

        reply = await service.handle_message("conv-1", "profile-1", "log my mood")
        assert reply.intent == Intent.ADD_MOOD
