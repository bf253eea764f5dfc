"""
Conversation service.

Routes one chat turn: answers go to the active collection dialogue, anything
else is classified and either opens a dialogue, runs an AI analysis, or is
handed back to the caller for free-form conversation.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Awaitable, Callable, Optional, Union

from meeka.core.analysis import AnalysisContext, AnalysisResult, AnalysisService
from meeka.core.collection import (
    INTENT_TABLES,
    DataCollectionController,
    NextStep,
    PersistenceGateway,
    schema_for_intent,
)
from meeka.core.collection.response import (
    GREETING,
    LOW_CONFIDENCE,
    NO_PROFILE,
    PROCESSING,
    confirmation_message,
    did_you_also_mean,
)
from meeka.core.intelligence.intent import (
    Intent,
    IntentClassifier,
    MultiIntentMatch,
    get_intent_classifier,
)
from meeka.core.intelligence.session import DialogueSession, SessionManager, get_session_manager
from meeka.core.intelligence.vocabulary import RegionCode
from meeka.infra.records import SqlAlchemyGateway, log_concierge_event
from meeka.models.database import ConciergeResult

logger = logging.getLogger(__name__)

EventLogger = Callable[..., Awaitable[None]]

_TABLE_INTENTS = {table: intent for intent, table in INTENT_TABLES.items()}


@dataclass
class ChatReply:
    """Result of one chat turn."""

    message: str
    intent: Optional[Intent] = None
    confidence: Optional[float] = None
    route: Optional[str] = None
    slots: Optional[dict[str, str]] = None
    suggestion: Optional[str] = None  # "Did you also..." for the runner-up intent
    step: Optional[NextStep] = None
    analysis: Optional[AnalysisResult] = None
    needs_conversation: bool = False  # Caller should answer with its LLM chat

    def to_dict(self) -> dict:
        """Convert to dictionary for API response."""
        result: dict[str, Any] = {"message": self.message}

        if self.intent:
            result["intent"] = self.intent.value
        if self.confidence is not None:
            result["confidence"] = self.confidence
        if self.route:
            result["route"] = self.route
        if self.slots:
            result["slots"] = self.slots
        if self.suggestion:
            result["suggestion"] = self.suggestion
        if self.step:
            result["step"] = self.step.to_dict()
        if self.analysis:
            result["analysis"] = self.analysis.to_dict()
        result["needs_conversation"] = self.needs_conversation

        return result


class ConversationService:
    """
    Per-turn router for Meeka chat.

    Between turns the DialogueSession lives only in the SessionManager, so
    an expired session is never resumed. A controller is held in memory just
    for the turn it is running; a message that arrives while its insert is in
    flight sees the busy controller.
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        session_manager: Optional[SessionManager] = None,
        classifier: Optional[IntentClassifier] = None,
        analysis: Optional[AnalysisService] = None,
        event_logger: Optional[EventLogger] = None,
        today: Callable[[], date] = date.today,
    ):
        """Initialize service with optional dependencies.

        Args:
            gateway: Persistence gateway for finished records
            session_manager: Session storage (uses singleton if not provided)
            classifier: Intent classifier (uses shared instance if not provided)
            analysis: AI analysis service; without it AI intents go to the caller
            event_logger: Concierge telemetry sink
            today: Reference date provider
        """
        self._gateway = gateway
        self._session_manager = session_manager
        self._classifier = classifier or get_intent_classifier()
        self._analysis = analysis
        self._log_event = event_logger or log_concierge_event
        self._today = today
        # Controllers whose turn is still running, so overlapping messages see them
        self._in_flight: dict[str, DataCollectionController] = {}

    async def _get_session_manager(self) -> SessionManager:
        if self._session_manager is None:
            self._session_manager = await get_session_manager()
        return self._session_manager

    async def _controller_for(
        self,
        conversation_id: str,
        profile_id: Optional[str],
    ) -> Optional[DataCollectionController]:
        """Controller for the conversation's stored dialogue, if any."""
        controller = self._in_flight.get(conversation_id)
        if controller is not None:
            return controller

        # Stored sessions expire by TTL; an expired one is simply gone
        manager = await self._get_session_manager()
        session = await manager.get(conversation_id)
        if session is None or not session.is_active:
            return None

        return DataCollectionController(
            conversation_id,
            profile_id or session.profile_id,
            self._gateway,
            session=session,
            today=self._today,
        )

    async def _persist(self, controller: DataCollectionController) -> None:
        manager = await self._get_session_manager()
        if controller.session is not None:
            await manager.save(controller.session)
        else:
            await manager.delete(controller.conversation_id)

    async def handle_message(
        self,
        conversation_id: str,
        profile_id: Optional[str],
        text: str,
        region: Union[RegionCode, str, None] = None,
        patient_name: Optional[str] = None,
        context: Optional[AnalysisContext] = None,
    ) -> ChatReply:
        """
        Process one user message.

        Args:
            conversation_id: Conversation identifier
            profile_id: Selected profile (None if nothing is selected)
            text: The user's message
            region: Caller's resolved region (see RegionCache)
            patient_name: Display name for confirmations
            context: Journal data for AI analysis intents

        Returns:
            ChatReply with exactly one message for the user
        """
        text = (text or "").strip()
        if not text:
            return ChatReply(message=GREETING)

        controller = await self._controller_for(conversation_id, profile_id)
        if controller is not None:
            return await self._continue(controller, text)

        match = self._classifier.detect_top2(text, region)
        primary = match.primary
        logger.info(
            f"Conversation {conversation_id}: {primary.intent.value} ({primary.confidence:.2f})"
        )

        if primary.is_unknown:
            await self._record_event(match, ConciergeResult.FAILED, profile_id, text)
            return ChatReply(
                message=LOW_CONFIDENCE,
                intent=Intent.UNKNOWN,
                confidence=primary.confidence,
                needs_conversation=True,
            )

        reply = ChatReply(
            message="",
            intent=primary.intent,
            confidence=primary.confidence,
            route=primary.route,
            slots=dict(primary.slots),
            suggestion=did_you_also_mean(match.secondary) if match.secondary else None,
        )

        if schema_for_intent(primary.intent) is not None:
            reply = await self._open_collection(conversation_id, profile_id, reply)
        elif primary.is_analysis_intent and self._analysis is not None:
            reply = await self._run_analysis(profile_id, region, context, reply)
        else:
            reply.message = confirmation_message(
                primary.intent, patient_name or "you", primary.slots
            )
            reply.needs_conversation = True

        failed = reply.message == NO_PROFILE or (
            reply.analysis is not None and not reply.analysis.success
        )
        result = ConciergeResult.FAILED if failed else ConciergeResult.OPENED
        await self._record_event(match, result, profile_id, text)
        return reply

    async def _continue(self, controller: DataCollectionController, text: str) -> ChatReply:
        conversation_id = controller.conversation_id
        if controller.is_busy:
            return ChatReply(message=PROCESSING, step=await controller.advance(text))

        self._in_flight[conversation_id] = controller
        try:
            step = await controller.advance(text)
        finally:
            if self._in_flight.get(conversation_id) is controller:
                del self._in_flight[conversation_id]

        if step.busy:
            return ChatReply(message=PROCESSING, step=step)

        await self._persist(controller)
        message = step.prompt or step.message or PROCESSING
        return ChatReply(message=message, step=step)

    async def _open_collection(
        self,
        conversation_id: str,
        profile_id: Optional[str],
        reply: ChatReply,
    ) -> ChatReply:
        if not profile_id:
            reply.message = NO_PROFILE
            return reply

        controller = DataCollectionController(
            conversation_id, profile_id, self._gateway, today=self._today
        )
        step = controller.start(reply.intent)
        await self._persist(controller)

        reply.step = step
        reply.message = step.prompt
        return reply

    async def _run_analysis(
        self,
        profile_id: Optional[str],
        region: Union[RegionCode, str, None],
        context: Optional[AnalysisContext],
        reply: ChatReply,
    ) -> ChatReply:
        if not profile_id:
            reply.message = NO_PROFILE
            return reply

        result = await self._analysis.run(reply.intent, profile_id, context, region)
        reply.analysis = result
        reply.message = result.message
        return reply

    async def _record_event(
        self,
        match: MultiIntentMatch,
        result: ConciergeResult,
        profile_id: Optional[str],
        text: str,
    ) -> None:
        primary = match.primary
        await self._log_event(
            intent=primary.intent.value,
            confidence=primary.confidence,
            route=primary.route or "/chat",
            result=result,
            meta={
                "slots": dict(primary.slots),
                "secondary": match.secondary.intent.value if match.secondary else None,
                "length": len(text),
            },
            profile_id=profile_id,
        )

    async def get_session(self, conversation_id: str) -> Optional[DialogueSession]:
        """Current collection dialogue of a conversation, if any."""
        controller = self._in_flight.get(conversation_id)
        if controller is not None and controller.session is not None:
            return controller.session

        manager = await self._get_session_manager()
        return await manager.get(conversation_id)

    async def cancel(self, conversation_id: str) -> bool:
        """
        Discard the conversation's collection dialogue.

        Returns:
            True if a dialogue was discarded
        """
        controller = self._in_flight.pop(conversation_id, None)
        manager = await self._get_session_manager()

        table = None
        if controller is not None and controller.session is not None:
            table = controller.session.table
            controller.cancel()
        else:
            session = await manager.get(conversation_id)
            table = session.table if session else None

        await manager.delete(conversation_id)
        if table is None:
            return False

        intent = _TABLE_INTENTS.get(table, Intent.UNKNOWN)
        await self._log_event(
            intent=intent.value,
            confidence=1.0,
            route="/chat",
            result=ConciergeResult.CANCELLED,
            meta={"table": table},
        )
        return True


# Singleton
_service: Optional[ConversationService] = None


def get_conversation_service() -> ConversationService:
    """Get singleton ConversationService backed by the application database."""
    global _service
    if _service is None:
        gateway = SqlAlchemyGateway()
        _service = ConversationService(gateway=gateway, analysis=AnalysisService(gateway))
    return _service
