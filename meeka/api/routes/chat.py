"""
Chat API Endpoint.

Handles Meeka chat turns: record collection dialogues, AI analysis requests
and intent classification.
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, HTTPException, Header, status
from pydantic import BaseModel, Field

from meeka.core.analysis import AnalysisContext
from meeka.core.chat import ChatReply, get_conversation_service
from meeka.core.intelligence.intent import get_intent_classifier
from meeka.core.intelligence.vocabulary import detect_region

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["Chat"])


class ChatRequest(BaseModel):
    """Chat message request."""

    message: str = Field(
        ...,
        max_length=2000,
        description="User's message",
        examples=["add a new symptom, severe headache since this morning"],
    )
    conversation_id: str = Field(
        ...,
        min_length=1,
        description="Conversation identifier for dialogue continuity",
        examples=["550e8400-e29b-41d4-a716-446655440000"],
    )
    region: Optional[str] = Field(
        default=None,
        description="Region the user picked (AU, UK or USA)",
    )
    timezone: Optional[str] = Field(
        default=None,
        description="IANA timezone used to guess the region",
        examples=["Australia/Sydney"],
    )
    patient_name: Optional[str] = Field(
        default=None,
        description="Display name of the selected patient",
    )
    diary_entries: list[dict[str, Any]] = Field(
        default_factory=list,
        description="Recent diary entries for AI analysis requests",
    )
    symptoms: list[dict[str, Any]] = Field(
        default_factory=list,
        description="Recent symptoms for AI analysis requests",
    )


class ChatResponse(BaseModel):
    """Chat response."""

    message: str = Field(..., description="Meeka's reply")
    conversation_id: str = Field(..., description="Conversation identifier")
    intent: Optional[str] = Field(default=None, description="Detected intent")
    confidence: Optional[float] = Field(
        default=None,
        description="Confidence score of intent classification",
    )
    route: Optional[str] = Field(default=None, description="Screen for the intent")
    slots: Optional[dict[str, str]] = Field(
        default=None,
        description="Slot values extracted from the message",
    )
    suggestion: Optional[str] = Field(
        default=None,
        description="Follow-up question for a second detected intent",
    )
    step: Optional[dict] = Field(
        default=None,
        description="Collection dialogue step",
    )
    analysis: Optional[dict] = Field(
        default=None,
        description="AI analysis outcome",
    )
    needs_conversation: bool = Field(
        default=False,
        description="True when the client should continue with free-form chat",
    )


class ClassifyRequest(BaseModel):
    """Intent classification request."""

    message: str = Field(..., min_length=1, max_length=2000)
    region: Optional[str] = None


class ErrorResponse(BaseModel):
    """Error response."""

    error: str
    detail: Optional[str] = None


@router.post(
    "",
    response_model=ChatResponse,
    status_code=status.HTTP_200_OK,
    summary="Send a chat message",
    description="Send a message to Meeka and get exactly one reply.",
    responses={
        200: {"description": "Successful response"},
        500: {"model": ErrorResponse, "description": "Internal server error"},
    },
)
async def chat(
    request: ChatRequest,
    x_profile_id: Optional[str] = Header(
        default=None,
        alias="X-Profile-ID",
        description="Selected patient profile",
    ),
) -> ChatResponse:
    """
    Process a chat message.

    The conversation_id should be preserved across requests so answers reach
    the open collection dialogue.
    """
    # An explicit region goes through as sent; the classifier gives unknown
    # codes the broadest vocabulary
    region = request.region or detect_region(timezone_name=request.timezone)
    context = AnalysisContext(
        diary_entries=request.diary_entries,
        symptoms=request.symptoms,
    )

    try:
        service = get_conversation_service()
        reply: ChatReply = await service.handle_message(
            conversation_id=request.conversation_id,
            profile_id=x_profile_id,
            text=request.message,
            region=region,
            patient_name=request.patient_name,
            context=context,
        )
    except Exception as e:
        logger.exception(f"Error processing chat message: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to process message",
        )

    return ChatResponse(conversation_id=request.conversation_id, **reply.to_dict())


@router.post(
    "/classify",
    response_model=dict,
    summary="Classify a message",
    description="Return the primary and secondary intent for a message.",
)
async def classify(request: ClassifyRequest) -> dict:
    """Classify without touching any dialogue."""
    match = get_intent_classifier().detect_top2(request.message, request.region)
    return match.to_dict()


@router.get(
    "/session/{conversation_id}",
    response_model=dict,
    summary="Get dialogue session",
    description="Retrieve the collection dialogue of a conversation.",
    responses={
        200: {"description": "Session data"},
        404: {"model": ErrorResponse, "description": "Session not found"},
    },
)
async def get_session(conversation_id: str) -> dict:
    """Get session information."""
    service = get_conversation_service()
    session = await service.get_session(conversation_id)

    if session is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Session not found",
        )

    return session.to_dict()


@router.delete(
    "/session/{conversation_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Cancel a dialogue",
    description="Discard the collection dialogue of a conversation.",
)
async def cancel_session(conversation_id: str) -> None:
    """Cancel the open dialogue without saving anything."""
    service = get_conversation_service()
    if not await service.cancel(conversation_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Session not found",
        )
