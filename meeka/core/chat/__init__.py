"""Chat turn routing."""

from .service import ChatReply, ConversationService, get_conversation_service

__all__ = [
    "ChatReply",
    "ConversationService",
    "get_conversation_service",
]
