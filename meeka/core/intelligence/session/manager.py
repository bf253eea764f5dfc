"""Redis-based storage for dialogue sessions between chat turns."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from redis.exceptions import RedisError

from meeka.config import settings
from meeka.infra.redis import get_redis, key
from .models import DialogueSession

logger = logging.getLogger(__name__)

# Session key prefix
SESSION_PREFIX = key("dialogue", "session", "")


def _utcnow() -> datetime:
    """Get current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


class SessionManager:
    """
    Stores at most one DialogueSession per conversation.

    Key pattern: meeka:v1:dialogue:session:{conversation_id}

    Gracefully handles Redis unavailability with in-memory fallback.
    """

    def __init__(self):
        """Initialize session manager."""
        self._ttl = settings.redis_session_ttl
        self._in_memory_fallback: dict[str, DialogueSession] = {}

    def _key(self, conversation_id: str) -> str:
        """Generate Redis key."""
        return f"{SESSION_PREFIX}{conversation_id}"

    def _expired(self, session: DialogueSession) -> bool:
        return _utcnow() - session.updated_at > timedelta(seconds=self._ttl)

    def _fallback_get(self, conversation_id: str) -> Optional[DialogueSession]:
        """In-memory lookup that honours the same TTL as Redis."""
        session = self._in_memory_fallback.get(conversation_id)
        if session is not None and self._expired(session):
            logger.debug(f"In-memory session expired: {conversation_id}")
            del self._in_memory_fallback[conversation_id]
            return None
        return session

    def _prune_fallback(self) -> None:
        for conversation_id in [
            cid for cid, session in self._in_memory_fallback.items() if self._expired(session)
        ]:
            del self._in_memory_fallback[conversation_id]

    async def get(self, conversation_id: str) -> Optional[DialogueSession]:
        """
        Get the conversation's session.

        Args:
            conversation_id: Conversation identifier

        Returns:
            DialogueSession or None if there is none
        """
        redis = await get_redis()

        if redis:
            try:
                data = await redis.get(self._key(conversation_id))
            except RedisError as e:
                logger.warning(f"Redis read failed, using in-memory fallback: {e}")
                return self._fallback_get(conversation_id)

            if data:
                return DialogueSession.from_json(data)
            return None
        else:
            # Fallback to in-memory
            return self._fallback_get(conversation_id)

    async def save(self, session: DialogueSession) -> bool:
        """
        Save a session, replacing any previous one for the conversation.

        Args:
            session: DialogueSession to save

        Returns:
            True if saved successfully
        """
        session.updated_at = _utcnow()

        redis = await get_redis()

        if redis:
            try:
                await redis.setex(
                    self._key(session.conversation_id), self._ttl, session.to_json()
                )
                logger.debug(f"Session saved: {session.conversation_id}")
                return True
            except RedisError as e:
                logger.warning(f"Redis write failed, using in-memory fallback: {e}")

        self._prune_fallback()
        self._in_memory_fallback[session.conversation_id] = session
        if redis is None:
            logger.warning(
                f"Redis unavailable, using in-memory fallback for session {session.conversation_id}"
            )
        return True

    async def delete(self, conversation_id: str) -> bool:
        """
        Delete the conversation's session.

        Args:
            conversation_id: Conversation identifier

        Returns:
            True if a session was deleted
        """
        removed = self._in_memory_fallback.pop(conversation_id, None) is not None

        redis = await get_redis()

        if redis:
            try:
                deleted = await redis.delete(self._key(conversation_id))
            except RedisError as e:
                logger.warning(f"Redis delete failed for {conversation_id}: {e}")
                return removed

            if deleted:
                logger.debug(f"Session deleted: {conversation_id}")
            return bool(deleted) or removed

        return removed


# Singleton
_manager: Optional[SessionManager] = None


async def get_session_manager() -> SessionManager:
    """Get singleton SessionManager."""
    global _manager
    if _manager is None:
        _manager = SessionManager()
    return _manager
