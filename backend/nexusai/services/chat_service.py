"""
Chat Service - runs one chat turn and serves chat history.

A turn records the user message, passes it through the scope gate, then
records either the fixed out-of-scope reply, the generated answer, or the
fixed apology when generation fails. Recording is best-effort: a failed
history write is logged and never changes what the user gets back.
"""

import logging
import math
from collections import Counter, defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..core.topic_classifier import Topic, evaluate_scope
from ..exceptions import NotFoundError, PersistenceError, TransientUpstreamError, ValidationError
from ..models.base import utcnow
from ..models.chat import ChatSession, Sender, generate_session_id, validate_message_content
from ..models.session import ChatStats, TopicCount
from ..storage.chat_store import ChatStore
from .answer_generator import AnswerGenerator

logger = logging.getLogger(__name__)


OUT_OF_SCOPE_RESPONSE = (
    "I specialize exclusively in Chelsea FC and frontend development topics. "
    "Please ask me about:\n\n"
    "• Chelsea FC: matches, players, transfers, history\n"
    "• Frontend development: React, JavaScript, Tailwind CSS, GSAP\n\n"
    "I'd be happy to help with questions in these areas!"
)

ERROR_RESPONSE = (
    "I apologize, but I'm currently unable to process your request. "
    "This might be due to high demand or temporary service issues. "
    "Please try again in a few moments."
)


@dataclass
class ChatReply:
    """Outcome of one chat turn."""
    response: str
    session_id: str
    is_out_of_scope: bool = False
    is_error: bool = False
    session: Optional[ChatSession] = None  # None when the history write failed
    timestamp: datetime = field(default_factory=utcnow)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def topic_distribution(sessions: Iterable[ChatSession], with_average: bool = False) -> List[TopicCount]:
    """Count sessions per topic, most frequent first."""
    counts: Counter = Counter()
    message_totals: Dict[Topic, int] = defaultdict(int)
    for session in sessions:
        counts[session.topic] += 1
        message_totals[session.topic] += session.message_count

    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0].value))
    return [
        TopicCount(
            topic=topic,
            count=count,
            avg_messages=round(message_totals[topic] / count, 2) if with_average else None,
        )
        for topic, count in ranked
    ]


def chat_stats(sessions: List[ChatSession]) -> ChatStats:
    """Aggregate statistics over a user's sessions."""
    total_chats = len(sessions)
    total_messages = sum(s.message_count for s in sessions)
    distribution = topic_distribution(sessions)
    return ChatStats(
        total_chats=total_chats,
        total_messages=total_messages,
        avg_messages_per_chat=round_half_up(total_messages / total_chats) if total_chats else 0,
        most_active_topic=distribution[0].topic if distribution else Topic.GENERAL,
        topic_distribution=distribution,
    )


class ChatService:
    """
    Chat pipeline and history queries for one request.

    Sessions are looked up by ``(user_id, session_id)``; ``user_id=None``
    addresses the anonymous namespace.
    """

    def __init__(self, store: ChatStore, answer_generator: AnswerGenerator):
        self.store = store
        self.answer_generator = answer_generator

    async def record_message(
        self,
        session_id: str,
        content: str,
        sender: Sender,
        user_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Optional[ChatSession]:
        """
        Append a message to its session (creating the session on first use) and save.

        Returns:
            The saved session, or None if recording failed
        """
        sender_name = getattr(sender, "value", sender)
        try:
            session = await self.store.find_by_session_key(session_id, user_id)
            if session is None:
                session = ChatSession.create(session_id, user=user_id)
            session.append_message(content, sender, metadata)
            await session.save(self.store)
        except (PersistenceError, ValidationError) as e:
            # History is best-effort; the chat response must still go out
            logger.error(
                f"Error saving message to chat history: {e}",
                extra={"extra_fields": {
                    "session_id": session_id,
                    "user": user_id,
                    "sender": sender_name,
                    "error_code": e.error_code,
                }}
            )
            return None

        logger.info(f"Message saved for session {session_id}: {sender_name} message")
        return session

    async def handle_message(
        self,
        message: str,
        session_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> ChatReply:
        """
        Run one chat turn.

        Args:
            message: User's message
            session_id: Session to continue; a new id is generated if omitted
            user_id: Owner of the session, None for anonymous chat

        Returns:
            ChatReply: The reply and the updated session snapshot

        Raises:
            ValidationError: If the message is empty or too long (nothing is recorded)
        """
        content = validate_message_content(message)
        session_id = (session_id or "").strip() or generate_session_id()

        await self.record_message(session_id, content, Sender.USER, user_id)

        scope = evaluate_scope(content)
        if not scope.in_scope:
            logger.info(f"Out-of-scope message in session {session_id}")
            session = await self.record_message(
                session_id, OUT_OF_SCOPE_RESPONSE, Sender.ASSISTANT, user_id,
                {"is_out_of_scope": True},
            )
            return ChatReply(
                response=OUT_OF_SCOPE_RESPONSE,
                session_id=session_id,
                is_out_of_scope=True,
                session=session,
            )

        try:
            answer = await self.answer_generator.generate(scope.topic_hint, content)
        except TransientUpstreamError as e:
            logger.warning(
                f"Answer generation failed, replying with apology: {e}",
                extra={"extra_fields": {"session_id": session_id, **e.details}}
            )
            session = await self.record_message(
                session_id, ERROR_RESPONSE, Sender.ASSISTANT, user_id,
                {"is_error": True},
            )
            return ChatReply(
                response=ERROR_RESPONSE,
                session_id=session_id,
                is_error=True,
                session=session,
            )

        session = await self.record_message(session_id, answer, Sender.ASSISTANT, user_id)
        return ChatReply(response=answer, session_id=session_id, session=session)

    async def get_history(
        self, user_id: str, page: int = 1, limit: int = 20
    ) -> Tuple[List[ChatSession], int]:
        """One page of a user's sessions plus the total count."""
        offset = (page - 1) * limit
        sessions = await self.store.find_by_user(user_id, limit=limit, offset=offset)
        total = await self.store.count_by_user(user_id)
        return sessions, total

    async def get_recent(self, user_id: str, days: int = 7) -> List[ChatSession]:
        return await self.store.find_recent_by_user(user_id, days=days, limit=20)

    async def get_session(self, user_id: Optional[str], session_id: str) -> ChatSession:
        """
        Raises:
            NotFoundError: If the user has no such session
        """
        session = await self.store.find_by_session_key(session_id, user_id)
        if session is None:
            raise NotFoundError("Chat session not found", details={"session_id": session_id})
        return session

    async def delete_session(self, user_id: Optional[str], session_id: str) -> None:
        """
        Raises:
            NotFoundError: If the user has no such session
        """
        if not await self.store.delete_by_session_key(session_id, user_id):
            raise NotFoundError("Chat session not found", details={"session_id": session_id})
        logger.info(f"Chat session {session_id} deleted by user {user_id}")

    async def get_stats(self, user_id: str) -> Tuple[ChatStats, List[ChatSession]]:
        """Statistics over all of a user's sessions, plus the 5 most recent."""
        sessions = await self.store.find_by_user(user_id, limit=None)
        return chat_stats(sessions), sessions[:5]
