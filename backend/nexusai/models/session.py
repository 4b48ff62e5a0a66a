"""
Session Models - request and response shapes of the chat endpoints.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from pydantic import Field

from ..core.topic_classifier import Topic
from .base import CamelModel, utcnow
from .chat import ChatSession, Message

if TYPE_CHECKING:
    from ..services.chat_service import ChatReply


class ChatRequest(CamelModel):
    """Incoming chat message. Content rules are enforced by the chat service."""
    message: str = ""
    session_id: Optional[str] = None


class ChatMessageResponse(CamelModel):
    """Reply to a chat message."""
    success: bool = True
    response: str
    is_out_of_scope: bool = False
    is_error: bool = False
    session_id: str
    timestamp: datetime = Field(default_factory=utcnow)

    @classmethod
    def from_reply(cls, reply: "ChatReply") -> "ChatMessageResponse":
        return cls(
            response=reply.response,
            is_out_of_scope=reply.is_out_of_scope,
            is_error=reply.is_error,
            session_id=reply.session_id,
            timestamp=reply.timestamp,
        )


class ChatSummary(CamelModel):
    """Session metadata for history listings."""
    chat_id: str
    session_id: str
    user: Optional[str] = None
    title: str
    topic: Topic
    message_count: int
    last_activity: datetime
    created_at: datetime
    preview: str

    @classmethod
    def from_session(cls, session: ChatSession) -> "ChatSummary":
        return cls(
            chat_id=session.chat_id,
            session_id=session.session_id,
            user=session.user,
            title=session.title,
            topic=session.topic,
            message_count=session.message_count,
            last_activity=session.last_activity,
            created_at=session.created_at,
            preview=session.preview,
        )


class ChatDetail(ChatSummary):
    """Full session with messages."""
    is_authenticated: bool
    is_active: bool
    is_premium: bool
    messages: List[Message]

    @classmethod
    def from_session(cls, session: ChatSession) -> "ChatDetail":
        return cls(
            **ChatSummary.from_session(session).model_dump(),
            is_authenticated=session.is_authenticated,
            is_active=session.is_active,
            is_premium=session.is_premium,
            messages=list(session.messages),
        )


class Pagination(CamelModel):
    """Page information for listings."""
    page: int
    limit: int
    total: int
    pages: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        pages = (total + limit - 1) // limit if limit > 0 else 0
        return cls(page=page, limit=limit, total=total, pages=pages)


class ChatHistoryResponse(CamelModel):
    """Paginated chat history of the current user."""
    success: bool = True
    chats: List[ChatSummary]
    pagination: Pagination


class RecentChatsResponse(CamelModel):
    """Recently active chats of the current user."""
    success: bool = True
    chats: List[ChatSummary]


class ChatDetailResponse(CamelModel):
    success: bool = True
    chat: ChatDetail


class TopicCount(CamelModel):
    """Number of sessions per topic."""
    topic: Topic
    count: int
    avg_messages: Optional[float] = None


class ChatStats(CamelModel):
    """Chat statistics of one user."""
    total_chats: int
    total_messages: int
    avg_messages_per_chat: int
    most_active_topic: Topic = Topic.GENERAL
    topic_distribution: List[TopicCount] = Field(default_factory=list)


class ChatStatsResponse(CamelModel):
    success: bool = True
    stats: ChatStats
    recent_activity: List[ChatSummary]


class MessageResponse(CamelModel):
    """Plain acknowledgement."""
    success: bool = True
    message: str


class HealthProbeResponse(CamelModel):
    """LLM connectivity probe result."""
    success: bool = True
    status: str
    response: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
