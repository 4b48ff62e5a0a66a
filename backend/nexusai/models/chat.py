"""
Chat Models - the Message value object and the ChatSession aggregate.

A ChatSession owns an ordered, append-only list of Messages. Its derived
fields (message count, last activity, authentication flag, title, topic) are
recomputed in a fixed order by ``save()`` right before the session is handed
to the store.
"""

import time
import uuid
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Literal, Optional, Union

from pydantic import ConfigDict, Field, PrivateAttr
from pydantic import ValidationError as PydanticValidationError

from ..core.topic_classifier import ASSISTANT_TOPIC, Topic, classify_topic
from ..exceptions import ValidationError
from .base import CamelModel, utcnow

if TYPE_CHECKING:
    from ..storage.chat_store import ChatStore


DEFAULT_TITLE = "New Chat"
MAX_CONTENT_LENGTH = 5000
MAX_TITLE_LENGTH = 100
TITLE_PREFIX_LENGTH = 50
PREVIEW_LENGTH = 100


class Sender(str, Enum):
    """Author of a message."""
    USER = "user"
    ASSISTANT = "assistant"


MessageTopic = Union[Topic, Literal["assistant"]]


def generate_session_id() -> str:
    """Session id used when the caller does not supply one."""
    return f"session_{int(time.time() * 1000)}"


def validate_message_content(content: Any) -> str:
    """
    Trim and validate message content.

    Raises:
        ValidationError: If content is not text, empty, or over 5000 characters
    """
    if not isinstance(content, str):
        raise ValidationError("Message content must be text")

    content = content.strip()
    if not content:
        raise ValidationError("Message content is required")
    if len(content) > MAX_CONTENT_LENGTH:
        raise ValidationError(
            f"Message content cannot exceed {MAX_CONTENT_LENGTH} characters",
            details={"length": len(content)},
        )
    return content


def message_topic(content: str, sender: Union[Sender, str]) -> MessageTopic:
    """Topic tag for a single message: computed for users, fixed for the assistant."""
    if Sender(sender) == Sender.USER:
        return classify_topic(content)
    return ASSISTANT_TOPIC


class MessageMetadata(CamelModel):
    """Per-message flags."""

    model_config = ConfigDict(frozen=True)

    is_out_of_scope: bool = False
    is_error: bool = False
    topic: MessageTopic = Topic.GENERAL


class Message(CamelModel):
    """One turn of a conversation. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    content: str = Field(..., min_length=1, max_length=MAX_CONTENT_LENGTH)
    sender: Sender
    timestamp: datetime = Field(default_factory=utcnow)
    metadata: MessageMetadata = Field(default_factory=MessageMetadata)


class ChatSession(CamelModel):
    """
    Chat session aggregate.

    Keyed by ``(user, session_id)``: an anonymous session and an owned one
    may share the same ``session_id`` and still be different records.
    """

    chat_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    session_id: str = Field(..., min_length=1)
    user: Optional[str] = None
    title: str = Field(DEFAULT_TITLE, max_length=MAX_TITLE_LENGTH)
    topic: Topic = Topic.GENERAL
    is_authenticated: bool = False
    is_active: bool = True
    is_premium: bool = False
    message_count: int = Field(0, ge=0)
    messages: List[Message] = Field(default_factory=list)
    last_activity: datetime = Field(default_factory=utcnow)
    created_at: datetime = Field(default_factory=utcnow)

    _is_new: bool = PrivateAttr(default=True)
    _explicit_title: bool = PrivateAttr(default=False)

    @classmethod
    def create(
        cls,
        session_id: Optional[str] = None,
        user: Optional[str] = None,
        title: Optional[str] = None,
    ) -> "ChatSession":
        """
        Start a new, empty session.

        Args:
            session_id: Caller-supplied id; generated as ``session_<millis>`` if omitted
            user: Owner id, or None for an anonymous session
            title: Explicit title; when given it is never replaced by a derived one

        Returns:
            ChatSession: Unsaved session
        """
        fields: Dict[str, Any] = {
            "session_id": session_id or generate_session_id(),
            "user": user,
            "is_authenticated": user is not None,
        }
        if title is not None:
            title = title.strip()
            if not title or len(title) > MAX_TITLE_LENGTH:
                raise ValidationError(
                    f"Chat title must be 1-{MAX_TITLE_LENGTH} characters"
                )
            fields["title"] = title

        session = cls(**fields)
        session._explicit_title = title is not None
        return session

    @classmethod
    def from_json(cls, raw: Union[str, bytes]) -> "ChatSession":
        """Rebuild a stored session. Loaded sessions are never new."""
        session = cls.model_validate_json(raw)
        session._is_new = False
        return session

    @property
    def is_new(self) -> bool:
        """True until the first successful save."""
        return self._is_new

    @property
    def preview(self) -> str:
        """Snippet of the last message for history listings."""
        if not self.messages:
            return "No messages yet"
        content = self.messages[-1].content
        if len(content) > PREVIEW_LENGTH:
            return content[:PREVIEW_LENGTH] + "..."
        return content

    def append_message(
        self,
        content: str,
        sender: Union[Sender, str],
        metadata: Optional[Union[MessageMetadata, Dict[str, Any]]] = None,
    ) -> Message:
        """
        Append a message. Does not persist.

        Args:
            content: Message text (1-5000 characters after trimming)
            sender: "user" or "assistant"
            metadata: MessageMetadata or a dict of its fields; a missing
                topic is computed from the content and sender

        Returns:
            Message: The appended message

        Raises:
            ValidationError: On bad content, sender or metadata; the session
                is left unchanged
        """
        try:
            sender = Sender(sender)
        except ValueError:
            raise ValidationError(f"Invalid sender: {sender!r}") from None

        content = validate_message_content(content)

        if not isinstance(metadata, MessageMetadata):
            data = dict(metadata or {})
            data.setdefault("topic", message_topic(content, sender))
            try:
                metadata = MessageMetadata.model_validate(data)
            except PydanticValidationError as e:
                errors = e.errors(include_url=False, include_context=False, include_input=False)
                raise ValidationError("Invalid message metadata", details={"errors": errors}) from e

        message = Message(content=content, sender=sender, metadata=metadata)
        self.messages.append(message)
        return message

    def _recompute_derived_fields(self) -> None:
        self.message_count = len(self.messages)
        self.last_activity = utcnow()
        self.is_authenticated = self.user is not None

        if self._is_new and self.messages and not self._explicit_title:
            first_user_message = next(
                (m for m in self.messages if m.sender == Sender.USER), None
            )
            if first_user_message is not None:
                content = first_user_message.content
                self.title = content[:TITLE_PREFIX_LENGTH] + (
                    "…" if len(content) > TITLE_PREFIX_LENGTH else ""
                )

        # Full rescan: a later message can flip the topic of the whole session
        all_content = " ".join(m.content for m in self.messages)
        self.topic = classify_topic(all_content)

    async def save(self, store: "ChatStore") -> None:
        """
        Recompute derived fields and write the session through the store.

        Raises:
            PersistenceError: If the store write fails
        """
        self._recompute_derived_fields()
        await store.upsert(self)
        self._is_new = False
