"""
Tests for the Message value object and the ChatSession aggregate.
"""

import pytest
from unittest.mock import AsyncMock

from nexusai.core.topic_classifier import Topic
from nexusai.exceptions import PersistenceError, ValidationError
from nexusai.models.chat import (
    DEFAULT_TITLE,
    ChatSession,
    Message,
    MessageMetadata,
    Sender,
    generate_session_id,
)


class TestMessage:
    """Tests for Message immutability and defaults."""

    def test_defaults(self):
        msg = Message(content="hi", sender=Sender.USER)
        assert msg.metadata.is_out_of_scope is False
        assert msg.metadata.is_error is False
        assert msg.timestamp.tzinfo is not None

    def test_frozen(self):
        msg = Message(content="hi", sender=Sender.USER)
        with pytest.raises(Exception):
            msg.content = "changed"

    def test_camel_case_serialization(self):
        msg = Message(
            content="sorry", sender=Sender.ASSISTANT,
            metadata=MessageMetadata(is_error=True, topic="assistant"),
        )
        data = msg.model_dump(by_alias=True, mode="json")
        assert data["metadata"] == {"isOutOfScope": False, "isError": True, "topic": "assistant"}


class TestCreate:
    """Tests for ChatSession.create."""

    def test_anonymous_defaults(self):
        session = ChatSession.create("abc")
        assert session.session_id == "abc"
        assert session.user is None
        assert session.is_authenticated is False
        assert session.title == DEFAULT_TITLE
        assert session.topic == Topic.GENERAL
        assert session.messages == []
        assert session.message_count == 0
        assert session.is_active is True
        assert session.is_premium is False
        assert session.is_new

    def test_owned_session_is_authenticated(self):
        session = ChatSession.create("abc", user="user-1")
        assert session.is_authenticated is True

    def test_generated_session_id(self):
        session = ChatSession.create()
        assert session.session_id.startswith("session_")
        assert session.session_id[len("session_"):].isdigit()
        assert generate_session_id().startswith("session_")

    def test_explicit_title_validated(self):
        with pytest.raises(ValidationError):
            ChatSession.create("abc", title="x" * 101)
        with pytest.raises(ValidationError):
            ChatSession.create("abc", title="   ")

    def test_chat_ids_are_unique(self):
        assert ChatSession.create("a").chat_id != ChatSession.create("a").chat_id


class TestAppendMessage:
    """Tests for append_message validation and ordering."""

    def test_rejects_empty_content(self):
        session = ChatSession.create("abc")
        with pytest.raises(ValidationError):
            session.append_message("", Sender.USER)
        with pytest.raises(ValidationError):
            session.append_message("   \n ", Sender.USER)
        assert session.messages == []

    def test_rejects_oversized_content(self):
        session = ChatSession.create("abc")
        with pytest.raises(ValidationError):
            session.append_message("a" * 5001, Sender.USER)
        assert session.messages == []

    def test_accepts_boundary_lengths(self):
        session = ChatSession.create("abc")
        session.append_message("a", Sender.USER)
        session.append_message("a" * 5000, Sender.USER)
        assert len(session.messages) == 2

    def test_content_is_trimmed(self):
        session = ChatSession.create("abc")
        msg = session.append_message("  hello  ", Sender.USER)
        assert msg.content == "hello"

    def test_rejects_unknown_sender(self):
        session = ChatSession.create("abc")
        with pytest.raises(ValidationError):
            session.append_message("hello", "system")
        assert session.messages == []

    def test_sender_accepts_string(self):
        session = ChatSession.create("abc")
        msg = session.append_message("hello", "assistant")
        assert msg.sender == Sender.ASSISTANT

    def test_user_message_topic_is_computed(self):
        session = ChatSession.create("abc")
        msg = session.append_message("Chelsea won", Sender.USER)
        assert msg.metadata.topic == Topic.CHELSEA

    def test_assistant_message_topic_is_fixed(self):
        session = ChatSession.create("abc")
        msg = session.append_message("Chelsea won", Sender.ASSISTANT, {"is_error": True})
        assert msg.metadata.topic == "assistant"
        assert msg.metadata.is_error is True
        assert msg.metadata.is_out_of_scope is False

    def test_explicit_topic_kept(self):
        session = ChatSession.create("abc")
        msg = session.append_message("hello", Sender.ASSISTANT, {"topic": "general"})
        assert msg.metadata.topic == Topic.GENERAL

    def test_does_not_recompute_derived_fields(self):
        session = ChatSession.create("abc")
        session.append_message("Chelsea won", Sender.USER)
        assert session.message_count == 0
        assert session.topic == Topic.GENERAL

    def test_order_preserved(self):
        session = ChatSession.create("abc")
        for i in range(5):
            session.append_message(f"message {i}", Sender.USER)
        assert [m.content for m in session.messages] == [f"message {i}" for i in range(5)]


class TestSave:
    """Tests for derived-field recomputation on save."""

    @pytest.mark.asyncio
    async def test_message_count_after_n_appends(self, chat_store):
        session = ChatSession.create("abc")
        for i in range(4):
            session.append_message(f"message {i}", Sender.USER)
            await session.save(chat_store)
        assert session.message_count == 4

    @pytest.mark.asyncio
    async def test_last_activity_bumped(self, chat_store):
        session = ChatSession.create("abc")
        before = session.last_activity
        session.append_message("hello", Sender.USER)
        await session.save(chat_store)
        assert session.last_activity >= before

    @pytest.mark.asyncio
    async def test_title_from_first_user_message(self, chat_store):
        session = ChatSession.create("abc")
        session.append_message("Tell me about Enzo Fernández", Sender.USER)
        await session.save(chat_store)
        assert session.title == "Tell me about Enzo Fernández"

    @pytest.mark.asyncio
    async def test_long_title_truncated_with_ellipsis(self, chat_store):
        session = ChatSession.create("abc")
        content = "x" * 80
        session.append_message(content, Sender.USER)
        await session.save(chat_store)
        assert session.title == "x" * 50 + "…"

    @pytest.mark.asyncio
    async def test_title_of_exactly_fifty_not_truncated(self, chat_store):
        session = ChatSession.create("abc")
        session.append_message("y" * 50, Sender.USER)
        await session.save(chat_store)
        assert session.title == "y" * 50

    @pytest.mark.asyncio
    async def test_title_not_overwritten_by_later_saves(self, chat_store):
        session = ChatSession.create("abc")
        session.append_message("First question about React", Sender.USER)
        await session.save(chat_store)
        session.append_message("Second question about Chelsea", Sender.USER)
        await session.save(chat_store)
        assert session.title == "First question about React"

    @pytest.mark.asyncio
    async def test_title_skips_assistant_messages(self, chat_store):
        session = ChatSession.create("abc")
        session.append_message("Welcome!", Sender.ASSISTANT)
        session.append_message("What is GSAP?", Sender.USER)
        await session.save(chat_store)
        assert session.title == "What is GSAP?"

    @pytest.mark.asyncio
    async def test_title_stays_default_without_user_message(self, chat_store):
        session = ChatSession.create("abc")
        session.append_message("Welcome!", Sender.ASSISTANT)
        await session.save(chat_store)
        assert session.title == DEFAULT_TITLE

    @pytest.mark.asyncio
    async def test_explicit_title_kept(self, chat_store):
        session = ChatSession.create("abc", title="My chat")
        session.append_message("What is GSAP?", Sender.USER)
        await session.save(chat_store)
        assert session.title == "My chat"

    @pytest.mark.asyncio
    async def test_topic_rescans_full_history(self, chat_store):
        session = ChatSession.create("abc")
        session.append_message("Who is the Chelsea captain?", Sender.USER)
        await session.save(chat_store)
        assert session.topic == Topic.CHELSEA

        session.append_message("Now explain useEffect in React", Sender.USER)
        await session.save(chat_store)
        assert session.topic == Topic.MIXED

    @pytest.mark.asyncio
    async def test_enzo_then_gsap_scenario(self, chat_store):
        session = ChatSession.create("S1")
        session.append_message("Tell me about Enzo Fernández", Sender.USER)
        await session.save(chat_store)
        assert session.topic == Topic.CHELSEA
        assert session.title == "Tell me about Enzo Fernández"

        session.append_message("How do I animate with GSAP?", Sender.USER)
        await session.save(chat_store)
        assert session.topic == Topic.MIXED
        assert session.message_count == 2

    @pytest.mark.asyncio
    async def test_is_new_cleared_after_save(self, chat_store):
        session = ChatSession.create("abc")
        session.append_message("hello", Sender.USER)
        await session.save(chat_store)
        assert not session.is_new

    @pytest.mark.asyncio
    async def test_store_failure_propagates(self):
        store = AsyncMock()
        store.upsert.side_effect = PersistenceError("disk full")
        session = ChatSession.create("abc")
        session.append_message("hello", Sender.USER)

        with pytest.raises(PersistenceError):
            await session.save(store)
        assert session.is_new


class TestPreview:
    """Tests for the read-only preview."""

    def test_empty(self):
        assert ChatSession.create("abc").preview == "No messages yet"

    def test_last_message(self):
        session = ChatSession.create("abc")
        session.append_message("first", Sender.USER)
        session.append_message("second", Sender.ASSISTANT)
        assert session.preview == "second"

    def test_truncated(self):
        session = ChatSession.create("abc")
        session.append_message("z" * 150, Sender.USER)
        assert session.preview == "z" * 100 + "..."


class TestSerialization:
    """Tests for the persisted document shape."""

    def test_round_trip_marks_not_new(self):
        session = ChatSession.create("abc", user="user-1")
        session.append_message("hello", Sender.USER)
        loaded = ChatSession.from_json(session.model_dump_json(by_alias=True))
        assert loaded.session_id == "abc"
        assert loaded.user == "user-1"
        assert loaded.messages[0].content == "hello"
        assert not loaded.is_new

    def test_document_keys(self):
        data = ChatSession.create("abc").model_dump(by_alias=True, mode="json")
        for key in ("sessionId", "user", "title", "topic", "isAuthenticated", "isActive",
                    "isPremium", "messageCount", "lastActivity", "createdAt", "messages"):
            assert key in data
        assert "preview" not in data
