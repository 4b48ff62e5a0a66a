"""
Tests for LocalChatStore: scoping, ordering, cascade and failure handling.
"""

import pytest
from datetime import timedelta
from unittest.mock import AsyncMock

from nexusai.exceptions import PersistenceError
from nexusai.models.base import utcnow
from nexusai.models.chat import ChatSession, Sender
from nexusai.storage.chat_store import LocalChatStore


async def _saved(store, session_id, user=None, content="hello"):
    session = ChatSession.create(session_id, user=user)
    session.append_message(content, Sender.USER)
    await session.save(store)
    return session


class TestSessionKey:
    """Tests for (user, session_id) scoping."""

    @pytest.mark.asyncio
    async def test_find_missing_returns_none(self, chat_store):
        assert await chat_store.find_by_session_key("nope") is None
        assert await chat_store.find_by_session_key("nope", "user-1") is None

    @pytest.mark.asyncio
    async def test_anonymous_and_owned_are_distinct(self, chat_store):
        anon = await _saved(chat_store, "shared", content="anonymous question")
        assert anon.is_authenticated is False

        owned = await _saved(chat_store, "shared", user="user-1", content="owned question")
        assert owned.is_authenticated is True

        loaded_anon = await chat_store.find_by_session_key("shared")
        loaded_owned = await chat_store.find_by_session_key("shared", "user-1")
        assert loaded_anon.chat_id != loaded_owned.chat_id
        assert loaded_anon.messages[0].content == "anonymous question"
        assert loaded_owned.messages[0].content == "owned question"

    @pytest.mark.asyncio
    async def test_other_users_session_not_visible(self, chat_store):
        await _saved(chat_store, "s1", user="user-1")
        assert await chat_store.find_by_session_key("s1", "user-2") is None

    @pytest.mark.asyncio
    async def test_upsert_replaces(self, chat_store):
        session = await _saved(chat_store, "s1", user="user-1")
        session.append_message("second", Sender.USER)
        await session.save(chat_store)

        loaded = await chat_store.find_by_session_key("s1", "user-1")
        assert loaded.message_count == 2
        assert await chat_store.count_by_user("user-1") == 1

    @pytest.mark.asyncio
    async def test_unsafe_session_ids_are_quoted(self, chat_store, storage):
        await _saved(chat_store, "../../escape", user="user/1")
        loaded = await chat_store.find_by_session_key("../../escape", "user/1")
        assert loaded is not None
        files = await storage.list("chats", recursive=True)
        assert all(f.startswith("chats/users/") for f in files)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("session_id", ["s" * 300, "é" * 100, "a/" * 150])
    async def test_long_session_ids_round_trip(self, chat_store, storage, session_id):
        await _saved(chat_store, session_id, user="user-1")
        await _saved(chat_store, session_id)

        loaded = await chat_store.find_by_session_key(session_id, "user-1")
        assert loaded.session_id == session_id
        assert (await chat_store.find_by_session_key(session_id)).session_id == session_id
        assert [s.session_id for s in await chat_store.find_by_user("user-1")] == [session_id]

        files = await storage.list("chats", recursive=True)
        assert all(len(f.rsplit("/", 1)[-1]) < 255 for f in files)

        assert await chat_store.delete_by_session_key(session_id, "user-1") is True
        assert await chat_store.find_by_session_key(session_id, "user-1") is None

    @pytest.mark.asyncio
    async def test_long_owner_id(self, chat_store):
        owner = "u" * 300
        await _saved(chat_store, "s1", user=owner)

        assert (await chat_store.find_by_session_key("s1", owner)).user == owner
        assert await chat_store.count_by_user(owner) == 1
        assert await chat_store.delete_by_user(owner) == 1

    @pytest.mark.asyncio
    async def test_long_ids_do_not_collide(self, chat_store):
        await _saved(chat_store, "x" * 300, content="first")
        await _saved(chat_store, "x" * 301, content="second")

        assert (await chat_store.find_by_session_key("x" * 300)).messages[0].content == "first"
        assert (await chat_store.find_by_session_key("x" * 301)).messages[0].content == "second"


class TestListing:
    """Tests for per-user listings."""

    @pytest.mark.asyncio
    async def test_find_by_user_most_recent_first(self, chat_store):
        await _saved(chat_store, "old", user="user-1")
        await _saved(chat_store, "middle", user="user-1")
        await _saved(chat_store, "new", user="user-1")

        sessions = await chat_store.find_by_user("user-1")
        assert [s.session_id for s in sessions] == ["new", "middle", "old"]

    @pytest.mark.asyncio
    async def test_find_by_user_pagination(self, chat_store):
        for i in range(5):
            await _saved(chat_store, f"s{i}", user="user-1")

        page = await chat_store.find_by_user("user-1", limit=2, offset=2)
        assert [s.session_id for s in page] == ["s2", "s1"]
        assert await chat_store.count_by_user("user-1") == 5

    @pytest.mark.asyncio
    async def test_find_by_user_excludes_anonymous(self, chat_store):
        await _saved(chat_store, "anon")
        await _saved(chat_store, "mine", user="user-1")
        sessions = await chat_store.find_by_user("user-1")
        assert [s.session_id for s in sessions] == ["mine"]

    @pytest.mark.asyncio
    async def test_find_recent_by_user(self, chat_store, storage):
        await _saved(chat_store, "fresh", user="user-1")

        stale = ChatSession.create("stale", user="user-1")
        stale.append_message("old question", Sender.USER)
        await stale.save(chat_store)
        # Backdate the stored document past the window
        stale.last_activity = utcnow() - timedelta(days=10)
        await chat_store.upsert(stale)

        recent = await chat_store.find_recent_by_user("user-1", days=7)
        assert [s.session_id for s in recent] == ["fresh"]

    @pytest.mark.asyncio
    async def test_corrupt_document_skipped_in_listing(self, chat_store, storage):
        await _saved(chat_store, "good", user="user-1")
        await storage.save("chats/users/user-1/bad.json", "{not json")

        sessions = await chat_store.find_by_user("user-1")
        assert [s.session_id for s in sessions] == ["good"]
        assert await chat_store.count_by_user("user-1") == 1

        with pytest.raises(PersistenceError):
            await chat_store.find_by_session_key("bad", "user-1")


class TestDeletion:
    """Tests for single and cascade deletes."""

    @pytest.mark.asyncio
    async def test_delete_by_session_key(self, chat_store):
        await _saved(chat_store, "s1", user="user-1")
        assert await chat_store.delete_by_session_key("s1", "user-1") is True
        assert await chat_store.delete_by_session_key("s1", "user-1") is False
        assert await chat_store.find_by_session_key("s1", "user-1") is None

    @pytest.mark.asyncio
    async def test_delete_by_user_cascades_only_that_user(self, chat_store):
        await _saved(chat_store, "a", user="user-1")
        await _saved(chat_store, "b", user="user-1")
        await _saved(chat_store, "c", user="user-2")
        await _saved(chat_store, "a")

        assert await chat_store.delete_by_user("user-1") == 2
        assert await chat_store.find_by_user("user-1") == []
        assert await chat_store.count_by_user("user-2") == 1
        assert await chat_store.find_by_session_key("a") is not None


class TestAdminLookups:
    """Tests for chat-id addressing and global listings."""

    @pytest.mark.asyncio
    async def test_list_sessions_authenticated_only(self, chat_store):
        await _saved(chat_store, "anon")
        await _saved(chat_store, "mine", user="user-1")

        assert [s.session_id for s in await chat_store.list_sessions()] == ["mine"]
        everything = await chat_store.list_sessions(authenticated_only=False)
        assert {s.session_id for s in everything} == {"anon", "mine"}

    @pytest.mark.asyncio
    async def test_find_and_delete_by_chat_id(self, chat_store):
        session = await _saved(chat_store, "s1", user="user-1")

        found = await chat_store.find_by_chat_id(session.chat_id)
        assert found.session_id == "s1"

        assert await chat_store.delete_by_chat_id(session.chat_id) is True
        assert await chat_store.find_by_chat_id(session.chat_id) is None
        assert await chat_store.delete_by_chat_id(session.chat_id) is False


class TestWriteFailure:
    """Tests for failed writes."""

    @pytest.mark.asyncio
    async def test_upsert_raises_persistence_error(self):
        storage = AsyncMock()
        storage.save.return_value = False
        store = LocalChatStore(storage)

        with pytest.raises(PersistenceError):
            await store.upsert(ChatSession.create("s1"))
