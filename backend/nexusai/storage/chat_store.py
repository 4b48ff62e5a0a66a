"""
Chat Store - persistence of ChatSession aggregates.

Each session is one JSON document keyed by ``(user, session_id)``:

    chats/anonymous/<session_id>.json
    chats/users/<user_id>/<session_id>.json

Path components are URL-quoted so arbitrary session ids map to safe file
names. Components too long for a file name are replaced by a sha256 digest;
the id itself is always kept inside the document. Every call reads or
writes whole documents; there are no multi-document transactions.
"""

import hashlib
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import List, Optional
from urllib.parse import quote

from ..exceptions import PersistenceError
from ..models.chat import ChatSession
from .interface import StorageInterface

logger = logging.getLogger(__name__)

# Longest path component written as-is (most filesystems cap names at 255 bytes)
MAX_NAME_LENGTH = 200


class ChatStore(ABC):
    """Operations the chat core needs from persistence."""

    @abstractmethod
    async def find_by_session_key(
        self, session_id: str, user: Optional[str] = None
    ) -> Optional[ChatSession]:
        """Find a session by id, scoped to its owner (None = anonymous)."""
        pass

    @abstractmethod
    async def upsert(self, session: ChatSession) -> None:
        """Create or replace the session stored under its key."""
        pass

    @abstractmethod
    async def find_by_user(
        self, user_id: str, limit: Optional[int] = 50, offset: int = 0
    ) -> List[ChatSession]:
        """Sessions owned by a user, most recently active first."""
        pass

    @abstractmethod
    async def count_by_user(self, user_id: str) -> int:
        pass

    @abstractmethod
    async def find_recent_by_user(
        self, user_id: str, days: int = 7, limit: int = 20
    ) -> List[ChatSession]:
        """Sessions of a user active within the last ``days`` days."""
        pass

    @abstractmethod
    async def delete_by_user(self, user_id: str) -> int:
        """Delete every session of a user. Returns how many were removed."""
        pass

    @abstractmethod
    async def delete_by_session_key(self, session_id: str, user: Optional[str]) -> bool:
        """Delete one session. Returns whether it existed."""
        pass

    @abstractmethod
    async def list_sessions(self, authenticated_only: bool = True) -> List[ChatSession]:
        """All sessions, most recently active first."""
        pass

    @abstractmethod
    async def find_by_chat_id(self, chat_id: str) -> Optional[ChatSession]:
        pass

    @abstractmethod
    async def delete_by_chat_id(self, chat_id: str) -> bool:
        pass


def _path_component(value: str) -> str:
    quoted = quote(value, safe="")
    if len(quoted) <= MAX_NAME_LENGTH:
        return quoted
    # quote() never emits "%s", so digests cannot collide with quoted ids
    return "%sha256-" + hashlib.sha256(value.encode("utf-8")).hexdigest()


def _by_last_activity(sessions: List[ChatSession]) -> List[ChatSession]:
    return sorted(sessions, key=lambda s: s.last_activity, reverse=True)


class LocalChatStore(ChatStore):
    """ChatStore keeping one JSON document per session on a StorageInterface."""

    def __init__(self, storage: StorageInterface):
        """
        Initialize chat store.

        Args:
            storage: StorageInterface implementation (typically LocalStorage)
        """
        self.storage = storage
        self.chats_dir = "chats"

    def _user_dir(self, user_id: str) -> str:
        return f"{self.chats_dir}/users/{_path_component(user_id)}"

    def _session_path(self, session_id: str, user: Optional[str]) -> str:
        filename = f"{_path_component(session_id)}.json"
        if user is None:
            return f"{self.chats_dir}/anonymous/{filename}"
        return f"{self._user_dir(user)}/{filename}"

    async def _load(self, path: str) -> Optional[ChatSession]:
        content = await self.storage.load(path)
        if content is None:
            return None
        try:
            return ChatSession.from_json(content)
        except ValueError as e:
            logger.error(f"Corrupt chat document {path}: {e}")
            raise PersistenceError(
                "Stored chat session could not be read", details={"path": path}
            ) from e

    async def _load_many(self, directory: str, recursive: bool) -> List[ChatSession]:
        files = await self.storage.list(directory, pattern="*.json", recursive=recursive)
        sessions = []
        for file_path in files:
            try:
                session = await self._load(file_path)
            except PersistenceError:
                # Skip unreadable documents in listings
                continue
            if session is not None:
                sessions.append(session)
        return sessions

    async def find_by_session_key(
        self, session_id: str, user: Optional[str] = None
    ) -> Optional[ChatSession]:
        return await self._load(self._session_path(session_id, user))

    async def upsert(self, session: ChatSession) -> None:
        path = self._session_path(session.session_id, session.user)
        content = session.model_dump_json(by_alias=True, indent=2)

        if not await self.storage.save(path, content):
            raise PersistenceError(
                "Failed to save chat session",
                details={"session_id": session.session_id},
            )

        logger.debug(
            f"Chat session saved: {session.session_id}",
            extra={"extra_fields": {
                "session_id": session.session_id,
                "user": session.user,
                "message_count": session.message_count,
                "topic": session.topic.value,
            }}
        )

    async def find_by_user(
        self, user_id: str, limit: Optional[int] = 50, offset: int = 0
    ) -> List[ChatSession]:
        sessions = _by_last_activity(
            await self._load_many(self._user_dir(user_id), recursive=False)
        )
        if limit is None:
            return sessions[offset:]
        return sessions[offset:offset + limit]

    async def count_by_user(self, user_id: str) -> int:
        # Same documents find_by_user can return, so pagination totals agree
        return len(await self._load_many(self._user_dir(user_id), recursive=False))

    async def find_recent_by_user(
        self, user_id: str, days: int = 7, limit: int = 20
    ) -> List[ChatSession]:
        since = datetime.now(timezone.utc) - timedelta(days=days)
        sessions = await self.find_by_user(user_id, limit=None)
        return [s for s in sessions if s.last_activity >= since][:limit]

    async def delete_by_user(self, user_id: str) -> int:
        files = await self.storage.list(self._user_dir(user_id), pattern="*.json")
        deleted = 0
        for file_path in files:
            if await self.storage.delete(file_path):
                deleted += 1

        logger.info(f"Deleted {deleted} chat sessions of user {user_id}")
        return deleted

    async def delete_by_session_key(self, session_id: str, user: Optional[str]) -> bool:
        return await self.storage.delete(self._session_path(session_id, user))

    async def list_sessions(self, authenticated_only: bool = True) -> List[ChatSession]:
        if authenticated_only:
            sessions = await self._load_many(f"{self.chats_dir}/users", recursive=True)
        else:
            sessions = await self._load_many(self.chats_dir, recursive=True)
        return _by_last_activity(sessions)

    async def find_by_chat_id(self, chat_id: str) -> Optional[ChatSession]:
        for session in await self.list_sessions(authenticated_only=False):
            if session.chat_id == chat_id:
                return session
        return None

    async def delete_by_chat_id(self, chat_id: str) -> bool:
        session = await self.find_by_chat_id(chat_id)
        if session is None:
            return False
        return await self.delete_by_session_key(session.session_id, session.user)


# Global chat store instance
_chat_store: Optional[ChatStore] = None


def init_chat_store(storage: StorageInterface) -> ChatStore:
    """
    Initialize the global chat store instance.

    Args:
        storage: StorageInterface implementation backing the store
    """
    global _chat_store
    _chat_store = LocalChatStore(storage)
    return _chat_store


def get_chat_store() -> ChatStore:
    """
    Get the global chat store instance.

    Raises:
        RuntimeError: If the chat store has not been initialized
    """
    if _chat_store is None:
        raise RuntimeError("Chat store not initialized. Call init_chat_store() first.")
    return _chat_store
