"""
User Storage - Persistent storage for user accounts using StorageInterface.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .interface import StorageInterface
from .local_storage import LocalStorage

logger = logging.getLogger(__name__)

_DATETIME_FIELDS = ("created_at", "updated_at", "last_login")


def _decode_user(content: bytes) -> Dict[str, Any]:
    user_data = json.loads(content.decode("utf-8"))
    # Convert datetime strings back to datetime objects
    for key in _DATETIME_FIELDS:
        if user_data.get(key):
            user_data[key] = datetime.fromisoformat(user_data[key])
    return user_data


def _json_default(value: Any) -> str:
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def _encode_user(user_data: Dict[str, Any]) -> str:
    return json.dumps(user_data, indent=2, ensure_ascii=False, default=_json_default)


class UserStorage:
    """
    Manages persistent storage of user data.
    Uses one JSON file per user in users/, plus username and e-mail indexes.
    """

    def __init__(self, storage: StorageInterface):
        """
        Initialize user storage.

        Args:
            storage: StorageInterface implementation (typically LocalStorage)
        """
        self.storage = storage
        self.users_dir = "users"
        self._username_index_path = f"{self.users_dir}/_index/usernames.json"
        self._email_index_path = f"{self.users_dir}/_index/emails.json"

    def _user_path(self, user_id: str) -> str:
        return f"{self.users_dir}/{user_id}.json"

    async def _load_index(self, path: str) -> Dict[str, str]:
        content = await self.storage.load(path)
        if content is None:
            return {}
        try:
            return json.loads(content.decode("utf-8"))
        except ValueError:
            logger.warning(f"Unreadable user index {path}, treating as empty")
            return {}

    async def _save_index(self, path: str, index: Dict[str, str]) -> bool:
        return await self.storage.save(path, json.dumps(index, indent=2))

    async def get_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        """
        Get user by user_id.

        Args:
            user_id: User ID

        Returns:
            Optional[Dict]: User data or None if not found
        """
        content = await self.storage.load(self._user_path(user_id))
        if content is None:
            return None

        try:
            return _decode_user(content)
        except ValueError as e:
            logger.error(f"Error loading user {user_id}: {e}")
            return None

    async def get_user_by_username(self, username: str) -> Optional[Dict[str, Any]]:
        """Get user by username (case-insensitive)."""
        index = await self._load_index(self._username_index_path)
        user_id = index.get(username.lower())
        return await self.get_user(user_id) if user_id else None

    async def get_user_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        """Get user by e-mail address (case-insensitive)."""
        index = await self._load_index(self._email_index_path)
        user_id = index.get(email.lower())
        return await self.get_user(user_id) if user_id else None

    async def create_user(
        self,
        user_id: str,
        username: str,
        hashed_password: Optional[str],
        email: Optional[str] = None,
        role: str = "user",
        profile: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Create a new user.

        Args:
            user_id: User ID (UUID)
            username: Username
            hashed_password: Hashed password
            email: Optional email
            role: "user" or "admin"
            profile: Optional display profile (first_name, last_name, avatar)

        Returns:
            Dict: Created user data
        """
        now = datetime.now(timezone.utc)

        user_data = {
            "user_id": user_id,
            "username": username,
            "email": email.lower() if email else None,
            "hashed_password": hashed_password,
            "role": role,
            "profile": profile or {},
            "is_active": True,
            "is_verified": False,
            "login_count": 0,
            "last_login": None,
            "created_at": now,
            "updated_at": now,
        }

        await self.storage.save(self._user_path(user_id), _encode_user(user_data))

        index = await self._load_index(self._username_index_path)
        index[username.lower()] = user_id
        await self._save_index(self._username_index_path, index)

        if email:
            index = await self._load_index(self._email_index_path)
            index[email.lower()] = user_id
            await self._save_index(self._email_index_path, index)

        logger.info(f"User created: {user_id} ({username})")
        return user_data

    async def update_user(self, user_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Update user data.

        Args:
            user_id: User ID
            updates: Dictionary of fields to update

        Returns:
            Optional[Dict]: Updated user data or None if user not found
        """
        user = await self.get_user(user_id)
        if user is None:
            return None

        user.update(updates)
        user["updated_at"] = datetime.now(timezone.utc)

        await self.storage.save(self._user_path(user_id), _encode_user(user))
        return user

    async def record_login(self, user_id: str) -> Optional[Dict[str, Any]]:
        """Bump login statistics after a successful login."""
        user = await self.get_user(user_id)
        if user is None:
            return None
        return await self.update_user(user_id, {
            "login_count": user.get("login_count", 0) + 1,
            "last_login": datetime.now(timezone.utc),
        })

    async def delete_user(self, user_id: str) -> bool:
        """
        Delete a user and its index entries.

        Args:
            user_id: User ID

        Returns:
            bool: True if deleted successfully
        """
        user = await self.get_user(user_id)
        if user is None:
            return False

        for index_path, key in (
            (self._username_index_path, user.get("username")),
            (self._email_index_path, user.get("email")),
        ):
            if not key:
                continue
            index = await self._load_index(index_path)
            if index.pop(key.lower(), None) is not None:
                await self._save_index(index_path, index)

        return await self.storage.delete(self._user_path(user_id))

    async def list_users(self) -> List[Dict[str, Any]]:
        """
        List all users, newest first.

        Returns:
            list[Dict]: List of all users
        """
        files = await self.storage.list(self.users_dir, pattern="*.json", recursive=False)
        users = []

        for file_path in files:
            content = await self.storage.load(file_path)
            if not content:
                continue
            try:
                users.append(_decode_user(content))
            except ValueError:
                continue

        return sorted(users, key=lambda u: u["created_at"], reverse=True)


# Global user storage instance
_user_storage: Optional[UserStorage] = None


def init_user_storage(storage: Optional[StorageInterface] = None) -> UserStorage:
    """
    Initialize the global user storage instance.

    Args:
        storage: Optional StorageInterface implementation. If None, creates LocalStorage.
    """
    global _user_storage
    if storage is None:
        storage = LocalStorage()
    _user_storage = UserStorage(storage)
    return _user_storage


def get_user_storage() -> UserStorage:
    """
    Get the global user storage instance.

    Returns:
        UserStorage: Global user storage instance

    Raises:
        RuntimeError: If user storage has not been initialized
    """
    if _user_storage is None:
        raise RuntimeError("User storage not initialized. Call init_user_storage() first.")
    return _user_storage
