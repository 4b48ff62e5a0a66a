"""
Admin Service - user and chat administration for the admin console.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from ..config import settings
from ..exceptions import AuthenticationError, NotFoundError, ValidationError
from ..models.base import utcnow
from ..models.chat import ChatSession
from ..models.session import ChatSummary, Pagination
from ..models.user import (
    AdminChatStats,
    DashboardChatStats,
    DashboardStats,
    DashboardUserStats,
    User,
    UserDetail,
    UserListStats,
)
from ..storage.chat_store import ChatStore
from ..storage.user_storage import UserStorage
from ..utils.auth import verify_password
from .chat_service import chat_stats, topic_distribution

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DemoAdmin:
    email: str
    password: str
    username: str
    first_name: str
    last_name: str

    @property
    def user_id(self) -> str:
        return f"demo_admin_{self.username}"


# Built-in accounts for trying out the console; only honoured when
# settings.demo_admin_enabled is on
DEMO_ADMINS = (
    DemoAdmin("admin@demo.com", "admin123", "admin_demo", "Demo", "Admin"),
    DemoAdmin("super@admin.com", "super123", "super_admin", "Super", "Admin"),
)


def _as_utc(value: datetime) -> datetime:
    """Treat naive datetimes from query strings as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _matches_search(user: Dict[str, Any], search: str) -> bool:
    needle = search.lower()
    profile = user.get("profile") or {}
    haystack = (
        user.get("username"),
        user.get("email"),
        profile.get("first_name"),
        profile.get("last_name"),
    )
    return any(needle in value.lower() for value in haystack if value)


def _paginate(items: List[Any], page: int, limit: int) -> List[Any]:
    offset = (page - 1) * limit
    return items[offset:offset + limit]


class AdminService:
    """Read and maintenance operations over all users and chats."""

    def __init__(self, users: UserStorage, store: ChatStore):
        self.users = users
        self.store = store

    async def authenticate(self, email: str, password: str) -> Tuple[Dict[str, Any], bool]:
        """
        Check admin credentials.

        Demo accounts are tried first when enabled, then stored users with
        the admin role.

        Returns:
            (admin account dict, is_demo)

        Raises:
            AuthenticationError: If the credentials do not belong to an admin
        """
        email = email.lower()

        if settings.demo_admin_enabled:
            for demo in DEMO_ADMINS:
                if demo.email == email and demo.password == password:
                    logger.info(f"Demo admin login: {demo.username}")
                    return {
                        "user_id": demo.user_id,
                        "username": demo.username,
                        "email": demo.email,
                        "role": "admin",
                        "profile": {"first_name": demo.first_name, "last_name": demo.last_name},
                    }, True

        admin = await self.users.get_user_by_email(email)
        if (
            admin is None
            or admin.get("role") != "admin"
            or not admin.get("hashed_password")
            or not verify_password(password, admin["hashed_password"])
        ):
            logger.warning(f"Invalid password attempt for admin: {email}")
            raise AuthenticationError("Invalid admin credentials")

        admin = await self.users.record_login(admin["user_id"]) or admin
        logger.info(f"Admin login: {admin['username']}")
        return admin, False

    async def list_users(
        self, page: int = 1, limit: int = 10, search: str = ""
    ) -> Tuple[List[User], UserListStats]:
        """Non-admin users, newest first, optionally filtered by a search term."""
        records = [
            u for u in await self.users.list_users()
            if u.get("role", "user") == "user"
        ]
        if search:
            records = [u for u in records if _matches_search(u, search)]

        total = len(records)
        stats = UserListStats(
            total=total,
            active=sum(1 for u in records if u.get("is_active", True)),
            verified=sum(1 for u in records if u.get("is_verified", False)),
            page=page,
            limit=limit,
            pages=Pagination.build(page, limit, total).pages,
        )
        users = [User.from_record(u) for u in _paginate(records, page, limit)]

        logger.info(f"Fetched {len(users)} users (Page: {page}, Limit: {limit}, Search: \"{search}\")")
        return users, stats

    async def _require_user(self, user_id: str) -> Dict[str, Any]:
        record = await self.users.get_user(user_id)
        if record is None:
            raise NotFoundError("User not found", details={"user_id": user_id})
        return record

    async def get_user_detail(self, user_id: str) -> UserDetail:
        """A user with chat statistics and the 10 most recent chats."""
        record = await self._require_user(user_id)
        sessions = await self.store.find_by_user(user_id, limit=None)

        user = User.from_record(record)
        return UserDetail(
            **user.model_dump(),
            stats=chat_stats(sessions),
            chat_history=[ChatSummary.from_session(s) for s in sessions[:10]],
        )

    async def update_user_status(self, user_id: str, is_active: bool) -> User:
        await self._require_user(user_id)
        record = await self.users.update_user(user_id, {"is_active": is_active})
        logger.info(f"User {user_id} {'activated' if is_active else 'deactivated'}")
        return User.from_record(record)

    async def delete_user(self, user_id: str, acting_user_id: str) -> int:
        """
        Delete a user together with all of their chats.

        Returns:
            Number of chat sessions removed

        Raises:
            ValidationError: If an admin tries to delete their own account
            NotFoundError: If the user does not exist
        """
        if user_id == acting_user_id:
            raise ValidationError("Cannot delete your own account")
        await self._require_user(user_id)

        deleted_chats = await self.store.delete_by_user(user_id)
        await self.users.delete_user(user_id)

        logger.info(
            f"User {user_id} deleted by admin {acting_user_id}",
            extra={"extra_fields": {"deleted_chats": deleted_chats}}
        )
        return deleted_chats

    async def list_chats(
        self,
        page: int = 1,
        limit: int = 20,
        user_id: Optional[str] = None,
        topic: Optional[str] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ) -> Tuple[List[ChatSession], AdminChatStats, Pagination]:
        """
        Authenticated chats matching the filters, most recent first.

        Args:
            topic: Topic value to keep; "all" or None keeps every topic
            date_from, date_to: Inclusive bounds on last activity
        """
        sessions = await self.store.list_sessions(authenticated_only=True)

        if user_id:
            sessions = [s for s in sessions if s.user == user_id]
        if topic and topic != "all":
            sessions = [s for s in sessions if s.topic.value == topic]
        if date_from is not None:
            since = _as_utc(date_from)
            sessions = [s for s in sessions if s.last_activity >= since]
        if date_to is not None:
            until = _as_utc(date_to)
            sessions = [s for s in sessions if s.last_activity <= until]

        stats = AdminChatStats(
            total_chats=len(sessions),
            total_messages=sum(s.message_count for s in sessions),
            unique_users_count=len({s.user for s in sessions}),
            topic_distribution=topic_distribution(sessions, with_average=True),
        )
        pagination = Pagination.build(page, limit, len(sessions))
        return _paginate(sessions, page, limit), stats, pagination

    async def get_chat(self, chat_id: str) -> ChatSession:
        session = await self.store.find_by_chat_id(chat_id)
        if session is None:
            raise NotFoundError("Chat not found", details={"chat_id": chat_id})
        return session

    async def delete_chat(self, chat_id: str) -> None:
        if not await self.store.delete_by_chat_id(chat_id):
            raise NotFoundError("Chat not found", details={"chat_id": chat_id})
        logger.info(f"Chat {chat_id} deleted by admin")

    async def dashboard_stats(self) -> DashboardStats:
        """Counts for the admin dashboard."""
        users = await self.users.list_users()
        today = utcnow().replace(hour=0, minute=0, second=0, microsecond=0)
        sessions = await self.store.list_sessions(authenticated_only=True)

        return DashboardStats(
            users=DashboardUserStats(
                total=len(users),
                active=sum(1 for u in users if u.get("is_active", True)),
                new_today=sum(1 for u in users if _as_utc(u["created_at"]) >= today),
            ),
            chats=DashboardChatStats(
                total=len(sessions),
                total_messages=sum(s.message_count for s in sessions),
            ),
            popular_topics=topic_distribution(sessions)[:5],
            recent_activity=[ChatSummary.from_session(s) for s in sessions[:10]],
        )
