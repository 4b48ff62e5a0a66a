"""
User Model - Defines the user data structure.
"""

import re
from datetime import datetime
from typing import List, Optional

from pydantic import EmailStr, Field, field_validator

from .base import CamelModel
from .session import ChatStats, ChatSummary, Pagination, TopicCount


class UserProfile(CamelModel):
    """Display profile."""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    avatar: Optional[str] = None


class UserCreate(CamelModel):
    """Registration payload."""
    username: str = Field(..., min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=6)

    @field_validator("username")
    @classmethod
    def username_alphanumeric(cls, value: str) -> str:
        value = value.strip()
        if not value.isalnum():
            raise ValueError("Username must contain only letters and numbers")
        return value

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.lower()

    @field_validator("password")
    @classmethod
    def password_strength(cls, value: str) -> str:
        if not re.search(r"[a-z]", value) or not re.search(r"[A-Z]", value) or not re.search(r"\d", value):
            raise ValueError(
                "Password must contain at least one lowercase letter, "
                "one uppercase letter, and one number"
            )
        return value


class LoginRequest(CamelModel):
    """E-mail and password login."""
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.lower()


class User(CamelModel):
    """User as returned by the API (no password hash)."""
    user_id: str
    username: str
    email: Optional[str] = None
    role: str = "user"
    profile: UserProfile = Field(default_factory=UserProfile)
    is_active: bool = True
    is_verified: bool = False
    login_count: int = 0
    last_login: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_record(cls, record: dict) -> "User":
        """Build from a stored user record, dropping the password hash."""
        return cls(**{k: v for k, v in record.items() if k != "hashed_password"})


class Token(CamelModel):
    """JWT token response model."""
    access_token: str
    token_type: str = "bearer"


class TokenData(CamelModel):
    """Token payload data."""
    user_id: Optional[str] = None
    username: Optional[str] = None
    role: str = "user"


class AuthResponse(CamelModel):
    """Token plus the authenticated account."""
    success: bool = True
    message: str
    token: str
    user: User


class SocialProviders(CamelModel):
    """Which social login providers have client credentials configured."""
    google: bool = False
    github: bool = False
    facebook: bool = False


class ProvidersResponse(CamelModel):
    success: bool = True
    providers: SocialProviders


class UserStatusUpdate(CamelModel):
    is_active: bool


class UserListStats(CamelModel):
    total: int
    active: int
    verified: int
    page: int
    limit: int
    pages: int


class UserListResponse(CamelModel):
    success: bool = True
    users: List[User]
    stats: UserListStats


class UserDetail(User):
    """User with chat statistics, for the admin console."""
    stats: ChatStats
    chat_history: List[ChatSummary] = Field(default_factory=list)


class UserDetailResponse(CamelModel):
    success: bool = True
    user: UserDetail


class UserResponse(CamelModel):
    success: bool = True
    message: Optional[str] = None
    user: User


class AdminChatStats(CamelModel):
    total_chats: int = 0
    total_messages: int = 0
    unique_users_count: int = 0
    topic_distribution: List[TopicCount] = Field(default_factory=list)


class AdminChatListResponse(CamelModel):
    success: bool = True
    chats: List[ChatSummary]
    stats: AdminChatStats
    pagination: Pagination


class DashboardUserStats(CamelModel):
    total: int
    active: int
    new_today: int


class DashboardChatStats(CamelModel):
    total: int
    total_messages: int


class DashboardStats(CamelModel):
    users: DashboardUserStats
    chats: DashboardChatStats
    popular_topics: List[TopicCount]
    recent_activity: List[ChatSummary]


class DashboardStatsResponse(CamelModel):
    success: bool = True
    stats: DashboardStats


class AdminAccount(CamelModel):
    """Admin identity returned at admin login."""
    user_id: str
    username: str
    email: Optional[str] = None
    role: str = "admin"
    profile: UserProfile = Field(default_factory=UserProfile)


class AdminAuthResponse(CamelModel):
    success: bool = True
    message: str
    token: str
    admin: AdminAccount
    is_demo: bool = False
