"""Models module."""

from .chat import ChatSession, Message, MessageMetadata, Sender, DEFAULT_TITLE
from .session import (
    ChatRequest, ChatMessageResponse, ChatSummary, ChatDetail, Pagination,
    ChatHistoryResponse, RecentChatsResponse, ChatDetailResponse,
    TopicCount, ChatStats, ChatStatsResponse, MessageResponse, HealthProbeResponse,
)
from .user import (
    User, UserProfile, UserCreate, LoginRequest, Token, TokenData,
    AuthResponse, SocialProviders, ProvidersResponse, UserStatusUpdate,
    UserListResponse, UserDetailResponse, UserResponse,
    AdminAccount, AdminAuthResponse, AdminChatListResponse, DashboardStatsResponse,
)

__all__ = [
    'ChatSession', 'Message', 'MessageMetadata', 'Sender', 'DEFAULT_TITLE',
    'ChatRequest', 'ChatMessageResponse', 'ChatSummary', 'ChatDetail', 'Pagination',
    'ChatHistoryResponse', 'RecentChatsResponse', 'ChatDetailResponse',
    'TopicCount', 'ChatStats', 'ChatStatsResponse', 'MessageResponse', 'HealthProbeResponse',
    'User', 'UserProfile', 'UserCreate', 'LoginRequest', 'Token', 'TokenData',
    'AuthResponse', 'SocialProviders', 'ProvidersResponse', 'UserStatusUpdate',
    'UserListResponse', 'UserDetailResponse', 'UserResponse',
    'AdminAccount', 'AdminAuthResponse', 'AdminChatListResponse', 'DashboardStatsResponse',
]
