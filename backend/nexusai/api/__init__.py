"""API module."""

from .admin import router as admin_router
from .auth import router as auth_router
from .free_chat import router as free_chat_router
from .user_chat import router as user_chat_router

__all__ = ['admin_router', 'auth_router', 'free_chat_router', 'user_chat_router']
