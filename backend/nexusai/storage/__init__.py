"""Storage module - provides interface and implementations for data persistence."""

from .interface import StorageInterface
from .local_storage import LocalStorage
from .chat_store import ChatStore, LocalChatStore, init_chat_store, get_chat_store
from .user_storage import UserStorage, init_user_storage, get_user_storage

__all__ = [
    'StorageInterface', 'LocalStorage',
    'ChatStore', 'LocalChatStore', 'init_chat_store', 'get_chat_store',
    'UserStorage', 'init_user_storage', 'get_user_storage',
]
