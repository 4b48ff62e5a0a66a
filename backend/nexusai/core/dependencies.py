"""
FastAPI dependencies shared by the routers.
"""

from fastapi import Depends

from ..services.admin_service import AdminService
from ..services.answer_generator import AnswerGenerator, get_answer_generator
from ..services.chat_service import ChatService
from ..storage.chat_store import ChatStore, get_chat_store
from ..storage.user_storage import UserStorage, get_user_storage


def get_chat_service(
    store: ChatStore = Depends(get_chat_store),
    answer_generator: AnswerGenerator = Depends(get_answer_generator),
) -> ChatService:
    """Chat service bound to the global chat store and the configured LLM."""
    return ChatService(store, answer_generator)


def get_admin_service(
    users: UserStorage = Depends(get_user_storage),
    store: ChatStore = Depends(get_chat_store),
) -> AdminService:
    return AdminService(users, store)
