"""Services module - chat pipeline, answer generation and administration."""

from .answer_generator import AnswerGenerator, get_answer_generator, get_llm_provider
from .chat_service import ChatReply, ChatService, ERROR_RESPONSE, OUT_OF_SCOPE_RESPONSE
from .admin_service import AdminService

__all__ = [
    'AnswerGenerator',
    'get_answer_generator',
    'get_llm_provider',
    'ChatReply',
    'ChatService',
    'ERROR_RESPONSE',
    'OUT_OF_SCOPE_RESPONSE',
    'AdminService',
]
