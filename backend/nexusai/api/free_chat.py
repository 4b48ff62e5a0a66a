"""
Anonymous chat API endpoints - no account needed, history kept per session id.
"""

import logging

from fastapi import APIRouter, Depends

from ..core.dependencies import get_chat_service
from ..models import ChatMessageResponse, ChatRequest, HealthProbeResponse
from ..services.answer_generator import AnswerGenerator, get_answer_generator
from ..services.chat_service import ChatService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/free", tags=["free-chat"])


async def probe_answer_generator(generator: AnswerGenerator) -> HealthProbeResponse:
    """
    Check LLM connectivity with a short prompt.

    Raises:
        TransientUpstreamError: If the provider is missing or unreachable (503)
    """
    answer = await generator.ping()
    return HealthProbeResponse(status="healthy", response=answer)


@router.post("/message", response_model=ChatMessageResponse)
async def send_message(
    request: ChatRequest,
    chat_service: ChatService = Depends(get_chat_service),
):
    """
    Send a message as an anonymous visitor.

    Args:
        request: Message text and optional session id to continue

    Returns:
        ChatMessageResponse: Assistant reply; isOutOfScope / isError flag the
        fixed decline and apology replies
    """
    reply = await chat_service.handle_message(request.message, request.session_id)
    return ChatMessageResponse.from_reply(reply)


@router.get("/health", response_model=HealthProbeResponse)
async def health(generator: AnswerGenerator = Depends(get_answer_generator)):
    """LLM connectivity probe for the anonymous chat."""
    return await probe_answer_generator(generator)
