"""
Authenticated chat API endpoints - chat with persisted, per-user history.
"""

import logging

from fastapi import APIRouter, Depends, Query

from ..core.dependencies import get_chat_service
from ..models import (
    ChatDetail,
    ChatDetailResponse,
    ChatHistoryResponse,
    ChatMessageResponse,
    ChatRequest,
    ChatStatsResponse,
    ChatSummary,
    HealthProbeResponse,
    MessageResponse,
    Pagination,
    RecentChatsResponse,
)
from ..services.answer_generator import AnswerGenerator, get_answer_generator
from ..services.chat_service import ChatService
from ..utils.auth import get_current_user_id
from .free_chat import probe_answer_generator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users/chat", tags=["user-chat"])


@router.post("/message", response_model=ChatMessageResponse)
async def send_message(
    request: ChatRequest,
    user_id: str = Depends(get_current_user_id),
    chat_service: ChatService = Depends(get_chat_service),
):
    """
    Send a chat message and get the assistant's reply.

    Args:
        request: Message text and optional session id to continue
        user_id: Current user ID from token

    Returns:
        ChatMessageResponse: Assistant reply for a session owned by the caller
    """
    reply = await chat_service.handle_message(request.message, request.session_id, user_id)
    return ChatMessageResponse.from_reply(reply)


@router.get("/history", response_model=ChatHistoryResponse)
async def get_history(
    limit: int = Query(20, ge=1, le=100),
    page: int = Query(1, ge=1),
    user_id: str = Depends(get_current_user_id),
    chat_service: ChatService = Depends(get_chat_service),
):
    """Paginated list of the caller's chats, most recently active first."""
    sessions, total = await chat_service.get_history(user_id, page=page, limit=limit)
    return ChatHistoryResponse(
        chats=[ChatSummary.from_session(s) for s in sessions],
        pagination=Pagination.build(page, limit, total),
    )


@router.get("/recent", response_model=RecentChatsResponse)
async def get_recent(
    days: int = Query(7, ge=1, le=365),
    user_id: str = Depends(get_current_user_id),
    chat_service: ChatService = Depends(get_chat_service),
):
    """Chats active within the last ``days`` days (at most 20)."""
    sessions = await chat_service.get_recent(user_id, days=days)
    return RecentChatsResponse(chats=[ChatSummary.from_session(s) for s in sessions])


@router.get("/history/{session_id}", response_model=ChatDetailResponse)
async def get_chat(
    session_id: str,
    user_id: str = Depends(get_current_user_id),
    chat_service: ChatService = Depends(get_chat_service),
):
    """Full chat with all messages; 404 if the caller has no such session."""
    session = await chat_service.get_session(user_id, session_id)
    return ChatDetailResponse(chat=ChatDetail.from_session(session))


@router.delete("/history/{session_id}", response_model=MessageResponse)
async def delete_chat(
    session_id: str,
    user_id: str = Depends(get_current_user_id),
    chat_service: ChatService = Depends(get_chat_service),
):
    await chat_service.delete_session(user_id, session_id)
    return MessageResponse(message="Chat deleted successfully")


@router.get("/stats", response_model=ChatStatsResponse)
async def get_stats(
    user_id: str = Depends(get_current_user_id),
    chat_service: ChatService = Depends(get_chat_service),
):
    """Chat statistics of the caller plus the 5 most recent chats."""
    stats, recent = await chat_service.get_stats(user_id)
    return ChatStatsResponse(
        stats=stats,
        recent_activity=[ChatSummary.from_session(s) for s in recent],
    )


@router.get("/health", response_model=HealthProbeResponse)
async def health(generator: AnswerGenerator = Depends(get_answer_generator)):
    """LLM connectivity probe for the signed-in chat; needs no token."""
    return await probe_answer_generator(generator)
