"""
Admin API endpoints - user and chat administration.

Every route except /login requires a token carrying the admin role.
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..core.dependencies import get_admin_service
from ..models import (
    AdminAccount,
    AdminAuthResponse,
    AdminChatListResponse,
    ChatDetail,
    ChatDetailResponse,
    ChatSummary,
    DashboardStatsResponse,
    LoginRequest,
    MessageResponse,
    TokenData,
    UserDetailResponse,
    UserListResponse,
    UserResponse,
    UserStatusUpdate,
)
from ..services.admin_service import AdminService
from ..utils.auth import create_user_token, get_current_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.post("/login", response_model=AdminAuthResponse)
async def admin_login(
    credentials: LoginRequest,
    admin_service: AdminService = Depends(get_admin_service),
):
    """
    Log in to the admin console.

    Raises:
        AuthenticationError: If the credentials do not belong to an admin
    """
    admin, is_demo = await admin_service.authenticate(credentials.email, credentials.password)
    return AdminAuthResponse(
        message="Demo admin login successful" if is_demo else "Admin login successful",
        token=create_user_token(admin),
        admin=AdminAccount(
            user_id=admin["user_id"],
            username=admin["username"],
            email=admin.get("email"),
            role=admin["role"],
            profile=admin.get("profile") or {},
        ),
        is_demo=is_demo,
    )


@router.get("/users", response_model=UserListResponse)
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: str = "",
    admin: TokenData = Depends(get_current_admin),
    admin_service: AdminService = Depends(get_admin_service),
):
    """Non-admin users, newest first; search matches username, e-mail and name."""
    users, stats = await admin_service.list_users(page=page, limit=limit, search=search)
    return UserListResponse(users=users, stats=stats)


@router.get("/users/{user_id}", response_model=UserDetailResponse)
async def get_user(
    user_id: str,
    admin: TokenData = Depends(get_current_admin),
    admin_service: AdminService = Depends(get_admin_service),
):
    return UserDetailResponse(user=await admin_service.get_user_detail(user_id))


@router.patch("/users/{user_id}/status", response_model=UserResponse)
async def update_user_status(
    user_id: str,
    update: UserStatusUpdate,
    admin: TokenData = Depends(get_current_admin),
    admin_service: AdminService = Depends(get_admin_service),
):
    """Activate or deactivate an account."""
    user = await admin_service.update_user_status(user_id, update.is_active)
    return UserResponse(
        message=f"User {'activated' if update.is_active else 'deactivated'} successfully",
        user=user,
    )


@router.delete("/users/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: str,
    admin: TokenData = Depends(get_current_admin),
    admin_service: AdminService = Depends(get_admin_service),
):
    """Delete a user and their chat history. Admins cannot delete themselves."""
    await admin_service.delete_user(user_id, acting_user_id=admin.user_id)
    return MessageResponse(message="User and their chat history deleted successfully")


@router.get("/chats", response_model=AdminChatListResponse)
async def list_chats(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    user_id: Optional[str] = Query(None, alias="userId"),
    topic: Optional[str] = None,
    date_from: Optional[datetime] = Query(None, alias="dateFrom"),
    date_to: Optional[datetime] = Query(None, alias="dateTo"),
    admin: TokenData = Depends(get_current_admin),
    admin_service: AdminService = Depends(get_admin_service),
):
    """Authenticated chats with filters and aggregate statistics."""
    chats, stats, pagination = await admin_service.list_chats(
        page=page,
        limit=limit,
        user_id=user_id,
        topic=topic,
        date_from=date_from,
        date_to=date_to,
    )
    return AdminChatListResponse(
        chats=[ChatSummary.from_session(s) for s in chats],
        stats=stats,
        pagination=pagination,
    )


@router.get("/chats/{chat_id}", response_model=ChatDetailResponse)
async def get_chat(
    chat_id: str,
    admin: TokenData = Depends(get_current_admin),
    admin_service: AdminService = Depends(get_admin_service),
):
    session = await admin_service.get_chat(chat_id)
    return ChatDetailResponse(chat=ChatDetail.from_session(session))


@router.delete("/chats/{chat_id}", response_model=MessageResponse)
async def delete_chat(
    chat_id: str,
    admin: TokenData = Depends(get_current_admin),
    admin_service: AdminService = Depends(get_admin_service),
):
    await admin_service.delete_chat(chat_id)
    return MessageResponse(message="Chat deleted successfully")


@router.get("/stats", response_model=DashboardStatsResponse)
async def dashboard_stats(
    admin: TokenData = Depends(get_current_admin),
    admin_service: AdminService = Depends(get_admin_service),
):
    """Dashboard counts, popular topics and recent activity."""
    return DashboardStatsResponse(stats=await admin_service.dashboard_stats())
