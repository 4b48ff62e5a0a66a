"""
Authentication API endpoints.
"""

import logging

from fastapi import APIRouter, Depends, status

from ..config import settings
from ..exceptions import AppPermissionError, AuthenticationError, NotFoundError, ValidationError
from ..models import (
    AuthResponse,
    LoginRequest,
    ProvidersResponse,
    SocialProviders,
    User,
    UserCreate,
    UserResponse,
)
from ..storage.user_storage import UserStorage, get_user_storage
from ..utils.auth import (
    authenticate_user,
    create_user_in_db,
    create_user_token,
    get_current_user_id,
    get_password_hash,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["authentication"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserCreate,
    users: UserStorage = Depends(get_user_storage),
):
    """
    Register a new user.

    Args:
        user_data: User registration data

    Returns:
        AuthResponse: Token and the created user

    Raises:
        ValidationError: If the username or e-mail is already registered
    """
    logger.info(f"Registration attempt: {user_data.username}")

    if (
        await users.get_user_by_email(user_data.email)
        or await users.get_user_by_username(user_data.username)
    ):
        raise ValidationError("User with this email or username already exists")

    user = await create_user_in_db(
        username=user_data.username,
        hashed_password=get_password_hash(user_data.password),
        email=user_data.email,
    )

    return AuthResponse(
        message="User registered successfully",
        token=create_user_token(user),
        user=User.from_record(user),
    )


@router.post("/login", response_model=AuthResponse)
async def login(
    credentials: LoginRequest,
    users: UserStorage = Depends(get_user_storage),
):
    """
    Login and get access token.

    Raises:
        AuthenticationError: If the e-mail or password is wrong
        AppPermissionError: If the account has been deactivated
    """
    user = await authenticate_user(credentials.email, credentials.password)
    if not user:
        logger.warning(f"Failed login attempt for {credentials.email}")
        raise AuthenticationError("Invalid credentials")

    if not user.get("is_active", True):
        raise AppPermissionError("Account is deactivated. Please contact support.")

    user = await users.record_login(user["user_id"]) or user

    return AuthResponse(
        message="Login successful",
        token=create_user_token(user),
        user=User.from_record(user),
    )


@router.get("/me", response_model=UserResponse)
async def get_current_user(
    user_id: str = Depends(get_current_user_id),
    users: UserStorage = Depends(get_user_storage),
):
    """
    Get current user information.

    Raises:
        NotFoundError: If the token's user no longer exists
    """
    user = await users.get_user(user_id)
    if not user:
        raise NotFoundError("User not found")

    return UserResponse(user=User.from_record(user))


@router.get("/providers", response_model=ProvidersResponse)
async def get_providers():
    """Social login providers that have client credentials configured."""
    return ProvidersResponse(providers=SocialProviders(
        google=bool(settings.google_client_id),
        github=bool(settings.github_client_id),
        facebook=bool(settings.facebook_app_id),
    ))
