"""
Authentication utilities - JWT token handling and password hashing.
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from ..config import settings
from ..exceptions import AppPermissionError, AuthenticationError
from ..models import TokenData
from ..storage.user_storage import get_user_storage

logger = logging.getLogger(__name__)

# Bearer token security
security = HTTPBearer()


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against a hashed password."""
    return bcrypt.checkpw(plain_password.encode('utf-8'), hashed_password.encode('utf-8'))


def get_password_hash(password: str) -> str:
    """Hash a password."""
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    Args:
        data: Data to encode in the token ("sub", "username", "role")
        expires_delta: Optional expiration time delta

    Returns:
        str: Encoded JWT token
    """
    to_encode = data.copy()

    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)
    to_encode.update({"exp": datetime.now(timezone.utc) + expires_delta})

    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def create_user_token(user: Dict[str, Any]) -> str:
    """Issue a token for a stored user record."""
    return create_access_token(data={
        "sub": user["user_id"],
        "username": user["username"],
        "role": user.get("role", "user"),
    })


def decode_access_token(token: str) -> Optional[TokenData]:
    """
    Decode and verify a JWT access token.

    Args:
        token: JWT token string

    Returns:
        Optional[TokenData]: Token data if valid, None otherwise
    """
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None

    user_id = payload.get("sub")
    if user_id is None:
        return None

    return TokenData(
        user_id=user_id,
        username=payload.get("username"),
        role=payload.get("role", "user"),
    )


async def get_token_data(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> TokenData:
    """
    Dependency to decode the bearer token.

    Raises:
        AuthenticationError: If the token is invalid or expired
    """
    token_data = decode_access_token(credentials.credentials)
    if token_data is None:
        raise AuthenticationError("Could not validate credentials")
    return token_data


async def get_current_user_id(token_data: TokenData = Depends(get_token_data)) -> str:
    """
    Dependency to get current user ID from JWT token.

    Returns:
        str: User ID
    """
    return token_data.user_id


async def get_current_admin(token_data: TokenData = Depends(get_token_data)) -> TokenData:
    """
    Dependency for admin-only routes.

    Raises:
        AppPermissionError: If the token does not carry the admin role
    """
    if token_data.role != "admin":
        logger.warning(f"Non-admin user {token_data.user_id} attempted an admin operation")
        raise AppPermissionError("Admin access required")
    return token_data


async def create_user_in_db(
    username: str,
    hashed_password: str,
    email: Optional[str] = None,
    role: str = "user",
) -> Dict[str, Any]:
    """Create a new user in storage with a fresh id."""
    user_id = str(uuid.uuid4())
    return await get_user_storage().create_user(
        user_id, username, hashed_password, email=email, role=role
    )


async def authenticate_user(email: str, password: str) -> Optional[Dict[str, Any]]:
    """
    Authenticate a user by e-mail and password.

    Args:
        email: E-mail address
        password: Plain text password

    Returns:
        Optional[dict]: User data if authenticated, None otherwise
    """
    user = await get_user_storage().get_user_by_email(email)
    if not user or not user.get("hashed_password"):
        return None
    if not verify_password(password, user["hashed_password"]):
        return None
    return user
