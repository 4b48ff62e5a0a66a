"""Application exceptions."""

from .base import (
    BaseAppException,
    ValidationError,
    NotFoundError,
    AuthenticationError,
    AppPermissionError,
)
from .chat import TransientUpstreamError, PersistenceError

__all__ = [
    'BaseAppException',
    'ValidationError',
    'NotFoundError',
    'AuthenticationError',
    'AppPermissionError',
    'TransientUpstreamError',
    'PersistenceError',
]
