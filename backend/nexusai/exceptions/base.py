"""
Base exception classes.

Every application error is an HTTPException so that route handlers can let
it propagate and the handler in main.py renders the JSON envelope.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status


class BaseAppException(HTTPException):
    """Base application exception."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}

        super().__init__(
            status_code=status_code,
            detail={"message": message, "error_code": error_code, "details": self.details},
        )

    def __str__(self) -> str:
        return self.message


class ValidationError(BaseAppException):
    """Raised when input (message content, sender, account data) is malformed."""

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code="VALIDATION_ERROR",
            details=details,
        )


class NotFoundError(BaseAppException):
    """Raised when a lookup yields nothing where a record was expected."""

    def __init__(self, message: str = "Resource not found", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            error_code="NOT_FOUND",
            details=details,
        )


class AuthenticationError(BaseAppException):
    """Raised on bad credentials."""

    def __init__(self, message: str = "Invalid credentials", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=status.HTTP_401_UNAUTHORIZED,
            error_code="AUTHENTICATION_FAILED",
            details=details,
        )


class AppPermissionError(BaseAppException):
    """Raised when the caller may not perform the operation."""

    def __init__(self, message: str = "Permission denied", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=status.HTTP_403_FORBIDDEN,
            error_code="PERMISSION_DENIED",
            details=details,
        )
