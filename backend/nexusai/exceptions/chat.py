"""Chat pipeline exceptions."""

from typing import Any, Dict, Optional

from fastapi import status

from .base import BaseAppException


class TransientUpstreamError(BaseAppException):
    """
    The answer-generation service failed (quota, rate limit, timeout, outage).

    The chat pipeline recovers from this locally by answering with a fixed
    apology, so it only reaches the HTTP layer from the health probes.
    """

    def __init__(
        self,
        message: str = "Unable to process your request at the moment. Please try again.",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            error_code="UPSTREAM_UNAVAILABLE",
            details=details,
        )


class PersistenceError(BaseAppException):
    """A chat store read or write failed."""

    def __init__(
        self,
        message: str = "Failed to persist chat history",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_code="PERSISTENCE_ERROR",
            details=details,
        )
