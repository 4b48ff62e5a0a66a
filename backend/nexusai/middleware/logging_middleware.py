"""
ASGI middleware logging API requests.

Pure ASGI (not BaseHTTPMiddleware) so it stays transparent to streaming
responses. Logs one line per request with method, path, status code and
duration; the sanitized request body is logged at DEBUG.
"""

import json
import logging
import time
from typing import Iterable, Optional

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from ..core.logging_config import filter_sensitive_data, truncate_large_data

logger = logging.getLogger(__name__)


def _sanitize_body(body: bytes) -> str:
    """Decode a request body, masking sensitive JSON fields."""
    text = body.decode("utf-8", errors="ignore")
    try:
        payload = json.loads(text)
    except json.JSONDecodeError:
        return truncate_large_data(text, max_length=2000)
    return truncate_large_data(
        json.dumps(filter_sensitive_data(payload), ensure_ascii=False), max_length=2000
    )


class RequestLoggingMiddleware:
    """Pure ASGI middleware to log all API requests."""

    def __init__(self, app: ASGIApp, exclude_paths: Optional[Iterable[str]] = None):
        """
        Args:
            app: The ASGI application
            exclude_paths: Paths that are passed through without logging
        """
        self.app = app
        self.exclude_paths = set(exclude_paths or ("/health", "/"))

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope.get("path", "") in self.exclude_paths:
            await self.app(scope, receive, send)
            return

        start_time = time.time()
        method = scope.get("method", "UNKNOWN")
        path = scope.get("path", "")
        client = scope.get("client")
        body_chunks = []
        status_code = 0

        async def logging_receive() -> Message:
            message = await receive()
            if message["type"] == "http.request":
                body_chunks.append(message.get("body", b""))
            return message

        async def logging_send(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message.get("status", 0)
            await send(message)

        try:
            await self.app(scope, logging_receive, logging_send)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                f"Request failed: {method} {path} - {e}",
                exc_info=True,
                extra={"extra_fields": {
                    "method": method,
                    "path": path,
                    "duration_ms": round(duration_ms, 2),
                }}
            )
            raise

        duration_ms = (time.time() - start_time) * 1000
        body = b"".join(body_chunks)
        if body and logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"Request body: {method} {path} {_sanitize_body(body)}")

        if status_code >= 500:
            level = logging.ERROR
        elif status_code >= 400:
            level = logging.WARNING
        else:
            level = logging.INFO

        logger.log(
            level,
            f"{method} {path} - {status_code} ({duration_ms:.2f}ms)",
            extra={"extra_fields": {
                "method": method,
                "path": path,
                "status_code": status_code,
                "duration_ms": round(duration_ms, 2),
                "client": client[0] if client else None,
            }}
        )
