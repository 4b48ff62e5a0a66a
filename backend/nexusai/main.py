"""
NexusAI - Main FastAPI Application
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api import admin_router, auth_router, free_chat_router, user_chat_router
from .config import settings
from .core.logging_config import setup_logging
from .exceptions import BaseAppException
from .middleware import RequestLoggingMiddleware
from .storage import LocalStorage, init_chat_store, init_user_storage

# Logger will be initialized after setup_logging() is called
logger = logging.getLogger(__name__)

UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred. Please try again."


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    # Startup
    setup_logging(settings)

    storage = LocalStorage(settings.local_storage_path)
    init_user_storage(storage)
    init_chat_store(storage)
    logger.info("User storage and chat store initialized")

    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Storage path: {settings.local_storage_path}")
    logger.info(f"Log level: {settings.log_level.upper()}")
    logger.info(f"Debug mode: {settings.debug}")
    yield
    # Shutdown
    logger.info(f"Shutting down {settings.app_name}")


def _error_body(message: str, error_code: str, details=None) -> dict:
    body = {"success": False, "error": message, "errorCode": error_code}
    if details:
        body["details"] = details
    return body


async def app_exception_handler(request: Request, exc: BaseAppException) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            f"{exc.error_code} on {request.method} {request.url.path}: {exc.message}",
            extra={"extra_fields": exc.details}
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.message, exc.error_code, exc.details),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    # Framework-raised errors (missing bearer token, unknown route, ...)
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(str(exc.detail) if exc.detail else "An error occurred", "HTTP_ERROR"),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ())[1:]),
            "message": str(error.get("msg", "Validation error")),
        }
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content=_error_body("Validation failed", "VALIDATION_ERROR", errors),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"Unhandled error on {request.method} {request.url.path}: {exc}",
        exc_info=exc,
    )
    return JSONResponse(
        status_code=500,
        content=_error_body(UNEXPECTED_ERROR_MESSAGE, "INTERNAL_ERROR"),
    )


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Chat assistant for Chelsea FC and frontend development questions",
    lifespan=lifespan
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(dict.fromkeys([settings.frontend_url, *settings.cors_origins])),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add request logging middleware (after CORS)
if settings.log_api_requests:
    app.add_middleware(RequestLoggingMiddleware)

# Most specific exception class wins
app.add_exception_handler(BaseAppException, app_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

# Include routers
app.include_router(free_chat_router)
app.include_router(user_chat_router)
app.include_router(auth_router)
app.include_router(admin_router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "app": settings.app_name,
        "version": settings.app_version,
        "status": "running",
        "message": "Welcome to NexusAI - ask me about Chelsea FC or frontend development",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "storage": settings.storage_type,
        "version": settings.app_version
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "nexusai.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug
    )
