"""
Configuration Settings.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings."""

    # App info
    app_name: str = "NexusAI"
    app_version: str = "1.0.0"
    debug: bool = False

    # Security
    secret_key: str = "your-secret-key-change-this-in-production"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7  # 7 days

    # Admin console
    demo_admin_enabled: bool = False  # accept the built-in demo admin accounts

    # Storage
    storage_type: str = "local"
    local_storage_path: str = "./data"

    # LLM Provider settings
    llm_provider: str = "openai"
    llm_api_key: Optional[str] = None
    llm_model: Optional[str] = None  # uses provider default if not set
    llm_base_url: Optional[str] = None  # uses provider default if not set
    llm_temperature: float = 0.7
    llm_max_tokens: int = 500
    llm_presence_penalty: float = 0.3
    llm_frequency_penalty: float = 0.2
    llm_timeout: float = 60.0

    # Legacy key name (still accepted)
    openai_api_key: Optional[str] = None

    # Social login providers (client ids only; the OAuth flow lives elsewhere)
    google_client_id: Optional[str] = None
    github_client_id: Optional[str] = None
    facebook_app_id: Optional[str] = None

    # CORS
    frontend_url: str = "http://localhost:3000"
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # Logging configuration
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file_path: str = "./logs/nexusai.log"
    log_file_enabled: bool = True
    log_console_enabled: bool = True
    log_json_format: bool = True  # JSON format for files, human-readable for console
    log_api_requests: bool = True  # Log all API requests/responses

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
