"""
LLM Provider Base - Abstract base for all LLM API providers.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class LLMMessage:
    """Represents a message in a conversation."""
    role: str  # "system", "user", "assistant"
    content: str

    @staticmethod
    def text(role: str, text: str) -> "LLMMessage":
        """Create a text-only message."""
        return LLMMessage(role=role, content=text)


@dataclass
class LLMResponse:
    """Response from an LLM API call."""
    content: str
    model: str = ""
    usage: Dict[str, int] = field(default_factory=dict)
    raw: Optional[Dict[str, Any]] = None


class LLMProviderError(Exception):
    """
    An LLM API call failed.

    Attributes:
        status_code: HTTP status of the failed call, None for transport errors
        error_code: Provider error code (e.g. "insufficient_quota",
            "rate_limit_exceeded", "timeout")
    """

    def __init__(self, message: str, status_code: Optional[int] = None,
                 error_code: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.error_code = error_code


class LLMProvider(ABC):
    """
    Abstract base class for LLM API providers.
    All providers must implement chat_completion.
    """

    def __init__(self, api_key: str, model: str, base_url: Optional[str] = None,
                 default_temperature: float = 0.7, default_max_tokens: int = 500):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.default_temperature = default_temperature
        self.default_max_tokens = default_max_tokens

    @abstractmethod
    async def chat_completion(
        self,
        messages: List[LLMMessage],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        **kwargs
    ) -> LLMResponse:
        """
        Send a chat completion request.

        Args:
            messages: List of conversation messages
            temperature: Sampling temperature override
            max_tokens: Max tokens override
            **kwargs: Additional provider-specific parameters

        Returns:
            LLMResponse with the generated content

        Raises:
            LLMProviderError: If the API call fails
        """
        pass

    def _format_messages(self, messages: List[LLMMessage]) -> List[Dict[str, Any]]:
        """Convert LLMMessage list to API-compatible format."""
        return [{"role": m.role, "content": m.content} for m in messages]
