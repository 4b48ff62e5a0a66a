"""LLM module - provides unified interface for LLM API providers."""

from .base import LLMProvider, LLMMessage, LLMResponse, LLMProviderError
from .openai_provider import OpenAIProvider
from .factory import create_llm_provider

__all__ = [
    'LLMProvider',
    'LLMMessage',
    'LLMResponse',
    'LLMProviderError',
    'OpenAIProvider',
    'create_llm_provider',
]
