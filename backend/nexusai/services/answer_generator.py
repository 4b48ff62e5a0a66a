"""
Answer Generator - produces assistant replies through the configured LLM.

Every upstream failure (no provider configured, quota, rate limit, timeout,
transport error) surfaces as TransientUpstreamError with a message that can
be shown to the user.
"""

import logging
from typing import Optional

from ..config import settings
from ..core.topic_classifier import Topic
from ..exceptions import TransientUpstreamError
from ..llm.base import LLMMessage, LLMProvider, LLMProviderError
from ..llm.factory import create_llm_provider

logger = logging.getLogger(__name__)


SYSTEM_PROMPT = """You are a specialized AI assistant that ONLY answers questions about Chelsea Football Club and frontend development technologies (React, JavaScript, Tailwind CSS, GSAP animations, Node.js, Express.js).

For Chelsea FC questions:
- Provide accurate information about matches, players, history, transfers, and statistics
- Be enthusiastic but factual about the club

For frontend development questions:
- Focus on React.js, JavaScript ES6+, Tailwind CSS, GSAP animations
- Provide code examples when helpful
- Keep explanations clear and practical

If a question is outside these two topics, politely decline to answer and remind the user of your specialization."""

CHELSEA_PROMPT = """Chelsea FC Question: {question}

Please provide detailed information about Chelsea Football Club. Include squad details, recent matches, transfer news, and historical context where relevant."""

FRONTEND_PROMPT = """Frontend Development Question: {question}

Please provide practical advice, code examples, and best practices for React.js, JavaScript, Tailwind CSS, or GSAP animations. Focus on modern development approaches."""

HEALTH_PROBE_PROMPT = "Hello, are you working?"


def get_llm_provider() -> Optional[LLMProvider]:
    """Get configured LLM provider or None."""
    api_key = settings.llm_api_key or settings.openai_api_key
    if not api_key:
        return None
    return create_llm_provider(
        provider=settings.llm_provider,
        api_key=api_key,
        model=settings.llm_model,
        base_url=settings.llm_base_url,
        default_temperature=settings.llm_temperature,
        default_max_tokens=settings.llm_max_tokens,
        presence_penalty=settings.llm_presence_penalty,
        frequency_penalty=settings.llm_frequency_penalty,
        timeout=settings.llm_timeout,
    )


def _upstream_error(error: LLMProviderError) -> TransientUpstreamError:
    """Translate a provider failure into the user-facing error."""
    details = {"status_code": error.status_code, "error_code": error.error_code}
    if error.error_code == "insufficient_quota":
        return TransientUpstreamError(
            "API quota exceeded. Please check your OpenAI account.", details=details
        )
    if error.status_code == 429 or error.error_code == "rate_limit_exceeded":
        return TransientUpstreamError(
            "Rate limit exceeded. Please wait a moment and try again.", details=details
        )
    return TransientUpstreamError(
        "Unable to process your request at the moment. Please try again.", details=details
    )


class AnswerGenerator:
    """Builds topic-specific prompts and asks the LLM for an answer."""

    def __init__(self, llm_provider: Optional[LLMProvider] = None):
        self._llm_provider = llm_provider

    @property
    def is_configured(self) -> bool:
        return self._llm_provider is not None

    def build_prompt(self, topic_hint: Optional[Topic], question: str) -> str:
        """Wrap the question in the template for its topic."""
        if topic_hint == Topic.CHELSEA:
            return CHELSEA_PROMPT.format(question=question)
        if topic_hint == Topic.FRONTEND:
            return FRONTEND_PROMPT.format(question=question)
        return question

    async def generate(self, topic_hint: Optional[Topic], prompt: str) -> str:
        """
        Generate an answer.

        Args:
            topic_hint: CHELSEA or FRONTEND selects a specialised prompt;
                anything else sends the prompt as is
            prompt: The user's question

        Returns:
            str: Answer text

        Raises:
            TransientUpstreamError: If no provider is configured or the call fails
        """
        if self._llm_provider is None:
            logger.warning("Answer requested but no LLM provider is configured")
            raise TransientUpstreamError(
                "The assistant is not configured. Set LLM_API_KEY to enable AI responses.",
                details={"error_code": "not_configured"},
            )

        messages = [
            LLMMessage.text("system", SYSTEM_PROMPT),
            LLMMessage.text("user", self.build_prompt(topic_hint, prompt)),
        ]

        try:
            response = await self._llm_provider.chat_completion(messages)
        except LLMProviderError as e:
            raise _upstream_error(e) from e

        content = response.content.strip() if isinstance(response.content, str) else ""
        if not content:
            raise TransientUpstreamError(
                "The assistant returned an empty answer. Please try again.",
                details={"error_code": "empty_response"},
            )
        return content

    async def ping(self) -> str:
        """Send a short probe prompt; used by the health endpoints."""
        return await self.generate(None, HEALTH_PROBE_PROMPT)


def get_answer_generator() -> AnswerGenerator:
    """FastAPI dependency: generator bound to the configured provider."""
    return AnswerGenerator(get_llm_provider())
