"""
OpenAI LLM Provider.
Talks to the Chat Completions endpoint of OpenAI or any OpenAI-compatible API.
"""

import httpx
import logging
import time
from typing import Optional, List, Dict, Any

from .base import LLMProvider, LLMMessage, LLMResponse, LLMProviderError

logger = logging.getLogger(__name__)


class OpenAIProvider(LLMProvider):
    """
    Provider for the OpenAI Chat Completions API.
    Default base_url points to api.openai.com; override it for compatible gateways.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-3.5-turbo",
        base_url: str = "https://api.openai.com/v1",
        default_temperature: float = 0.7,
        default_max_tokens: int = 500,
        presence_penalty: Optional[float] = None,
        frequency_penalty: Optional[float] = None,
        timeout: float = 60.0,
    ):
        super().__init__(api_key, model, base_url, default_temperature, default_max_tokens)
        self.presence_penalty = presence_penalty
        self.frequency_penalty = frequency_penalty
        self.timeout = timeout

    def _get_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def _build_payload(
        self,
        messages: List[LLMMessage],
        temperature: Optional[float],
        max_tokens: Optional[int],
        **kwargs
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": kwargs.get("model", self.model),
            "messages": self._format_messages(messages),
            "temperature": temperature if temperature is not None else self.default_temperature,
            "max_tokens": max_tokens or self.default_max_tokens,
        }
        if self.presence_penalty is not None:
            payload["presence_penalty"] = self.presence_penalty
        if self.frequency_penalty is not None:
            payload["frequency_penalty"] = self.frequency_penalty
        return payload

    @staticmethod
    def _error_from_response(resp: httpx.Response) -> LLMProviderError:
        """Pull the provider error code and message out of an error response."""
        error_code = None
        message = f"LLM API returned HTTP {resp.status_code}"
        try:
            error = resp.json().get("error") or {}
            error_code = error.get("code") or error.get("type")
            message = error.get("message") or message
        except (ValueError, AttributeError):
            pass
        return LLMProviderError(message, status_code=resp.status_code, error_code=error_code)

    async def chat_completion(
        self,
        messages: List[LLMMessage],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        **kwargs
    ) -> LLMResponse:
        """Send request to the Chat Completions endpoint."""
        start_time = time.time()
        url = f"{self.base_url}/chat/completions"
        payload = self._build_payload(messages, temperature, max_tokens, **kwargs)

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                f"LLM API call starting: provider=openai, model={payload['model']}, "
                f"temperature={payload['temperature']}, {len(messages)} messages"
            )

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(url, json=payload, headers=self._get_headers())
                if resp.status_code >= 400:
                    raise self._error_from_response(resp)
                data = resp.json()

            content = data["choices"][0]["message"]["content"]
            if content is None:
                content = ""
            elif not isinstance(content, str):
                raise LLMProviderError(
                    f"Malformed LLM API response: content is {type(content).__name__}, not text",
                    error_code="malformed_response",
                )

            usage = data.get("usage") or {}
            duration_ms = (time.time() - start_time) * 1000

            logger.info(
                "LLM API call completed",
                extra={"extra_fields": {
                    "provider": "openai",
                    "model": data.get("model", self.model),
                    "prompt_tokens": usage.get("prompt_tokens", 0),
                    "completion_tokens": usage.get("completion_tokens", 0),
                    "total_tokens": usage.get("total_tokens", 0),
                    "duration_ms": round(duration_ms, 2),
                }}
            )

            return LLMResponse(
                content=content,
                model=data.get("model", self.model),
                usage=usage,
                raw=data,
            )
        except LLMProviderError as e:
            self._log_failure(e, payload, start_time)
            raise
        except httpx.TimeoutException as e:
            self._log_failure(e, payload, start_time)
            raise LLMProviderError("LLM API request timed out", error_code="timeout") from e
        except httpx.HTTPError as e:
            self._log_failure(e, payload, start_time)
            raise LLMProviderError(f"LLM API request failed: {e}") from e
        except (KeyError, IndexError, TypeError, AttributeError, ValueError) as e:
            self._log_failure(e, payload, start_time)
            raise LLMProviderError(
                f"Malformed LLM API response: {e}", error_code="malformed_response"
            ) from e

    def _log_failure(self, error: Exception, payload: Dict[str, Any], start_time: float) -> None:
        duration_ms = (time.time() - start_time) * 1000
        logger.error(
            f"LLM API call failed: {error}",
            extra={"extra_fields": {
                "provider": "openai",
                "model": payload.get("model"),
                "duration_ms": round(duration_ms, 2),
                "error": str(error),
                "error_code": getattr(error, "error_code", None),
            }}
        )
