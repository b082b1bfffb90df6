from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Optional

import anthropic
from anthropic import Anthropic

from shatter_api.config import settings
from shatter_api.errors import LLMClientConfigError, UpstreamError

logger = logging.getLogger(__name__)


@dataclass
class LLMGenerationParams:
    max_tokens: int
    model: Optional[str] = None
    temperature: Optional[float] = None


class LLMClient:
    """
    Lightweight wrapper around the Anthropic messages API.
    The SDK client is built on first use and reused for every later call.
    """

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        default_model: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.api_key = api_key
        self.default_model = default_model or settings.LLM_DEFAULT_MODEL
        self.timeout = timeout if timeout is not None else settings.LLM_REQUEST_TIMEOUT
        self._anthropic_client: Optional[Anthropic] = None

    def _get_anthropic_client(self) -> Anthropic:
        if self._anthropic_client:
            return self._anthropic_client

        api_key = self.api_key or settings.ANTHROPIC_API_KEY
        if not api_key:
            raise LLMClientConfigError("ANTHROPIC_API_KEY not configured")

        # Upstream failures surface to the caller as-is; the SDK must not retry on its own.
        self._anthropic_client = Anthropic(api_key=api_key, timeout=self.timeout, max_retries=0)
        return self._anthropic_client

    def generate_text(self, prompt: str, params: LLMGenerationParams) -> str:
        """Send a single user prompt and return the concatenated text blocks of the reply.

        An empty string is returned when the model answers without text content; callers
        treat that the same as an unparseable answer.
        """
        client = self._get_anthropic_client()
        model = params.model or self.default_model
        request_kwargs: dict[str, Any] = {
            "model": model,
            "max_tokens": params.max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }
        if params.temperature is not None:
            request_kwargs["temperature"] = params.temperature

        try:
            response = client.messages.create(**request_kwargs)
        except anthropic.APIError as exc:
            logger.exception("Anthropic generation failed", extra={"model": model})
            raise UpstreamError("anthropic", str(exc)) from exc

        text_parts = [content.text for content in response.content if getattr(content, "text", None)]
        return "".join(text_parts).strip()


@lru_cache(maxsize=1)
def get_llm_client() -> LLMClient:
    return LLMClient()
