"""OpenAI chat-completions backend via the official async SDK."""

from __future__ import annotations

import logging
from typing import Any

import openai
from openai import AsyncOpenAI

from pageqa.exceptions import ProviderError
from pageqa.services.providers.base import (
    HEALTH_CHECK_OPTIONS,
    HEALTH_CHECK_PROMPT,
    ProviderOptions,
)

logger = logging.getLogger(__name__)

# Value shipped in example .env files; treated as "no key"
PLACEHOLDER_API_KEY = "your_openai_api_key_here"


class OpenAIProvider:
    """Calls an OpenAI-compatible chat-completions API."""

    name = "openai"

    def __init__(
        self,
        api_key: str | None,
        model: str = "gpt-3.5-turbo",
        base_url: str | None = None,
        client: Any | None = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self._client = client

    def has_credentials(self) -> bool:
        key = (self.api_key or "").strip()
        return bool(key) and key != PLACEHOLDER_API_KEY

    @property
    def client(self) -> Any:
        """Lazily build the SDK client so no key is needed at import time."""
        if self._client is None:
            kwargs: dict[str, Any] = {"api_key": self.api_key}
            if self.base_url:
                kwargs["base_url"] = self.base_url
            self._client = AsyncOpenAI(**kwargs)
        return self._client

    async def invoke(self, prompt: str, options: ProviderOptions) -> str:
        if not self.has_credentials():
            raise ProviderError(self.name, "API key not configured")

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=options.max_tokens,
                temperature=options.temperature,
                timeout=options.timeout,
            )
        except openai.APITimeoutError as e:
            raise ProviderError(self.name, f"request timed out after {options.timeout}s") from e
        except openai.RateLimitError as e:
            raise ProviderError(self.name, "rate limit or quota exceeded") from e
        except openai.OpenAIError as e:
            raise ProviderError(self.name, f"request failed: {e}") from e

        choices = getattr(response, "choices", None) or []
        if not choices:
            raise ProviderError(self.name, "response contained no choices")
        content = getattr(choices[0].message, "content", None)
        if content is None:
            raise ProviderError(self.name, "response contained no text")
        return content

    async def health_check(self) -> bool:
        if not self.has_credentials():
            return False
        try:
            await self.invoke(HEALTH_CHECK_PROMPT, HEALTH_CHECK_OPTIONS)
            return True
        except ProviderError as e:
            logger.warning("OpenAI health check failed: %s", e)
            return False
