"""Zhipu GLM chat-completions backend over plain httpx."""

from __future__ import annotations

import logging

import httpx

from pageqa.exceptions import ProviderError
from pageqa.services.providers.base import (
    HEALTH_CHECK_OPTIONS,
    HEALTH_CHECK_PROMPT,
    ProviderOptions,
)

logger = logging.getLogger(__name__)

DEFAULT_ZHIPU_URL = "https://open.bigmodel.cn/api/paas/v4/chat/completions"


class ZhipuProvider:
    """Calls the GLM chat-completions endpoint with bearer auth."""

    name = "zhipu"

    def __init__(
        self,
        api_key: str | None,
        model: str = "glm-4",
        base_url: str = DEFAULT_ZHIPU_URL,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url

    def has_credentials(self) -> bool:
        return bool(self.api_key and self.api_key.strip())

    async def invoke(self, prompt: str, options: ProviderOptions) -> str:
        if not self.has_credentials():
            raise ProviderError(self.name, "API key not configured")

        payload = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": options.temperature,
            "max_tokens": options.max_tokens,
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        try:
            async with httpx.AsyncClient(timeout=options.timeout) as client:
                response = await client.post(self.base_url, json=payload, headers=headers)
        except httpx.TimeoutException as e:
            raise ProviderError(self.name, f"request timed out after {options.timeout}s") from e
        except httpx.RequestError as e:
            raise ProviderError(self.name, f"request failed: {e}") from e

        if response.status_code >= 400:
            raise ProviderError(
                self.name,
                f"HTTP {response.status_code}: {self._error_detail(response)}",
            )

        try:
            body = response.json()
            return body["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise ProviderError(self.name, "unexpected response format") from e

    async def health_check(self) -> bool:
        if not self.has_credentials():
            return False
        try:
            await self.invoke(HEALTH_CHECK_PROMPT, HEALTH_CHECK_OPTIONS)
            return True
        except ProviderError as e:
            logger.warning("Zhipu health check failed: %s", e)
            return False

    @staticmethod
    def _error_detail(response: httpx.Response) -> str:
        try:
            return response.json().get("error", {}).get("message") or "unknown error"
        except (ValueError, AttributeError):
            return "unknown error"
