"""Ordered AI backend selection with a cached active choice."""

from __future__ import annotations

import asyncio
import logging
from typing import Sequence

from pageqa.exceptions import ProviderUnavailable
from pageqa.services.providers.base import Provider

logger = logging.getLogger(__name__)


class ProviderSelector:
    """Holds the configured backends and exposes one active, healthy provider.

    The first backend that has credentials and passes its health check wins.
    The choice is kept until ``switch()`` or ``reset()`` is called, so a
    running task always talks to the same backend.
    """

    def __init__(self, providers: Sequence[Provider]) -> None:
        self._providers: tuple[Provider, ...] = tuple(providers)
        self._active: Provider | None = None
        self._lock = asyncio.Lock()

    @property
    def providers(self) -> tuple[Provider, ...]:
        return self._providers

    @property
    def active(self) -> Provider | None:
        """The cached selection, or None before the first ``get()``."""
        return self._active

    async def get(self) -> Provider:
        """Return the active provider, probing backends on first use.

        Raises:
            ProviderUnavailable: If no backend has credentials and is healthy.
        """
        if self._active is not None:
            return self._active

        async with self._lock:
            if self._active is not None:
                return self._active

            for provider in self._providers:
                if not provider.has_credentials():
                    logger.debug("Skipping provider %s: no credentials", provider.name)
                    continue
                if await provider.health_check():
                    self._active = provider
                    logger.info("Using AI provider %s", provider.name)
                    return provider
                logger.warning("Provider %s failed its health check", provider.name)

        configured = [p.name for p in self._providers if p.has_credentials()]
        if configured:
            raise ProviderUnavailable(
                f"No healthy AI provider (configured: {', '.join(configured)})"
            )
        raise ProviderUnavailable("No AI provider API key is configured")

    async def switch(self, name: str) -> Provider:
        """Make the backend called ``name`` the active one.

        Raises:
            ProviderUnavailable: If it is unknown, lacks credentials or is unhealthy.
        """
        provider = next((p for p in self._providers if p.name == name), None)
        if provider is None:
            raise ProviderUnavailable(f"Unknown AI provider: {name}")
        if not provider.has_credentials():
            raise ProviderUnavailable(f"AI provider {name} has no API key configured")
        if not await provider.health_check():
            raise ProviderUnavailable(f"AI provider {name} is not available")

        async with self._lock:
            self._active = provider
        logger.info("Switched AI provider to %s", name)
        return provider

    def reset(self) -> None:
        """Forget the cached selection; the next ``get()`` probes again."""
        self._active = None


def build_default_selector() -> ProviderSelector:
    """Build the selector from settings: Zhipu first, then OpenAI."""
    from pageqa.core.config import settings
    from pageqa.services.providers.openai_provider import OpenAIProvider
    from pageqa.services.providers.zhipu import ZhipuProvider

    return ProviderSelector(
        [
            ZhipuProvider(
                api_key=settings.zhipu_api_key,
                model=settings.zhipu_model,
                base_url=settings.zhipu_base_url,
            ),
            OpenAIProvider(
                api_key=settings.openai_api_key,
                model=settings.openai_model,
                base_url=settings.openai_base_url,
            ),
        ]
    )
