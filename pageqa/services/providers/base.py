"""Provider capability shared by every AI backend."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class ProviderOptions:
    """Per-call budget for a provider invocation."""

    max_tokens: int = 4000
    temperature: float = 0.3
    timeout: float = 60.0  # seconds


HEALTH_CHECK_PROMPT = "ping"
HEALTH_CHECK_OPTIONS = ProviderOptions(max_tokens=10, temperature=0.0, timeout=15.0)


@runtime_checkable
class Provider(Protocol):
    """An AI backend that turns a prompt into text.

    Selection logic only ever talks to this interface.
    """

    name: str

    def has_credentials(self) -> bool:
        """Return True when the backend has an API key configured."""
        ...

    async def invoke(self, prompt: str, options: ProviderOptions) -> str:
        """Send ``prompt`` and return the raw response text.

        Raises:
            ProviderError: On timeout, transport failure or malformed reply
        """
        ...

    async def health_check(self) -> bool:
        """Return True when a minimal invocation succeeds. Never raises."""
        ...
