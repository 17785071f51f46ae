"""AI provider backends and the selector that picks between them."""

from pageqa.services.providers.base import Provider, ProviderOptions
from pageqa.services.providers.openai_provider import OpenAIProvider
from pageqa.services.providers.selector import ProviderSelector, build_default_selector
from pageqa.services.providers.zhipu import ZhipuProvider

__all__ = [
    "Provider",
    "ProviderOptions",
    "ProviderSelector",
    "build_default_selector",
    "OpenAIProvider",
    "ZhipuProvider",
]
