"""Tests for the Zhipu and OpenAI provider backends."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import openai
import pytest

from pageqa.exceptions import ProviderError
from pageqa.services.providers.base import Provider, ProviderOptions
from pageqa.services.providers.openai_provider import PLACEHOLDER_API_KEY, OpenAIProvider
from pageqa.services.providers.zhipu import DEFAULT_ZHIPU_URL, ZhipuProvider

OPTIONS = ProviderOptions(max_tokens=100, temperature=0.1, timeout=5.0)


def _zhipu_response(status_code: int = 200, **kwargs) -> httpx.Response:
    return httpx.Response(
        status_code, request=httpx.Request("POST", DEFAULT_ZHIPU_URL), **kwargs
    )


def _openai_client(create: AsyncMock) -> MagicMock:
    client = MagicMock()
    client.chat.completions.create = create
    return client


def _completion(content: str | None) -> SimpleNamespace:
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


class TestZhipuProvider:
    def test_satisfies_protocol(self) -> None:
        assert isinstance(ZhipuProvider("key"), Provider)

    def test_credentials(self) -> None:
        assert ZhipuProvider("key").has_credentials() is True
        assert ZhipuProvider(None).has_credentials() is False
        assert ZhipuProvider("  ").has_credentials() is False

    @pytest.mark.asyncio
    async def test_invoke_returns_message_content(self) -> None:
        provider = ZhipuProvider("key", model="glm-4")
        body = {"choices": [{"message": {"content": "hello"}}]}

        with patch.object(
            httpx.AsyncClient, "post", return_value=_zhipu_response(json=body)
        ) as mock_post:
            result = await provider.invoke("prompt", OPTIONS)

        assert result == "hello"
        kwargs = mock_post.call_args.kwargs
        assert kwargs["json"]["model"] == "glm-4"
        assert kwargs["json"]["max_tokens"] == 100
        assert kwargs["headers"]["Authorization"] == "Bearer key"

    @pytest.mark.asyncio
    async def test_invoke_http_error(self) -> None:
        provider = ZhipuProvider("key")
        body = {"error": {"message": "invalid api key"}}

        with patch.object(
            httpx.AsyncClient, "post", return_value=_zhipu_response(401, json=body)
        ):
            with pytest.raises(ProviderError) as exc_info:
                await provider.invoke("prompt", OPTIONS)

        assert "HTTP 401" in str(exc_info.value)
        assert "invalid api key" in str(exc_info.value)
        assert exc_info.value.provider == "zhipu"

    @pytest.mark.asyncio
    async def test_invoke_timeout(self) -> None:
        provider = ZhipuProvider("key")

        with patch.object(
            httpx.AsyncClient, "post", side_effect=httpx.TimeoutException("slow")
        ):
            with pytest.raises(ProviderError) as exc_info:
                await provider.invoke("prompt", OPTIONS)

        assert "timed out" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_invoke_malformed_body(self) -> None:
        provider = ZhipuProvider("key")

        with patch.object(
            httpx.AsyncClient, "post", return_value=_zhipu_response(json={"choices": []})
        ):
            with pytest.raises(ProviderError):
                await provider.invoke("prompt", OPTIONS)

    @pytest.mark.asyncio
    async def test_invoke_without_key(self) -> None:
        with pytest.raises(ProviderError):
            await ZhipuProvider(None).invoke("prompt", OPTIONS)

    @pytest.mark.asyncio
    async def test_health_check(self) -> None:
        provider = ZhipuProvider("key")
        body = {"choices": [{"message": {"content": "pong"}}]}

        with patch.object(httpx.AsyncClient, "post", return_value=_zhipu_response(json=body)):
            assert await provider.health_check() is True

        with patch.object(httpx.AsyncClient, "post", return_value=_zhipu_response(500, json={})):
            assert await provider.health_check() is False

        assert await ZhipuProvider(None).health_check() is False


class TestOpenAIProvider:
    def test_placeholder_key_is_not_a_credential(self) -> None:
        assert OpenAIProvider(PLACEHOLDER_API_KEY).has_credentials() is False
        assert OpenAIProvider("").has_credentials() is False
        assert OpenAIProvider("sk-test").has_credentials() is True

    @pytest.mark.asyncio
    async def test_invoke_returns_content(self) -> None:
        create = AsyncMock(return_value=_completion("answer"))
        provider = OpenAIProvider("sk-test", model="gpt-test", client=_openai_client(create))

        result = await provider.invoke("prompt", OPTIONS)

        assert result == "answer"
        kwargs = create.call_args.kwargs
        assert kwargs["model"] == "gpt-test"
        assert kwargs["messages"] == [{"role": "user", "content": "prompt"}]
        assert kwargs["timeout"] == 5.0

    @pytest.mark.asyncio
    async def test_invoke_timeout(self) -> None:
        request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        create = AsyncMock(side_effect=openai.APITimeoutError(request=request))
        provider = OpenAIProvider("sk-test", client=_openai_client(create))

        with pytest.raises(ProviderError) as exc_info:
            await provider.invoke("prompt", OPTIONS)

        assert "timed out" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_invoke_sdk_error(self) -> None:
        create = AsyncMock(side_effect=openai.OpenAIError("bad things"))
        provider = OpenAIProvider("sk-test", client=_openai_client(create))

        with pytest.raises(ProviderError) as exc_info:
            await provider.invoke("prompt", OPTIONS)

        assert exc_info.value.provider == "openai"

    @pytest.mark.asyncio
    async def test_invoke_empty_content(self) -> None:
        create = AsyncMock(return_value=_completion(None))
        provider = OpenAIProvider("sk-test", client=_openai_client(create))

        with pytest.raises(ProviderError):
            await provider.invoke("prompt", OPTIONS)

    @pytest.mark.asyncio
    async def test_health_check(self) -> None:
        healthy = OpenAIProvider(
            "sk-test", client=_openai_client(AsyncMock(return_value=_completion("pong")))
        )
        broken = OpenAIProvider(
            "sk-test",
            client=_openai_client(AsyncMock(side_effect=openai.OpenAIError("down"))),
        )

        assert await healthy.health_check() is True
        assert await broken.health_check() is False
        assert await OpenAIProvider(None).health_check() is False
