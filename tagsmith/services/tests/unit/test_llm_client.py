"""Unit tests for the OpenAI-compatible chat client."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from openai import APIConnectionError, APIStatusError

from tagsmith.services.llm.client import (
    EmptyResponseError,
    OpenAIChatClient,
    TransportError,
    create_chat_client,
    system_user,
)

REQUEST = httpx.Request("POST", "https://api.deepseek.com/chat/completions")


def completion(content):
    message = SimpleNamespace(content=content)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def mock_openai(result=None, error=None):
    """AsyncOpenAI stand-in whose chat.completions.create returns or raises."""
    mock = MagicMock()
    mock.chat.completions.create = AsyncMock(return_value=result, side_effect=error)
    mock.close = AsyncMock()
    return mock


class TestOpenAIChatClient:
    """Test cases for completion and error mapping."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_returns_stripped_content(self):
        mock = mock_openai(completion("  - bullet\n"))
        client = OpenAIChatClient(api_key="sk", model="deepseek-chat", client=mock)

        text = await client.complete(system_user("sys", "user"), temperature=0.2)

        assert text == "- bullet"
        kwargs = mock.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "deepseek-chat"
        assert kwargs["temperature"] == 0.2
        assert kwargs["messages"] == [
            {"role": "system", "content": "sys"},
            {"role": "user", "content": "user"},
        ]

    @pytest.mark.unit
    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", [None, "", "   "])
    async def test_empty_content(self, content):
        client = OpenAIChatClient(api_key="sk", model="m", client=mock_openai(completion(content)))

        with pytest.raises(EmptyResponseError):
            await client.complete(system_user("s", "u"))

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_no_choices(self):
        client = OpenAIChatClient(
            api_key="sk", model="m", client=mock_openai(SimpleNamespace(choices=[]))
        )

        with pytest.raises(EmptyResponseError):
            await client.complete(system_user("s", "u"))

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_status_error_mapped(self):
        error = APIStatusError(
            "Service Unavailable",
            response=httpx.Response(503, request=REQUEST),
            body=None,
        )
        client = OpenAIChatClient(api_key="sk", model="m", client=mock_openai(error=error))

        with pytest.raises(TransportError, match="503"):
            await client.complete(system_user("s", "u"))

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_connection_error_mapped(self):
        error = APIConnectionError(request=REQUEST)
        client = OpenAIChatClient(api_key="sk", model="m", client=mock_openai(error=error))

        with pytest.raises(TransportError):
            await client.complete(system_user("s", "u"))

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_close(self):
        mock = mock_openai(completion("x"))
        client = OpenAIChatClient(api_key="sk", model="m", client=mock)

        await client.close()

        mock.close.assert_awaited_once()
        assert client._client is None

    @pytest.mark.unit
    def test_lazy_construction(self):
        client = create_chat_client(api_key="sk", model="m", base_url="https://example.test/v1")

        assert client._client is None
        assert client.base_url == "https://example.test/v1"
