"""Chat completion client for OpenAI-compatible endpoints (DeepSeek by default)."""

import logging
from typing import Optional, Protocol

from openai import APIConnectionError, APIStatusError, APITimeoutError, AsyncOpenAI

logger = logging.getLogger(__name__)

Message = dict[str, str]


class TransportError(Exception):
    """Chat endpoint call failed (connection, timeout, non-success status)."""


class EmptyResponseError(TransportError):
    """Chat endpoint answered without any content."""


class ChatClient(Protocol):
    """Anything that turns role-tagged messages into generated text."""

    async def complete(self, messages: list[Message], temperature: float = 0.1) -> str:
        """Return the generated text for ``messages``.

        Raises:
            TransportError: on any call failure or empty content
        """
        ...


def system_user(system: str, user: str) -> list[Message]:
    """Build the two-message conversation used by both extraction stages."""
    return [
        {"role": "system", "content": system},
        {"role": "user", "content": user},
    ]


class OpenAIChatClient:
    """ChatClient backed by ``openai.AsyncOpenAI``.

    The client is created lazily on first use so construction never
    touches the network.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: Optional[str] = None,
        timeout: float = 120.0,
        client: Optional[AsyncOpenAI] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.timeout = timeout
        self._client = client

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.timeout,
                max_retries=0,  # retries are handled by the extraction pipeline
            )
        return self._client

    async def complete(self, messages: list[Message], temperature: float = 0.1) -> str:
        client = self._get_client()
        try:
            response = await client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=temperature,
            )
        except APIStatusError as e:
            raise TransportError(f"Chat endpoint HTTP {e.status_code}: {e.message}") from e
        except (APIConnectionError, APITimeoutError) as e:
            raise TransportError(f"Chat endpoint unreachable: {e}") from e

        content = None
        if response.choices:
            content = response.choices[0].message.content
        content = (content or "").strip()
        if not content:
            raise EmptyResponseError("Chat endpoint returned empty content")

        logger.debug(f"{self.model} returned {len(content)} chars")
        return content

    async def close(self) -> None:
        """Close the underlying HTTP client if one was created."""
        if self._client is not None:
            await self._client.close()
            self._client = None


def create_chat_client(
    api_key: str,
    model: str,
    base_url: Optional[str] = None,
    timeout: float = 120.0,
) -> OpenAIChatClient:
    """Create a chat client for an OpenAI-compatible endpoint."""
    return OpenAIChatClient(api_key=api_key, model=model, base_url=base_url, timeout=timeout)
