"""Text-generation client used by the extraction pipeline."""

from .client import (
    ChatClient,
    EmptyResponseError,
    Message,
    OpenAIChatClient,
    TransportError,
    create_chat_client,
    system_user,
)

__all__ = [
    "ChatClient",
    "Message",
    "OpenAIChatClient",
    "TransportError",
    "EmptyResponseError",
    "create_chat_client",
    "system_user",
]
