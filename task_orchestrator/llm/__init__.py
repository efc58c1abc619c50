"""Chat-completion client."""

from .client import ChatClient, ChatMessage, OpenAIChatClient, create_chat_client

__all__ = [
    "ChatClient",
    "ChatMessage",
    "OpenAIChatClient",
    "create_chat_client",
]
