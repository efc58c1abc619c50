"""Chat-completion collaborator used by the analyzer and chat-backed workers."""

from typing import List, Literal, Optional, Protocol, Sequence

import openai
from pydantic import BaseModel

from ..utils.config import Config
from ..utils.logging import get_logger

logger = get_logger("llm.client")

# Alias kept at module level so tests can patch it
AsyncOpenAI = openai.AsyncOpenAI


class ChatMessage(BaseModel):
    """A single chat message."""
    role: Literal["system", "user", "assistant"]
    content: str


class ChatClient(Protocol):
    """Anything that turns a message list into a reply string."""

    async def chat(self, messages: Sequence[ChatMessage]) -> str:
        ...


class OpenAIChatClient:
    """ChatClient backed by an OpenAI-compatible chat completions endpoint."""

    def __init__(
        self,
        model: str,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        temperature: float = 0.2
    ):
        """Initialize the client.

        Args:
            model: Model name
            api_key: API key (falls back to OPENAI_API_KEY in the SDK)
            base_url: Alternate endpoint for compatible providers
            temperature: Sampling temperature
        """
        self.model = model
        self.temperature = temperature
        self._api_key = api_key or None
        self._base_url = base_url
        self._client = None

    @property
    def client(self):
        """SDK client, built on first use so a missing key only fails when chatting."""
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self._api_key, base_url=self._base_url)
        return self._client

    async def chat(self, messages: Sequence[ChatMessage]) -> str:
        """Send messages and return the assistant reply text."""
        payload: List[dict] = [m.model_dump() for m in messages]
        logger.debug(f"Sending {len(payload)} messages to {self.model}")

        response = await self.client.chat.completions.create(
            model=self.model,
            messages=payload,
            temperature=self.temperature,
        )

        content = response.choices[0].message.content if response.choices else None
        return content or ""


def create_chat_client(config: Config) -> OpenAIChatClient:
    """Build the default chat client from configuration."""
    return OpenAIChatClient(
        model=config.model,
        api_key=config.openai_api_key,
        base_url=config.openai_base_url,
        temperature=config.temperature,
    )
