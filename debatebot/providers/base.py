"""Abstract base for chat-completion backends."""

from abc import ABC, abstractmethod
from typing import Any

from debatebot.models import ChatReply


class TransportFailure(Exception):
    """Raised when a remote call is unreachable, non-2xx, or returns garbage."""

    def __init__(self, service: str, message: str) -> None:
        self.service = service
        super().__init__(f"[{service}] {message}")


class ChatBackend(ABC):
    """Abstract base for a remote chat-completion service."""

    @abstractmethod
    def name(self) -> str:
        """Return the short backend name (e.g. 'ollama')."""
        ...

    @abstractmethod
    def model_string(self) -> str:
        """Return the actual model identifier string."""
        ...

    @abstractmethod
    async def chat(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
        temperature: float | None = None,
        top_p: float | None = None,
    ) -> ChatReply:
        """Send an ordered role/content transcript and return the reply.

        Args:
            messages: Ordered role/content message dicts.
            tools: Optional tool catalog in function-tool schema form.
            temperature: Optional sampling temperature.
            top_p: Optional nucleus sampling cutoff.

        Returns:
            ChatReply with text content and/or requested tool calls.

        Raises:
            TransportFailure: On API failure, timeout, or invalid response.
        """
        ...
