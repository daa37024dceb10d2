"""Abstract base for chat platforms the bot can run on."""

from abc import ABC, abstractmethod

from debatebot.models import InboundEvent


class Transport(ABC):
    """Outbound side of a chat platform, as seen by DebateBot."""

    @abstractmethod
    async def create_thread(self, event: InboundEvent, name: str) -> str:
        """Open a thread off the triggering message. Returns the new thread id."""
        ...

    @abstractmethod
    async def send_message(self, thread_id: str, text: str) -> None:
        """Post one message that already fits the platform limit."""
        ...

    @abstractmethod
    async def send_typing(self, thread_id: str) -> None:
        """Show a typing indicator for a few seconds."""
        ...

    @abstractmethod
    async def reply(self, event: InboundEvent, text: str) -> None:
        """Answer the triggering message in place (used when no thread exists)."""
        ...
