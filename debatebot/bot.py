"""Event routing: inbound platform messages in, chunked debate replies out."""

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator

from config.config_loader import TransportConfig
from debatebot.chunking import split_message
from debatebot.models import DebateSession, DebateStatus, InboundEvent
from debatebot.session import DebateManager
from debatebot.transports.base import Transport
from debatebot.triggers import match_trigger, mention_subject

logger = logging.getLogger(__name__)

START_FAILED = "Failed to start the debate. Please try again."
TURN_FAILED = "I encountered an error processing my argument. Please continue."


def _initiated_banner(subject: str, opponent: str) -> str:
    return (
        "⚔️ **DEBATE INITIATED** ⚔️\n\n"
        f"**Subject:** {subject}\n**Opponent:** {opponent}\n\n"
        "Preparing my arguments..."
    )


def _victory_banner(opponent: str) -> str:
    return (
        "🏆 **DEBATE CONCLUDED** 🏆\n\n"
        f"I believe I've made my case. Thank you for the intellectual sparring, {opponent}!"
    )


CONCESSION_BANNER = (
    "🏆 **DEBATE CONCLUDED** 🏆\n\n"
    "It appears you've conceded through lack of substantive response. Victory by default!"
)


class DebateBot:
    """Maps platform threads to debate sessions and delivers the results."""

    def __init__(self, manager: DebateManager, transport: Transport, config: TransportConfig) -> None:
        self._manager = manager
        self._transport = transport
        self._config = config

    @property
    def manager(self) -> DebateManager:
        return self._manager

    async def handle_event(self, event: InboundEvent) -> None:
        if event.is_bot_author:
            return

        if event.in_thread:
            session = self._manager.get_session(event.thread_id)
            if session is None or session.participant_id != event.author_id:
                return
            if session.status is DebateStatus.ENDED:
                logger.debug("Ignoring message in ended debate %s", event.thread_id)
                return
            await self._handle_turn(event, session)
            return

        subject = match_trigger(event.text)
        if subject is None and event.mentions_bot:
            subject = mention_subject(event.text)
        if subject is not None:
            await self._start_debate(event, subject)

    async def send(self, thread_id: str, text: str) -> None:
        for chunk in split_message(text, self._config.message_limit):
            await self._transport.send_message(thread_id, chunk)

    async def run_cleanup(self) -> None:
        """Purge expired sessions forever; run as a background task."""
        while True:
            await asyncio.sleep(self._config.cleanup_interval_sec)
            self._manager.purge_expired()

    @contextlib.asynccontextmanager
    async def typing(self, thread_id: str) -> AsyncIterator[None]:
        """Keep the typing indicator alive until the block exits."""

        async def keep_typing() -> None:
            while True:
                try:
                    await self._transport.send_typing(thread_id)
                except Exception as exc:
                    logger.debug("Typing indicator failed in %s: %s", thread_id, exc)
                await asyncio.sleep(self._config.typing_interval_sec)

        task = asyncio.create_task(keep_typing())
        try:
            yield
        finally:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def _start_debate(self, event: InboundEvent, subject: str) -> None:
        try:
            thread_id = await self._transport.create_thread(event, f"Debate: {subject[:90]}")
            session = self._manager.create_session(
                thread_id, event.author_id, subject, participant_name=event.author_name
            )
            await self.send(thread_id, _initiated_banner(subject, event.author_name))

            async with self.typing(thread_id):
                opening = await self._manager.process_turn(session, None, is_opening=True)
            await self.send(thread_id, opening)
            logger.info("Started debate on %r with %s", subject, event.author_name)
        except Exception:
            logger.exception("Error starting debate on %r", subject)
            await self._transport.reply(event, START_FAILED)

    async def _handle_turn(self, event: InboundEvent, session: DebateSession) -> None:
        thread_id = session.session_id
        try:
            async with self.typing(thread_id):
                reply = await self._manager.process_turn(
                    session, event.text, external_history=event.history
                )

            if session.status is DebateStatus.ENDED:
                logger.info("Discarding reply for debate %s ended mid-turn", thread_id)
                return

            if session.status is DebateStatus.WON:
                await self.send(thread_id, reply)
                await self.send(thread_id, _victory_banner(event.author_name))
                self._manager.end_session(thread_id)
                return

            if self._manager.is_disengaged(session):
                await self.send(thread_id, CONCESSION_BANNER)
                self._manager.end_session(thread_id)
                return

            await self.send(thread_id, reply)
        except Exception:
            logger.exception("Error handling debate message in %s", thread_id)
            await self._transport.send_message(thread_id, TURN_FAILED)
