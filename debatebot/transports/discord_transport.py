"""Discord transport using discord.py."""

import asyncio
import logging
import re
from typing import Any

import discord

from config.config_loader import TransportConfig
from debatebot.bot import DebateBot
from debatebot.models import InboundEvent
from debatebot.transports.base import Transport

logger = logging.getLogger(__name__)

_MENTION = re.compile(r"<@!?(\d+)>")


def strip_mentions(content: str, user_id: int) -> str:
    """Remove mentions of user_id from message content."""
    return " ".join(
        _MENTION.sub(lambda m: "" if int(m.group(1)) == user_id else m.group(0), content).split()
    )


class _DebateClient(discord.Client):
    def __init__(self, transport: "DiscordTransport", **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._transport = transport

    async def setup_hook(self) -> None:
        self._transport.start_background_tasks()

    async def on_ready(self) -> None:
        logger.info("Debate bot logged in as %s", self.user)

    async def on_message(self, message: discord.Message) -> None:
        await self._transport.on_message(message)


class DiscordTransport(Transport):
    """Delivers Discord message events to DebateBot and posts its replies."""

    def __init__(self, config: TransportConfig, history_limit: int) -> None:
        self._config = config
        self._history_limit = history_limit
        intents = discord.Intents.default()
        intents.message_content = True
        self._client = _DebateClient(self, intents=intents)
        self._bot: DebateBot | None = None
        self._background: set[asyncio.Task] = set()

    def attach(self, bot: DebateBot) -> None:
        self._bot = bot

    def start_background_tasks(self) -> None:
        if self._bot is None:
            return
        task = asyncio.create_task(self._bot.run_cleanup())
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def serve(self, token: str) -> None:
        if self._bot is None:
            raise RuntimeError("attach() a DebateBot before serving")
        async with self._client:
            await self._client.start(token)

    async def on_message(self, message: discord.Message) -> None:
        if self._bot is None or self._client.user is None:
            return
        event = await self._to_event(message)
        await self._bot.handle_event(event)

    async def _to_event(self, message: discord.Message) -> InboundEvent:
        me = self._client.user
        in_thread = isinstance(message.channel, discord.Thread)
        thread_id = str(message.channel.id)

        history = None
        if in_thread and not message.author.bot and self._bot is not None:
            session = self._bot.manager.get_session(thread_id)
            if session is not None and session.participant_id == str(message.author.id):
                history = await self._thread_history(message.channel, session.participant_id)

        return InboundEvent(
            thread_id=thread_id,
            channel_id=str(message.channel.id),
            author_id=str(message.author.id),
            author_name=message.author.display_name,
            text=strip_mentions(message.content, me.id),
            is_bot_author=message.author.bot,
            in_thread=in_thread,
            mentions_bot=me in message.mentions,
            history=history,
            raw=message,
        )

    async def _thread_history(self, thread: discord.Thread, participant_id: str) -> list[dict[str, str]]:
        """Thread messages oldest first, as role/content turns."""
        me = self._client.user
        turns: list[dict[str, str]] = []
        async for msg in thread.history(limit=self._history_limit):
            if not msg.content:
                continue
            if me is not None and msg.author.id == me.id:
                turns.append({"role": "assistant", "content": msg.content})
            elif str(msg.author.id) == participant_id:
                turns.append({"role": "user", "content": msg.content})
        turns.reverse()
        return turns

    async def _channel(self, channel_id: str) -> Any:
        channel = self._client.get_channel(int(channel_id))
        if channel is None:
            channel = await self._client.fetch_channel(int(channel_id))
        return channel

    async def create_thread(self, event: InboundEvent, name: str) -> str:
        message: discord.Message = event.raw
        thread = await message.create_thread(
            name=name,
            auto_archive_duration=self._config.thread_archive_minutes,
        )
        return str(thread.id)

    async def send_message(self, thread_id: str, text: str) -> None:
        channel = await self._channel(thread_id)
        await channel.send(text)

    async def send_typing(self, thread_id: str) -> None:
        channel = await self._channel(thread_id)
        await channel.typing()

    async def reply(self, event: InboundEvent, text: str) -> None:
        message: discord.Message = event.raw
        await message.reply(text)
