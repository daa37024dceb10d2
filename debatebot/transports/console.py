"""Local terminal transport: debate the bot from a shell, rendered with rich."""

import asyncio
import contextlib
import itertools

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.text import Text

from debatebot.bot import DebateBot
from debatebot.models import DebateStatus, InboundEvent
from debatebot.transports.base import Transport

CHANNEL_ID = "console"
USER_ID = "console-user"

_HELP = (
    "Start with a trigger such as [bold]debate me pineapple on pizza[/bold]. "
    "Commands: [bold]/stats[/bold], [bold]/quit[/bold]."
)


class ConsoleTransport(Transport):
    """Single-user transport that treats the terminal as one channel."""

    def __init__(self, console: Console | None = None, user_name: str = "you") -> None:
        self._console = console or Console(legacy_windows=False)
        self._user_name = user_name
        self._thread_ids = (f"console-thread-{n}" for n in itertools.count(1))
        self._current_thread: str | None = None

    async def create_thread(self, event: InboundEvent, name: str) -> str:
        thread_id = next(self._thread_ids)
        self._current_thread = thread_id
        self._console.rule(f"[bold cyan]{name}[/bold cyan]")
        return thread_id

    async def send_message(self, thread_id: str, text: str) -> None:
        self._console.print(Panel(Markdown(text), title="[bold]debatebot[/bold]", border_style="cyan"))

    async def send_typing(self, thread_id: str) -> None:
        self._console.print(Text("debatebot is typing...", style="dim"))

    async def reply(self, event: InboundEvent, text: str) -> None:
        self._console.print(Text(text, style="bold red"))

    def _event(self, text: str, bot: DebateBot) -> InboundEvent:
        thread_id = self._current_thread
        if thread_id is not None:
            session = bot.manager.get_session(thread_id)
            if session is None or session.status is DebateStatus.ENDED:
                self._current_thread = thread_id = None

        return InboundEvent(
            thread_id=thread_id or CHANNEL_ID,
            channel_id=CHANNEL_ID,
            author_id=USER_ID,
            author_name=self._user_name,
            text=text,
            in_thread=thread_id is not None,
        )

    def _print_stats(self, bot: DebateBot) -> None:
        stats = bot.manager.session_stats(self._current_thread) if self._current_thread else None
        if stats is None:
            self._console.print("[dim]No debate in progress.[/dim]")
            return
        self._console.print(
            Text(
                f"Subject: {stats.subject} | Status: {stats.status.value} | "
                f"Fallacies: {stats.fallacies_detected} | "
                f"Non-substantive streak: {stats.inactivity_streak} | "
                f"Messages: {stats.message_count} | "
                f"Duration: {stats.duration_sec:.0f}s",
                style="dim",
            )
        )

    async def serve(self, bot: DebateBot) -> None:
        self._console.print(_HELP)
        cleanup = asyncio.create_task(bot.run_cleanup())
        try:
            while True:
                try:
                    line = await asyncio.to_thread(self._console.input, "[bold green]you>[/bold green] ")
                except EOFError:
                    break
                text = line.strip()
                if not text:
                    continue
                if text == "/quit":
                    break
                if text == "/stats":
                    self._print_stats(bot)
                    continue
                await bot.handle_event(self._event(text, bot))
        finally:
            cleanup.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await cleanup
