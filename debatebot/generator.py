"""Turn a debate transcript into a finished, display-ready reply."""

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from config.config_loader import DebateConfig, PromptsConfig
from debatebot.completion import CompletionClient, CompletionOptions
from debatebot.models import Source

logger = logging.getLogger(__name__)

_OPENING_OPTIONS = CompletionOptions(temperature=0.85, top_p=0.9)
_TURN_OPTIONS = CompletionOptions(temperature=0.8, top_p=0.9)
_MAX_TITLE_CHARS = 60


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_citations(sources: list[Source], limit: int) -> str:
    """Compact one-line citation block, empty string when there are no sources."""
    if not sources:
        return ""
    links = []
    for source in sources[:limit]:
        title = source.title.strip() or "Source"
        if len(title) > _MAX_TITLE_CHARS:
            title = title[: _MAX_TITLE_CHARS - 3] + "..."
        # <url> suppresses link previews on Discord
        links.append(f"[{title}](<{source.url}>)")
    return "Sources: " + " | ".join(links)


class ResponseGenerator:
    """Builds prompts around the transcript and post-processes the model's reply."""

    def __init__(
        self,
        client: CompletionClient,
        prompts: PromptsConfig,
        config: DebateConfig,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._client = client
        self._prompts = prompts
        self._display_budget = config.display_budget
        self._max_sources = config.max_sources
        self._clock = clock

    def _context(self, subject: str) -> list[dict[str, Any]]:
        now = self._clock().strftime("%Y-%m-%d %H:%M UTC")
        return [
            {"role": "system", "content": self._prompts.system},
            {"role": "system", "content": f"Current date and time: {now}"},
            {"role": "system", "content": f"Current debate subject: {subject}"},
        ]

    async def generate_opening(self, subject: str) -> str:
        messages = self._context(subject)
        messages.append({"role": "user", "content": self._prompts.opening.format(subject=subject)})
        return await self._finish(messages, _OPENING_OPTIONS)

    async def generate_turn(self, transcript: list[dict[str, Any]], subject: str) -> str:
        messages = self._context(subject) + list(transcript)
        return await self._finish(messages, _TURN_OPTIONS)

    async def _finish(self, messages: list[dict[str, Any]], options: CompletionOptions) -> str:
        completion = await self._client.complete(messages, options)
        # Condensing may cut the marker, so it is lifted out and re-attached last.
        marker = self._prompts.victory_marker
        victory = marker in completion.text
        text = completion.text.replace(marker, "").strip() if victory else completion.text
        text = await self._client.condense(text, self._display_budget)
        citations = format_citations(completion.sources, self._max_sources)
        if citations:
            logger.debug("Attaching %d sources", min(len(completion.sources), self._max_sources))
            text = f"{text}\n\n{citations}"
        if victory:
            text = f"{text}\n\n{marker}"
        return text
