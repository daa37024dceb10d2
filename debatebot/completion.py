"""Completion client: tool round-trips, empty-reply retries, fallacy analysis, condensation."""

import logging
from dataclasses import dataclass
from typing import Any

from config.config_loader import DebateConfig, PromptsConfig
from debatebot.models import ChatReply, Completion, Source
from debatebot.providers.base import ChatBackend, TransportFailure
from debatebot.tools import TOOL_CATALOG, ToolExecutor

logger = logging.getLogger(__name__)

_ANALYSIS_TEMPERATURE = 0.3
_CONDENSE_TEMPERATURE = 0.3
_ELLIPSIS = "..."


class EmptyGeneration(Exception):
    """The model produced no usable text for one attempt."""


@dataclass
class CompletionOptions:
    temperature: float = 0.8
    top_p: float = 0.9
    use_tools: bool = True


def dedupe_sources(sources: list[Source], limit: int) -> list[Source]:
    """Drop repeated URLs (first occurrence wins) and cap the list."""
    seen: set[str] = set()
    unique: list[Source] = []
    for source in sources:
        if source.url in seen:
            continue
        seen.add(source.url)
        unique.append(source)
    return unique[:limit]


def hard_truncate(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    if max_length <= len(_ELLIPSIS):
        return text[:max_length]
    return text[: max_length - len(_ELLIPSIS)] + _ELLIPSIS


def _assistant_tool_call_message(reply: ChatReply) -> dict[str, Any]:
    return {
        "role": "assistant",
        "content": reply.content or "",
        "tool_calls": [
            {
                "id": call.id,
                "type": "function",
                "function": {"name": call.name, "arguments": call.arguments},
            }
            for call in reply.tool_calls
        ],
    }


class CompletionClient:
    """Wraps the chat backend with the tool loop and the retry/fallback policy."""

    def __init__(
        self,
        backend: ChatBackend,
        executor: ToolExecutor,
        prompts: PromptsConfig,
        config: DebateConfig,
    ) -> None:
        self._backend = backend
        self._executor = executor
        self._prompts = prompts
        self._max_retries = config.max_retries
        self._max_tool_rounds = config.max_tool_rounds
        self._max_sources = config.max_sources

    async def complete(
        self,
        transcript: list[dict[str, Any]],
        options: CompletionOptions | None = None,
    ) -> Completion:
        """Produce a finished reply for the transcript.

        Retries the whole exchange when the model comes back empty, carrying
        any sources gathered so far into the next attempt. Never raises: after
        the last retry the configured fallback sentence is returned.
        """
        options = options or CompletionOptions()
        sources: list[Source] = []
        attempts = 1 + self._max_retries

        for attempt in range(1, attempts + 1):
            try:
                text = await self._exchange(transcript, options, sources)
                if not text.strip():
                    raise EmptyGeneration("model returned no text")
            except (EmptyGeneration, TransportFailure) as exc:
                logger.warning("Completion attempt %d/%d failed: %s", attempt, attempts, exc)
                continue
            return Completion(text=text.strip(), sources=dedupe_sources(sources, self._max_sources))

        logger.error("All %d completion attempts failed, sending fallback", attempts)
        return Completion(text=self._prompts.fallback.strip(), sources=[])

    async def _exchange(
        self,
        transcript: list[dict[str, Any]],
        options: CompletionOptions,
        sources: list[Source],
    ) -> str:
        """One call plus up to max_tool_rounds tool round-trips. Appends to sources."""
        messages = list(transcript)
        tools = TOOL_CATALOG if options.use_tools else None

        reply = await self._backend.chat(
            messages, tools=tools, temperature=options.temperature, top_p=options.top_p
        )

        rounds = 0
        while reply.tool_calls and rounds < self._max_tool_rounds:
            rounds += 1
            messages.append(_assistant_tool_call_message(reply))
            for call in reply.tool_calls:
                result = await self._executor.execute(call.name, call.arguments)
                messages.append({
                    "role": "tool",
                    "tool_call_id": call.id,
                    "name": call.name,
                    "content": result.to_message_content(),
                })
                sources.extend(result.sources)
            messages.append({"role": "system", "content": self._prompts.tool_steering})

            reply = await self._backend.chat(
                messages, tools=tools, temperature=options.temperature, top_p=options.top_p
            )

        if reply.tool_calls:
            logger.info(
                "Dropping %d tool calls requested after %d tool round(s)",
                len(reply.tool_calls),
                rounds,
            )

        return reply.content or ""

    async def analyze(self, text: str) -> str | None:
        """Ask the model to name fallacies in text.

        Returns the verdict, or None when the call fails or comes back empty.
        """
        messages = [
            {"role": "system", "content": self._prompts.fallacy_analysis},
            {"role": "user", "content": text},
        ]
        try:
            reply = await self._backend.chat(messages, temperature=_ANALYSIS_TEMPERATURE)
        except TransportFailure as exc:
            logger.error("Fallacy analysis failed: %s", exc)
            return None
        verdict = (reply.content or "").strip()
        return verdict or None

    async def condense(self, text: str, max_length: int) -> str:
        """Shrink text to at most max_length characters. Never raises."""
        if len(text) <= max_length:
            return text

        messages = [
            {"role": "system", "content": self._prompts.condense.format(max_length=max_length)},
            {"role": "user", "content": text},
        ]
        try:
            reply = await self._backend.chat(messages, temperature=_CONDENSE_TEMPERATURE)
        except TransportFailure as exc:
            logger.warning("Condense failed, truncating %d chars: %s", len(text), exc)
            return hard_truncate(text, max_length)

        condensed = (reply.content or "").strip()
        if not condensed:
            return hard_truncate(text, max_length)
        if len(condensed) > max_length:
            logger.info("Condensed reply still %d > %d chars, truncating", len(condensed), max_length)
        return hard_truncate(condensed, max_length)
