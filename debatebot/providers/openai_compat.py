"""OpenAI-compatible chat backend (Ollama /v1, OpenAI, ...) using the openai SDK."""

import asyncio
import logging
import os
import time
from typing import Any

from openai import AsyncOpenAI

from config.config_loader import ModelConfig
from debatebot.models import ChatReply, ToolCall
from debatebot.providers.base import ChatBackend, TransportFailure

logger = logging.getLogger(__name__)

# Local Ollama ignores the key but the SDK refuses an empty one
_PLACEHOLDER_KEY = "ollama"


class OpenAICompatBackend(ChatBackend):
    """Chat backend for any server speaking the OpenAI chat-completions API."""

    def __init__(self, config: ModelConfig, client: AsyncOpenAI | None = None) -> None:
        self._config = config
        if client is None:
            api_key = os.environ.get(config.api_key_env, "").strip()
            if not api_key:
                logger.info("No %s set, using placeholder key for %s", config.api_key_env, config.base_url)
                api_key = _PLACEHOLDER_KEY
            client = AsyncOpenAI(api_key=api_key, base_url=config.base_url)
        self._client = client

    def name(self) -> str:
        return self._config.name

    def model_string(self) -> str:
        return self._config.model

    async def chat(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
        temperature: float | None = None,
        top_p: float | None = None,
    ) -> ChatReply:
        kwargs: dict[str, Any] = {
            "model": self._config.model,
            "messages": messages,
            "max_tokens": self._config.max_tokens,
        }
        if tools:
            kwargs["tools"] = tools
        if temperature is not None:
            kwargs["temperature"] = temperature
        if top_p is not None:
            kwargs["top_p"] = top_p

        start = time.monotonic()
        try:
            response = await asyncio.wait_for(
                self._client.chat.completions.create(**kwargs),
                timeout=self._config.timeout_sec,
            )
        except TimeoutError as exc:
            raise TransportFailure(self._config.name, f"Request timed out after {self._config.timeout_sec}s") from exc
        except Exception as exc:
            raise TransportFailure(self._config.name, f"API call failed: {exc}") from exc

        latency = time.monotonic() - start

        choice = response.choices[0] if response.choices else None
        if choice is None:
            raise TransportFailure(self._config.name, "Response has no choices")

        tool_calls = [
            ToolCall(id=tc.id, name=tc.function.name, arguments=tc.function.arguments or "{}")
            for tc in (choice.message.tool_calls or [])
        ]

        logger.info(
            "%s chat: %.2fs, %d messages, %d tool calls",
            self._config.name,
            latency,
            len(messages),
            len(tool_calls),
        )

        return ChatReply(content=choice.message.content, tool_calls=tool_calls)
