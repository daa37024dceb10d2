"""Shared pytest fixtures."""

from datetime import datetime, timedelta, timezone
from typing import Any
from unittest.mock import AsyncMock

import pytest

from config.config_loader import DebateConfig, PromptsConfig, ToolsConfig, TransportConfig
from debatebot.models import ChatReply, Source, ToolResult
from debatebot.providers.base import ChatBackend


class FakeClock:
    """Manually advanced clock for deterministic expiry tests."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class MockBackend(ChatBackend):
    """Test double ChatBackend; chat is an AsyncMock returning a fixed reply."""

    def __init__(self, backend_name: str = "mock", content: str | None = "Mock rebuttal") -> None:
        self._name = backend_name
        # Shadow the class method with an AsyncMock at the instance level.
        self.chat = AsyncMock(return_value=ChatReply(content=content))  # type: ignore[assignment]

    def name(self) -> str:
        return self._name

    def model_string(self) -> str:
        return "mock-model"

    async def chat(  # type: ignore[override]
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
        temperature: float | None = None,
        top_p: float | None = None,
    ) -> ChatReply:
        """Default implementation; replaced by AsyncMock in __init__."""
        return ChatReply(content="Mock rebuttal")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def prompts_config() -> PromptsConfig:
    return PromptsConfig(
        system="You are a debate champion.",
        opening="Open the debate on: {subject}",
        fallacy_analysis="Name fallacies or say 'No significant fallacies detected.'",
        tool_steering="Use the research concisely.",
        condense="Shorten to {max_length} characters.",
        no_fallacy_sentinel="No significant fallacies detected",
        victory_marker="[VICTORY]",
        fallback="I need a moment to gather my thoughts, so make your next point.",
    )


@pytest.fixture
def debate_config() -> DebateConfig:
    return DebateConfig()


@pytest.fixture
def tools_config() -> ToolsConfig:
    return ToolsConfig(
        api_base="https://search.test/api",
        api_key_env="TEST_SEARCH_KEY",
        encyclopedia_base="https://wiki.test",
    )


@pytest.fixture
def transport_config() -> TransportConfig:
    return TransportConfig(
        token_env="TEST_DISCORD_TOKEN",
        message_limit=2000,
        typing_interval_sec=0.01,
        cleanup_interval_sec=0.01,
    )


@pytest.fixture
def mock_backend() -> MockBackend:
    return MockBackend()


@pytest.fixture
def mock_executor() -> AsyncMock:
    """Stand-in for ToolExecutor: only execute() is used by the completion client."""
    executor = AsyncMock()
    executor.execute = AsyncMock(
        return_value=ToolResult(
            tool_name="web_search",
            payload={"results": []},
            sources=[Source(title="Example", url="https://example.com")],
        )
    )
    return executor
