"""Integration tests: real model and research calls, no mocks. Opt in with DEBATEBOT_LIVE=1."""

import os

import pytest
from dotenv import load_dotenv

load_dotenv()

pytestmark = pytest.mark.integration

if os.environ.get("DEBATEBOT_LIVE", "").strip() != "1":
    pytestmark = pytest.mark.skip(reason="Set DEBATEBOT_LIVE=1 to run against live services")


async def test_full_debate_turns():
    """Open a debate and answer one substantive message against the configured backend."""
    from config.config_loader import load_config
    from debatebot.cli import build_manager
    from debatebot.providers.openai_compat import OpenAICompatBackend
    from debatebot.tools import ResearchBackend

    config = load_config()
    research = ResearchBackend(config.tools)
    manager = build_manager(config, OpenAICompatBackend(config.model), research)
    session = manager.create_session("integration-thread", "integration-user", "remote work beats office work")

    try:
        opening = await manager.process_turn(session, None, is_opening=True)
        assert opening.strip()
        assert config.prompts.victory_marker not in opening

        reply = await manager.process_turn(
            session,
            "Offices build culture and mentorship that video calls simply cannot replace.",
        )
        assert reply.strip()
        assert len(session.transcript) == 3
    finally:
        await research.close()


async def test_live_encyclopedia_lookup():
    from config.config_loader import load_config
    from debatebot.tools import ResearchBackend, ToolExecutor

    config = load_config()
    research = ResearchBackend(config.tools)
    try:
        result = await ToolExecutor(research, config.tools).execute("encyclopedia_lookup", '{"query": "Stoicism"}')
    finally:
        await research.close()

    assert result.ok
    assert result.sources
