"""Load settings.yaml into typed dataclasses. Reports missing secrets at startup."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

_SETTINGS_PATH = Path(__file__).parent / "settings.yaml"


@dataclass
class ModelConfig:
    name: str
    model: str
    base_url: str
    api_key_env: str
    timeout_sec: int
    max_tokens: int


@dataclass
class ToolsConfig:
    api_base: str
    api_key_env: str
    encyclopedia_base: str
    max_results: int = 5
    snippet_length: int = 500
    fetch_content_cap: int = 2000
    timeout_sec: int = 30


@dataclass
class DebateConfig:
    fallacy_threshold: int = 3
    inactivity_threshold: int = 3
    min_message_length: int = 20
    transcript_cap: int = 20
    grace_period_sec: int = 3600
    max_retries: int = 2
    max_tool_rounds: int = 1
    max_sources: int = 3
    display_budget: int = 1800


@dataclass
class TransportConfig:
    token_env: str
    message_limit: int = 2000
    typing_interval_sec: float = 5.0
    cleanup_interval_sec: float = 300.0
    thread_archive_minutes: int = 1440


@dataclass
class PromptsConfig:
    system: str
    opening: str
    fallacy_analysis: str
    tool_steering: str
    condense: str
    no_fallacy_sentinel: str
    victory_marker: str
    fallback: str


@dataclass
class AppConfig:
    model: ModelConfig
    tools: ToolsConfig
    debate: DebateConfig
    transport: TransportConfig
    prompts: PromptsConfig


def load_config(settings_path: Path = _SETTINGS_PATH) -> AppConfig:
    """Load and validate configuration from settings.yaml.

    Raises FileNotFoundError if settings file missing.
    Logs warnings for missing secrets but does not raise; the CLI decides
    whether a missing token is fatal for the chosen transport.
    """
    if not settings_path.exists():
        raise FileNotFoundError(f"Settings file not found: {settings_path}")

    with settings_path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)

    model_raw = raw["model"]
    model = ModelConfig(
        name=str(model_raw.get("name", "ollama")),
        model=str(model_raw["model"]),
        base_url=str(model_raw["base_url"]),
        api_key_env=str(model_raw["api_key_env"]),
        timeout_sec=int(model_raw["timeout_sec"]),
        max_tokens=int(model_raw["max_tokens"]),
    )

    tools_raw = raw["tools"]
    tools = ToolsConfig(
        api_base=str(tools_raw["api_base"]).rstrip("/"),
        api_key_env=str(tools_raw["api_key_env"]),
        encyclopedia_base=str(tools_raw["encyclopedia_base"]).rstrip("/"),
        max_results=int(tools_raw.get("max_results", 5)),
        snippet_length=int(tools_raw.get("snippet_length", 500)),
        fetch_content_cap=int(tools_raw.get("fetch_content_cap", 2000)),
        timeout_sec=int(tools_raw.get("timeout_sec", 30)),
    )

    debate_raw = raw.get("debate", {})
    debate = DebateConfig(**{k: int(v) for k, v in debate_raw.items()})

    transport_raw = raw["transport"]
    transport = TransportConfig(
        token_env=str(transport_raw["token_env"]),
        message_limit=int(transport_raw.get("message_limit", 2000)),
        typing_interval_sec=float(transport_raw.get("typing_interval_sec", 5.0)),
        cleanup_interval_sec=float(transport_raw.get("cleanup_interval_sec", 300.0)),
        thread_archive_minutes=int(transport_raw.get("thread_archive_minutes", 1440)),
    )

    prompts_raw = raw["prompts"]
    prompts = PromptsConfig(
        system=prompts_raw["system"],
        opening=prompts_raw["opening"],
        fallacy_analysis=prompts_raw["fallacy_analysis"],
        tool_steering=prompts_raw["tool_steering"],
        condense=prompts_raw["condense"],
        no_fallacy_sentinel=prompts_raw["no_fallacy_sentinel"],
        victory_marker=prompts_raw["victory_marker"],
        fallback=prompts_raw["fallback"],
    )

    for env_name in (model.api_key_env, tools.api_key_env, transport.token_env):
        if os.environ.get(env_name, "").strip():
            logger.info("Secret available: %s", env_name)
        else:
            logger.info("Secret not set: %s (set it in .env)", env_name)

    return AppConfig(
        model=model,
        tools=tools,
        debate=debate,
        transport=transport,
        prompts=prompts,
    )
