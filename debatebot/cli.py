"""Click CLI: loads config, wires the debate pipeline, and runs a transport."""

import asyncio
import logging
import os
import sys
from pathlib import Path

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler

from config.config_loader import AppConfig, load_config
from debatebot.bot import DebateBot
from debatebot.completion import CompletionClient
from debatebot.generator import ResponseGenerator
from debatebot.healthcheck import run_health_check
from debatebot.providers.base import ChatBackend
from debatebot.providers.openai_compat import OpenAICompatBackend
from debatebot.session import DebateManager
from debatebot.tools import ResearchBackend, ToolExecutor

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )
    # discord.py and httpx are chatty at INFO
    logging.getLogger("discord").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


def build_manager(
    config: AppConfig,
    backend: ChatBackend,
    research: ResearchBackend,
) -> DebateManager:
    """Wire tool executor, completion client, generator and manager together."""
    executor = ToolExecutor(research, config.tools)
    client = CompletionClient(backend, executor, config.prompts, config.debate)
    generator = ResponseGenerator(client, config.prompts, config.debate)
    return DebateManager(generator, client, config.debate, config.prompts)


async def _check_backend(backend: ChatBackend) -> None:
    """Ping the backend and ask whether to continue if it is down."""
    console.print(f"\n[bold]Checking {backend.name()} ({backend.model_string()})...[/bold]")
    ok, err = await run_health_check(backend)
    if ok:
        console.print(f"  [green]OK  [/green] {backend.name()}\n")
        return

    short_err = err.splitlines()[0][:120] if err else "unknown error"
    console.print(f"  [red]FAIL[/red] {backend.name()}: {short_err}")
    if not click.confirm("Start anyway?", default=False):
        sys.exit(1)


async def _serve_console(config: AppConfig, manager: DebateManager, research: ResearchBackend) -> None:
    from debatebot.transports.console import ConsoleTransport

    transport = ConsoleTransport(console=console)
    bot = DebateBot(manager, transport, config.transport)
    try:
        await transport.serve(bot)
    finally:
        await research.close()


async def _serve_discord(
    config: AppConfig,
    manager: DebateManager,
    research: ResearchBackend,
    token: str,
) -> None:
    from debatebot.transports.discord_transport import DiscordTransport

    transport = DiscordTransport(config.transport, history_limit=config.debate.transcript_cap)
    bot = DebateBot(manager, transport, config.transport)
    transport.attach(bot)
    try:
        await transport.serve(token)
    finally:
        await research.close()


@click.command()
@click.option("--console", "use_console", is_flag=True, help="Debate locally in this terminal instead of Discord")
@click.option("--model", default=None, help="Model identifier (default: from config)")
@click.option("--settings", "settings_path", default=None, type=click.Path(exists=True, dir_okay=False),
              help="Path to settings.yaml (default: bundled config)")
@click.option("--verbose", is_flag=True, help="Enable DEBUG-level logging")
@click.option("--skip-health-check", is_flag=True, default=False,
              help="Skip the backend connectivity check at startup")
def main(
    use_console: bool,
    model: str | None,
    settings_path: str | None,
    verbose: bool,
    skip_health_check: bool,
) -> None:
    """Debate bot -- argues with you about anything, in Discord threads or a terminal.

    \b
    Examples:
      debatebot
      debatebot --console
      debatebot --console --model llama3.1:8b --verbose
    """
    load_dotenv()
    _setup_logging(verbose)

    try:
        config = load_config(Path(settings_path)) if settings_path else load_config()
    except FileNotFoundError as exc:
        console.print(f"[bold red]Config error:[/bold red] {exc}")
        sys.exit(1)

    if model:
        config.model.model = model
    else:
        config.model.model = os.environ.get("OLLAMA_MODEL", "").strip() or config.model.model

    token = os.environ.get(config.transport.token_env, "").strip()
    if not use_console and not token:
        console.print(
            f"[bold red]Error:[/bold red] {config.transport.token_env} environment variable is required "
            "(or pass --console)."
        )
        sys.exit(1)

    logger.info("Using model %s via %s", config.model.model, config.model.base_url)

    # HTTP clients are bound to the loop they are first used on
    async def _run() -> None:
        backend = OpenAICompatBackend(config.model)
        if not skip_health_check:
            await _check_backend(backend)
        research = ResearchBackend(config.tools)
        manager = build_manager(config, backend, research)
        if use_console:
            await _serve_console(config, manager, research)
        else:
            await _serve_discord(config, manager, research, token)

    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        console.print("Shutting down debate bot...")


if __name__ == "__main__":
    main()
