"""Backend health check: ping the completion service before taking messages."""

import asyncio
import logging

from debatebot.providers.base import ChatBackend

logger = logging.getLogger(__name__)

_PING_MESSAGES = [{"role": "user", "content": "Reply with the word OK only."}]
_TIMEOUT_SEC = 30.0


async def run_health_check(backend: ChatBackend) -> tuple[bool, str]:
    """Ping the backend once.

    Returns:
        (ok, error_message); error_message is "" when ok is True.
    """
    try:
        await asyncio.wait_for(backend.chat(_PING_MESSAGES), timeout=_TIMEOUT_SEC)
        return True, ""
    except Exception as exc:
        logger.debug("Health check for %s failed: %r", backend.name(), exc)
        return False, str(exc) or type(exc).__name__
