"""Phrases that start a debate outside a thread."""

import re

DEBATE_TRIGGERS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^debate me\s+(.+)", re.IGNORECASE | re.DOTALL),
    re.compile(r"^let'?s fight about\s+(.+)", re.IGNORECASE | re.DOTALL),
    re.compile(r"^fight me on\s+(.+)", re.IGNORECASE | re.DOTALL),
    re.compile(r"^argue with me about\s+(.+)", re.IGNORECASE | re.DOTALL),
)

_MAX_SUBJECT_CHARS = 300


def _clean_subject(raw: str) -> str | None:
    subject = " ".join(raw.split())[:_MAX_SUBJECT_CHARS]
    return subject or None


def match_trigger(text: str) -> str | None:
    """Return the debate subject if text is a trigger phrase."""
    stripped = text.strip()
    for pattern in DEBATE_TRIGGERS:
        match = pattern.match(stripped)
        if match:
            return _clean_subject(match.group(1))
    return None


def mention_subject(text: str) -> str | None:
    """Subject for a message that mentions the bot (mention token already removed).

    A trigger phrase after the mention still wins so "@bot debate me X" yields X.
    """
    return match_trigger(text) or _clean_subject(text)
