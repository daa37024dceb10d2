"""Classify opponent messages as non-substantive (disengaged) or not.

Each rule is data so the table can be extended or tested row by row.
"""

import re
from dataclasses import dataclass


@dataclass(frozen=True)
class Rule:
    name: str
    pattern: re.Pattern[str]


NON_SUBSTANTIVE_RULES: tuple[Rule, ...] = (
    Rule("acknowledgement", re.compile(r"^(ok|okay|sure|whatever|fine|lol|lmao|idk|nah)$", re.IGNORECASE)),
    Rule("concession", re.compile(r"^(i don'?t care|i give up|you win|nevermind)$", re.IGNORECASE)),
    Rule("laughter", re.compile(r"^(haha|hehe|rofl|xd+)$", re.IGNORECASE)),
    Rule("ellipsis", re.compile(r"^\.+$")),
)

DEFAULT_MIN_LENGTH = 20


def matching_rule(
    message: str | None,
    min_length: int = DEFAULT_MIN_LENGTH,
    rules: tuple[Rule, ...] = NON_SUBSTANTIVE_RULES,
) -> str | None:
    """Name of the first rule the message trips, or None if it is substantive."""
    if not message:
        return "empty"
    normalized = message.strip().lower()
    if len(normalized) < min_length:
        return "too_short"
    for rule in rules:
        if rule.pattern.match(normalized):
            return rule.name
    return None


def is_non_substantive(message: str | None, min_length: int = DEFAULT_MIN_LENGTH) -> bool:
    return matching_rule(message, min_length) is not None
