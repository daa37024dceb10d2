"""Split long replies into pieces that fit a chat platform's message limit."""

import re

_SENTENCE_END = re.compile(r"[.!?](?=\s)")


def _best_cut(window: str) -> int:
    """Index to cut the window at: paragraph, then sentence, then word boundary.

    Returns 0 when no boundary exists, meaning the caller must hard cut.
    """
    cut = window.rfind("\n\n")
    if cut > 0:
        return cut

    sentence_ends = [m.end() for m in _SENTENCE_END.finditer(window)]
    if sentence_ends:
        return sentence_ends[-1]

    cut = max(window.rfind("\n"), window.rfind(" "))
    return cut if cut > 0 else 0


def split_message(text: str, limit: int = 2000) -> list[str]:
    """Split text into stripped, non-empty chunks of at most limit characters."""
    if limit <= 0:
        raise ValueError("limit must be positive")

    remaining = text.strip()
    chunks: list[str] = []
    while len(remaining) > limit:
        # The boundary character itself may sit at index `limit`
        window = remaining[: limit + 1]
        cut = _best_cut(window)
        if cut <= 0 or cut > limit:
            cut = limit
        piece = remaining[:cut].strip()
        if piece:
            chunks.append(piece)
        remaining = remaining[cut:].strip()
    if remaining:
        chunks.append(remaining)
    return chunks
