"""Text helpers for token accounting."""

from __future__ import annotations

from agentshelf.index.ranking import CHARS_PER_TOKEN


def estimate_tokens(text: str, *, chars_per_token: int = CHARS_PER_TOKEN) -> int:
    """Approximate token count as characters / 4, rounded half up, never below one."""
    return max(1, int(len(text) / chars_per_token + 0.5))
