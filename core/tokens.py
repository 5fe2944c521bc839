# core/tokens.py
"""Character-count token estimate shared by the compressor and the analyzer.

One token is taken to be four characters of narrative text. This is an
approximation, not a tokenizer; both components must use these helpers so
their notions of size never drift apart.
"""

from __future__ import annotations

import math

CHARS_PER_TOKEN = 4


def tokens_for_chars(char_count: int) -> int:
    """Return the estimated token count of ``char_count`` characters (rounded up)."""
    if char_count <= 0:
        return 0
    return math.ceil(char_count / CHARS_PER_TOKEN)


def estimate_tokens(text: str) -> int:
    """Return the estimated token count of ``text`` (rounded up)."""
    if not text:
        return 0
    return tokens_for_chars(len(text))


def chars_for_tokens(tokens: int) -> int:
    """Return how many characters fit into ``tokens`` estimated tokens."""
    return max(0, tokens) * CHARS_PER_TOKEN


def fits_budget(text: str, max_tokens: int) -> bool:
    """Return True when ``text`` is within ``max_tokens`` estimated tokens."""
    return estimate_tokens(text) <= max_tokens
