# context_assembly/context_compressor.py
"""Shrink an assembled context to a token budget, section by section."""

from __future__ import annotations

from collections.abc import Callable, Sequence

import structlog
from core.tokens import chars_for_tokens, estimate_tokens, fits_budget
from utils.text_processing import last_sentence_end

from models import SECTION_ORDER, ContextSection, SectionKind

from .character_format import (
    ENTRY_PREFIX,
    PERSONALITY_MARKER,
    RELATIONSHIP_MARKER,
)
from .sections import SECTION_SEPARATOR, parse_sections, render_sections

logger = structlog.get_logger(__name__)

ELLIPSIS = "..."

# Overhead a compressed context may carry beyond ``4 * max_tokens``: one
# separator between each pair of sections plus, per section, the smallest
# output a non-empty section can shrink to (one character and an ellipsis).
COMPRESSION_SLACK_CHARS = len(SECTION_SEPARATOR) * (len(SECTION_ORDER) - 1) + (
    len(ELLIPSIS) + 1
) * len(SECTION_ORDER)

# Content truncation keeps a sentence end only if it falls in the last 20%.
SENTENCE_BACKOFF_RATIO = 0.8


def hard_truncate(text: str, max_chars: int) -> str:
    """Cut ``text`` to ``max_chars`` including the ellipsis, keeping at least one character."""
    if len(text) <= max_chars:
        return text
    keep = max(1, max_chars - len(ELLIPSIS))
    return text[:keep] + ELLIPSIS


def compress_key_information(text: str, max_chars: int) -> str:
    """Keep the headline, then whole lines while they fit, then an ellipsis."""
    if len(text) <= max_chars:
        return text
    lines = text.split("\n")
    headline = lines[0]
    if not headline.strip() or len(headline) > max_chars:
        return hard_truncate(text, max_chars)
    compressed = headline
    for line in lines[1:]:
        if len(compressed) + 1 + len(line) <= max_chars:
            compressed += "\n" + line
            continue
        if len(compressed) + 1 + len(ELLIPSIS) <= max_chars:
            compressed += "\n" + ELLIPSIS
        break
    return compressed


def compress_character_info(text: str, max_chars: int) -> str:
    """Keep the header, then entry lines, then personality and relationship lines.

    Entry lines are placed first so that as many characters as possible are
    named before any one of them gets detail. Output keeps input line order.
    """
    if len(text) <= max_chars:
        return text
    lines = text.split("\n")
    header = lines[0]
    if not header.strip() or len(header) > max_chars:
        return hard_truncate(text, max_chars)

    used = len(header)
    keep: set[int] = set()
    passes: tuple[Callable[[str], bool], ...] = (
        lambda line: line.startswith(ENTRY_PREFIX),
        lambda line: PERSONALITY_MARKER in line or RELATIONSHIP_MARKER in line,
    )
    for wanted in passes:
        for index, line in enumerate(lines[1:], 1):
            if index in keep or not wanted(line):
                continue
            if used + 1 + len(line) <= max_chars:
                keep.add(index)
                used += 1 + len(line)
    return "\n".join([header, *(lines[i] for i in sorted(keep))])


def truncate_content(text: str, max_chars: int) -> str:
    """Cut prose at a sentence end near the limit, else hard-truncate."""
    if len(text) <= max_chars:
        return text
    if max_chars <= len(ELLIPSIS):
        return hard_truncate(text, max_chars)
    end = last_sentence_end(text[:max_chars])
    if end >= 0 and end + 1 > max_chars * SENTENCE_BACKOFF_RATIO:
        return text[: end + 1]
    return hard_truncate(text, max_chars)


_STRATEGIES: dict[SectionKind, Callable[[str, int], str]] = {
    SectionKind.PROJECT: compress_key_information,
    SectionKind.WORLD: compress_key_information,
    SectionKind.CHARACTERS: compress_character_info,
    SectionKind.CHAPTER_INFO: compress_key_information,
    SectionKind.CONTENT: truncate_content,
}


class ContextCompressor:
    """Allocate a token budget across sections by importance and fit each one."""

    def allocate(self, sections: Sequence[ContextSection], max_tokens: int) -> list[int]:
        """Return per-section token allowances proportional to importance."""
        budget = max(0, max_tokens)
        total = sum(s.importance for s in sections)
        if total <= 0:
            return [0 for _ in sections]
        return [budget * s.importance // total for s in sections]

    def compress_sections(
        self, sections: Sequence[ContextSection], max_tokens: int
    ) -> list[ContextSection]:
        present = [s for s in sections if s.text]
        if fits_budget(render_sections(present), max_tokens):
            return present
        allowances = self.allocate(present, max_tokens)
        compressed: list[ContextSection] = []
        for section, tokens in zip(present, allowances):
            max_chars = chars_for_tokens(tokens)
            if len(section.text) <= max_chars:
                compressed.append(section)
                continue
            text = _STRATEGIES[section.kind](section.text, max_chars)
            if not text:
                text = hard_truncate(section.text, 0)
            compressed.append(ContextSection(section.kind, text))
        return compressed

    def compress_context(self, context: str, max_tokens: int) -> str:
        """Return ``context`` shrunk to roughly ``max_tokens`` estimated tokens.

        Context already within budget is returned unchanged.
        """
        if fits_budget(context, max_tokens):
            return context
        before = estimate_tokens(context)
        result = render_sections(
            self.compress_sections(parse_sections(context), max_tokens)
        )
        logger.debug(
            "Compressed context",
            max_tokens=max_tokens,
            tokens_before=before,
            tokens_after=estimate_tokens(result),
            chars_before=len(context),
            chars_after=len(result),
        )
        return result
