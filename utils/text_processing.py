# utils/text_processing.py
"""Paragraph, sentence and character helpers for narrative text."""

from __future__ import annotations

import re

import structlog

logger = structlog.get_logger(__name__)

__all__ = [
    "SENTENCE_ENDINGS",
    "clean_text",
    "collapse_whitespace",
    "contains_term",
    "normalize_newlines",
    "split_paragraphs",
    "split_sentences",
    "last_sentence_end",
]

# Full-width and ASCII sentence terminators.
SENTENCE_ENDINGS = "。！？.!?"

_PARAGRAPH_BREAK_RE = re.compile(r"\r?\n(?:[ \t\u3000]*\r?\n)+")
_SENTENCE_RE = re.compile(rf"[^{re.escape(SENTENCE_ENDINGS)}\n]+[{re.escape(SENTENCE_ENDINGS)}]*")
# C0/C1 control characters except tab and newline, plus zero-width marks.
_CONTROL_CHARS_RE = re.compile("[\\x00-\\x08\\x0b-\\x1f\\x7f-\\x9f\\u200b-\\u200d\\ufeff]")


def normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def collapse_whitespace(text: str) -> str:
    """Join ``text`` onto one line with single spaces."""
    return " ".join(text.split())


def clean_text(text: str) -> str:
    """Strip control and zero-width characters; normalize line endings."""
    if not text:
        return ""
    return _CONTROL_CHARS_RE.sub("", normalize_newlines(text))


def contains_term(text: str, term: str) -> bool:
    """Word match for ASCII terms, substring match otherwise."""
    if not term:
        return False
    if term.isascii():
        return re.search(rf"\b{re.escape(term)}\b", text, re.IGNORECASE) is not None
    return term in text


def split_paragraphs(text: str) -> list[tuple[str, int, int]]:
    """Split ``text`` on blank lines.

    Returns ``(paragraph, start, end)`` tuples where ``end`` is the offset of
    the paragraph break that follows (or ``len(text)``). Empty paragraphs are
    skipped.
    """
    paragraphs: list[tuple[str, int, int]] = []
    start = 0
    for match in _PARAGRAPH_BREAK_RE.finditer(text):
        chunk = text[start : match.start()]
        if chunk.strip():
            paragraphs.append((chunk, start, match.start()))
        start = match.end()
    tail = text[start:]
    if tail.strip():
        paragraphs.append((tail, start, len(text)))
    return paragraphs


def split_sentences(text: str) -> list[str]:
    """Return rough sentences, keeping their terminators."""
    return [s.strip() for s in _SENTENCE_RE.findall(text) if s.strip()]


def last_sentence_end(text: str) -> int:
    """Return the index of the last sentence terminator in ``text`` or -1."""
    return max(text.rfind(mark) for mark in SENTENCE_ENDINGS)
