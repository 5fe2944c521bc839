"""General utility functions for the context engine."""

from .logging import setup_logging
from .text_processing import (
    SENTENCE_ENDINGS,
    clean_text,
    collapse_whitespace,
    contains_term,
    last_sentence_end,
    normalize_newlines,
    split_paragraphs,
    split_sentences,
)

__all__ = [
    "setup_logging",
    "SENTENCE_ENDINGS",
    "clean_text",
    "collapse_whitespace",
    "contains_term",
    "normalize_newlines",
    "split_paragraphs",
    "split_sentences",
    "last_sentence_end",
]
