# context_assembly/mention_matcher.py
"""Name-mention matching and new-name candidate detection."""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Protocol, runtime_checkable

__all__ = [
    "MentionMatcher",
    "SubstringMentionMatcher",
    "detect_name_candidates",
]


@runtime_checkable
class MentionMatcher(Protocol):
    """Decides which of ``known_names`` are mentioned in ``text``."""

    def find_mentions(self, text: str, known_names: Iterable[str]) -> list[str]: ...


class SubstringMentionMatcher:
    """Verbatim, case-sensitive substring matching."""

    def find_mentions(self, text: str, known_names: Iterable[str]) -> list[str]:
        if not text:
            return []
        return [name for name in dict.fromkeys(known_names) if name and name in text]


# Capitalized words that usually start a sentence rather than name someone.
_STOPWORDS = frozenset(
    {
        "A", "An", "The", "He", "She", "It", "They", "We", "I", "You", "His",
        "Her", "Their", "Our", "My", "Your", "This", "That", "These", "Those",
        "But", "And", "Or", "So", "Then", "When", "While", "After", "Before",
        "If", "As", "At", "In", "On", "Of", "To", "For", "With", "From", "By",
        "What", "Where", "Why", "How", "Who", "Yes", "No", "Not", "There",
        "Here", "Once", "Chapter", "Mr", "Mrs", "Ms", "Dr",
    }
)
_SPEECH_VERBS = "說道表示回答問笑哭喊"

_CAPITALIZED_RUN_RE = re.compile(r"\b[A-Z][a-z]+(?:\s+[A-Z][a-z]+)*\b")
_CJK_SPEAKER_RE = re.compile(
    r"([\u4e00-\u9fff]{2,4})(?=說|道|表示|回答|問|笑|哭|喊)"
)
_LATIN_CUE_RE = re.compile(r"\b(?:named|called|is)\s+([A-Z][A-Za-z'-]+)")
_CJK_CUE_RE = re.compile(r"(?:叫做|名為|是)([\u4e00-\u9fff]{2,4})")


def _strip_stopwords(run: str) -> str:
    words = run.split()
    while words and words[0] in _STOPWORDS:
        words.pop(0)
    return " ".join(words)


def _trim_speech_verbs(candidate: str) -> str:
    for index, char in enumerate(candidate):
        if char in _SPEECH_VERBS:
            return candidate[:index]
    return candidate


def detect_name_candidates(content: str) -> list[str]:
    """Return strings that look like character names, in first-seen order.

    Heuristic and low precision; results are meant for a human to review.
    """
    if not content:
        return []
    found: list[tuple[int, str]] = []

    for match in _CAPITALIZED_RUN_RE.finditer(content):
        name = _strip_stopwords(match.group(0))
        if name:
            found.append((match.start(), name))
    for match in _CJK_SPEAKER_RE.finditer(content):
        name = _trim_speech_verbs(match.group(1))
        if len(name) >= 2:
            found.append((match.start(1), name))
    for regex in (_LATIN_CUE_RE, _CJK_CUE_RE):
        for match in regex.finditer(content):
            name = _trim_speech_verbs(match.group(1))
            if len(name) >= 2 and name not in _STOPWORDS:
                found.append((match.start(1), name))

    found.sort(key=lambda item: item[0])
    return list(dict.fromkeys(name for _pos, name in found if len(name) >= 2))
