# context_assembly/sections.py
"""Section labels, rendering and parsing for assembled context.

A rendered context is its sections joined by a blank line. Each section
starts with a fixed label, so string-based callers can hand a context back
and have it split into the same typed sections it was rendered from.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

from models import ContextSection, SectionKind

__all__ = [
    "SECTION_SEPARATOR",
    "SECTION_LABELS",
    "PROJECT_LABEL",
    "WORLD_LABEL",
    "CHARACTERS_LABEL",
    "CHAPTER_LABEL",
    "CONTENT_LABEL",
    "TYPE_LABEL",
    "DESCRIPTION_LABEL",
    "render_sections",
    "parse_sections",
    "has_section_labels",
    "insert_section",
    "section_text",
    "section_body",
]

SECTION_SEPARATOR = "\n\n"

PROJECT_LABEL = "Project:"
WORLD_LABEL = "World:"
CHARACTERS_LABEL = "Characters:"
CHAPTER_LABEL = "Current chapter:"
CONTENT_LABEL = "Relevant content:"

# Line labels inside the project section.
TYPE_LABEL = "Type:"
DESCRIPTION_LABEL = "Description:"

SECTION_LABELS: dict[SectionKind, str] = {
    SectionKind.PROJECT: PROJECT_LABEL,
    SectionKind.WORLD: WORLD_LABEL,
    SectionKind.CHARACTERS: CHARACTERS_LABEL,
    SectionKind.CHAPTER_INFO: CHAPTER_LABEL,
    SectionKind.CONTENT: CONTENT_LABEL,
}
_KIND_BY_LABEL = {label: kind for kind, label in SECTION_LABELS.items()}

# A label only opens a section at the start of the text or after a blank line.
_LABEL_RE = re.compile(
    r"(?:^|\n\n)("
    + "|".join(re.escape(label) for label in SECTION_LABELS.values())
    + r")"
)


def render_sections(sections: Iterable[ContextSection]) -> str:
    """Join non-empty sections with a blank line."""
    return SECTION_SEPARATOR.join(s.text for s in sections if s.text)


def _label_starts(text: str) -> list[tuple[SectionKind, int, int]]:
    """Return ``(kind, separator_start, label_start)`` for each accepted label.

    Labels must appear in canonical order; a label that would go backwards,
    repeat, or follow the content label belongs to the previous section's
    text instead.
    """
    accepted: list[tuple[SectionKind, int, int]] = []
    last_order = -1
    for match in _LABEL_RE.finditer(text):
        kind = _KIND_BY_LABEL[match.group(1)]
        if kind.order <= last_order:
            continue
        accepted.append((kind, match.start(), match.start(1)))
        last_order = kind.order
        if kind is SectionKind.CONTENT:
            break
    return accepted


def has_section_labels(text: str) -> bool:
    return bool(_label_starts(text))


def parse_sections(text: str) -> list[ContextSection]:
    """Split a rendered context back into typed sections.

    Text before the first label is kept as a prefix of the first section.
    Text with no labels at all becomes a single content section.
    """
    if not text:
        return []
    starts = _label_starts(text)
    if not starts:
        return [ContextSection(SectionKind.CONTENT, text)]

    sections: list[ContextSection] = []
    for index, (kind, _sep_start, label_start) in enumerate(starts):
        begin = 0 if index == 0 else label_start
        end = starts[index + 1][1] if index + 1 < len(starts) else len(text)
        sections.append(ContextSection(kind, text[begin:end]))
    return sections


def insert_section(
    sections: Sequence[ContextSection], section: ContextSection
) -> list[ContextSection]:
    """Insert ``section`` before the first section that sorts after it."""
    result = list(sections)
    for index, existing in enumerate(result):
        if existing.kind.order > section.kind.order:
            result.insert(index, section)
            return result
    result.append(section)
    return result


def section_text(sections: Iterable[ContextSection], kind: SectionKind) -> str:
    """Return the text of the first section of ``kind`` or an empty string."""
    for section in sections:
        if section.kind is kind:
            return section.text
    return ""


def section_body(section: ContextSection) -> str:
    """Return the section text with its leading label removed."""
    label = SECTION_LABELS[section.kind]
    text = section.text
    if text.startswith(label):
        text = text[len(label) :]
    return text.strip()
