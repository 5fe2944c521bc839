# context_assembly/prompt_builder.py
"""Build the constant system instruction and the per-request user context."""

from __future__ import annotations

from collections.abc import Sequence

from models import ContextSection

from .sections import SECTION_SEPARATOR, render_sections

CONTINUE_MARKER = "[CONTINUE HERE]"

BASE_SYSTEM_PROMPT = (
    "You are a professional fiction continuation assistant. "
    f"Continue the story at the {CONTINUE_MARKER} marker. "
    "Output only the story text itself, with no explanations, reasoning or "
    "instructions. Write in the same language as the existing chapter text, "
    "keep every character consistent with their profile, and connect "
    "naturally to the text before the marker."
)

LIGHT_NOVEL_ADDENDUM = (
    "This is a light novel: favour lively dialogue, expressive inner "
    "monologue and short, readable paragraphs."
)

_LIGHT_NOVEL_TAGS = ("light novel", "light_novel", "lightnovel", "輕小說", "轻小说")


def is_light_novel(project_type: str) -> bool:
    lowered = project_type.lower()
    return any(tag in lowered for tag in _LIGHT_NOVEL_TAGS)


def build_system_prompt(project_type: str = "") -> str:
    """Return the system instruction; it varies only with the project genre."""
    if is_light_novel(project_type):
        return f"{BASE_SYSTEM_PROMPT}\n\n{LIGHT_NOVEL_ADDENDUM}"
    return BASE_SYSTEM_PROMPT


def build_user_context(sections: Sequence[ContextSection]) -> str:
    """Render the sections and close with the continuation marker."""
    rendered = render_sections(sections)
    if not rendered:
        return CONTINUE_MARKER
    return f"{rendered}{SECTION_SEPARATOR}{CONTINUE_MARKER}"
