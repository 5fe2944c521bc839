# models/context_models.py
"""Data models used for context assembly."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, Field, computed_field


class SectionKind(str, Enum):
    """Kinds of context section, declared in canonical prompt order."""

    PROJECT = "project"
    WORLD = "world"
    CHARACTERS = "characters"
    CHAPTER_INFO = "chapter_info"
    CONTENT = "content"

    @property
    def order(self) -> int:
        return SECTION_ORDER.index(self)


SECTION_ORDER: tuple[SectionKind, ...] = tuple(SectionKind)

# Priorities used only for budget allocation.
SECTION_IMPORTANCE: dict[SectionKind, int] = {
    SectionKind.PROJECT: 10,
    SectionKind.CHARACTERS: 9,
    SectionKind.WORLD: 8,
    SectionKind.CHAPTER_INFO: 7,
    SectionKind.CONTENT: 6,
}


@dataclass(frozen=True)
class ContextSection:
    """One labelled block of assembled narrative context."""

    kind: SectionKind
    text: str

    @property
    def importance(self) -> int:
        return SECTION_IMPORTANCE[self.kind]


class QualityReport(BaseModel):
    """Diagnostic score of an assembled context."""

    total_tokens: int = 0
    character_info_quality: int = Field(0, ge=0, le=100)
    world_building_quality: int = Field(0, ge=0, le=100)
    narrative_coherence_quality: int = Field(0, ge=0, le=100)
    suggestions: list[str] = Field(default_factory=list)

    @computed_field  # type: ignore[misc]
    @property
    def overall_quality(self) -> int:
        """Rounded unweighted mean of the three sub-scores."""
        return round(
            (
                self.character_info_quality
                + self.world_building_quality
                + self.narrative_coherence_quality
            )
            / 3
        )


@dataclass
class SeparatedContext:
    """Constant system instruction plus the per-request user context."""

    system_prompt: str
    user_context: str


@dataclass
class ContextStats:
    """Size figures for a project's narrative state."""

    chapter_count: int
    character_count: int
    total_characters: int
    estimated_tokens: int
