# context_assembly/context_builder.py
"""Read project, chapter and roster records and lay them out as sections."""

from __future__ import annotations

import re
from collections.abc import Sequence

import structlog
from config import settings
from core.exceptions import NotFoundError
from utils.text_processing import (
    clean_text,
    collapse_whitespace,
    contains_term,
    normalize_newlines,
    split_paragraphs,
)

from data_access.repository import NarrativeRepository
from models import Chapter, Character, ContextSection, NarrativeProject, SectionKind

from .character_format import render_characters_section
from .sections import (
    CHAPTER_LABEL,
    CONTENT_LABEL,
    DESCRIPTION_LABEL,
    PROJECT_LABEL,
    TYPE_LABEL,
    WORLD_LABEL,
    render_sections,
)

logger = structlog.get_logger(__name__)

PROJECT_TYPE_LABELS: dict[str, str] = {
    "isekai": "Isekai (otherworld)",
    "school": "School life",
    "scifi": "Science fiction",
    "fantasy": "Fantasy",
}

WORLD_TEMPLATES: dict[str, tuple[str, ...]] = {
    "isekai": (
        "Otherworld setting; the protagonist crossed over from the modern world",
        "Magic and a sword-and-sorcery world view are likely",
    ),
    "school": (
        "School setting centred on everyday school life",
        "Youth, friendship and romance",
    ),
    "scifi": (
        "Science fiction setting with future technology",
        "May involve space travel, artificial intelligence or time travel",
    ),
    "fantasy": (
        "Fantasy world with magic and mysterious creatures",
        "Classic sword-and-sorcery setting",
    ),
}

# Per-genre template settings shown in the world section, as (key, label).
WORLD_SETTING_FIELDS: dict[str, tuple[tuple[str, str], ...]] = {
    "isekai": (
        ("level_system", "Level system"),
        ("magic_system", "Magic system"),
        ("reincarnation", "Reincarnation"),
    ),
    "school": (("school_name", "School name"), ("school_type", "School type")),
    "scifi": (("tech_level", "Technology level"), ("world_setting", "World setting")),
    "fantasy": (("magic_system", "Magic system"), ("races", "Races")),
}

# Story words that tie an earlier paragraph to the scene being continued.
KEY_TERMS: tuple[str, ...] = (
    "decided",
    "discovered",
    "battle",
    "magic",
    "attack",
    "defend",
    "sword",
    "monster",
    "castle",
    "princess",
    "prince",
    "demon lord",
    "hero",
    "adventure",
    "決定",
    "發現",
    "戰鬥",
    "魔法",
    "攻擊",
    "防禦",
    "劍",
    "怪物",
    "城堡",
    "公主",
    "王子",
    "魔王",
    "勇者",
    "冒險",
)
# Short spans inside directional quotes, usually names or catchphrases.
_QUOTED_TERM_RE = re.compile("[「『“]([^「」『』“”\\n]{1,10})[」』”]")


def project_type_label(project_type: str) -> str:
    """Return the display label for a genre tag; unknown tags pass through."""
    return PROJECT_TYPE_LABELS.get(project_type.strip().lower(), project_type)


def extract_key_terms(text: str) -> list[str]:
    """Quoted spans found in ``text`` followed by the fixed ``KEY_TERMS``."""
    quoted = (m.group(1).strip() for m in _QUOTED_TERM_RE.finditer(text))
    return list(dict.fromkeys([*(q for q in quoted if q), *KEY_TERMS]))


class ContextBuilder:
    """Assemble the labelled sections for one chapter at one cursor position."""

    def __init__(
        self,
        repository: NarrativeRepository,
        relevant_paragraph_count: int | None = None,
        min_extractable_chars: int | None = None,
        related_paragraph_limit: int | None = None,
    ) -> None:
        self.repository = repository
        self.relevant_paragraph_count = max(
            1, relevant_paragraph_count or settings.RELEVANT_PARAGRAPH_COUNT
        )
        self.min_extractable_chars = (
            min_extractable_chars
            if min_extractable_chars is not None
            else settings.MIN_EXTRACTABLE_CHARS
        )
        self.related_paragraph_limit = max(
            0,
            related_paragraph_limit
            if related_paragraph_limit is not None
            else settings.RELATED_PARAGRAPH_LIMIT,
        )

    async def build_context(
        self, project_id: str, chapter_id: str, cursor_position: int | None
    ) -> str:
        """Return the rendered context for the chapter at ``cursor_position``."""
        sections = await self.build_sections(project_id, chapter_id, cursor_position)
        return render_sections(sections)

    async def build_sections(
        self,
        project_id: str,
        chapter_id: str,
        cursor_position: int | None,
        include_characters: bool = True,
    ) -> list[ContextSection]:
        project, chapter = await self.fetch_records(project_id, chapter_id)
        characters: list[Character] = []
        if include_characters:
            characters = await self._load_roster(project_id)
        sections = self.compose_sections(project, chapter, cursor_position, characters)
        logger.info(
            "Built context sections",
            project_id=project_id,
            chapter_id=chapter_id,
            sections=[s.kind.value for s in sections],
        )
        return sections

    async def fetch_records(
        self, project_id: str, chapter_id: str
    ) -> tuple[NarrativeProject, Chapter]:
        """Read the project and chapter, raising ``NotFoundError`` if either is missing."""
        project = await self.repository.get_project(project_id)
        if project is None:
            logger.warning("Project not found", project_id=project_id)
            raise NotFoundError("Project", project_id)
        chapter = await self.repository.get_chapter(chapter_id)
        if chapter is None:
            logger.warning("Chapter not found", chapter_id=chapter_id)
            raise NotFoundError("Chapter", chapter_id)
        if chapter.project_id and chapter.project_id != project.id:
            logger.warning(
                "Chapter belongs to a different project",
                chapter_id=chapter_id,
                chapter_project_id=chapter.project_id,
                project_id=project.id,
            )
        return project, chapter

    async def _load_roster(self, project_id: str) -> list[Character]:
        try:
            return await self.repository.get_characters(project_id)
        except Exception as exc:
            logger.error(
                "Failed to read character roster; building context without it",
                project_id=project_id,
                error=str(exc),
                exc_info=True,
            )
            return []

    def compose_sections(
        self,
        project: NarrativeProject,
        chapter: Chapter,
        cursor_position: int | None,
        characters: Sequence[Character] = (),
    ) -> list[ContextSection]:
        """Lay out the sections in canonical order. ``None`` cursor means end of text."""
        sections = [ContextSection(SectionKind.PROJECT, self.build_project_section(project))]

        world = self.build_world_section(project)
        if world:
            sections.append(ContextSection(SectionKind.WORLD, world))

        roster = render_characters_section(list(characters))
        if roster:
            sections.append(ContextSection(SectionKind.CHARACTERS, roster))

        sections.append(
            ContextSection(SectionKind.CHAPTER_INFO, self.build_chapter_section(chapter))
        )

        cursor = len(chapter.content) if cursor_position is None else cursor_position
        relevant = self.extract_relevant_content(chapter.content, cursor)
        if relevant:
            sections.append(
                ContextSection(SectionKind.CONTENT, f"{CONTENT_LABEL}\n{relevant}")
            )
        return sections

    def build_project_section(self, project: NarrativeProject) -> str:
        lines = [f"{PROJECT_LABEL} {collapse_whitespace(project.name)}".rstrip()]
        if project.project_type:
            lines.append(f"{TYPE_LABEL} {project_type_label(project.project_type)}")
        description = collapse_whitespace(project.description)
        if description:
            lines.append(f"{DESCRIPTION_LABEL} {description}")
        return "\n".join(lines)

    def build_world_section(self, project: NarrativeProject) -> str:
        """Return the world section for known genres, or an empty string."""
        genre = project.project_type.strip().lower()
        template = WORLD_TEMPLATES.get(genre)
        if not template:
            return ""
        lines = [WORLD_LABEL, *(f"- {line}" for line in template)]
        for key, label in WORLD_SETTING_FIELDS.get(genre, ()):
            value = collapse_whitespace(project.template_settings.get(key, ""))
            if value:
                lines.append(f"- {label}: {value}")
        return "\n".join(lines)

    def build_chapter_section(self, chapter: Chapter) -> str:
        return f"{CHAPTER_LABEL} {collapse_whitespace(chapter.title)}".rstrip()

    def extract_relevant_content(self, content: str, cursor_position: int) -> str:
        """Return the story text leading up to the cursor.

        Empty when the cursor is at or before the start, or the content is
        too short to be worth extracting. Nothing after the cursor is ever
        included. Text before the cursor without blank-line paragraph
        breaks is returned whole.
        """
        if cursor_position <= 0 or len(content) < self.min_extractable_chars:
            return ""
        preceding = normalize_newlines(content[: min(cursor_position, len(content))])
        paragraphs = [text.rstrip() for text, _start, _end in split_paragraphs(preceding)]
        if not paragraphs:
            return ""
        if len(paragraphs) == 1:
            return clean_text(preceding)
        return clean_text("\n\n".join(self.select_paragraphs(paragraphs)))

    def select_paragraphs(self, paragraphs: list[str]) -> list[str]:
        """Keep the most recent paragraphs plus earlier ones sharing key terms.

        Earlier paragraphs are ranked by how many distinct key terms they
        contain; at most ``related_paragraph_limit`` are kept. The result
        stays in story order.
        """
        recent_start = max(0, len(paragraphs) - self.relevant_paragraph_count)
        if recent_start == 0 or self.related_paragraph_limit == 0:
            return paragraphs[recent_start:]
        terms = extract_key_terms("\n\n".join(paragraphs))
        scored = [
            (sum(1 for term in terms if contains_term(paragraph, term)), index)
            for index, paragraph in enumerate(paragraphs[:recent_start])
        ]
        ranked = sorted((s for s in scored if s[0] > 0), key=lambda s: (-s[0], s[1]))
        related = sorted(index for _score, index in ranked[: self.related_paragraph_limit])
        return [paragraphs[i] for i in related] + paragraphs[recent_start:]
