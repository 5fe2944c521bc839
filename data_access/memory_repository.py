# data_access/memory_repository.py
"""In-memory narrative store, loadable from a YAML story file."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

import structlog
from yaml_parser import load_yaml_file

from models import Chapter, Character, NarrativeProject

from .repository import chapter_from_record, character_from_record, project_from_record

logger = structlog.get_logger(__name__)


class InMemoryNarrativeRepository:
    """Holds projects, chapters and characters in dictionaries."""

    def __init__(
        self,
        projects: Iterable[NarrativeProject] = (),
        chapters: Iterable[Chapter] = (),
        characters: Iterable[Character] = (),
    ) -> None:
        self.projects: dict[str, NarrativeProject] = {p.id: p for p in projects}
        self.chapters: dict[str, Chapter] = {c.id: c for c in chapters}
        self.characters: list[Character] = list(characters)

    async def get_project(self, project_id: str) -> NarrativeProject | None:
        return self.projects.get(project_id)

    async def get_chapter(self, chapter_id: str) -> Chapter | None:
        return self.chapters.get(chapter_id)

    async def get_characters(self, project_id: str) -> list[Character]:
        return [c for c in self.characters if c.project_id == project_id]

    async def list_chapters(self, project_id: str) -> list[Chapter]:
        return sorted(
            (c for c in self.chapters.values() if c.project_id == project_id),
            key=lambda c: c.order_index,
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> InMemoryNarrativeRepository:
        """Build a repository from a story mapping.

        The mapping holds ``projects``; each project may nest its own
        ``chapters`` and ``characters`` lists, whose ``project_id`` defaults
        to the enclosing project.
        """
        projects: list[NarrativeProject] = []
        chapters: list[Chapter] = []
        characters: list[Character] = []
        for index, raw_project in enumerate(data.get("projects") or []):
            if not isinstance(raw_project, dict) or "id" not in raw_project:
                logger.warning("Skipping project entry without an id", index=index)
                continue
            project = project_from_record(raw_project)
            projects.append(project)
            for order, raw_chapter in enumerate(raw_project.get("chapters") or [], 1):
                if not isinstance(raw_chapter, dict) or "id" not in raw_chapter:
                    logger.warning(
                        "Skipping chapter entry without an id",
                        project_id=project.id,
                        index=order - 1,
                    )
                    continue
                raw_chapter = {"project_id": project.id, "order_index": order, **raw_chapter}
                chapters.append(chapter_from_record(raw_chapter))
            for char_index, raw_char in enumerate(raw_project.get("characters") or []):
                if not isinstance(raw_char, dict) or not raw_char.get("name"):
                    logger.warning(
                        "Skipping character entry without a name",
                        project_id=project.id,
                        index=char_index,
                    )
                    continue
                raw_char = {"project_id": project.id, **raw_char}
                characters.append(character_from_record(raw_char))
        logger.info(
            "Loaded story data",
            projects=len(projects),
            chapters=len(chapters),
            characters=len(characters),
        )
        return cls(projects, chapters, characters)

    @classmethod
    def from_yaml(cls, filepath: str) -> InMemoryNarrativeRepository:
        data = load_yaml_file(filepath)
        if data is None:
            raise ValueError(f"Could not load story file: {filepath}")
        return cls.from_dict(data)
