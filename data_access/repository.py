# data_access/repository.py
"""Read-only repository abstractions for the narrative store."""

from __future__ import annotations

import json
from typing import Any, Protocol, runtime_checkable

import structlog
from config import settings
from core.db_manager import Neo4jManager

from models import Chapter, Character, NarrativeProject, Relationship

logger = structlog.get_logger(__name__)

__all__ = [
    "NarrativeRepository",
    "BaseRepository",
    "Neo4jNarrativeRepository",
    "project_from_record",
    "chapter_from_record",
    "character_from_record",
]


@runtime_checkable
class NarrativeRepository(Protocol):
    """The four queries the context engine issues. No writes."""

    async def get_project(self, project_id: str) -> NarrativeProject | None: ...

    async def get_chapter(self, chapter_id: str) -> Chapter | None: ...

    async def get_characters(self, project_id: str) -> list[Character]: ...

    async def list_chapters(self, project_id: str) -> list[Chapter]: ...


def _template_settings(data: dict[str, Any]) -> dict[str, Any]:
    raw = data.get("template_settings") or data.get("settings")
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Ignoring unreadable template settings", project_id=data.get("id"))
            return {}
    return raw if isinstance(raw, dict) else {}


def project_from_record(data: dict[str, Any]) -> NarrativeProject:
    """Build a project from a node or mapping; ``type`` is accepted for the genre."""
    return NarrativeProject(
        id=str(data["id"]),
        name=data.get("name") or "",
        project_type=data.get("project_type") or data.get("type") or "",
        description=data.get("description") or "",
        template_settings=_template_settings(data),
    )


def chapter_from_record(data: dict[str, Any]) -> Chapter:
    return Chapter(
        id=str(data["id"]),
        project_id=str(data.get("project_id") or ""),
        title=data.get("title") or "",
        content=data.get("content") or "",
        order_index=int(data.get("order_index") or data.get("order") or 0),
    )


def character_from_record(
    data: dict[str, Any], relationships: list[dict[str, Any]] | None = None
) -> Character:
    rel_data = relationships if relationships is not None else data.get("relationships")
    rels = [
        Relationship(
            target_id=str(rel.get("target_id") or rel.get("target") or ""),
            relationship_type=rel.get("relationship_type") or rel.get("type") or "",
            description=rel.get("description") or "",
        )
        for rel in rel_data or []
        if isinstance(rel, dict)
    ]
    age: int | None = None
    try:
        if data.get("age") is not None and str(data["age"]).strip():
            age = int(data["age"])
    except ValueError:
        logger.warning(
            "Ignoring non-numeric character age", name=data.get("name"), age=data["age"]
        )
    return Character(
        id=str(data.get("id") or ""),
        project_id=str(data.get("project_id") or ""),
        name=data.get("name") or "",
        archetype=data.get("archetype") or data.get("role") or "",
        age=age,
        gender=data.get("gender") or "",
        description=data.get("description") or "",
        appearance=data.get("appearance") or "",
        personality=data.get("personality") or "",
        background=data.get("background") or "",
        abilities=[str(a) for a in data.get("abilities") or []],
        relationships=rels,
    )


class BaseRepository:
    """Base repository providing simple database helpers."""

    def __init__(self, db: Neo4jManager) -> None:
        self.db = db

    async def read(
        self, query: str, parameters: dict[str, Any] | None = None
    ) -> list[dict[str, Any]]:
        """Execute a read query."""
        return await self.db.execute_read_query(query, parameters)


class Neo4jNarrativeRepository(BaseRepository):
    """Narrative store backed by Neo4j nodes for projects, chapters and characters."""

    async def get_project(self, project_id: str) -> NarrativeProject | None:
        query = f"MATCH (p:{settings.PROJECT_NODE_LABEL} {{id: $project_id}}) RETURN p"
        records = await self.read(query, {"project_id": project_id})
        if not records or not records[0].get("p"):
            return None
        return project_from_record(dict(records[0]["p"]))

    async def get_chapter(self, chapter_id: str) -> Chapter | None:
        query = f"MATCH (c:{settings.CHAPTER_NODE_LABEL} {{id: $chapter_id}}) RETURN c"
        records = await self.read(query, {"chapter_id": chapter_id})
        if not records or not records[0].get("c"):
            return None
        return chapter_from_record(dict(records[0]["c"]))

    async def get_characters(self, project_id: str) -> list[Character]:
        query = f"""
        MATCH (c:{settings.CHARACTER_NODE_LABEL} {{project_id: $project_id}})
        OPTIONAL MATCH (c)-[r:{settings.CHARACTER_REL_TYPE}]->(t:{settings.CHARACTER_NODE_LABEL})
        WITH c, collect(
            CASE WHEN t IS NULL THEN NULL
            ELSE {{target_id: t.id, relationship_type: r.type, description: r.description}}
            END
        ) AS relationships
        RETURN c, relationships
        ORDER BY c.name
        """
        records = await self.read(query, {"project_id": project_id})
        characters: list[Character] = []
        for record in records:
            node = record.get("c")
            if not node:
                continue
            characters.append(
                character_from_record(dict(node), record.get("relationships") or [])
            )
        logger.debug(
            "Loaded character roster", project_id=project_id, count=len(characters)
        )
        return characters

    async def list_chapters(self, project_id: str) -> list[Chapter]:
        query = f"""
        MATCH (c:{settings.CHAPTER_NODE_LABEL} {{project_id: $project_id}})
        RETURN c
        ORDER BY c.order_index
        """
        records = await self.read(query, {"project_id": project_id})
        return [chapter_from_record(dict(r["c"])) for r in records if r.get("c")]
