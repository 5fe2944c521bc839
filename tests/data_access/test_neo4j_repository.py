# tests/data_access/test_neo4j_repository.py
from unittest.mock import AsyncMock

import pytest
from config import settings
from core.db_manager import Neo4jManager

from data_access import NarrativeRepository, Neo4jNarrativeRepository
from data_access.repository import character_from_record


def _repo(monkeypatch, records):
    db = Neo4jManager()
    read = AsyncMock(return_value=records)
    monkeypatch.setattr(db, "execute_read_query", read)
    return Neo4jNarrativeRepository(db), read


def test_repository_satisfies_protocol():
    assert isinstance(Neo4jNarrativeRepository(Neo4jManager()), NarrativeRepository)


@pytest.mark.asyncio
async def test_get_project_maps_node(monkeypatch):
    repo, read = _repo(
        monkeypatch,
        [{"p": {"id": "p1", "name": "Test", "type": "isekai", "description": None}}],
    )
    project = await repo.get_project("p1")
    assert project.name == "Test"
    assert project.project_type == "isekai"
    assert project.description == ""
    query, params = read.await_args.args
    assert f":{settings.PROJECT_NODE_LABEL}" in query
    assert params == {"project_id": "p1"}


@pytest.mark.asyncio
async def test_get_project_missing_returns_none(monkeypatch):
    repo, _read = _repo(monkeypatch, [])
    assert await repo.get_project("nope") is None


@pytest.mark.asyncio
async def test_get_chapter_maps_node(monkeypatch):
    repo, _read = _repo(
        monkeypatch,
        [
            {
                "c": {
                    "id": "c1",
                    "project_id": "p1",
                    "title": "Chapter 1",
                    "content": None,
                    "order_index": 3,
                }
            }
        ],
    )
    chapter = await repo.get_chapter("c1")
    assert chapter.content == ""
    assert chapter.order_index == 3


@pytest.mark.asyncio
async def test_get_characters_with_relationships(monkeypatch):
    repo, read = _repo(
        monkeypatch,
        [
            {
                "c": {"id": "a", "project_id": "p1", "name": "Alice", "age": "17"},
                "relationships": [
                    {"target_id": "b", "relationship_type": "rival", "description": "old"}
                ],
            },
            {"c": {"id": "b", "project_id": "p1", "name": "Bob"}, "relationships": []},
            {"c": None, "relationships": []},
        ],
    )
    characters = await repo.get_characters("p1")
    assert [c.name for c in characters] == ["Alice", "Bob"]
    assert characters[0].age == 17
    assert characters[0].relationships[0].target_id == "b"
    query, _params = read.await_args.args
    assert settings.CHARACTER_REL_TYPE in query
    assert "OPTIONAL MATCH" in query


@pytest.mark.asyncio
async def test_list_chapters(monkeypatch):
    repo, _read = _repo(
        monkeypatch,
        [
            {"c": {"id": "c1", "project_id": "p1", "order_index": 1}},
            {"c": {"id": "c2", "project_id": "p1", "order_index": 2}},
        ],
    )
    assert [c.id for c in await repo.list_chapters("p1")] == ["c1", "c2"]


@pytest.mark.asyncio
async def test_store_errors_propagate(monkeypatch):
    db = Neo4jManager()
    monkeypatch.setattr(
        db, "execute_read_query", AsyncMock(side_effect=ConnectionError("down"))
    )
    with pytest.raises(ConnectionError):
        await Neo4jNarrativeRepository(db).get_project("p1")


def test_non_numeric_age_is_dropped():
    character = character_from_record({"name": "Old One", "age": "ancient"})
    assert character.age is None


def test_record_aliases_for_role_and_type():
    character = character_from_record(
        {"name": "Kai", "role": "mentor", "relationships": [{"target": "x", "type": "ally"}]}
    )
    assert character.archetype == "mentor"
    assert character.relationships[0].target_id == "x"
    assert character.relationships[0].relationship_type == "ally"
