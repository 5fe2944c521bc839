# tests/test_engine.py
from unittest.mock import AsyncMock

import pytest
from context_assembly import ContextEngine
from context_assembly.context_compressor import COMPRESSION_SLACK_CHARS
from context_assembly.prompt_builder import (
    BASE_SYSTEM_PROMPT,
    CONTINUE_MARKER,
    LIGHT_NOVEL_ADDENDUM,
    build_system_prompt,
    build_user_context,
)
from context_assembly.sections import parse_sections
from core.exceptions import NotFoundError

from data_access import InMemoryNarrativeRepository
from models import Chapter, Character, ContextSection, NarrativeProject, SectionKind


def _story_repository() -> InMemoryNarrativeRepository:
    content = "\n\n".join(
        [
            "Mara woke on a road paved with glass.",
            "A courier bag hung from her shoulder.",
            '"You are late," said Tobin.',
        ]
    )
    return InMemoryNarrativeRepository(
        [NarrativeProject(id="p", name="Lantern Road", project_type="fantasy")],
        [
            Chapter(id="c1", project_id="p", title="Chapter 1", content=content, order_index=1),
            Chapter(id="c2", project_id="p", title="Chapter 2", content="x" * 30, order_index=2),
        ],
        [
            Character(id="m", project_id="p", name="Mara", personality="cheerful"),
            Character(id="t", project_id="p", name="Tobin", personality="calm"),
            Character(id="v", project_id="p", name="Vale", archetype="rival"),
        ],
    )


@pytest.mark.asyncio
async def test_assemble_includes_only_mentioned_characters():
    engine = ContextEngine(_story_repository(), default_max_tokens=4096)
    context = await engine.assemble("p", "c1", None)
    assert "- Mara" in context
    assert "- Tobin" in context
    assert "Vale" not in context
    kinds = [s.kind for s in parse_sections(context)]
    assert kinds == [
        SectionKind.PROJECT,
        SectionKind.WORLD,
        SectionKind.CHARACTERS,
        SectionKind.CHAPTER_INFO,
        SectionKind.CONTENT,
    ]


@pytest.mark.asyncio
async def test_assemble_respects_budget():
    engine = ContextEngine(_story_repository())
    context = await engine.assemble("p", "c1", None, max_tokens=30)
    assert len(context) <= 4 * 30 + COMPRESSION_SLACK_CHARS


@pytest.mark.asyncio
async def test_assemble_missing_chapter_raises():
    engine = ContextEngine(_story_repository())
    with pytest.raises(NotFoundError, match="nope"):
        await engine.assemble("p", "nope", 5)


@pytest.mark.asyncio
async def test_assemble_survives_roster_failure():
    repo = AsyncMock()
    repo.get_project.return_value = NarrativeProject(id="p", name="P")
    repo.get_chapter.return_value = Chapter(
        id="c", project_id="p", title="T", content="Enough text to extract."
    )
    repo.get_characters.side_effect = RuntimeError("boom")
    context = await ContextEngine(repo).assemble("p", "c", None)
    assert "Characters:" not in context
    assert "Enough text to extract." in context


@pytest.mark.asyncio
async def test_assemble_with_report():
    engine = ContextEngine(_story_repository())
    context, report = await engine.assemble_with_report("p", "c1", None)
    assert report.total_tokens == (len(context) + 3) // 4
    assert 0 <= report.overall_quality <= 100


@pytest.mark.asyncio
async def test_assemble_separated():
    engine = ContextEngine(_story_repository())
    separated = await engine.assemble_separated("p", "c1", None)
    assert separated.system_prompt == BASE_SYSTEM_PROMPT
    assert separated.user_context.endswith(CONTINUE_MARKER)
    assert "Project: Lantern Road" in separated.user_context


@pytest.mark.asyncio
async def test_separated_budget_covers_both_parts():
    engine = ContextEngine(_story_repository())
    separated = await engine.assemble_separated("p", "c1", None, max_tokens=200)
    total = len(separated.system_prompt) + len(separated.user_context)
    assert total <= 4 * 200 + COMPRESSION_SLACK_CHARS + len(CONTINUE_MARKER) + 2


@pytest.mark.asyncio
async def test_get_context_stats():
    stats = await ContextEngine(_story_repository()).get_context_stats("p")
    assert stats.chapter_count == 2
    assert stats.character_count == 3
    chapter_one = len(
        "Mara woke on a road paved with glass.\n\n"
        "A courier bag hung from her shoulder.\n\n"
        '"You are late," said Tobin.'
    )
    assert stats.total_characters == chapter_one + 30
    assert stats.estimated_tokens == (stats.total_characters + 3) // 4


@pytest.mark.asyncio
async def test_get_context_stats_unknown_project():
    with pytest.raises(NotFoundError):
        await ContextEngine(_story_repository()).get_context_stats("missing")


@pytest.mark.asyncio
async def test_delegating_operations(hero_repository, hero):
    engine = ContextEngine(hero_repository)
    assert "Hero" in await engine.build_context("p1", "c1", 100)
    assert engine.extract_relevant_content("short", 3) == ""
    assert await engine.get_relevant_characters("p1", "Hero arrives") == [hero]
    assert engine.integrate_characters("ctx", []) == "ctx"
    assert engine.compress_context("A" * 4000, 10).endswith("...")
    assert engine.detect_new_characters("Corvin waved.", ["Hero"]) == ["Corvin"]
    assert await engine.check_consistency("Nothing odd.", "p1") == []


def test_compress_context_uses_default_budget():
    engine = ContextEngine(AsyncMock(), default_max_tokens=5)
    assert len(engine.compress_context("Z" * 500)) <= 4 * 5 + COMPRESSION_SLACK_CHARS


def test_system_prompt_light_novel_addendum():
    assert build_system_prompt("fantasy") == BASE_SYSTEM_PROMPT
    assert build_system_prompt("Light Novel") == (
        f"{BASE_SYSTEM_PROMPT}\n\n{LIGHT_NOVEL_ADDENDUM}"
    )
    assert LIGHT_NOVEL_ADDENDUM in build_system_prompt("校園輕小說")


def test_user_context_ends_with_marker():
    sections = [ContextSection(SectionKind.CHAPTER_INFO, "Current chapter: One")]
    assert build_user_context(sections) == f"Current chapter: One\n\n{CONTINUE_MARKER}"
    assert build_user_context([]) == CONTINUE_MARKER
