# tests/test_character_analyzer.py
from unittest.mock import AsyncMock

import pytest
from context_assembly import character_analyzer as ca
from context_assembly.character_analyzer import CharacterRelevanceAnalyzer
from context_assembly.sections import parse_sections, render_sections

from data_access import InMemoryNarrativeRepository
from models import Character, ContextSection, Relationship, SectionKind


def _roster() -> list[Character]:
    return [
        Character(id="a", project_id="p", name="Alice", personality="calm"),
        Character(id="b", project_id="p", name="Bob", archetype="thief"),
    ]


@pytest.mark.asyncio
async def test_only_mentioned_character_is_relevant():
    analyzer = CharacterRelevanceAnalyzer(InMemoryNarrativeRepository(characters=_roster()))
    relevant = await analyzer.get_relevant_characters("p", "Alice opened the door.")
    assert [c.name for c in relevant] == ["Alice"]


def test_is_mentioned_by_name_or_alias():
    analyzer = CharacterRelevanceAnalyzer(InMemoryNarrativeRepository())
    robert = Character(name="Robert", description="Nickname: Bobby")
    assert analyzer.is_mentioned(robert, "Robert waved.")
    assert analyzer.is_mentioned(robert, "Bobby waved.")
    assert not analyzer.is_mentioned(robert, "Nobody waved.")


@pytest.mark.asyncio
async def test_alias_mention_counts():
    roster = [
        Character(project_id="p", name="Robert", description="A thief. Nickname: Bobby"),
        Character(project_id="p", name="李明", description="學生，外號：小李"),
    ]
    analyzer = CharacterRelevanceAnalyzer(InMemoryNarrativeRepository(characters=roster))
    assert [c.name for c in await analyzer.get_relevant_characters("p", "Bobby ran.")] == [
        "Robert"
    ]
    assert [c.name for c in await analyzer.get_relevant_characters("p", "小李笑了")] == [
        "李明"
    ]


@pytest.mark.asyncio
async def test_store_failure_yields_empty_list(monkeypatch):
    repo = AsyncMock()
    repo.get_characters.side_effect = ConnectionError("store down")
    warnings: list[str] = []

    def fake_warning(msg: str, **_kw: object) -> None:
        warnings.append(msg)

    monkeypatch.setattr(ca.logger, "warning", fake_warning)
    analyzer = CharacterRelevanceAnalyzer(repo)
    assert await analyzer.get_relevant_characters("p", "Alice") == []
    assert warnings == ["Character enrichment skipped"]


@pytest.mark.asyncio
async def test_empty_content_has_no_relevant_characters():
    analyzer = CharacterRelevanceAnalyzer(InMemoryNarrativeRepository(characters=_roster()))
    assert await analyzer.get_relevant_characters("p", "") == []


@pytest.mark.asyncio
async def test_injected_matcher_is_used():
    class CaseInsensitiveMatcher:
        def find_mentions(self, text, known_names):
            lowered = text.lower()
            return [n for n in known_names if n and n.lower() in lowered]

    analyzer = CharacterRelevanceAnalyzer(
        InMemoryNarrativeRepository(characters=_roster()),
        matcher=CaseInsensitiveMatcher(),
    )
    relevant = await analyzer.get_relevant_characters("p", "then bob laughed")
    assert [c.name for c in relevant] == ["Bob"]


@pytest.mark.parametrize(
    "description, expected",
    [
        ("alias: Shadow", ["Shadow"]),
        ("Known as many things. AKA: Fox.", ["Fox"]),
        ("別名：黑影", ["黑影"]),
        ("暱稱:阿明，很友善", ["阿明"]),
        ("No aliases here.", []),
        ("", []),
    ],
)
def test_extract_aliases(description, expected):
    analyzer = CharacterRelevanceAnalyzer(AsyncMock())
    character = Character(name="Someone", description=description)
    assert analyzer.extract_aliases(character) == expected


def test_alias_equal_to_name_is_ignored():
    analyzer = CharacterRelevanceAnalyzer(AsyncMock())
    assert analyzer.extract_aliases(Character(name="Kai", description="alias: Kai")) == []


class TestIntegrateCharacters:
    analyzer = CharacterRelevanceAnalyzer(AsyncMock())

    @pytest.mark.parametrize(
        "context",
        ["", "ctx", "Project: A\n\nCurrent chapter: B", "Relevant content:\nText"],
    )
    def test_empty_list_is_identity(self, context):
        assert self.analyzer.integrate_characters(context, []) == context

    def test_villager_without_abilities_or_relationships(self):
        villager = Character(name="Villager", abilities=[], relationships=[])
        result = self.analyzer.integrate_characters("ctx", [villager])
        assert result.startswith("ctx")
        assert "- Villager" in result
        assert "Abilities:" not in result
        assert "Relationship:" not in result

    def test_full_entry_format(self):
        alice = Character(
            id="a",
            name="Alice",
            age=17,
            gender="female",
            archetype="mage",
            appearance="silver hair",
            personality="calm",
            background="orphan",
            abilities=["fire", "ice"],
            relationships=[
                Relationship(target_id="b", relationship_type="rival", description="since school")
            ],
        )
        bob = Character(id="b", name="Bob")
        result = self.analyzer.integrate_characters("ctx", [alice, bob])
        assert "- Alice: 17 years old, female, mage archetype" in result
        assert "  Appearance: silver hair" in result
        assert "  Personality: calm" in result
        assert "  Background: orphan" in result
        assert "  Abilities: fire, ice" in result
        assert "  Relationship: rival with Bob: since school" in result
        assert "\n- Bob" in result

    def test_unknown_relationship_target_falls_back_to_id(self):
        alice = Character(
            name="Alice", relationships=[Relationship(target_id="zz-9")]
        )
        result = self.analyzer.integrate_characters("ctx", [alice])
        assert "  Relationship: related with zz-9" in result

    def test_inserted_before_chapter_info(self):
        context = "Project: A\n\nCurrent chapter: One\n\nRelevant content:\nText"
        result = self.analyzer.integrate_characters(context, [Character(name="Kai")])
        kinds = [s.kind for s in parse_sections(result)]
        assert kinds == [
            SectionKind.PROJECT,
            SectionKind.CHARACTERS,
            SectionKind.CHAPTER_INFO,
            SectionKind.CONTENT,
        ]

    def test_merge_skips_listed_names(self):
        context = "Project: A\n\nCharacters:\n- Kai: mage archetype\n\nCurrent chapter: One"
        result = self.analyzer.integrate_characters(
            context, [Character(name="Kai"), Character(name="Rin", age=20)]
        )
        characters = [s for s in parse_sections(result) if s.kind is SectionKind.CHARACTERS]
        assert len(characters) == 1
        assert characters[0].text.count("- Kai") == 1
        assert "- Rin: 20 years old" in characters[0].text

    def test_merge_with_nothing_new_is_unchanged(self):
        sections = [
            ContextSection(SectionKind.CHARACTERS, "Characters:\n- Kai"),
            ContextSection(SectionKind.CHAPTER_INFO, "Current chapter: One"),
        ]
        result = self.analyzer.integrate_character_sections(sections, [Character(name="Kai")])
        assert render_sections(result) == render_sections(sections)


def test_detect_new_characters_drops_known_names():
    analyzer = CharacterRelevanceAnalyzer(AsyncMock())
    content = "Alice met a stranger named Corvin. The Hero waved."
    names = analyzer.detect_new_characters(content, known_names=["Alice"])
    assert "Corvin" in names
    assert "Hero" in names
    assert "Alice" not in names
    assert "The" not in names
