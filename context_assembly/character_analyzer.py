# context_assembly/character_analyzer.py
"""Select the characters a passage is about and fold them into the context."""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

import structlog
from core.exceptions import EnrichmentFailure

from data_access.repository import NarrativeRepository
from models import Character, ContextSection, SectionKind

from .character_format import (
    build_name_lookup,
    listed_character_names,
    render_character_entries,
    render_characters_section,
)
from .mention_matcher import (
    MentionMatcher,
    SubstringMentionMatcher,
    detect_name_candidates,
)
from .sections import (
    SECTION_SEPARATOR,
    has_section_labels,
    insert_section,
    parse_sections,
    render_sections,
)

logger = structlog.get_logger(__name__)

_CJK_ALIAS_RE = re.compile(r"(?:別名|暱稱|外號)[:：]\s*([^\s,，。、;；:：]{1,6})")
_LATIN_ALIAS_RE = re.compile(
    r"\b(?:alias|nickname|aka)\s*[:：]\s*([^\W\d_][\w'-]*)", re.IGNORECASE
)


class CharacterRelevanceAnalyzer:
    """Decide which roster characters a passage mentions."""

    def __init__(
        self,
        repository: NarrativeRepository,
        matcher: MentionMatcher | None = None,
    ) -> None:
        self.repository = repository
        self.matcher: MentionMatcher = matcher or SubstringMentionMatcher()

    async def get_relevant_characters(
        self, project_id: str, content: str
    ) -> list[Character]:
        """Return roster characters whose name or alias appears in ``content``.

        Store failures are logged and produce an empty list; character
        enrichment is optional.
        """
        try:
            roster = await self._load_roster(project_id)
        except EnrichmentFailure as exc:
            logger.warning(
                "Character enrichment skipped",
                project_id=project_id,
                error=str(exc),
                cause=str(exc.__cause__),
            )
            return []
        if not content:
            return []
        relevant = [c for c in roster if self.is_mentioned(c, content)]
        logger.debug(
            "Selected relevant characters",
            project_id=project_id,
            roster=len(roster),
            relevant=[c.name for c in relevant],
        )
        return relevant

    async def _load_roster(self, project_id: str) -> list[Character]:
        try:
            return await self.repository.get_characters(project_id)
        except Exception as exc:
            raise EnrichmentFailure(
                f"could not read characters for project {project_id}"
            ) from exc

    def is_mentioned(self, character: Character, content: str) -> bool:
        names = [character.name, *self.extract_aliases(character)]
        return bool(self.matcher.find_mentions(content, names))

    def extract_aliases(self, character: Character) -> list[str]:
        """Pull ``alias:``/``nickname:``/``aka:`` style names out of the description."""
        text = character.description
        if not text:
            return []
        aliases = [m.group(1) for m in _CJK_ALIAS_RE.finditer(text)]
        aliases.extend(m.group(1) for m in _LATIN_ALIAS_RE.finditer(text))
        return [a for a in dict.fromkeys(aliases) if a and a != character.name]

    def integrate_character_sections(
        self, sections: Sequence[ContextSection], characters: Sequence[Character]
    ) -> list[ContextSection]:
        """Add ``characters`` to the characters section, creating it if needed."""
        if not characters:
            return list(sections)
        existing = next(
            (s for s in sections if s.kind is SectionKind.CHARACTERS), None
        )
        if existing is None:
            section = ContextSection(
                SectionKind.CHARACTERS, render_characters_section(characters)
            )
            return insert_section(sections, section)

        listed = listed_character_names(existing.text)
        missing = [c for c in characters if c.name not in listed]
        if not missing:
            return list(sections)
        entries = render_character_entries(missing, build_name_lookup(characters))
        merged = ContextSection(
            SectionKind.CHARACTERS, f"{existing.text.rstrip()}\n{entries}"
        )
        return [merged if s is existing else s for s in sections]

    def integrate_characters(
        self, context: str, characters: Sequence[Character]
    ) -> str:
        """Return ``context`` with a characters section for ``characters``.

        An empty ``characters`` list returns ``context`` unchanged. Text
        without section labels gets the characters section appended.
        """
        if not characters:
            return context
        if not context:
            return render_characters_section(characters)
        if not has_section_labels(context):
            return (
                f"{context.rstrip()}{SECTION_SEPARATOR}"
                f"{render_characters_section(characters)}"
            )
        sections = self.integrate_character_sections(
            parse_sections(context), characters
        )
        return render_sections(sections)

    def detect_new_characters(
        self, content: str, known_names: Iterable[str] = ()
    ) -> list[str]:
        """Return name-like strings in ``content`` that are not ``known_names``."""
        known = set(known_names)
        return [name for name in detect_name_candidates(content) if name not in known]
