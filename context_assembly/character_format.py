# context_assembly/character_format.py
"""Render characters as entries of the characters section."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence

from utils.text_processing import collapse_whitespace

from models import Character

from .sections import CHARACTERS_LABEL

ENTRY_PREFIX = "- "
ATTRIBUTE_INDENT = "  "

PERSONALITY_MARKER = "Personality:"
RELATIONSHIP_MARKER = "Relationship:"
ABILITIES_MARKER = "Abilities:"
APPEARANCE_MARKER = "Appearance:"
BACKGROUND_MARKER = "Background:"


def build_name_lookup(characters: Iterable[Character]) -> dict[str, str]:
    """Map character ids to names for relationship targets."""
    return {c.id: c.name for c in characters if c.id}


def render_character_entry(
    character: Character, name_lookup: Mapping[str, str] | None = None
) -> str:
    """Render one character as an entry line plus indented attribute lines."""
    summary = character.demographic_summary()
    head = f"{ENTRY_PREFIX}{character.name}"
    lines = [f"{head}: {summary}" if summary else head]

    for label, value in (
        ("Description:", character.description),
        (APPEARANCE_MARKER, character.appearance),
        (PERSONALITY_MARKER, character.personality),
        (BACKGROUND_MARKER, character.background),
    ):
        if value.strip():
            lines.append(f"{ATTRIBUTE_INDENT}{label} {collapse_whitespace(value)}")

    abilities = [a.strip() for a in character.abilities if a.strip()]
    if abilities:
        lines.append(f"{ATTRIBUTE_INDENT}{ABILITIES_MARKER} {', '.join(abilities)}")

    lookup = name_lookup or {}
    for rel in character.relationships:
        target = lookup.get(rel.target_id, rel.target_id)
        line = (
            f"{ATTRIBUTE_INDENT}{RELATIONSHIP_MARKER} "
            f"{rel.relationship_type or 'related'} with {target}"
        )
        if rel.description.strip():
            line += f": {collapse_whitespace(rel.description)}"
        lines.append(line)
    return "\n".join(lines)


def render_character_entries(
    characters: Sequence[Character], name_lookup: Mapping[str, str] | None = None
) -> str:
    lookup = name_lookup if name_lookup is not None else build_name_lookup(characters)
    return "\n".join(render_character_entry(c, lookup) for c in characters)


def render_characters_section(
    characters: Sequence[Character], name_lookup: Mapping[str, str] | None = None
) -> str:
    """Return the labelled characters section, or "" when there are none."""
    if not characters:
        return ""
    return f"{CHARACTERS_LABEL}\n{render_character_entries(characters, name_lookup)}"


def listed_character_names(section_text: str) -> set[str]:
    """Return the names of entries already present in a characters section."""
    names: set[str] = set()
    for line in section_text.split("\n"):
        if not line.startswith(ENTRY_PREFIX):
            continue
        name = line[len(ENTRY_PREFIX) :].split(":", 1)[0].strip()
        if name:
            names.add(name)
    return names
