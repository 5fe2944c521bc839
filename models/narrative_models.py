"""Narrative records read from the store: projects, chapters and characters."""

from __future__ import annotations

import json
import re
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


_CAMEL_BOUNDARY_RE = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def _snake_case(key: str) -> str:
    """``levelSystem`` and ``level_system`` both become ``level_system``."""
    return _CAMEL_BOUNDARY_RE.sub("_", key.strip()).lower()


class NarrativeBaseModel(BaseModel):
    """Base model for records read from the store."""

    model_config = ConfigDict(from_attributes=True, extra="ignore")


class NarrativeProject(NarrativeBaseModel):
    """A writing project: premise and genre for every chapter it owns."""

    id: str
    name: str
    project_type: str = ""
    description: str = ""
    # Genre specific world details such as ``magic_system`` or ``school_name``.
    template_settings: dict[str, str] = Field(default_factory=dict)

    @field_validator("template_settings", mode="before")
    @classmethod
    def _normalize_template_settings(cls, value: Any) -> Any:
        # Neo4j cannot store maps, so the property may arrive as JSON text.
        if value is None or value == "":
            return {}
        if isinstance(value, str):
            value = json.loads(value)
        if not isinstance(value, dict):
            raise ValueError("template_settings must be a mapping")
        return {
            _snake_case(str(key)): str(item).strip()
            for key, item in value.items()
            if item is not None and str(item).strip()
        }


class Chapter(NarrativeBaseModel):
    """A chapter; ``content`` is addressed by character offset."""

    id: str
    project_id: str
    title: str = ""
    content: str = ""
    order_index: int = 0

    @field_validator("content", "title", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class Relationship(NarrativeBaseModel):
    """Directed edge from one character to another."""

    target_id: str
    relationship_type: str = ""
    description: str = ""


class Character(NarrativeBaseModel):
    """Structured information about a character."""

    id: str = ""
    project_id: str = ""
    name: str
    archetype: str = ""
    age: int | None = None
    gender: str = ""
    description: str = ""
    appearance: str = ""
    personality: str = ""
    background: str = ""
    abilities: list[str] = Field(default_factory=list)
    relationships: list[Relationship] = Field(default_factory=list)

    @field_validator(
        "archetype",
        "gender",
        "description",
        "appearance",
        "personality",
        "background",
        mode="before",
    )
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("abilities", "relationships", mode="before")
    @classmethod
    def _none_to_list(cls, value: Any) -> Any:
        return [] if value is None else value

    def demographic_summary(self) -> str:
        """Return ``"<age> years old, <gender>, <archetype> archetype"``."""
        parts: list[str] = []
        if self.age is not None:
            parts.append(f"{self.age} years old")
        if self.gender:
            parts.append(self.gender)
        if self.archetype:
            parts.append(f"{self.archetype} archetype")
        return ", ".join(parts)


class ConsistencyIssue(NarrativeBaseModel):
    """A possible continuity problem found in chapter text."""

    issue_type: Literal["character", "setting", "plot"]
    description: str
    severity: Literal["low", "medium", "high"] = "low"
    suggestion: str = ""
