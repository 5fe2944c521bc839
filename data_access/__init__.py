# data_access/__init__.py
# Read-only access to the narrative store.

from .memory_repository import InMemoryNarrativeRepository
from .repository import (
    BaseRepository,
    NarrativeRepository,
    Neo4jNarrativeRepository,
    chapter_from_record,
    character_from_record,
    project_from_record,
)

__all__ = [
    "NarrativeRepository",
    "BaseRepository",
    "Neo4jNarrativeRepository",
    "InMemoryNarrativeRepository",
    "project_from_record",
    "chapter_from_record",
    "character_from_record",
]
