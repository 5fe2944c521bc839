"""Central package for context engine data models."""

from .context_models import (
    SECTION_IMPORTANCE,
    SECTION_ORDER,
    ContextSection,
    ContextStats,
    QualityReport,
    SectionKind,
    SeparatedContext,
)
from .narrative_models import (
    Chapter,
    Character,
    ConsistencyIssue,
    NarrativeProject,
    Relationship,
)

__all__ = [
    "NarrativeProject",
    "Chapter",
    "Character",
    "Relationship",
    "ConsistencyIssue",
    "SectionKind",
    "SECTION_ORDER",
    "SECTION_IMPORTANCE",
    "ContextSection",
    "QualityReport",
    "SeparatedContext",
    "ContextStats",
]
