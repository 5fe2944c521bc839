"""Exception types shared across the context engine.

Only lookups at the store boundary fail loudly. Everything heuristic
(character relevance, quality scoring, new-character detection) degrades
instead of raising.
"""

from __future__ import annotations


class ContextEngineError(Exception):
    """Base class for errors raised by the context engine."""


class NotFoundError(ContextEngineError):
    """A referenced project or chapter does not exist in the narrative store."""

    def __init__(self, entity: str, entity_id: str) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id}")


class StoreUnavailableError(ContextEngineError):
    """The narrative store could not be reached."""


class EnrichmentFailure(ContextEngineError):
    """Character enrichment failed.

    Never propagated to callers; it is raised and caught inside the
    character analyzer so the failure is logged with a stable type.
    """
