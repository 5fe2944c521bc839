# context_assembly/engine.py
"""Compose builder, analyzer, compressor and quality analyzer into one engine."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

import structlog
from config import settings
from core.db_manager import Neo4jManager
from core.exceptions import NotFoundError
from core.tokens import estimate_tokens, tokens_for_chars

from data_access.repository import NarrativeRepository, Neo4jNarrativeRepository
from models import (
    Character,
    ConsistencyIssue,
    ContextSection,
    ContextStats,
    NarrativeProject,
    QualityReport,
    SectionKind,
    SeparatedContext,
)

from .character_analyzer import CharacterRelevanceAnalyzer
from .context_builder import ContextBuilder
from .context_compressor import ContextCompressor
from .mention_matcher import MentionMatcher
from .prompt_builder import (
    CONTINUE_MARKER,
    build_system_prompt,
    build_user_context,
)
from .quality_analyzer import QualityAnalyzer
from .sections import SECTION_SEPARATOR, render_sections, section_body

logger = structlog.get_logger(__name__)


class ContextEngine:
    """Turn narrative records into a bounded prompt for one cursor position.

    Construct one engine per store connection and pass it to callers. All
    per-request state lives in the call; engines can be shared across
    concurrent requests.
    """

    def __init__(
        self,
        repository: NarrativeRepository,
        *,
        builder: ContextBuilder | None = None,
        analyzer: CharacterRelevanceAnalyzer | None = None,
        compressor: ContextCompressor | None = None,
        quality_analyzer: QualityAnalyzer | None = None,
        mention_matcher: MentionMatcher | None = None,
        default_max_tokens: int | None = None,
    ) -> None:
        self.repository = repository
        self.builder = builder or ContextBuilder(repository)
        self.analyzer = analyzer or CharacterRelevanceAnalyzer(
            repository, matcher=mention_matcher
        )
        self.compressor = compressor or ContextCompressor()
        self.quality_analyzer = quality_analyzer or QualityAnalyzer(repository)
        self.default_max_tokens = default_max_tokens or settings.MAX_CONTEXT_TOKENS

    def _budget(self, max_tokens: int | None) -> int:
        return self.default_max_tokens if max_tokens is None else max_tokens

    async def assemble_sections(
        self,
        project_id: str,
        chapter_id: str,
        cursor_position: int | None,
        max_tokens: int | None = None,
    ) -> list[ContextSection]:
        """Build, enrich with mentioned characters, and compress to the budget."""
        _project, sections = await self._enriched_sections(
            project_id, chapter_id, cursor_position
        )
        return self.compressor.compress_sections(sections, self._budget(max_tokens))

    async def _enriched_sections(
        self, project_id: str, chapter_id: str, cursor_position: int | None
    ) -> tuple[NarrativeProject, list[ContextSection]]:
        project, chapter = await self.builder.fetch_records(project_id, chapter_id)
        sections = self.builder.compose_sections(project, chapter, cursor_position)
        content = next(
            (section_body(s) for s in sections if s.kind is SectionKind.CONTENT), ""
        )
        characters = await self.analyzer.get_relevant_characters(project_id, content)
        return project, self.analyzer.integrate_character_sections(sections, characters)

    async def assemble(
        self,
        project_id: str,
        chapter_id: str,
        cursor_position: int | None,
        max_tokens: int | None = None,
    ) -> str:
        """Return the prompt string for the chapter at ``cursor_position``."""
        sections = await self.assemble_sections(
            project_id, chapter_id, cursor_position, max_tokens
        )
        context = render_sections(sections)
        logger.info(
            "Assembled context",
            project_id=project_id,
            chapter_id=chapter_id,
            tokens=estimate_tokens(context),
            max_tokens=self._budget(max_tokens),
        )
        return context

    async def assemble_with_report(
        self,
        project_id: str,
        chapter_id: str,
        cursor_position: int | None,
        max_tokens: int | None = None,
    ) -> tuple[str, QualityReport]:
        context = await self.assemble(project_id, chapter_id, cursor_position, max_tokens)
        return context, self.analyze_context_quality(context)

    async def assemble_separated(
        self,
        project_id: str,
        chapter_id: str,
        cursor_position: int | None,
        max_tokens: int | None = None,
    ) -> SeparatedContext:
        """Split the prompt into a constant system instruction and a user context.

        The user context is compressed to what the budget leaves after the
        system instruction and the continuation marker.
        """
        project, sections = await self._enriched_sections(
            project_id, chapter_id, cursor_position
        )
        system_prompt = build_system_prompt(project.project_type)
        overhead = estimate_tokens(system_prompt) + estimate_tokens(
            SECTION_SEPARATOR + CONTINUE_MARKER
        )
        budget = max(1, self._budget(max_tokens) - overhead)
        user_context = build_user_context(
            self.compressor.compress_sections(sections, budget)
        )
        return SeparatedContext(system_prompt=system_prompt, user_context=user_context)

    async def get_context_stats(self, project_id: str) -> ContextStats:
        """Return size figures for a project's chapters and roster."""
        project = await self.repository.get_project(project_id)
        if project is None:
            raise NotFoundError("Project", project_id)
        chapters = await self.repository.list_chapters(project_id)
        characters = await self.repository.get_characters(project_id)
        total_characters = sum(len(c.content) for c in chapters)
        return ContextStats(
            chapter_count=len(chapters),
            character_count=len(characters),
            total_characters=total_characters,
            estimated_tokens=tokens_for_chars(total_characters),
        )

    # Component operations, exposed for string-level callers.

    async def build_context(
        self, project_id: str, chapter_id: str, cursor_position: int | None
    ) -> str:
        return await self.builder.build_context(project_id, chapter_id, cursor_position)

    def extract_relevant_content(self, content: str, cursor_position: int) -> str:
        return self.builder.extract_relevant_content(content, cursor_position)

    async def get_relevant_characters(
        self, project_id: str, content: str
    ) -> list[Character]:
        return await self.analyzer.get_relevant_characters(project_id, content)

    def integrate_characters(self, context: str, characters: Sequence[Character]) -> str:
        return self.analyzer.integrate_characters(context, characters)

    def detect_new_characters(
        self, content: str, known_names: Iterable[str] = ()
    ) -> list[str]:
        return self.analyzer.detect_new_characters(content, known_names)

    def compress_context(self, context: str, max_tokens: int | None = None) -> str:
        return self.compressor.compress_context(context, self._budget(max_tokens))

    def analyze_context_quality(self, context: str) -> QualityReport:
        return self.quality_analyzer.analyze_context_quality(context)

    async def check_consistency(
        self, content: str, project_id: str
    ) -> list[ConsistencyIssue]:
        return await self.quality_analyzer.check_consistency(content, project_id)


def create_neo4j_engine(
    db: Neo4jManager, default_max_tokens: int | None = None
) -> ContextEngine:
    """Build an engine over a connected Neo4j manager."""
    return ContextEngine(
        Neo4jNarrativeRepository(db), default_max_tokens=default_max_tokens
    )
