# orchestration/cli_runner.py
"""Command-line runner for the context engine."""

from __future__ import annotations

import argparse
import asyncio

import structlog
from config import settings
from context_assembly import ContextEngine, create_neo4j_engine
from core.db_manager import Neo4jManager
from core.exceptions import ContextEngineError
from ui.rich_display import RichDisplayManager
from utils.logging import setup_logging

from data_access import InMemoryNarrativeRepository

logger = structlog.get_logger(__name__)


async def _run_with_engine(
    engine: ContextEngine, args: argparse.Namespace, display: RichDisplayManager
) -> None:
    if args.stats:
        display.show_stats(await engine.get_context_stats(args.project_id))

    if args.separated:
        separated = await engine.assemble_separated(
            args.project_id, args.chapter_id, args.cursor, args.max_tokens
        )
        display.show_separated(separated)
        context = separated.user_context
    else:
        context = await engine.assemble(
            args.project_id, args.chapter_id, args.cursor, args.max_tokens
        )
        display.show_context(context)

    if args.quality:
        display.show_quality(engine.analyze_context_quality(context))

    if args.check or args.detect_new:
        chapter = await engine.repository.get_chapter(args.chapter_id)
        content = chapter.content if chapter else ""
        if args.check:
            display.show_issues(await engine.check_consistency(content, args.project_id))
        if args.detect_new:
            roster = await engine.repository.get_characters(args.project_id)
            display.show_candidates(
                engine.detect_new_characters(content, [c.name for c in roster])
            )


async def _run(args: argparse.Namespace, display: RichDisplayManager) -> None:
    story_file = args.story or settings.STORY_FILE
    if story_file:
        engine = ContextEngine(InMemoryNarrativeRepository.from_yaml(story_file))
        await _run_with_engine(engine, args, display)
        return
    async with Neo4jManager() as db:
        await _run_with_engine(create_neo4j_engine(db), args, display)


def run(args: argparse.Namespace) -> int:
    """Assemble the requested context and return a process exit code."""
    setup_logging()
    display = RichDisplayManager()
    try:
        asyncio.run(_run(args, display))
    except KeyboardInterrupt:
        logger.info("Context engine interrupted by user.")
        return 130
    except (ContextEngineError, ValueError) as err:
        logger.error("Context assembly failed: %s", err)
        display.show_error(str(err))
        return 1
    return 0
