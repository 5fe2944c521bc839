"""Narrative context assembly: build, enrich, compress and score prompts."""

from .character_analyzer import CharacterRelevanceAnalyzer
from .context_builder import PROJECT_TYPE_LABELS, WORLD_TEMPLATES, ContextBuilder
from .context_compressor import COMPRESSION_SLACK_CHARS, ContextCompressor
from .engine import ContextEngine, create_neo4j_engine
from .mention_matcher import MentionMatcher, SubstringMentionMatcher
from .prompt_builder import CONTINUE_MARKER, build_system_prompt, build_user_context
from .quality_analyzer import QualityAnalyzer
from .sections import parse_sections, render_sections

__all__ = [
    "ContextBuilder",
    "PROJECT_TYPE_LABELS",
    "WORLD_TEMPLATES",
    "CharacterRelevanceAnalyzer",
    "MentionMatcher",
    "SubstringMentionMatcher",
    "ContextCompressor",
    "COMPRESSION_SLACK_CHARS",
    "QualityAnalyzer",
    "ContextEngine",
    "create_neo4j_engine",
    "CONTINUE_MARKER",
    "build_system_prompt",
    "build_user_context",
    "parse_sections",
    "render_sections",
]
