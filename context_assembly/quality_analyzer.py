# context_assembly/quality_analyzer.py
"""Diagnostic scoring of assembled contexts and best-effort continuity checks."""

from __future__ import annotations

import structlog
from core.tokens import estimate_tokens
from utils.text_processing import contains_term, split_sentences

from data_access.repository import NarrativeRepository
from models import (
    Character,
    ConsistencyIssue,
    ContextSection,
    QualityReport,
    SectionKind,
)

from .character_format import (
    APPEARANCE_MARKER,
    BACKGROUND_MARKER,
    ENTRY_PREFIX,
    PERSONALITY_MARKER,
    RELATIONSHIP_MARKER,
)
from .sections import (
    CONTENT_LABEL,
    TYPE_LABEL,
    has_section_labels,
    parse_sections,
    section_body,
    section_text,
)

logger = structlog.get_logger(__name__)

GOOD_SCORE = 70

# Each group counts once, in any of its spellings.
WORLD_KEYWORDS: tuple[tuple[str, ...], ...] = (
    ("magic", "魔法"),
    ("technology", "科技"),
    ("school", "學校", "校園"),
    ("otherworld", "異世界"),
    ("future", "未來"),
    ("modern", "現代"),
)

TRAIT_ANTONYMS: tuple[tuple[str, str], ...] = (
    ("cold", "warm"),
    ("introverted", "extroverted"),
    ("cheerful", "gloomy"),
    ("calm", "hot-tempered"),
    ("brave", "cowardly"),
    ("gentle", "violent"),
    ("冷漠", "熱情"),
    ("內向", "外向"),
    ("開朗", "陰沉"),
    ("冷靜", "暴躁"),
    ("勇敢", "膽小"),
    ("溫柔", "粗暴"),
)

TIME_OF_DAY_GROUPS: tuple[tuple[str, ...], ...] = (
    ("dawn", "morning", "清晨", "早上"),
    ("noon", "midday", "中午"),
    ("dusk", "evening", "傍晚", "黃昏"),
    ("midnight", "深夜", "半夜"),
)
# Words that make a sentence describe a span of time rather than one moment.
_TIME_SPAN_WORDS = ("from", "until", "till", "through", "從", "直到", "一直到")

CHARACTER_SUGGESTIONS = (
    "Add more detailed character descriptions and background information.",
    "Consider describing how the characters relate to each other.",
)
WORLD_SUGGESTIONS = (
    "Add richer world-building details.",
    "Give more concrete detail about the story's setting.",
)
NARRATIVE_SUGGESTIONS = (
    "Include more of the surrounding story text as context.",
    "Make sure the chapter information is clear and complete.",
)
GOOD_QUALITY_MESSAGE = "Context quality looks good; ready to continue writing."


def _clamp(score: int) -> int:
    return max(0, min(100, score))


class QualityAnalyzer:
    """Score how useful a context is likely to be to the generation step."""

    def __init__(self, repository: NarrativeRepository | None = None) -> None:
        self.repository = repository

    def analyze_context_quality(self, context: str) -> QualityReport:
        if not context or not context.strip():
            return QualityReport(
                total_tokens=0,
                suggestions=self.generate_suggestions(0, 0, 0),
            )
        sections = parse_sections(context)
        labelled = has_section_labels(context)
        character_score = self.score_character_info(sections)
        world_score = self.score_world_building(context, sections)
        narrative_score = self.score_narrative_coherence(sections, labelled)
        report = QualityReport(
            total_tokens=estimate_tokens(context),
            character_info_quality=character_score,
            world_building_quality=world_score,
            narrative_coherence_quality=narrative_score,
            suggestions=self.generate_suggestions(
                character_score, world_score, narrative_score
            ),
        )
        logger.debug(
            "Analyzed context quality",
            overall=report.overall_quality,
            character=character_score,
            world=world_score,
            narrative=narrative_score,
        )
        return report

    def score_character_info(self, sections: list[ContextSection]) -> int:
        text = section_text(sections, SectionKind.CHARACTERS)
        if not text:
            return 0
        lines = text.split("\n")
        score = 30
        entries = sum(1 for line in lines if line.startswith(ENTRY_PREFIX))
        score += min(40, entries * 10)
        if PERSONALITY_MARKER in text:
            score += 10
        if RELATIONSHIP_MARKER in text:
            score += 10
        if APPEARANCE_MARKER in text or BACKGROUND_MARKER in text:
            score += 10
        return _clamp(score)

    def score_world_building(
        self, context: str, sections: list[ContextSection]
    ) -> int:
        score = 0
        if section_text(sections, SectionKind.WORLD):
            score += 40
        project = section_text(sections, SectionKind.PROJECT)
        if any(line.startswith(TYPE_LABEL) for line in project.split("\n")):
            score += 20
        for group in WORLD_KEYWORDS:
            if any(contains_term(context, word) for word in group):
                score += 10
        return _clamp(score)

    def score_narrative_coherence(
        self, sections: list[ContextSection], labelled: bool
    ) -> int:
        score = 30
        if section_text(sections, SectionKind.CHAPTER_INFO):
            score += 20
        content = next((s for s in sections if s.kind is SectionKind.CONTENT), None)
        if labelled and content is not None and content.text.startswith(CONTENT_LABEL):
            score += 20
            body = section_body(content)
            if 100 < len(body) < 2000:
                score += 10
            if "\n\n" in body:
                score += 20
        return _clamp(score)

    def generate_suggestions(
        self, character_score: int, world_score: int, narrative_score: int
    ) -> list[str]:
        suggestions: list[str] = []
        if character_score < GOOD_SCORE:
            suggestions.extend(CHARACTER_SUGGESTIONS)
        if world_score < GOOD_SCORE:
            suggestions.extend(WORLD_SUGGESTIONS)
        if narrative_score < GOOD_SCORE:
            suggestions.extend(NARRATIVE_SUGGESTIONS)
        if not suggestions:
            suggestions.append(GOOD_QUALITY_MESSAGE)
        return suggestions

    async def check_consistency(
        self, content: str, project_id: str
    ) -> list[ConsistencyIssue]:
        """Flag possible continuity problems in ``content``. Best effort."""
        issues: list[ConsistencyIssue] = []
        if not content:
            return issues
        if self.repository is not None:
            try:
                characters = await self.repository.get_characters(project_id)
            except Exception as exc:
                logger.error(
                    "Character consistency check failed",
                    project_id=project_id,
                    error=str(exc),
                    exc_info=True,
                )
                characters = []
            issues.extend(self._check_characters(content, characters))
        issues.extend(self._check_plot(content))
        return issues

    def _check_characters(
        self, content: str, characters: list[Character]
    ) -> list[ConsistencyIssue]:
        issues: list[ConsistencyIssue] = []
        sentences = split_sentences(content)
        for character in characters:
            if not character.name or not character.personality:
                continue
            if character.name not in content:
                continue
            if self._contradicts_personality(character, sentences):
                issues.append(
                    ConsistencyIssue(
                        issue_type="character",
                        description=(
                            f"{character.name} may be described inconsistently "
                            "with their recorded personality."
                        ),
                        severity="medium",
                        suggestion=(
                            f"Check that {character.name}'s behaviour matches "
                            "their character profile."
                        ),
                    )
                )
        return issues

    @staticmethod
    def _contradicts_personality(character: Character, sentences: list[str]) -> bool:
        personality = character.personality
        for sentence in sentences:
            if character.name not in sentence:
                continue
            for first, second in TRAIT_ANTONYMS:
                for trait, opposite in ((first, second), (second, first)):
                    if (
                        contains_term(personality, trait)
                        and not contains_term(personality, opposite)
                        and contains_term(sentence, opposite)
                    ):
                        return True
        return False

    def _check_plot(self, content: str) -> list[ConsistencyIssue]:
        for sentence in split_sentences(content):
            if any(contains_term(sentence, word) for word in _TIME_SPAN_WORDS):
                continue
            groups = sum(
                1
                for group in TIME_OF_DAY_GROUPS
                if any(contains_term(sentence, word) for word in group)
            )
            if groups >= 2:
                return [
                    ConsistencyIssue(
                        issue_type="plot",
                        description=(
                            "A sentence places itself at two different times of "
                            f"day: {sentence[:80]}"
                        ),
                        severity="low",
                        suggestion="Check the timeline of this passage.",
                    )
                ]
        return []
