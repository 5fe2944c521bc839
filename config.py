# config.py
"""Configuration settings for the narrative context engine.
Uses Pydantic BaseSettings for automatic environment variable loading.
"""

from __future__ import annotations

import os

import structlog
from dotenv import load_dotenv
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()

logger = structlog.get_logger()


class EngineSettings(BaseSettings):
    """Full configuration for the context engine and its surroundings."""

    # Neo4j Connection Settings
    NEO4J_URI: str = "bolt://localhost:7687"
    NEO4J_USER: str = "neo4j"
    NEO4J_PASSWORD: str = "narrative_password"
    NEO4J_DATABASE: str | None = "neo4j"

    # Graph labels used by the narrative store
    PROJECT_NODE_LABEL: str = "Project"
    CHAPTER_NODE_LABEL: str = "Chapter"
    CHARACTER_NODE_LABEL: str = "Character"
    CHARACTER_REL_TYPE: str = "RELATES_TO"

    # Context Assembly
    # Default budget when a caller does not pass one per request.
    MAX_CONTEXT_TOKENS: int = 4096
    RELEVANT_PARAGRAPH_COUNT: int = 3
    MIN_EXTRACTABLE_CHARS: int = 10
    # Earlier paragraphs pulled in by key-term overlap, on top of the recent ones.
    RELATED_PARAGRAPH_LIMIT: int = 5

    # Input for the command line runner
    STORY_FILE: str | None = None

    # Logging & UI
    LOG_LEVEL_STR: str = Field("INFO", alias="AGENT_LOG_LEVEL")
    LOG_FORMAT: str = (
        "%(asctime)s - %(levelname)s - [%(name)s:%(funcName)s:%(lineno)d] - %(message)s"
    )
    LOG_DATE_FORMAT: str = "%Y-%m-%d %H:%M:%S"
    LOG_FILE: str | None = "context_engine.log"
    BASE_OUTPUT_DIR: str = "engine_output"
    ENABLE_RICH_LOGGING: bool = True

    @model_validator(mode="after")
    def check_context_limits(self) -> EngineSettings:
        if self.MAX_CONTEXT_TOKENS <= 0:
            raise ValueError("MAX_CONTEXT_TOKENS must be positive")
        if self.RELEVANT_PARAGRAPH_COUNT < 1:
            logger.warning(
                "RELEVANT_PARAGRAPH_COUNT below 1; using a single paragraph.",
                configured=self.RELEVANT_PARAGRAPH_COUNT,
            )
            self.RELEVANT_PARAGRAPH_COUNT = 1
        if self.RELATED_PARAGRAPH_LIMIT < 0:
            raise ValueError("RELATED_PARAGRAPH_LIMIT must not be negative")
        return self

    model_config = SettingsConfigDict(
        env_prefix="", env_file=".env", populate_by_name=True, extra="ignore"
    )


settings = EngineSettings()


def log_file_path() -> str | None:
    """Return the absolute or output-relative log file path, if logging to file."""
    if not settings.LOG_FILE:
        return None
    if os.path.isabs(settings.LOG_FILE):
        return settings.LOG_FILE
    return os.path.join(settings.BASE_OUTPUT_DIR, settings.LOG_FILE)
