# tests/test_config_validators.py

import os

import config
import pytest
from config import EngineSettings


def test_non_positive_token_budget_raises():
    with pytest.raises(ValueError):
        EngineSettings(MAX_CONTEXT_TOKENS=0)


def test_paragraph_count_below_one_is_clamped(monkeypatch):
    warnings: list[str] = []

    def fake_warning(msg: str, **_kw: object) -> None:
        warnings.append(msg)

    monkeypatch.setattr(config.logger, "warning", fake_warning)
    cfg = EngineSettings(RELEVANT_PARAGRAPH_COUNT=0)
    assert cfg.RELEVANT_PARAGRAPH_COUNT == 1
    assert any("RELEVANT_PARAGRAPH_COUNT" in msg for msg in warnings)


def test_log_level_alias(monkeypatch):
    monkeypatch.setenv("AGENT_LOG_LEVEL", "DEBUG")
    assert EngineSettings().LOG_LEVEL_STR == "DEBUG"


def test_budget_from_environment(monkeypatch):
    monkeypatch.setenv("MAX_CONTEXT_TOKENS", "1024")
    assert EngineSettings().MAX_CONTEXT_TOKENS == 1024


def test_log_file_path(monkeypatch):
    monkeypatch.setattr(config.settings, "LOG_FILE", "engine.log")
    monkeypatch.setattr(config.settings, "BASE_OUTPUT_DIR", "out")
    assert config.log_file_path() == os.path.join("out", "engine.log")
    monkeypatch.setattr(config.settings, "LOG_FILE", "")
    assert config.log_file_path() is None


def test_negative_related_paragraph_limit_raises():
    with pytest.raises(ValueError):
        EngineSettings(RELATED_PARAGRAPH_LIMIT=-1)
