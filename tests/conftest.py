# tests/conftest.py
import os
import sys

import pytest

# Ensure repository root is on PYTHONPATH for tests
repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
if repo_root not in sys.path:
    sys.path.insert(0, repo_root)

# Keep test runs from writing log files or reading a developer's story file
os.environ.setdefault("NEO4J_PASSWORD", "test-password")
os.environ.setdefault("LOG_FILE", "")
os.environ.pop("STORY_FILE", None)

from data_access import InMemoryNarrativeRepository  # noqa: E402
from models import Chapter, Character, NarrativeProject  # noqa: E402


@pytest.fixture
def hero_project() -> NarrativeProject:
    return NarrativeProject(id="p1", name="Test", project_type="isekai")


@pytest.fixture
def hero_chapter() -> Chapter:
    return Chapter(
        id="c1",
        project_id="p1",
        title="Chapter 1",
        content="Para A.\n\nPara B with the hero.",
        order_index=1,
    )


@pytest.fixture
def hero() -> Character:
    return Character(
        id="ch-hero",
        project_id="p1",
        name="Hero",
        age=18,
        gender="male",
        archetype="warrior",
    )


@pytest.fixture
def hero_repository(hero_project, hero_chapter, hero) -> InMemoryNarrativeRepository:
    return InMemoryNarrativeRepository([hero_project], [hero_chapter], [hero])
