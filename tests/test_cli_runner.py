# tests/test_cli_runner.py
import os

import main
from orchestration import cli_runner

STORY_PATH = os.path.join(os.path.dirname(__file__), os.pardir, "story_example.yaml")


def _run(monkeypatch, *argv: str) -> int:
    monkeypatch.setattr(cli_runner, "setup_logging", lambda: None)
    args = main.build_parser().parse_args(list(argv))
    return cli_runner.run(args)


def test_assemble_from_story_file(monkeypatch, capsys):
    code = _run(monkeypatch, "demo", "ch1", "--story", STORY_PATH, "--quality")
    out = capsys.readouterr().out
    assert code == 0
    assert "The Lantern Road" in out
    assert "Mara" in out
    assert "Context quality" in out


def test_separated_and_diagnostics(monkeypatch, capsys):
    code = _run(
        monkeypatch,
        "demo",
        "ch1",
        "--story",
        STORY_PATH,
        "--separated",
        "--stats",
        "--check",
        "--detect-new",
    )
    out = capsys.readouterr().out
    assert code == 0
    assert "[CONTINUE HERE]" in out
    assert "Project statistics" in out


def test_missing_chapter_exit_code(monkeypatch, capsys):
    code = _run(monkeypatch, "demo", "nope", "--story", STORY_PATH)
    assert code == 1
    assert "Chapter not found: nope" in capsys.readouterr().out


def test_parser_defaults():
    args = main.build_parser().parse_args(["p", "c"])
    assert args.cursor is None
    assert args.max_tokens is None
    assert not args.separated
