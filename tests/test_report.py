"""Tests for the execution report and the latest-run log."""

import json
from pathlib import Path

import pytest

from okit.registry import Step
from okit.report import format_duration, print_results, summarize, write_latest_log
from okit.runner import ExecuteResult


@pytest.fixture
def results() -> list[ExecuteResult]:
    return [
        ExecuteResult(Step(name="Homebrew"), "skip", True, "already exists", 12),
        ExecuteResult(Step(name="Node.js"), "install", True, None, 65_000),
        ExecuteResult(
            Step(name="Claude Code"),
            "install",
            False,
            "Command failed with exit code 1: npm install -g @anthropic-ai/claude-code",
            1500,
        ),
    ]


def test_summarize(results):
    summary = summarize(results)

    assert summary.succeeded == 1
    assert summary.failed == 1
    assert summary.skipped == 1
    assert summary.total == 3
    assert summary.total_duration == 66_512
    assert summary.failures == [
        ("Claude Code", "Command failed with exit code 1: npm install -g @anthropic-ai/claude-code")
    ]
    assert summary.ok is False


def test_summarize_empty():
    summary = summarize([])
    assert summary.total == 0
    assert summary.ok is True


@pytest.mark.parametrize(
    "ms,expected",
    [(0, "0ms"), (999, "999ms"), (1000, "1s"), (59_999, "59s"), (61_000, "1m 1s")],
)
def test_format_duration(ms, expected):
    assert format_duration(ms) == expected


def test_print_results(results, capsys):
    summary = print_results(results)
    out = capsys.readouterr().out

    assert "Execution Report" in out
    assert "Success: 1" in out
    assert "Failed: 1" in out
    assert "Skipped: 1" in out
    assert "Total: 3" in out
    assert "Total duration: 1m 6s" in out
    assert "Failed tools:" in out
    assert "  - Claude Code: Command failed with exit code 1" in out
    assert "Re-run the command to retry failed tools." in out
    assert summary.failed == 1


def test_print_results_without_failures(capsys):
    print_results([ExecuteResult(Step(name="fzf"), "upgrade", True, None, 200)])
    out = capsys.readouterr().out

    assert "Failed tools:" not in out
    assert "200ms" in out


def test_write_latest_log(results, temp_dir: Path):
    path = temp_dir / "logs" / "latest.json"

    assert write_latest_log(results, path) == path

    data = json.loads(path.read_text())
    assert "generated_at" in data
    assert data["results"][0] == {
        "name": "Homebrew",
        "action": "skip",
        "success": True,
        "message": "already exists",
        "duration": 12,
    }
    assert [r["success"] for r in data["results"]] == [True, True, False]


def test_write_latest_log_overwrites(results, temp_dir: Path):
    path = temp_dir / "latest.json"
    write_latest_log(results, path)
    write_latest_log(results[:1], path)

    assert len(json.loads(path.read_text())["results"]) == 1
    assert list(temp_dir.iterdir()) == [path]


def test_write_latest_log_default_location(results, okit_home: Path):
    path = write_latest_log(results)
    assert path == okit_home / "logs" / "latest.json"


def test_write_latest_log_failure_is_not_raised(results, temp_dir: Path):
    blocker = temp_dir / "file"
    blocker.write_text("")

    assert write_latest_log(results, blocker / "latest.json") is None
