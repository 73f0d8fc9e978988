"""Batch summary, report printing and the latest-run log."""

import json
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

import click

from .paths import get_latest_log_path
from .runner import ExecuteResult

_logging = logging.getLogger(__name__)


@dataclass
class RunSummary:
    succeeded: int
    failed: int
    skipped: int
    total: int
    total_duration: int
    failures: list[tuple[str, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.failed == 0


def summarize(results: list[ExecuteResult]) -> RunSummary:
    failures = [(r.step.name, r.message or "") for r in results if not r.success]
    return RunSummary(
        succeeded=sum(1 for r in results if r.success and r.action != "skip"),
        failed=len(failures),
        skipped=sum(1 for r in results if r.action == "skip"),
        total=len(results),
        total_duration=sum(r.duration or 0 for r in results),
        failures=failures,
    )


def format_duration(ms: int) -> str:
    if ms < 1000:
        return f"{ms}ms"
    seconds = ms // 1000
    minutes = seconds // 60
    if minutes > 0:
        return f"{minutes}m {seconds % 60}s"
    return f"{seconds}s"


def _status_label(result: ExecuteResult) -> str:
    if not result.success:
        return click.style("✗ failed ", fg="red")
    if result.action == "skip":
        return click.style("⏸ skipped", fg="yellow")
    return click.style("✓ success", fg="green")


def print_results(results: list[ExecuteResult]) -> RunSummary:
    summary = summarize(results)

    click.secho("\n" + "═" * 60, fg="cyan")
    click.secho("Execution Report", fg="cyan", bold=True)
    click.secho("═" * 60 + "\n", fg="cyan")

    click.secho(f"  {'Status':<10} {'Tool':<22} {'Action':<10} Duration", bold=True)
    click.secho("  " + "-" * 52, fg="bright_black")
    for r in results:
        action = "-" if r.action == "skip" else r.action
        duration = format_duration(r.duration) if r.duration else "-"
        click.echo(f"  {_status_label(r)}  {r.step.name:<22} {action:<10} {duration}")

    click.echo("")
    click.secho("Summary:", bold=True)
    click.echo(f"  {click.style('●', fg='green')} Success: {summary.succeeded}")
    click.echo(f"  {click.style('●', fg='red')} Failed: {summary.failed}")
    click.echo(f"  {click.style('●', fg='yellow')} Skipped: {summary.skipped}")
    click.echo(f"  {click.style('●', fg='cyan')} Total: {summary.total}")
    click.echo(
        f"  {click.style('●', fg='cyan')} Total duration: "
        f"{format_duration(summary.total_duration)}"
    )
    click.echo("")

    if summary.failures:
        click.secho("Failed tools:", fg="red")
        for name, message in summary.failures:
            click.echo(f"  - {name}: {message}")
        click.echo("")

    click.secho("Re-run the command to retry failed tools.", fg="bright_black")
    return summary


def write_latest_log(results: list[ExecuteResult], path: Path | None = None) -> Path | None:
    """Overwrite the latest-run log. Write errors are logged, not raised."""
    path = path or get_latest_log_path()
    payload = {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "results": [
            {
                "name": r.step.name,
                "action": r.action,
                "success": r.success,
                "message": r.message,
                "duration": r.duration,
            }
            for r in results
        ],
    }

    temp_path = path.with_suffix(f".tmp.{uuid.uuid4().hex[:8]}")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(temp_path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, ensure_ascii=False)
            f.write("\n")
        temp_path.replace(path)
    except OSError as e:
        _logging.warning(f"Could not write run log {path}: {e}")
        if temp_path.exists():
            temp_path.unlink()
        return None
    return path


__all__ = [
    "RunSummary",
    "summarize",
    "format_duration",
    "print_results",
    "write_latest_log",
]
