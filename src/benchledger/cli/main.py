"""Main CLI entry point for benchledger.

This module defines the Typer application and all CLI commands.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from enum import Enum
from pathlib import Path
from typing import Annotated, Any, NoReturn

import typer

from benchledger import __version__
from benchledger.alerts import AlertEmitter, Report
from benchledger.core.config import Settings, load_settings
from benchledger.core.exceptions import (
    BenchLedgerError,
    ConfigurationError,
    Issue,
    StorageError,
    ValidationError,
)
from benchledger.history import BenchmarkHistory, JSONLedgerStore
from benchledger.regression import RegressionPolicy
from benchledger.reporters import ConsoleReporter, JSONReporter, MarkdownReporter
from benchledger.retention import RetentionPolicy
from benchledger.validation import Rejection

EXIT_OK = 0
EXIT_REGRESSION = 1
EXIT_INVALID = 2
EXIT_STORAGE = 3

# Create the main Typer app
app = typer.Typer(
    name="benchledger",
    help="benchledger: benchmark history ledger with regression detection.",
    add_completion=False,
    no_args_is_help=True,
)

# Global state for options
state: dict[str, bool] = {
    "json": False,
    "no_color": False,
}


class ReportFormat(str, Enum):
    """Output format of a report."""

    CONSOLE = "console"
    JSON = "json"
    MARKDOWN = "markdown"


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"benchledger v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[  # noqa: ARG001
        bool | None,
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output results in JSON format.",
        ),
    ] = False,
    no_color: Annotated[
        bool,
        typer.Option(
            "--no-color",
            help="Disable colored output.",
        ),
    ] = False,
) -> None:
    """benchledger: track benchmark runs and flag regressions in CI."""
    state["json"] = json_output
    state["no_color"] = no_color
    try:
        settings = load_settings()
    except ConfigurationError as e:
        _fail(str(e), EXIT_INVALID)
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


@app.command()
def version() -> None:
    """Show the current version."""
    typer.echo(f"benchledger v{__version__}")


def _fail(message: str, code: int) -> NoReturn:
    typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(code)


def _load_policy(policy_path: str | None, settings: Settings) -> RegressionPolicy:
    if policy_path:
        return RegressionPolicy.from_yaml(policy_path)
    return RegressionPolicy.from_settings(settings)


def _ledger_store(ledger: str | None, settings: Settings, repo_url: str | None = None) -> JSONLedgerStore:
    path = Path(ledger or settings.ledger_path)
    if path.is_dir():
        raise ConfigurationError(f"Ledger path is a directory: {path}")
    return JSONLedgerStore(path, repo_url=repo_url)


def _emit_report(report: Report, report_format: ReportFormat, commit_id: str | None = None) -> None:
    if state["json"] or report_format == ReportFormat.JSON:
        typer.echo(JSONReporter().report(report))
    elif report_format == ReportFormat.MARKDOWN:
        typer.echo(MarkdownReporter(commit_id=commit_id).report(report))
    else:
        ConsoleReporter(use_colors=not state["no_color"]).report(report)


def _exit_for(error: BenchLedgerError) -> NoReturn:
    if isinstance(error, StorageError):
        _fail(str(error), EXIT_STORAGE)
    _fail(str(error), EXIT_INVALID)


@app.command()
def ingest(
    suite: Annotated[
        str,
        typer.Option(
            "--suite",
            "-s",
            help="Name of the benchmark suite.",
        ),
    ],
    run: Annotated[
        str | None,
        typer.Option(
            "--run",
            "-r",
            help="Path to a run JSON object (commit, date, tool, benches).",
        ),
    ] = None,
    jmh: Annotated[
        str | None,
        typer.Option(
            "--jmh",
            help="Path to a JMH JSON result file (requires --commit-id).",
        ),
    ] = None,
    commit_id: Annotated[
        str | None,
        typer.Option(
            "--commit-id",
            help="Commit the JMH results were measured on.",
        ),
    ] = None,
    commit_timestamp: Annotated[
        str | None,
        typer.Option(
            "--commit-timestamp",
            help="Commit timestamp (ISO-8601) for JMH results.",
        ),
    ] = None,
    tool: Annotated[
        str,
        typer.Option(
            "--tool",
            help="Tool identifier recorded for JMH results.",
        ),
    ] = "jmh",
    ledger: Annotated[
        str | None,
        typer.Option(
            "--ledger",
            "-l",
            help="Path to the ledger file (.json or data.js).",
        ),
    ] = None,
    policy: Annotated[
        str | None,
        typer.Option(
            "--policy",
            "-p",
            help="Path to a regression policy YAML file.",
        ),
    ] = None,
    keep_last: Annotated[
        int | None,
        typer.Option(
            "--keep-last",
            help="Prune the suite to this many runs after ingesting.",
            min=1,
        ),
    ] = None,
    repo_url: Annotated[
        str | None,
        typer.Option(
            "--repo-url",
            help="Repository URL recorded in a new ledger.",
        ),
    ] = None,
    report_format: Annotated[
        ReportFormat,
        typer.Option(
            "--report-format",
            "-f",
            help="Report output format.",
        ),
    ] = ReportFormat.CONSOLE,
) -> None:
    """Ingest one benchmark run into the ledger and check it for regressions.

    Examples:
        benchledger ingest --suite "Auth" --run run.json --ledger data.json
        benchledger ingest --suite "Auth" --jmh jmh-result.json --commit-id abc123
        benchledger --json ingest --suite "Auth" --run run.json
    """
    if (run is None) == (jmh is None):
        _fail("Exactly one of --run or --jmh is required.", EXIT_INVALID)
    if jmh is not None and not commit_id:
        _fail("--commit-id is required with --jmh.", EXIT_INVALID)

    try:
        settings = load_settings()
        regression_policy = _load_policy(policy, settings)
        store = _ledger_store(ledger, settings, repo_url)
        max_runs = keep_last or settings.max_runs
        retention = RetentionPolicy(keep_last=max_runs) if max_runs else None
        history = BenchmarkHistory(store, policy=regression_policy, retention=retention)

        if jmh is not None:
            from benchledger.extractors import build_run_payload, load_jmh_results

            payload: Any = build_run_payload(
                load_jmh_results(jmh),
                commit_id=commit_id or "",
                commit_timestamp=commit_timestamp,
                tool=tool,
            )
        else:
            payload = _load_run(run or "", suite)

        result = asyncio.run(history.ingest(suite, payload))
    except ValidationError as e:
        report = AlertEmitter().emit([], [Rejection(suite=suite, issues=e.issues)])
        _emit_report(report, report_format)
        _fail(str(e), EXIT_INVALID)
    except BenchLedgerError as e:
        _exit_for(e)

    report = history.report(result.findings)
    _emit_report(report, report_format, commit_id=result.run.commit_id)
    raise typer.Exit(report.exit_code)


def _load_run(path: str, suite: str) -> Any:
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ValidationError([Issue("", f"cannot read run from {path}: {e}")], suite=suite) from e


@app.command()
def analyze(
    suite: Annotated[
        list[str] | None,
        typer.Option(
            "--suite",
            "-s",
            help="Suite to analyze (repeatable). Default: every suite.",
        ),
    ] = None,
    ledger: Annotated[
        str | None,
        typer.Option(
            "--ledger",
            "-l",
            help="Path to the ledger file (.json or data.js).",
        ),
    ] = None,
    policy: Annotated[
        str | None,
        typer.Option(
            "--policy",
            "-p",
            help="Path to a regression policy YAML file.",
        ),
    ] = None,
    report_format: Annotated[
        ReportFormat,
        typer.Option(
            "--report-format",
            "-f",
            help="Report output format.",
        ),
    ] = ReportFormat.CONSOLE,
) -> None:
    """Analyze the latest run of each suite against its history.

    Does not modify the ledger. Exits 1 when a regression is found.

    Examples:
        benchledger analyze --ledger data.json
        benchledger analyze --ledger data.js --suite "Run Auth Engine Benchmark"
    """
    try:
        settings = load_settings()
        history = BenchmarkHistory(_ledger_store(ledger, settings), policy=_load_policy(policy, settings))
        report = asyncio.run(history.analyze(suite or None))
    except BenchLedgerError as e:
        _exit_for(e)

    _emit_report(report, report_format)
    raise typer.Exit(report.exit_code)


@app.command()
def prune(
    suite: Annotated[
        str,
        typer.Option(
            "--suite",
            "-s",
            help="Name of the benchmark suite.",
        ),
    ],
    ledger: Annotated[
        str | None,
        typer.Option(
            "--ledger",
            "-l",
            help="Path to the ledger file (.json or data.js).",
        ),
    ] = None,
    keep_last: Annotated[
        int | None,
        typer.Option("--keep-last", help="Keep only the last N runs.", min=1),
    ] = None,
    newer_than: Annotated[
        int | None,
        typer.Option("--newer-than", help="Keep only runs dated at or after this epoch ms.", min=0),
    ] = None,
    keep_last_per_key: Annotated[
        int | None,
        typer.Option("--keep-last-per-key", help="Keep only the last N measurements per benchmark.", min=1),
    ] = None,
    protect_window: Annotated[
        int | None,
        typer.Option("--protect-window", help="Recent values protected per current benchmark.", min=1),
    ] = None,
) -> None:
    """Prune old runs or measurements from a suite.

    The most recent baseline values of every current benchmark are kept.

    Examples:
        benchledger prune --suite "Auth" --keep-last 100
        benchledger prune --suite "Auth" --keep-last-per-key 20
    """
    if keep_last is None and newer_than is None and keep_last_per_key is None:
        _fail("One of --keep-last, --newer-than or --keep-last-per-key is required.", EXIT_INVALID)

    try:
        settings = load_settings()
        retention = RetentionPolicy(
            keep_last=keep_last,
            newer_than=newer_than,
            keep_last_per_key=keep_last_per_key,
            protect_window=protect_window or settings.window_size,
        )
        history = BenchmarkHistory(_ledger_store(ledger, settings), policy=RegressionPolicy.from_settings(settings))
        removed = asyncio.run(history.prune(suite, retention))
    except BenchLedgerError as e:
        _exit_for(e)

    if state["json"]:
        typer.echo(json.dumps({"command": "prune", "suite": suite, "removed": removed}))
    else:
        typer.echo(f"Pruned {removed} entries from '{suite}'.")


@app.command()
def show(
    suite: Annotated[
        str,
        typer.Option(
            "--suite",
            "-s",
            help="Name of the benchmark suite.",
        ),
    ],
    ledger: Annotated[
        str | None,
        typer.Option(
            "--ledger",
            "-l",
            help="Path to the ledger file (.json or data.js).",
        ),
    ] = None,
    tool: Annotated[
        str | None,
        typer.Option("--tool", help="Only runs recorded with this tool."),
    ] = None,
    name: Annotated[
        str | None,
        typer.Option("--name", "-n", help="Show the value history of one benchmark (needs --tool)."),
    ] = None,
) -> None:
    """Show the run history of a suite, or the values of one benchmark.

    Examples:
        benchledger show --suite "Auth"
        benchledger show --suite "Auth" --tool jmh --name "pkg.Bench.method"
    """
    if name is not None and tool is None:
        _fail("--name requires --tool.", EXIT_INVALID)

    try:
        store = _ledger_store(ledger, load_settings())
        if name is not None and tool is not None:
            rows = asyncio.run(store.runs_for(suite, tool, name))
            if state["json"]:
                values = [{"date": r.timestamp, "value": r.value, "unit": r.unit} for r in rows]
                typer.echo(json.dumps(values, indent=2))
            else:
                for r in rows:
                    typer.echo(f"  {r.timestamp}  {r.value:.6g} {r.unit}")
            return
        runs = list(asyncio.run(store.load(suite)))
    except BenchLedgerError as e:
        _exit_for(e)

    if tool is not None:
        runs = [r for r in runs if r.tool == tool]
    if state["json"]:
        typer.echo(json.dumps([r.to_dict() for r in runs], indent=2))
        return
    typer.echo(f"  {suite}: {len(runs)} runs")
    for index, r in enumerate(runs):
        typer.echo(f"  [{index}] {r.date}  {r.commit_id[:12]}  {r.tool}  {len(r.benches)} benches")


if __name__ == "__main__":
    app()
