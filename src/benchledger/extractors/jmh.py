"""JMH result extraction.

Converts the JSON result file written by JMH (``-rf json``) into a raw run
payload for ingestion. Parameterized benchmarks get their parameters
appended to the name as compact JSON, e.g.
``"pkg.Bench.method ( {\\"size\\":\\"10\\"} )"``.
"""

from __future__ import annotations

import json
import numbers
from pathlib import Path
from typing import Any

from benchledger.core.exceptions import Issue, ValidationError
from benchledger.core.types import ExtraInfo
from benchledger.history.storage.base import now_ms


def _bench_name(entry: dict[str, Any]) -> str:
    name = str(entry["benchmark"])
    params = entry.get("params")
    if params:
        return f"{name} ( {json.dumps(params, separators=(',', ':'), ensure_ascii=False)} )"
    return name


def _optional_int(value: object) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def extract_benches(results: list[Any]) -> list[dict[str, Any]]:
    """Convert decoded JMH results into ledger measurements.

    Args:
        results: The decoded JMH JSON array.

    Returns:
        Measurement dicts with ``name``, ``value``, ``unit`` and ``extra``.

    Raises:
        ValidationError: If an entry lacks its benchmark name or primary metric.
    """
    issues: list[Issue] = []
    benches: list[dict[str, Any]] = []
    for index, entry in enumerate(results):
        where = f"results.{index}"
        if not isinstance(entry, dict) or not entry.get("benchmark"):
            issues.append(Issue(f"{where}.benchmark", "is required"))
            continue
        metric = entry.get("primaryMetric")
        if not isinstance(metric, dict):
            issues.append(Issue(f"{where}.primaryMetric", "is required"))
            continue
        score = metric.get("score")
        if isinstance(score, bool) or not isinstance(score, numbers.Real):
            issues.append(Issue(f"{where}.primaryMetric.score", "must be a number"))
            continue
        try:
            value = float(score)
        except OverflowError:
            issues.append(Issue(f"{where}.primaryMetric.score", "out of range"))
            continue
        extra = ExtraInfo(
            iterations=_optional_int(entry.get("measurementIterations")),
            forks=_optional_int(entry.get("forks")),
            threads=_optional_int(entry.get("threads")),
        )
        bench: dict[str, Any] = {
            "name": _bench_name(entry),
            "value": value,
            "unit": metric.get("scoreUnit"),
        }
        if extra.to_extra():
            bench["extra"] = extra.to_extra()
        benches.append(bench)

    if issues:
        raise ValidationError(issues)
    return benches


def load_jmh_results(path: str | Path) -> list[Any]:
    """Read a JMH JSON result file.

    Raises:
        ValidationError: If the file is not a JSON array.
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ValidationError([Issue("", f"cannot read JMH results from {path}: {e}")]) from e
    if not isinstance(data, list):
        raise ValidationError([Issue("", f"JMH results in {path} must be a JSON array")])
    return data


def build_run_payload(
    results: list[Any],
    commit_id: str,
    commit_timestamp: str | None = None,
    tool: str = "jmh",
    date: int | None = None,
    commit: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Build a raw run payload from JMH results.

    Args:
        results: The decoded JMH JSON array.
        commit_id: Commit the results were measured on.
        commit_timestamp: Commit timestamp (ISO-8601).
        tool: Tool identifier recorded with the run.
        date: Ingest timestamp in epoch ms (default: now).
        commit: Extra commit metadata (message, url, author, ...).

    Returns:
        A payload ready for ``validate``/``ingest``.
    """
    commit_data: dict[str, Any] = {**(commit or {}), "id": commit_id}
    if commit_timestamp is not None:
        commit_data["timestamp"] = commit_timestamp
    return {
        "commit": commit_data,
        "date": now_ms() if date is None else date,
        "tool": tool,
        "benches": extract_benches(results),
    }
