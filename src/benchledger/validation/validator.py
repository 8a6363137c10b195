"""Schema validation for incoming run payloads.

This module checks a raw run (as produced by a CI job) against the shape
expected by the ledger before it is accepted. Validation is a pure
function: it never touches the store.
"""

from __future__ import annotations

import json
import math
import numbers
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from benchledger.core.exceptions import Issue, ValidationError
from benchledger.core.types import Run

# 9999-12-31T23:59:59.999Z
MAX_EPOCH_MS = 253_402_300_799_999

_TIMESTAMP = TypeAdapter(datetime)


@dataclass(frozen=True)
class Rejection:
    """A run refused by the validator, kept for the report.

    Attributes:
        suite: Target suite of the rejected run.
        issues: Problems found in the payload.
    """

    suite: str
    issues: list[Issue] = field(default_factory=list)

    @property
    def message(self) -> str:
        return "; ".join(str(issue) for issue in self.issues)


def _is_number(value: object) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def _is_blank(value: object) -> bool:
    return not isinstance(value, str) or not value.strip()


def _check_timestamp(value: object, issues: list[Issue]) -> None:
    if value is None:
        return
    if not isinstance(value, str):
        issues.append(Issue("commit.timestamp", "must be an ISO-8601 string"))
        return
    try:
        _TIMESTAMP.validate_python(value)
    except PydanticValidationError:
        issues.append(Issue("commit.timestamp", f"not an ISO-8601 timestamp: {value!r}"))


def _check_commit(commit: object, issues: list[Issue]) -> None:
    if not isinstance(commit, Mapping):
        issues.append(Issue("commit", "is required and must be an object"))
        return
    commit_id = commit.get("id")
    if commit_id is None:
        issues.append(Issue("commit.id", "is required"))
    elif _is_blank(commit_id):
        issues.append(Issue("commit.id", "must be a non-empty string"))
    _check_timestamp(commit.get("timestamp"), issues)


def _check_date(date: object, issues: list[Issue]) -> None:
    if date is None:
        issues.append(Issue("date", "is required"))
    elif isinstance(date, bool) or not isinstance(date, int):
        issues.append(Issue("date", "must be an integer epoch timestamp in milliseconds"))
    elif not 0 <= date <= MAX_EPOCH_MS:
        issues.append(Issue("date", f"epoch timestamp out of range: {date}"))


def _check_finite(where: str, value: numbers.Real, issues: list[Issue]) -> None:
    try:
        finite = math.isfinite(float(value))
    except OverflowError:
        issues.append(Issue(f"{where}.value", "out of range"))
        return
    if not finite:
        issues.append(Issue(f"{where}.value", "must be finite"))


def _check_bench(index: int, bench: object, issues: list[Issue]) -> None:
    where = f"benches.{index}"
    if not isinstance(bench, Mapping):
        issues.append(Issue(where, "must be an object"))
        return
    if _is_blank(bench.get("name")):
        issues.append(Issue(f"{where}.name", "must be a non-empty string"))

    value = bench.get("value")
    if value is None:
        issues.append(Issue(f"{where}.value", "is required"))
    elif not _is_number(value):
        issues.append(Issue(f"{where}.value", "must be a number"))
    else:
        _check_finite(where, value, issues)

    unit = bench.get("unit")
    if unit is None:
        issues.append(Issue(f"{where}.unit", "is required when a value is present"))
    elif _is_blank(unit):
        issues.append(Issue(f"{where}.unit", "must be a non-empty string"))

    extra = bench.get("extra")
    if extra is not None and not isinstance(extra, str):
        issues.append(Issue(f"{where}.extra", "must be a string"))


def _check_benches(benches: object, issues: list[Issue]) -> None:
    if benches is None:
        issues.append(Issue("benches", "is required"))
        return
    if not isinstance(benches, list):
        issues.append(Issue("benches", "must be a list"))
        return
    if not benches:
        issues.append(Issue("benches", "must contain at least one measurement"))
        return
    for index, bench in enumerate(benches):
        _check_bench(index, bench, issues)


def _pydantic_issues(error: PydanticValidationError) -> list[Issue]:
    return [
        Issue(".".join(str(part) for part in detail["loc"]), detail["msg"])
        for detail in error.errors()
    ]


def validate(raw_run: Mapping[str, Any] | str, suite: str) -> Run:
    """Validate a raw run payload and build a typed Run.

    Duplicate benchmark names inside one run are accepted: a harness may
    report the same logical benchmark more than once.

    Args:
        raw_run: One run object (mapping or JSON text).
        suite: Name of the suite the run is destined for.

    Returns:
        The validated Run.

    Raises:
        ValidationError: If the payload is malformed. All problems found are
            listed in ``issues``.

    Example:
        >>> run = validate(
        ...     {
        ...         "commit": {"id": "abc123", "timestamp": "2025-12-12T13:52:57Z"},
        ...         "date": 1765548243649,
        ...         "tool": "jmh",
        ...         "benches": [{"name": "opA", "value": 170.0, "unit": "ops/us"}],
        ...     },
        ...     suite="S",
        ... )
    """
    issues: list[Issue] = []
    if _is_blank(suite):
        issues.append(Issue("suite", "must be a non-empty string"))

    payload: object = raw_run
    if isinstance(raw_run, str):
        try:
            payload = json.loads(raw_run)
        except json.JSONDecodeError as e:
            raise ValidationError([*issues, Issue("", f"not valid JSON: {e}")], suite=suite or None) from e

    if not isinstance(payload, Mapping):
        raise ValidationError([*issues, Issue("", "run must be a JSON object")], suite=suite or None)

    _check_commit(payload.get("commit"), issues)
    _check_date(payload.get("date"), issues)
    if _is_blank(payload.get("tool")):
        issues.append(Issue("tool", "must be a non-empty string"))
    _check_benches(payload.get("benches"), issues)

    if issues:
        raise ValidationError(issues, suite=suite or None)

    try:
        return Run.model_validate(dict(payload))
    except PydanticValidationError as e:
        raise ValidationError(_pydantic_issues(e), suite=suite) from e


def validate_many(
    payloads: Iterable[tuple[str, Mapping[str, Any] | str]],
) -> tuple[list[tuple[str, Run]], list[Rejection]]:
    """Validate several ``(suite, raw_run)`` pairs, collecting failures.

    Args:
        payloads: Pairs of target suite and raw run.

    Returns:
        Tuple of (accepted pairs, rejections), both in input order.
    """
    accepted: list[tuple[str, Run]] = []
    rejected: list[Rejection] = []
    for suite, raw_run in payloads:
        try:
            accepted.append((suite, validate(raw_run, suite)))
        except ValidationError as e:
            rejected.append(Rejection(suite=suite, issues=e.issues))
    return accepted, rejected
