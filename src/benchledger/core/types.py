"""Core type definitions for benchledger.

This module defines the data structures persisted in a ledger: commits,
benchmark measurements, runs, and the ledger document itself, plus the
small derived views used by the analyzer.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

_EXTRA_LINE = re.compile(r"^\s*(iterations|forks|threads)\s*:\s*(\d+)\s*$")


class CommitUser(BaseModel):
    """Author or committer of a commit.

    Unknown keys are kept so that a ledger round-trips unchanged.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    name: str | None = None
    username: str | None = None
    email: str | None = None


class Commit(BaseModel):
    """The commit a run was measured on.

    Attributes:
        id: Commit identifier (hash). Never empty.
        timestamp: Commit timestamp as given (ISO-8601 string).
        message: Optional commit message.
        url: Optional link to the commit.
        author: Optional commit author.
        committer: Optional committer.

    Example:
        >>> commit = Commit(id="ba715f4b", timestamp="2025-12-12T13:52:57Z")
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    id: str = Field(..., min_length=1, description="Commit identifier")
    timestamp: str | None = Field(default=None, description="Commit timestamp (ISO-8601)")
    message: str | None = None
    url: str | None = None
    author: CommitUser | None = None
    committer: CommitUser | None = None


@dataclass(frozen=True)
class ExtraInfo:
    """Harness metadata recognized inside a measurement's ``extra`` text.

    Only surfaced for display, never used to decide anything.
    """

    iterations: int | None = None
    forks: int | None = None
    threads: int | None = None

    @classmethod
    def parse(cls, extra: str | None) -> ExtraInfo:
        """Parse ``key: value`` lines for the known sub-keys.

        Unknown or malformed lines are ignored.

        Example:
            >>> ExtraInfo.parse("iterations: 5\\nforks: 1\\nthreads: 1")
            ExtraInfo(iterations=5, forks=1, threads=1)
        """
        if not extra:
            return cls()
        found: dict[str, int] = {}
        for line in extra.splitlines():
            match = _EXTRA_LINE.match(line)
            if match:
                found[match.group(1)] = int(match.group(2))
        return cls(**found)

    def to_extra(self) -> str:
        """Render back to the ``extra`` text form."""
        lines = [
            f"{key}: {value}"
            for key, value in (("iterations", self.iterations), ("forks", self.forks), ("threads", self.threads))
            if value is not None
        ]
        return "\n".join(lines)


class BenchResult(BaseModel):
    """One named measurement within a run.

    Attributes:
        name: Opaque comparison key. May embed parameters, e.g.
            ``"method ( {\\"param\\":\\"value\\"} )"``.
        value: Measured value.
        unit: Unit of ``value`` (e.g. "ops/us").
        extra: Free-form harness metadata, never parsed for correctness.

    Example:
        >>> result = BenchResult(name="opA", value=170.0, unit="ops/us")
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Benchmark name")
    value: float = Field(..., allow_inf_nan=False, description="Measured value")
    unit: str = Field(..., min_length=1, description="Unit of the value")
    extra: str | None = Field(default=None, description="Free-form harness metadata")

    def extra_info(self) -> ExtraInfo:
        """Return recognized harness metadata from ``extra``."""
        return ExtraInfo.parse(self.extra)


class Run(BaseModel):
    """One ingestion event (one CI build's results) for a suite.

    Attributes:
        commit: Commit the run was measured on.
        date: Ingest timestamp in epoch milliseconds.
        tool: Identifier of the measurement harness (e.g. "jmh").
        benches: Ordered measurements.

    Example:
        >>> run = Run(
        ...     commit=Commit(id="abc123", timestamp="2025-12-12T13:52:57Z"),
        ...     date=1765548243649,
        ...     tool="jmh",
        ...     benches=[BenchResult(name="opA", value=170.0, unit="ops/us")],
        ... )
    """

    model_config = ConfigDict(frozen=True)

    commit: Commit
    date: int = Field(..., ge=0, description="Ingest timestamp (epoch ms)")
    tool: str = Field(..., min_length=1, description="Measurement harness identifier")
    benches: list[BenchResult] = Field(..., min_length=1, description="Measurements")

    @property
    def commit_id(self) -> str:
        return self.commit.id

    @property
    def commit_timestamp(self) -> str | None:
        return self.commit.timestamp

    @property
    def ingest_timestamp(self) -> int:
        return self.date

    @property
    def measurements(self) -> list[BenchResult]:
        return self.benches

    def units(self) -> set[str]:
        """Return the distinct units measured in this run."""
        return {bench.unit for bench in self.benches}

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire representation used in the ledger."""
        return self.model_dump(mode="json", exclude_none=True)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Run:
        """Create a run from its wire representation."""
        return cls.model_validate(data)


class Ledger(BaseModel):
    """The full persisted collection of suites and their run histories.

    Attributes:
        last_update: Time of the last write, epoch milliseconds.
        repo_url: Optional repository URL the ledger belongs to.
        entries: Runs per suite name, in ingestion order.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    last_update: int = Field(default=0, alias="lastUpdate")
    repo_url: str | None = Field(default=None, alias="repoUrl")
    entries: dict[str, list[Run]] = Field(default_factory=dict)

    def runs(self, suite: str) -> list[Run]:
        """Return the runs of ``suite`` (empty for an unknown suite)."""
        return list(self.entries.get(suite, []))

    def max_date(self) -> int:
        """Return the largest run date in the ledger, or 0 when empty."""
        return max((run.date for runs in self.entries.values() for run in runs), default=0)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire representation (camelCase root keys)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Ledger:
        """Create a ledger from its wire representation."""
        return cls.model_validate(data)


@dataclass(frozen=True)
class RunId:
    """Handle of an appended run: its suite and 0-based position at append time."""

    suite: str
    index: int


@dataclass(frozen=True)
class Observation:
    """One historical value of a ``(suite, tool, name)`` key."""

    timestamp: int
    value: float
    unit: str


def observations(runs: list[Run] | tuple[Run, ...], tool: str, name: str) -> list[Observation]:
    """Build the ``(timestamp, value, unit)`` view of one benchmark key.

    Rows are sorted by run date ascending. The sort is stable, so runs
    sharing a date keep their ingestion order.

    Args:
        runs: Runs of a single suite, in ingestion order.
        tool: Tool identifier to match.
        name: Benchmark name to match.

    Returns:
        One Observation per matching measurement.
    """
    rows = [
        Observation(timestamp=run.date, value=bench.value, unit=bench.unit)
        for run in runs
        if run.tool == tool
        for bench in run.benches
        if bench.name == name
    ]
    rows.sort(key=lambda row: row.timestamp)
    return rows
