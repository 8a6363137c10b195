"""Unit tests for the core ledger types."""

from __future__ import annotations

import pytest
from pydantic import ValidationError as PydanticValidationError

from benchledger.core.types import (
    BenchResult,
    Commit,
    ExtraInfo,
    Ledger,
    Observation,
    Run,
    observations,
)

AUTH_BENCH = (
    "io.telicent.smart.caches.benchmarks.TelicentAuthorizationEngineBenchmark.authorizeSecureDenied"
    ' ( {"policyPermissionsCount":"1","userPermissionsCount":"1","userRolesCount":"1"} )'
)


def make_run(values: dict[str, float], date: int = 1765548243649, tool: str = "jmh", unit: str = "ops/us") -> Run:
    return Run(
        commit=Commit(id="ba715f4b8567cc50d4755ef313da74ab56ffc9cd", timestamp="2025-12-12T13:52:57Z"),
        date=date,
        tool=tool,
        benches=[BenchResult(name=name, value=value, unit=unit) for name, value in values.items()],
    )


class TestExtraInfo:
    """Tests for ExtraInfo parsing."""

    def test_parse_jmh_extra(self) -> None:
        """Known sub-keys are parsed from the extra text."""
        info = ExtraInfo.parse("iterations: 5\nforks: 1\nthreads: 1")

        assert info == ExtraInfo(iterations=5, forks=1, threads=1)

    def test_parse_ignores_unknown_lines(self) -> None:
        """Unknown or malformed lines are ignored."""
        info = ExtraInfo.parse("iterations: five\nwarmup: 3\nthreads: 4")

        assert info.iterations is None
        assert info.threads == 4

    def test_parse_empty(self) -> None:
        """None or empty extra yields an empty ExtraInfo."""
        assert ExtraInfo.parse(None) == ExtraInfo()
        assert ExtraInfo.parse("") == ExtraInfo()

    def test_to_extra(self) -> None:
        """to_extra() renders only the known values."""
        assert ExtraInfo(iterations=5, threads=2).to_extra() == "iterations: 5\nthreads: 2"

    def test_bench_result_extra_info(self) -> None:
        """BenchResult.extra_info() surfaces the parsed metadata."""
        bench = BenchResult(name=AUTH_BENCH, value=173.17, unit="ops/us", extra="iterations: 5\nforks: 1\nthreads: 1")

        assert bench.extra_info().forks == 1


class TestRun:
    """Tests for the Run model."""

    def test_aliases(self) -> None:
        """Named accessors alias the wire fields."""
        run = make_run({"opA": 1.0}, date=42)

        assert run.commit_id == "ba715f4b8567cc50d4755ef313da74ab56ffc9cd"
        assert run.commit_timestamp == "2025-12-12T13:52:57Z"
        assert run.ingest_timestamp == 42
        assert run.measurements == run.benches

    def test_frozen(self) -> None:
        """Runs cannot be mutated after creation."""
        run = make_run({"opA": 1.0})

        with pytest.raises(PydanticValidationError):
            run.tool = "other"  # type: ignore[misc]

    def test_requires_benches(self) -> None:
        """A run without measurements is invalid."""
        with pytest.raises(PydanticValidationError):
            Run(commit=Commit(id="abc"), date=1, tool="jmh", benches=[])

    def test_to_dict_omits_missing_extra(self) -> None:
        """Absent optional fields are not written."""
        data = make_run({"opA": 1.0}).to_dict()

        assert data["benches"] == [{"name": "opA", "value": 1.0, "unit": "ops/us"}]
        assert "message" not in data["commit"]

    def test_commit_keeps_unknown_keys(self) -> None:
        """Unknown commit keys survive a round-trip."""
        data = {
            "commit": {"id": "abc", "timestamp": "2025-12-12T13:52:57Z", "tree": "deadbeef"},
            "date": 1,
            "tool": "jmh",
            "benches": [{"name": "opA", "value": 1.0, "unit": "ops/us"}],
        }

        assert Run.from_dict(data).to_dict()["commit"]["tree"] == "deadbeef"

    def test_units(self) -> None:
        """units() returns the distinct units of a run."""
        run = Run(
            commit=Commit(id="abc"),
            date=1,
            tool="jmh",
            benches=[
                BenchResult(name="a", value=1.0, unit="ops/us"),
                BenchResult(name="b", value=2.0, unit="us/op"),
                BenchResult(name="c", value=3.0, unit="ops/us"),
            ],
        )

        assert run.units() == {"ops/us", "us/op"}


class TestLedger:
    """Tests for the Ledger model."""

    def test_round_trip_preserves_order(self) -> None:
        """Serializing then deserializing keeps every suite's run order."""
        ledger = Ledger(
            lastUpdate=1765548244597,
            repoUrl="https://github.com/telicent-oss/smart-caches-core",
            entries={
                "Run Auth Engine Benchmark": [make_run({AUTH_BENCH: float(i)}, date=1000 + i) for i in range(5)],
                "Run JWT Benchmark": [make_run({"parse": 2.5}, date=900)],
            },
        )

        restored = Ledger.from_dict(ledger.to_dict())

        assert restored == ledger
        assert [r.date for r in restored.runs("Run Auth Engine Benchmark")] == [1000, 1001, 1002, 1003, 1004]

    def test_wire_keys(self) -> None:
        """Root keys use the ledger's camelCase names."""
        data = Ledger(lastUpdate=5, entries={}).to_dict()

        assert data == {"lastUpdate": 5, "entries": {}}

    def test_runs_unknown_suite(self) -> None:
        """runs() of an unknown suite is empty."""
        assert Ledger().runs("missing") == []

    def test_max_date(self) -> None:
        """max_date() spans every suite."""
        ledger = Ledger(entries={"a": [make_run({"x": 1.0}, date=10)], "b": [make_run({"x": 1.0}, date=30)]})

        assert ledger.max_date() == 30
        assert Ledger().max_date() == 0


class TestObservations:
    """Tests for the observations() read view."""

    def test_sorted_by_date_and_filtered(self) -> None:
        """Rows are filtered by tool and name and sorted by date."""
        runs = [
            make_run({"opA": 3.0}, date=300),
            make_run({"opA": 1.0}, date=100),
            make_run({"opA": 9.0}, date=200, tool="other"),
            make_run({"opB": 5.0}, date=150),
        ]

        rows = observations(runs, "jmh", "opA")

        assert rows == [Observation(100, 1.0, "ops/us"), Observation(300, 3.0, "ops/us")]

    def test_ties_keep_ingestion_order(self) -> None:
        """Runs sharing a date stay in ingestion order."""
        runs = [make_run({"opA": 1.0}, date=100), make_run({"opA": 2.0}, date=100)]

        assert [row.value for row in observations(runs, "jmh", "opA")] == [1.0, 2.0]
