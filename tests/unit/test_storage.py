"""Unit tests for the ledger storage backends."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from benchledger.core.exceptions import StorageError
from benchledger.core.types import BenchResult, Commit, Ledger, Observation, Run, RunId
from benchledger.history.storage import (
    JSONLedgerStore,
    LedgerStoreBase,
    MemoryLedgerStore,
    RunSequence,
    StorageProtocol,
)
from benchledger.history.storage.json_store import JS_PREFIX, decode_document

if TYPE_CHECKING:
    from collections.abc import Callable

CLOCK_MS = 1_765_548_244_597

ORIGINAL_DATA_JS = """window.BENCHMARK_DATA = {
  "lastUpdate": 1765548244597,
  "repoUrl": "https://github.com/telicent-oss/smart-caches-core",
  "entries": {
    "Run Auth Engine Benchmark": [
      {
        "commit": {
          "author": {"name": "Paul Gallagher", "username": "TelicentPaul", "email": "paul@example.com"},
          "committer": {"name": "GitHub", "username": "web-flow", "email": "noreply@github.com"},
          "id": "ba715f4b8567cc50d4755ef313da74ab56ffc9cd",
          "message": "Merge pull request #242",
          "timestamp": "2025-12-12T13:52:57Z",
          "url": "https://github.com/telicent-oss/smart-caches-core/commit/ba715f4b"
        },
        "date": 1765548243649,
        "tool": "jmh",
        "benches": [
          {
            "name": "Bench.authorizeSecureDenied ( {\\"userRolesCount\\":\\"1\\"} )",
            "value": 173.17044734183605,
            "unit": "ops/us",
            "extra": "iterations: 5\\nforks: 1\\nthreads: 1"
          }
        ]
      }
    ]
  }
}"""


def make_run(value: float = 1.0, date: int = 1000, commit_id: str = "abc", name: str = "opA", tool: str = "jmh") -> Run:
    return Run(
        commit=Commit(id=commit_id, timestamp="2025-12-12T13:52:57Z"),
        date=date,
        tool=tool,
        benches=[BenchResult(name=name, value=value, unit="ops/us")],
    )


def fixed_clock() -> int:
    return CLOCK_MS


@pytest.fixture(params=["memory", "json"])
def store(request: pytest.FixtureRequest, tmp_path: Path) -> LedgerStoreBase:
    """Both backends, so every contract test runs twice."""
    if request.param == "memory":
        return MemoryLedgerStore(clock=fixed_clock)
    return JSONLedgerStore(tmp_path / "data.json", clock=fixed_clock)


class TestRunSequence:
    """Tests for the RunSequence view."""

    def test_restartable(self) -> None:
        """Each iteration starts from the first run."""
        runs = RunSequence([make_run(1.0), make_run(2.0)])

        assert [r.benches[0].value for r in runs] == [1.0, 2.0]
        assert [r.benches[0].value for r in runs] == [1.0, 2.0]

    def test_sequence_access(self) -> None:
        """Indexing, slicing and len() work."""
        runs = RunSequence([make_run(1.0), make_run(2.0), make_run(3.0)])

        assert len(runs) == 3
        assert runs[-1].benches[0].value == 3.0
        assert [r.benches[0].value for r in runs[:2]] == [1.0, 2.0]


class TestStoreContract:
    """Behaviour shared by every storage backend."""

    def test_implements_protocol(self, store: LedgerStoreBase) -> None:
        """Stores satisfy StorageProtocol."""
        assert isinstance(store, StorageProtocol)

    @pytest.mark.asyncio
    async def test_load_unknown_suite(self, store: LedgerStoreBase) -> None:
        """Unknown suites load as empty."""
        assert len(await store.load("missing")) == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("count", [0, 1, 2, 7])
    async def test_append_only_order(self, store: LedgerStoreBase, count: int) -> None:
        """After N appends, load() returns exactly N runs in append order."""
        for i in range(count):
            run_id = await store.append("S", make_run(float(i), date=1000 + i, commit_id=f"c{i}"))
            assert run_id == RunId(suite="S", index=i)

        runs = await store.load("S")

        assert [r.commit_id for r in runs] == [f"c{i}" for i in range(count)]

    @pytest.mark.asyncio
    async def test_duplicate_ingestion_appends_twice(self, store: LedgerStoreBase) -> None:
        """The same run appended twice is stored twice."""
        run = make_run()

        await store.append("S", run)
        await store.append("S", run)

        assert len(await store.load("S")) == 2

    @pytest.mark.asyncio
    async def test_load_is_a_snapshot(self, store: LedgerStoreBase) -> None:
        """A loaded sequence does not change when more runs are appended."""
        await store.append("S", make_run(1.0))
        before = await store.load("S")

        await store.append("S", make_run(2.0))

        assert len(before) == 1
        assert len(await store.load("S")) == 2

    @pytest.mark.asyncio
    async def test_runs_for(self, store: LedgerStoreBase) -> None:
        """runs_for() returns one key's history sorted by date."""
        await store.append("S", make_run(3.0, date=3000))
        await store.append("S", make_run(1.0, date=1000))
        await store.append("S", make_run(9.0, date=2000, tool="other"))
        await store.append("S", make_run(5.0, date=1500, name="opB"))

        rows = await store.runs_for("S", "jmh", "opA")

        assert rows == [Observation(1000, 1.0, "ops/us"), Observation(3000, 3.0, "ops/us")]

    @pytest.mark.asyncio
    async def test_suites_are_independent(self, store: LedgerStoreBase) -> None:
        """Appends to one suite do not touch another."""
        await store.append("A", make_run(1.0))
        await store.append("B", make_run(2.0))
        await store.append("A", make_run(3.0))

        assert sorted(await store.suites()) == ["A", "B"]
        assert len(await store.load("A")) == 2
        assert len(await store.load("B")) == 1

    @pytest.mark.asyncio
    async def test_last_update_never_behind_runs(self, store: LedgerStoreBase) -> None:
        """lastUpdate is the write time, or the newest run date if later."""
        await store.append("S", make_run(date=1000))
        assert (await store.load_ledger()).last_update == CLOCK_MS

        await store.append("S", make_run(date=CLOCK_MS + 5000))
        assert (await store.load_ledger()).last_update == CLOCK_MS + 5000

    @pytest.mark.asyncio
    async def test_concurrent_appends_are_linearized(self, store: LedgerStoreBase) -> None:
        """Concurrent appends all land, each at a distinct position."""
        run_ids = await asyncio.gather(
            *(store.append("S", make_run(float(i), commit_id=f"c{i}")) for i in range(20)),
            *(store.append("T", make_run(float(i))) for i in range(5)),
        )

        runs = await store.load("S")

        assert len(runs) == 20
        assert sorted(r.index for r in run_ids if r.suite == "S") == list(range(20))
        assert sorted(r.commit_id for r in runs) == sorted(f"c{i}" for i in range(20))
        assert len(await store.load("T")) == 5

    @pytest.mark.asyncio
    async def test_rewrite(self, store: LedgerStoreBase) -> None:
        """rewrite() replaces a suite's runs with the transform's result."""
        for i in range(3):
            await store.append("S", make_run(float(i)))

        kept = await store.rewrite("S", lambda runs: runs[1:])

        assert len(kept) == 2
        assert [r.benches[0].value for r in await store.load("S")] == [1.0, 2.0]


class TestJSONLedgerStore:
    """Tests specific to the file-backed store."""

    @pytest.mark.asyncio
    async def test_document_shape(self, tmp_path: Path) -> None:
        """The ledger file has lastUpdate and entries at its root."""
        path = tmp_path / "bench" / "data.json"
        store = JSONLedgerStore(path, clock=fixed_clock)

        await store.append("Run Auth Engine Benchmark", make_run(170.0, date=1765548243649))

        data = json.loads(path.read_text())
        assert data["lastUpdate"] == CLOCK_MS
        run = data["entries"]["Run Auth Engine Benchmark"][0]
        assert run["commit"]["id"] == "abc"
        assert run["date"] == 1765548243649
        assert run["tool"] == "jmh"
        assert run["benches"] == [{"name": "opA", "value": 170.0, "unit": "ops/us"}]

    @pytest.mark.asyncio
    async def test_reads_original_data_js(self, tmp_path: Path) -> None:
        """A data.js ledger is read, and preserved when appended to."""
        path = tmp_path / "data.js"
        path.write_text(ORIGINAL_DATA_JS)
        store = JSONLedgerStore(path, clock=fixed_clock)

        runs = await store.load("Run Auth Engine Benchmark")
        assert runs[0].commit.author is not None
        assert runs[0].commit.author.username == "TelicentPaul"
        assert runs[0].benches[0].extra_info().forks == 1

        await store.append("Run Auth Engine Benchmark", make_run(170.0, date=1765548300000))

        content = path.read_text()
        assert content.startswith(JS_PREFIX)
        data = decode_document(content)
        assert data["repoUrl"] == "https://github.com/telicent-oss/smart-caches-core"
        assert data["entries"]["Run Auth Engine Benchmark"][0]["commit"]["committer"]["username"] == "web-flow"
        assert len(data["entries"]["Run Auth Engine Benchmark"]) == 2

    @pytest.mark.asyncio
    async def test_repo_url_for_new_ledger(self, tmp_path: Path) -> None:
        """repo_url is recorded when the ledger has none."""
        path = tmp_path / "data.json"
        store = JSONLedgerStore(path, repo_url="https://example.com/repo", clock=fixed_clock)

        await store.append("S", make_run())

        assert json.loads(path.read_text())["repoUrl"] == "https://example.com/repo"

    @pytest.mark.asyncio
    async def test_empty_file_is_empty_ledger(self, tmp_path: Path) -> None:
        """A blank file loads as an empty ledger."""
        path = tmp_path / "data.json"
        path.write_text("  \n")

        assert await JSONLedgerStore(path).load_ledger() == Ledger()

    @pytest.mark.asyncio
    async def test_corrupt_file_raises_and_is_kept(self, tmp_path: Path) -> None:
        """A corrupt ledger is an error and is never overwritten."""
        path = tmp_path / "data.json"
        path.write_text('{"entries": {"S": [')
        store = JSONLedgerStore(path)

        with pytest.raises(StorageError):
            await store.load("S")
        with pytest.raises(StorageError):
            await store.append("S", make_run())

        assert path.read_text() == '{"entries": {"S": ['

    @pytest.mark.asyncio
    async def test_wrong_shape_raises(self, tmp_path: Path) -> None:
        """A JSON document with the wrong shape is a storage error."""
        path = tmp_path / "data.json"
        path.write_text('{"entries": {"S": [{"date": "soon"}]}}')

        with pytest.raises(StorageError):
            await JSONLedgerStore(path).load("S")

    @pytest.mark.asyncio
    async def test_failed_write_leaves_ledger_unchanged(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """An interrupted write keeps the committed ledger and no temp file."""
        path = tmp_path / "data.json"
        store = JSONLedgerStore(path, clock=fixed_clock)
        await store.append("S", make_run(1.0))
        committed = path.read_text()

        original_replace: Callable[[Path, Path], Path] = Path.replace

        def failing_replace(self: Path, target: Path) -> Path:
            if self.name.startswith(".ledger_"):
                raise OSError("disk full")
            return original_replace(self, target)

        monkeypatch.setattr(Path, "replace", failing_replace)

        with pytest.raises(StorageError):
            await store.append("S", make_run(2.0))

        assert path.read_text() == committed
        assert list(tmp_path.glob(".ledger_*")) == []
        monkeypatch.undo()
        assert len(await store.load("S")) == 1
