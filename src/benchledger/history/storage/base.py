"""Base protocol and shared machinery for ledger storage backends.

This module defines the StorageProtocol that all storage backends implement,
the restartable RunSequence returned by ``load``, and LedgerStoreBase, which
provides append/load/rewrite on top of two primitives: read the whole ledger
and atomically write the whole ledger.
"""

from __future__ import annotations

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator, Sequence
from typing import Protocol, overload, runtime_checkable

from benchledger.core.types import Ledger, Observation, Run, RunId, observations

logger = logging.getLogger(__name__)

RunsTransform = Callable[[list[Run]], list[Run]]


def now_ms() -> int:
    """Return the current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class RunSequence(Sequence[Run]):
    """Finite, restartable view over an eager snapshot of a suite's runs.

    ``load`` reads the whole ledger document in one go, so the runs are
    materialized when the view is built rather than fetched lazily. Each
    iteration starts from the first run again, and later appends are not
    visible through an existing view.
    """

    def __init__(self, runs: Sequence[Run]) -> None:
        self._runs = tuple(runs)

    def __iter__(self) -> Iterator[Run]:
        yield from self._runs

    def __len__(self) -> int:
        return len(self._runs)

    @overload
    def __getitem__(self, index: int) -> Run: ...

    @overload
    def __getitem__(self, index: slice) -> list[Run]: ...

    def __getitem__(self, index: int | slice) -> Run | list[Run]:
        if isinstance(index, slice):
            return list(self._runs[index])
        return self._runs[index]

    def __repr__(self) -> str:
        return f"RunSequence({len(self._runs)} runs)"


@runtime_checkable
class StorageProtocol(Protocol):
    """Protocol for ledger storage backends.

    Example:
        >>> class MyStorage:
        ...     async def append(self, suite: str, run: Run) -> RunId: ...
        ...     # ... implement other methods
        >>> isinstance(MyStorage(), StorageProtocol)
        True
    """

    async def append(self, suite: str, run: Run) -> RunId:
        """Append a run to the end of a suite's history.

        Args:
            suite: Suite name. Created on first append.
            run: A validated run.

        Returns:
            Handle of the appended run.

        Raises:
            StorageError: If the ledger cannot be read or written.
        """
        ...

    async def load(self, suite: str) -> RunSequence:
        """Load a suite's runs in ingestion order.

        Args:
            suite: Suite name. Unknown suites yield an empty sequence.

        Returns:
            Restartable sequence of runs.
        """
        ...

    async def runs_for(self, suite: str, tool: str, name: str) -> list[Observation]:
        """Return the ``(timestamp, value, unit)`` history of one benchmark key.

        Args:
            suite: Suite name.
            tool: Tool identifier.
            name: Benchmark name.

        Returns:
            Observations sorted by ingest timestamp ascending.
        """
        ...

    async def suites(self) -> list[str]:
        """Return the names of all suites in the ledger."""
        ...

    async def load_ledger(self) -> Ledger:
        """Return the whole ledger."""
        ...

    async def rewrite(self, suite: str, transform: RunsTransform) -> list[Run]:
        """Atomically replace a suite's runs with ``transform(runs)``.

        Used by retention only. The transform runs under the write lock.

        Args:
            suite: Suite name.
            transform: Function from current runs to the runs to keep.

        Returns:
            The runs now stored for the suite.
        """
        ...


class LedgerStoreBase(ABC):
    """Shared implementation for whole-document ledger stores.

    Subclasses provide ``_read_ledger`` and ``_write_ledger``. Every
    read-modify-write goes through a single asyncio.Lock, which gives each
    suite one linearizable append point.
    """

    def __init__(self, clock: Callable[[], int] | None = None) -> None:
        """Initialize the store.

        Args:
            clock: Source of epoch milliseconds for ``lastUpdate``. Defaults to
                the wall clock.
        """
        self._clock = clock or now_ms
        self._lock = asyncio.Lock()

    @abstractmethod
    def _read_ledger(self) -> Ledger:
        """Read the committed ledger."""

    @abstractmethod
    def _write_ledger(self, ledger: Ledger) -> None:
        """Atomically replace the committed ledger."""

    def _stamp(self, ledger: Ledger, entries: dict[str, list[Run]]) -> Ledger:
        updated = ledger.model_copy(update={"entries": entries})
        return updated.model_copy(update={"last_update": max(self._clock(), updated.max_date())})

    async def append(self, suite: str, run: Run) -> RunId:
        """Append a run to the end of a suite's history."""
        async with self._lock:
            ledger = self._read_ledger()
            entries = dict(ledger.entries)
            runs = [*entries.get(suite, []), run]
            entries[suite] = runs
            self._write_ledger(self._stamp(ledger, entries))
        run_id = RunId(suite=suite, index=len(runs) - 1)
        logger.info(f"Appended run {run.commit_id} to '{suite}' at position {run_id.index}")
        return run_id

    async def load(self, suite: str) -> RunSequence:
        """Load a suite's runs in ingestion order."""
        async with self._lock:
            ledger = self._read_ledger()
        return RunSequence(ledger.runs(suite))

    async def runs_for(self, suite: str, tool: str, name: str) -> list[Observation]:
        """Return the history of one benchmark key, oldest first."""
        runs = await self.load(suite)
        return observations(list(runs), tool, name)

    async def suites(self) -> list[str]:
        """Return the names of all suites in the ledger."""
        ledger = await self.load_ledger()
        return list(ledger.entries)

    async def load_ledger(self) -> Ledger:
        """Return the whole ledger."""
        async with self._lock:
            return self._read_ledger()

    async def rewrite(self, suite: str, transform: RunsTransform) -> list[Run]:
        """Atomically replace a suite's runs with ``transform(runs)``."""
        async with self._lock:
            ledger = self._read_ledger()
            current = ledger.runs(suite)
            kept = transform(list(current))
            if kept == current:
                return current
            entries = dict(ledger.entries)
            entries[suite] = kept
            self._write_ledger(self._stamp(ledger, entries))
        logger.info(f"Rewrote '{suite}': {len(current)} -> {len(kept)} runs")
        return kept
