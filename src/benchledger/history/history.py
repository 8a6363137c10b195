"""High-level API for benchmark history tracking.

This module provides BenchmarkHistory, the main interface for ingesting
runs, analyzing them against their baselines and applying retention.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from benchledger.alerts import AlertEmitter, Report
from benchledger.history.storage import JSONLedgerStore, RunSequence, StorageProtocol
from benchledger.regression import RegressionAnalyzer, RegressionPolicy
from benchledger.retention import RetentionManager, RetentionPolicy
from benchledger.validation import validate, validate_many

if TYPE_CHECKING:
    from benchledger.core.types import Observation, Run, RunId
    from benchledger.regression import Finding

logger = logging.getLogger(__name__)


@dataclass
class IngestResult:
    """Outcome of ingesting one run.

    Attributes:
        run_id: Handle of the appended run.
        run: The validated run.
        findings: Findings of the run against its baseline.
        pruned: Entries removed by retention after the append.
    """

    run_id: RunId
    run: Run
    findings: list[Finding] = field(default_factory=list)
    pruned: int = 0


class BenchmarkHistory:
    """High-level API for benchmark history tracking.

    Each suite's append, analyze and prune sequence is serialized by a
    per-suite lock. Different suites proceed concurrently.

    Example:
        >>> history = BenchmarkHistory(JSONLedgerStore("benchmark-data/data.json"))
        >>> result = await history.ingest("Run Auth Engine Benchmark", payload)
        >>> report = history.report(result.findings)
        >>> sys.exit(report.exit_code)
    """

    def __init__(
        self,
        store: StorageProtocol | None = None,
        policy: RegressionPolicy | None = None,
        retention: RetentionPolicy | None = None,
    ) -> None:
        """Initialize with storage backend and policies.

        Args:
            store: Storage backend (default: JSONLedgerStore).
            policy: Regression policy (default: RegressionPolicy()).
            retention: Retention policy applied after every append
                (default: none).
        """
        self._store: StorageProtocol = store or JSONLedgerStore()
        self.policy = policy or RegressionPolicy()
        self.retention = retention
        self._analyzer = RegressionAnalyzer(self.policy)
        self._retention = RetentionManager(self._store)
        self._emitter = AlertEmitter()
        self._suite_locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    @property
    def store(self) -> StorageProtocol:
        return self._store

    async def ingest(self, suite: str, raw_run: Mapping[str, Any] | str) -> IngestResult:
        """Validate, append and analyze one run.

        Args:
            suite: Target suite. Created on first ingestion.
            raw_run: Raw run payload (mapping or JSON text).

        Returns:
            The ingest result.

        Raises:
            ValidationError: If the payload is malformed. Nothing is appended.
            PolicyConfigError: If a unit of the run has no direction mapping.
                Nothing is appended.
            StorageError: If the ledger cannot be read or written.
        """
        run = validate(raw_run, suite)
        return await self._ingest_run(suite, run)

    async def _ingest_run(self, suite: str, run: Run) -> IngestResult:
        self.policy.check_units(run.units())
        async with self._suite_locks[suite]:
            prior = await self._store.load(suite)
            run_id = await self._store.append(suite, run)
            findings = self._analyzer.analyze(suite, run.tool, run, list(prior))
            pruned = 0
            if self.retention is not None:
                pruned = await self._retention.prune(suite, self._protecting(self.retention))
        logger.info(f"Ingested run {run.commit_id} into '{suite}' with {len(findings)} findings")
        return IngestResult(run_id=run_id, run=run, findings=findings, pruned=pruned)

    async def ingest_many(self, payloads: Iterable[tuple[str, Mapping[str, Any] | str]]) -> Report:
        """Ingest several runs and aggregate the outcome into one report.

        Rejected payloads are reported, not raised. Runs for the same suite
        are appended in input order; different suites run concurrently.

        Args:
            payloads: ``(suite, raw_run)`` pairs.

        Returns:
            Report over all findings and rejections.

        Raises:
            PolicyConfigError: If any accepted run uses an unmapped unit.
                Checked before anything is appended.
            StorageError: If the ledger cannot be read or written.
        """
        accepted, rejected = validate_many(payloads)
        self.policy.check_units(unit for _, run in accepted for unit in run.units())

        by_suite: dict[str, list[Run]] = defaultdict(list)
        for suite, run in accepted:
            by_suite[suite].append(run)

        async def ingest_suite(suite: str, runs: list[Run]) -> list[Finding]:
            findings: list[Finding] = []
            for run in runs:
                findings.extend((await self._ingest_run(suite, run)).findings)
            return findings

        results = await asyncio.gather(*(ingest_suite(suite, runs) for suite, runs in by_suite.items()))
        return self._emitter.emit([f for findings in results for f in findings], rejected)

    async def analyze(self, suites: Iterable[str] | None = None) -> Report:
        """Analyze the latest stored run of each suite without ingesting.

        Args:
            suites: Suites to analyze (default: every suite in the ledger).

        Returns:
            Report over the latest run of each suite.

        Raises:
            PolicyConfigError: If a latest run uses an unmapped unit.
        """
        names = list(suites) if suites is not None else await self._store.suites()
        findings: list[Finding] = []
        for suite in names:
            runs = await self._store.load(suite)
            findings.extend(self._analyzer.analyze_latest(suite, list(runs)))
        return self._emitter.emit(findings)

    async def prune(self, suite: str, policy: RetentionPolicy | None = None) -> int:
        """Apply a retention policy to one suite.

        Args:
            suite: Suite name.
            policy: Retention policy (default: the history's retention policy).

        Returns:
            Number of entries removed.
        """
        policy = policy or self.retention
        if policy is None:
            return 0
        async with self._suite_locks[suite]:
            return await self._retention.prune(suite, self._protecting(policy))

    async def load(self, suite: str) -> RunSequence:
        """Return the runs of a suite in ingestion order."""
        return await self._store.load(suite)

    async def runs_for(self, suite: str, tool: str, name: str) -> list[Observation]:
        """Return the history of one benchmark key, oldest first."""
        return await self._store.runs_for(suite, tool, name)

    def report(self, findings: Iterable[Finding]) -> Report:
        """Aggregate findings into a report."""
        return self._emitter.emit(findings)

    def _protecting(self, policy: RetentionPolicy) -> RetentionPolicy:
        # Retention must never cut into the analyzer's baseline window
        if policy.protect_window >= self.policy.window_size:
            return policy
        return policy.model_copy(update={"protect_window": self.policy.window_size})
