"""Retention management for the benchmark ledger.

This module bounds ledger growth by pruning old runs, or old measurement
detail, while keeping every baseline the analyzer still needs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from benchledger.core.types import Run

if TYPE_CHECKING:
    from benchledger.history.storage import StorageProtocol

logger = logging.getLogger(__name__)


class RetentionPolicy(BaseModel):
    """Policy describing which runs to keep.

    Rules combine: a run is removed when any rule drops it, unless it is
    protected. With no rule set nothing is removed.

    Attributes:
        keep_last: Keep only the last N runs of the suite.
        newer_than: Keep only runs whose date (epoch ms) is at or after this.
        keep_last_per_key: Keep only the last N measurements per
            ``(tool, name)`` key, newest by date first. Older measurements are stripped from their
            runs; a run left empty is removed.
        protect_window: Number of most recent values protected for every
            key of the latest run of each tool. Should be at least the analyzer's window.

    Example:
        >>> policy = RetentionPolicy(keep_last=100, protect_window=5)
    """

    model_config = {"frozen": True}

    keep_last: int | None = Field(default=None, ge=1, description="Runs to keep")
    newer_than: int | None = Field(default=None, ge=0, description="Epoch ms cutoff")
    keep_last_per_key: int | None = Field(default=None, ge=1, description="Measurements kept per key")
    protect_window: int = Field(default=1, ge=1, description="Values protected per current key")

    @property
    def is_noop(self) -> bool:
        return self.keep_last is None and self.newer_than is None and self.keep_last_per_key is None


@dataclass
class PrunePlan:
    """Result of planning a prune over one suite's runs.

    Attributes:
        kept: Runs to store, in their original order.
        runs_removed: Number of whole runs dropped.
        measurements_removed: Number of measurements stripped from kept runs.
        protected: Positions of runs shielded by baseline protection.
    """

    kept: list[Run]
    runs_removed: int = 0
    measurements_removed: int = 0
    protected: set[int] = field(default_factory=set)

    @property
    def removed(self) -> int:
        return self.runs_removed + self.measurements_removed


def _key(tool: str, name: str) -> tuple[str, str]:
    return (tool, name)


def _newest_first(runs: list[Run]) -> list[int]:
    # Same order as observations(): by date, ties in ingestion order
    return sorted(range(len(runs)), key=lambda index: runs[index].date)[::-1]


def current_keys(runs: list[Run]) -> dict[tuple[str, str], str]:
    """Return the keys the next comparison can use, with their current unit.

    Every tool of the suite contributes the keys of its latest run, both by
    date and by ingestion order.
    """
    by_date: dict[str, int] = {}
    for run_index in _newest_first(runs):
        by_date.setdefault(runs[run_index].tool, run_index)
    by_position = {run.tool: run_index for run_index, run in enumerate(runs)}
    latest = {*by_date.values(), *by_position.values()}

    keys: dict[tuple[str, str], str] = {}
    for run_index in _newest_first(runs):
        run = runs[run_index]
        if run_index not in latest:
            continue
        for bench in reversed(run.benches):
            keys.setdefault(_key(run.tool, bench.name), bench.unit)
    return keys


def protected_measurements(runs: list[Run], window: int) -> set[tuple[int, int]]:
    """Find the measurements that make up the current baselines.

    For each current key (see ``current_keys``) the ``window`` newest
    values in its current unit are protected. Values are ranked the way the
    analyzer ranks them: by run date, ties in ingestion order.

    Returns:
        ``(run_index, bench_index)`` pairs that must survive pruning.
    """
    keys = current_keys(runs)
    remaining = dict.fromkeys(keys, window)
    protected: set[tuple[int, int]] = set()
    for run_index in _newest_first(runs):
        run = runs[run_index]
        for bench_index in range(len(run.benches) - 1, -1, -1):
            bench = run.benches[bench_index]
            key = _key(run.tool, bench.name)
            if remaining.get(key, 0) > 0 and bench.unit == keys[key]:
                remaining[key] -= 1
                protected.add((run_index, bench_index))
    return protected


def plan_prune(runs: list[Run], policy: RetentionPolicy) -> PrunePlan:
    """Decide which runs and measurements a retention policy removes.

    Pure function: the input runs are not modified. Runs that survive with
    fewer measurements are replaced by trimmed copies.

    Args:
        runs: Runs of one suite, in ingestion order.
        policy: Retention policy.

    Returns:
        The prune plan.
    """
    if policy.is_noop or not runs:
        return PrunePlan(kept=list(runs))

    protected = protected_measurements(runs, policy.protect_window)
    protected_runs = {run_index for run_index, _ in protected}
    # The newest run always stays: it is the next comparison's baseline.
    protected_runs.add(len(runs) - 1)

    cut = len(runs) - policy.keep_last if policy.keep_last is not None else 0
    drop_runs = {
        index
        for index, run in enumerate(runs)
        if index not in protected_runs
        and (index < cut or (policy.newer_than is not None and run.date < policy.newer_than))
    }

    drop_benches: set[tuple[int, int]] = set()
    if policy.keep_last_per_key is not None:
        seen: dict[tuple[str, str], int] = {}
        for run_index in _newest_first(runs):
            if run_index in drop_runs:
                continue
            run = runs[run_index]
            for bench_index in range(len(run.benches) - 1, -1, -1):
                key = _key(run.tool, run.benches[bench_index].name)
                seen[key] = seen.get(key, 0) + 1
                if seen[key] > policy.keep_last_per_key and (run_index, bench_index) not in protected:
                    drop_benches.add((run_index, bench_index))

    kept: list[Run] = []
    runs_removed = 0
    measurements_removed = 0
    for run_index, run in enumerate(runs):
        if run_index in drop_runs:
            runs_removed += 1
            continue
        benches = [
            bench for bench_index, bench in enumerate(run.benches) if (run_index, bench_index) not in drop_benches
        ]
        if not benches:
            runs_removed += 1
            continue
        if len(benches) != len(run.benches):
            measurements_removed += len(run.benches) - len(benches)
            run = run.model_copy(update={"benches": benches})
        kept.append(run)

    return PrunePlan(
        kept=kept,
        runs_removed=runs_removed,
        measurements_removed=measurements_removed,
        protected=protected_runs,
    )


class RetentionManager:
    """Apply retention policies to a ledger store.

    Pruning happens inside the store's write lock, so the baselines it
    protects are computed from the same state it rewrites, including any
    run appended just before.

    Example:
        >>> manager = RetentionManager(store)
        >>> removed = await manager.prune("S", RetentionPolicy(keep_last=50))
    """

    def __init__(self, store: StorageProtocol) -> None:
        """Initialize the manager.

        Args:
            store: Ledger store to prune.
        """
        self._store = store

    async def prune(self, suite: str, policy: RetentionPolicy) -> int:
        """Prune one suite.

        Args:
            suite: Suite name.
            policy: Retention policy.

        Returns:
            Number of entries removed: whole runs dropped plus measurements
            stripped from runs that were kept.
        """
        if policy.is_noop:
            return 0

        plans: list[PrunePlan] = []

        def transform(runs: list[Run]) -> list[Run]:
            plan = plan_prune(runs, policy)
            plans.append(plan)
            return plan.kept

        await self._store.rewrite(suite, transform)
        plan = plans[-1]
        if plan.removed:
            logger.info(
                f"Pruned '{suite}': {plan.runs_removed} runs, {plan.measurements_removed} measurements removed"
            )
        return plan.removed
