"""Regression analyzer for benchmark runs.

This module compares the measurements of a new run with a rolling baseline
built from the prior runs of the same suite, and reports threshold crossings
as Findings. The analyzer holds no state between calls.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from statistics import fmean

from benchledger.core.types import BenchResult, Run, observations
from benchledger.regression.models import Direction, Finding, RegressionPolicy, Severity

logger = logging.getLogger(__name__)


class RegressionAnalyzer:
    """Detect regressions between a new run and its baseline.

    Attributes:
        policy: Default policy used when ``analyze`` is given none.

    Example:
        >>> analyzer = RegressionAnalyzer(RegressionPolicy(lower_threshold=0.5))
        >>> findings = analyzer.analyze("S", "jmh", new_run, prior_runs)
        >>> [f.severity for f in findings]
        [<Severity.REGRESSION: 'regression'>]
    """

    def __init__(self, policy: RegressionPolicy | None = None) -> None:
        """Initialize analyzer.

        Args:
            policy: Default regression policy. Defaults to RegressionPolicy().
        """
        self.policy = policy or RegressionPolicy()

    def analyze(
        self,
        suite: str,
        tool: str,
        new_run: Run,
        history: Sequence[Run],
        policy: RegressionPolicy | None = None,
    ) -> list[Finding]:
        """Compare ``new_run`` with the prior runs in ``history``.

        The first observation of a key only establishes its baseline and is
        never flagged.

        Args:
            suite: Suite name.
            tool: Tool identifier the comparison key is scoped to.
            new_run: The run to check.
            history: Prior runs of the suite in ingestion order, excluding
                ``new_run``.
            policy: Policy for this call. Defaults to the analyzer's policy.

        Returns:
            Findings in the order of the new run's measurements.

        Raises:
            PolicyConfigError: If a unit of ``new_run`` has no configured
                direction. Raised before any comparison.
        """
        policy = policy or self.policy
        policy.check_units(new_run.units())

        prior = list(history)
        findings: list[Finding] = []
        for bench in new_run.benches:
            finding = self._compare(suite, tool, bench, prior, policy)
            if finding is not None:
                findings.append(finding)

        logger.debug(f"Analyzed {len(new_run.benches)} measurements of '{suite}': {len(findings)} findings")
        return findings

    def analyze_latest(
        self,
        suite: str,
        runs: Sequence[Run],
        policy: RegressionPolicy | None = None,
    ) -> list[Finding]:
        """Analyze the most recent stored run against the runs before it.

        Args:
            suite: Suite name.
            runs: All runs of the suite in ingestion order.
            policy: Policy for this call.

        Returns:
            Findings for the last run (empty when the suite has no runs).
        """
        if not runs:
            return []
        latest = runs[-1]
        return self.analyze(suite, latest.tool, latest, list(runs)[:-1], policy)

    def _compare(
        self,
        suite: str,
        tool: str,
        bench: BenchResult,
        prior: list[Run],
        policy: RegressionPolicy,
    ) -> Finding | None:
        history = observations(prior, tool, bench.name)
        if not history:
            return None

        same_unit = [row.value for row in history if row.unit == bench.unit]
        if not same_unit:
            return self._indeterminate(
                suite, tool, bench, None, 0, f"unit changed from '{history[-1].unit}' to '{bench.unit}'"
            )

        window = same_unit[-policy.window_size :]
        baseline = fmean(window)
        if baseline == 0:
            return self._indeterminate(suite, tool, bench, baseline, len(window), "baseline is zero")
        if baseline < 0:
            return self._indeterminate(suite, tool, bench, baseline, len(window), "baseline is negative")

        ratio = bench.value / baseline
        severity = self._classify(ratio, policy.direction_for(bench.unit), policy)
        logger.debug(f"{suite}/{tool}/{bench.name}: baseline={baseline} new={bench.value} ratio={ratio:.4f}")
        if severity is None:
            return None

        return Finding(
            suite=suite,
            tool=tool,
            name=bench.name,
            unit=bench.unit,
            baseline_value=baseline,
            new_value=bench.value,
            ratio=ratio,
            severity=severity,
            window=len(window),
        )

    @staticmethod
    def _classify(ratio: float, direction: Direction, policy: RegressionPolicy) -> Severity | None:
        if ratio < policy.lower_threshold:
            return Severity.REGRESSION if direction == Direction.HIGHER_IS_BETTER else Severity.IMPROVEMENT
        if ratio > policy.upper_threshold:
            return Severity.IMPROVEMENT if direction == Direction.HIGHER_IS_BETTER else Severity.REGRESSION
        return None

    @staticmethod
    def _indeterminate(
        suite: str,
        tool: str,
        bench: BenchResult,
        baseline: float | None,
        window: int,
        reason: str,
    ) -> Finding:
        logger.warning(f"Indeterminate comparison for {suite}/{tool}/{bench.name}: {reason}")
        return Finding(
            suite=suite,
            tool=tool,
            name=bench.name,
            unit=bench.unit,
            baseline_value=baseline,
            new_value=bench.value,
            ratio=None,
            severity=Severity.INDETERMINATE,
            window=window,
            reason=reason,
        )


def analyze(
    suite: str,
    tool: str,
    new_run: Run,
    history: Sequence[Run],
    policy: RegressionPolicy | None = None,
) -> list[Finding]:
    """Compare ``new_run`` with ``history`` using a one-off analyzer.

    See RegressionAnalyzer.analyze.
    """
    return RegressionAnalyzer(policy).analyze(suite, tool, new_run, history)
