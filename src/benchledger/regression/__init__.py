"""Regression detection module for benchledger.

This module compares new benchmark runs against a rolling baseline and
reports regressions, improvements and indeterminate comparisons.

Example:
    >>> from benchledger.regression import RegressionAnalyzer, RegressionPolicy
    >>>
    >>> analyzer = RegressionAnalyzer(RegressionPolicy(window_size=3))
    >>> findings = analyzer.analyze("S", "jmh", new_run, prior_runs)
    >>> if any(f.severity == Severity.REGRESSION for f in findings):
    ...     print("Regression detected!")
"""

from __future__ import annotations

from benchledger.regression.analyzer import RegressionAnalyzer, analyze
from benchledger.regression.models import (
    DEFAULT_DIRECTIONS,
    Direction,
    Finding,
    RegressionPolicy,
    Severity,
)

__all__ = [
    "DEFAULT_DIRECTIONS",
    "Direction",
    "Finding",
    "RegressionAnalyzer",
    "RegressionPolicy",
    "Severity",
    "analyze",
]
