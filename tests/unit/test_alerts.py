"""Unit tests for the alert emitter and Report."""

from __future__ import annotations

from benchledger.alerts import AlertEmitter, Report, emit
from benchledger.core.exceptions import Issue
from benchledger.regression import Finding, Severity
from benchledger.validation import Rejection


def make_finding(
    name: str = "opA",
    severity: Severity = Severity.REGRESSION,
    suite: str = "S",
    tool: str = "jmh",
) -> Finding:
    indeterminate = severity == Severity.INDETERMINATE
    return Finding(
        suite=suite,
        tool=tool,
        name=name,
        unit="ops/us",
        baseline_value=None if indeterminate else 100.0,
        new_value=50.0,
        ratio=None if indeterminate else 0.5,
        severity=severity,
        window=0 if indeterminate else 1,
        reason="baseline is zero" if indeterminate else None,
    )


class TestAlertEmitter:
    """Tests for AlertEmitter."""

    def test_empty(self) -> None:
        """No findings is a passing report."""
        report = AlertEmitter().emit([])

        assert report.passed
        assert report.exit_code == 0
        assert report.summary() == "No regressions detected."

    def test_counts(self) -> None:
        """Totals count each severity."""
        report = emit(
            [
                make_finding("a"),
                make_finding("b"),
                make_finding("c", Severity.IMPROVEMENT),
                make_finding("d", Severity.INDETERMINATE),
            ]
        )

        assert report.total_regressions == 2
        assert report.total_improvements == 1
        assert report.total_indeterminate == 1
        assert report.has_regressions
        assert report.exit_code == 1
        assert [f.name for f in report.regressions] == ["a", "b"]
        assert [f.name for f in report.improvements] == ["c"]
        assert [f.name for f in report.indeterminate] == ["d"]

    def test_improvements_only_pass(self) -> None:
        """Improvements and indeterminate findings never fail the build."""
        report = emit([make_finding("a", Severity.IMPROVEMENT), make_finding("b", Severity.INDETERMINATE)])

        assert report.passed
        assert report.exit_code == 0

    def test_ordering(self) -> None:
        """Findings are ordered by suite, then benchmark name."""
        report = emit(
            [
                make_finding("zeta", suite="B"),
                make_finding("beta", suite="A"),
                make_finding("alpha", suite="B"),
                make_finding("alpha", suite="A"),
            ]
        )

        assert [(f.suite, f.name) for f in report.findings] == [
            ("A", "alpha"),
            ("A", "beta"),
            ("B", "alpha"),
            ("B", "zeta"),
        ]

    def test_rejections(self) -> None:
        """Rejected runs are counted but do not fail the report."""
        rejection = Rejection(suite="S", issues=[Issue("date", "is required")])

        report = emit([], [rejection])

        assert report.total_rejected == 1
        assert report.exit_code == 0
        assert "[REJECTED] S: date: is required" in report.summary()


class TestReport:
    """Tests for Report serialization."""

    def test_to_dict(self) -> None:
        """to_dict() gives a JSON-ready structure."""
        rejection = Rejection(suite="T", issues=[Issue("commit.id", "is required")])
        report = emit([make_finding()], [rejection])

        data = report.to_dict()

        assert data["status"] == "fail"
        assert data["exit_code"] == 1
        assert data["total_regressions"] == 1
        assert data["findings"][0]["severity"] == "regression"
        assert data["findings"][0]["ratio"] == 0.5
        assert data["rejections"] == [{"suite": "T", "issues": [{"location": "commit.id", "message": "is required"}]}]

    def test_summary_lists_findings(self) -> None:
        """summary() lists each finding with its severity."""
        summary = emit([make_finding()]).summary()

        assert "Regressions: 1" in summary
        assert "[REGRESSION] S: opA: regression" in summary

    def test_default_report(self) -> None:
        """A bare Report has no findings."""
        assert Report().passed
