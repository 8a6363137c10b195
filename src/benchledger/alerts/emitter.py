"""Alert emitter for benchledger.

This module turns analyzer Findings (and validation rejections) from one
invocation into a single Report. The caller decides what to do with it:
fail the build, post a comment, and so on.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field

from benchledger.regression.models import Finding, Severity
from benchledger.validation.validator import Rejection


class Report(BaseModel):
    """Aggregated outcome of one ingest/analyze invocation.

    Attributes:
        total_regressions: Number of regression findings.
        total_improvements: Number of improvement findings.
        total_indeterminate: Number of indeterminate findings.
        total_rejected: Number of runs refused by validation.
        findings: Findings ordered by suite, then benchmark name.
        rejections: Rejected runs with their issues.
        generated_at: When the report was built.
    """

    model_config = {"frozen": True}

    total_regressions: int = Field(default=0, ge=0)
    total_improvements: int = Field(default=0, ge=0)
    total_indeterminate: int = Field(default=0, ge=0)
    total_rejected: int = Field(default=0, ge=0)
    findings: list[Finding] = Field(default_factory=list)
    rejections: list[Rejection] = Field(default_factory=list)
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def has_regressions(self) -> bool:
        """Check if any regression was found."""
        return self.total_regressions > 0

    @property
    def passed(self) -> bool:
        """True when there is no regression."""
        return not self.has_regressions

    @property
    def exit_code(self) -> int:
        """Exit code for CI: 0 = no regressions, 1 = regressions found."""
        return 1 if self.has_regressions else 0

    @property
    def regressions(self) -> list[Finding]:
        return [f for f in self.findings if f.severity == Severity.REGRESSION]

    @property
    def improvements(self) -> list[Finding]:
        return [f for f in self.findings if f.severity == Severity.IMPROVEMENT]

    @property
    def indeterminate(self) -> list[Finding]:
        return [f for f in self.findings if f.severity == Severity.INDETERMINATE]

    def summary(self) -> str:
        """Generate a human-readable summary.

        Returns:
            Multi-line summary string.
        """
        if not self.findings and not self.rejections:
            return "No regressions detected."

        lines = [
            f"Benchmark Report ({self.generated_at.strftime('%Y-%m-%d %H:%M:%S')})",
            f"  Regressions: {self.total_regressions}, Improvements: {self.total_improvements}, "
            f"Indeterminate: {self.total_indeterminate}, Rejected: {self.total_rejected}",
        ]

        if self.findings:
            lines.extend(["", "Findings:"])
            for finding in self.findings:
                lines.append(f"  [{finding.severity.value.upper()}] {finding.suite}: {finding.message}")

        if self.rejections:
            lines.extend(["", "Rejected runs:"])
            for rejection in self.rejections:
                lines.append(f"  [REJECTED] {rejection.suite}: {rejection.message}")

        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON output.

        Returns:
            Dictionary representation of the report.
        """
        return {
            "status": "fail" if self.has_regressions else "pass",
            "exit_code": self.exit_code,
            "generated_at": self.generated_at.isoformat(timespec="seconds"),
            "total_regressions": self.total_regressions,
            "total_improvements": self.total_improvements,
            "total_indeterminate": self.total_indeterminate,
            "total_rejected": self.total_rejected,
            "findings": [f.model_dump(mode="json") for f in self.findings],
            "rejections": [
                {
                    "suite": r.suite,
                    "issues": [{"location": i.location, "message": i.message} for i in r.issues],
                }
                for r in self.rejections
            ],
        }


class AlertEmitter:
    """Aggregate findings across suites into a Report.

    Pure transformation; no I/O.

    Example:
        >>> report = AlertEmitter().emit(findings)
        >>> sys.exit(report.exit_code)
    """

    def emit(
        self,
        findings: Iterable[Finding],
        rejections: Iterable[Rejection] = (),
    ) -> Report:
        """Build a report.

        Args:
            findings: Findings from every suite processed in this invocation.
            rejections: Runs refused by validation.

        Returns:
            The aggregated report. Findings are ordered by suite name, then
            benchmark name (lexical); ties keep tool order then input order.
        """
        ordered = sorted(findings, key=lambda f: (f.suite, f.name, f.tool))
        rejected = sorted(rejections, key=lambda r: r.suite)
        return Report(
            total_regressions=sum(1 for f in ordered if f.severity == Severity.REGRESSION),
            total_improvements=sum(1 for f in ordered if f.severity == Severity.IMPROVEMENT),
            total_indeterminate=sum(1 for f in ordered if f.severity == Severity.INDETERMINATE),
            total_rejected=len(rejected),
            findings=ordered,
            rejections=rejected,
        )


def emit(findings: Iterable[Finding], rejections: Iterable[Rejection] = ()) -> Report:
    """Build a report with a default emitter. See AlertEmitter.emit."""
    return AlertEmitter().emit(findings, rejections)
