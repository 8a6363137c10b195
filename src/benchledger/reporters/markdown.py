"""Markdown reporter for benchledger.

Renders a report as a Markdown alert comment, the form a CI step posts on a
commit or pull request when a regression is found.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from benchledger.regression.models import Severity

if TYPE_CHECKING:
    from benchledger.alerts import Report
    from benchledger.regression.models import Finding


def _escape(text: str) -> str:
    return text.replace("|", "\\|").replace("`", "\\`")


def _row(finding: Finding) -> str:
    baseline = f"{finding.baseline_value:.6g}" if finding.baseline_value is not None else "-"
    ratio = f"{finding.ratio:.3f}" if finding.ratio is not None else "-"
    note = finding.reason or ""
    return (
        f"| `{_escape(finding.name)}` | {baseline} {finding.unit} | "
        f"{finding.new_value:.6g} {finding.unit} | {ratio} | {note} |"
    )


class MarkdownReporter:
    """Reporter that renders a report as a Markdown comment.

    Example:
        >>> body = MarkdownReporter(commit_id="ba715f4b").report(report)
    """

    def __init__(self, commit_id: str | None = None, include_improvements: bool = True) -> None:
        """Initialize MarkdownReporter.

        Args:
            commit_id: Commit the report refers to, shown in the heading.
            include_improvements: Whether to list improvements too.
        """
        self.commit_id = commit_id
        self.include_improvements = include_improvements

    def report(self, report: Report) -> str:
        """Render a report.

        Args:
            report: The report to render.

        Returns:
            Markdown text.
        """
        heading = "# :warning: Performance Alert :warning:" if report.has_regressions else "# Benchmark Report"
        lines = [heading, ""]
        if self.commit_id:
            lines.extend([f"Commit `{self.commit_id}`", ""])
        lines.append(
            f"**{report.total_regressions}** regressions, **{report.total_improvements}** improvements, "
            f"**{report.total_indeterminate}** indeterminate, **{report.total_rejected}** rejected."
        )

        sections = [
            ("Regressions", Severity.REGRESSION),
            ("Improvements", Severity.IMPROVEMENT),
            ("Indeterminate", Severity.INDETERMINATE),
        ]
        for title, severity in sections:
            if severity == Severity.IMPROVEMENT and not self.include_improvements:
                continue
            findings = [f for f in report.findings if f.severity == severity]
            if not findings:
                continue
            for suite in sorted({f.suite for f in findings}):
                lines.extend(["", f"## {title}: {_escape(suite)}", ""])
                lines.append("| Benchmark | Baseline | Current | Ratio | Note |")
                lines.append("|-|-|-|-|-|")
                lines.extend(_row(f) for f in findings if f.suite == suite)

        if report.rejections:
            lines.extend(["", "## Rejected runs", ""])
            for rejection in report.rejections:
                lines.append(f"- **{_escape(rejection.suite)}**: {_escape(rejection.message)}")

        return "\n".join(lines) + "\n"
