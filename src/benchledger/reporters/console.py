"""Console reporter for benchledger.

This module provides terminal output for reports, with a findings table
and colored severity markers.
"""

from __future__ import annotations

import os
import sys
from typing import TYPE_CHECKING, TextIO

from benchledger.regression.models import Severity

if TYPE_CHECKING:
    from benchledger.alerts import Report


# ANSI color codes
class Colors:
    """ANSI color codes for terminal output."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    RED = "\033[31m"


_SEVERITY_STYLE: dict[Severity, tuple[str, str]] = {
    Severity.REGRESSION: ("❌", Colors.RED),
    Severity.IMPROVEMENT: ("✅", Colors.GREEN),
    Severity.INDETERMINATE: ("⚠️ ", Colors.YELLOW),
}


class ConsoleReporter:
    """Reporter that prints a Report to the terminal.

    Attributes:
        use_colors: Whether to use ANSI colors in output.
        output: Output stream (defaults to stdout).
        max_name_width: Benchmark names longer than this are shortened.

    Example:
        >>> ConsoleReporter().report(report)
          Benchmark Report
          Regressions: 1  Improvements: 0  Indeterminate: 0  Rejected: 0
          ❌ S  opA  170 -> 8 ops/us  (x0.047)
    """

    def __init__(
        self,
        use_colors: bool = True,
        output: TextIO | None = None,
        max_name_width: int = 80,
    ) -> None:
        """Initialize ConsoleReporter.

        Args:
            use_colors: Whether to use ANSI colors. Defaults to True.
            output: Output stream. Defaults to sys.stdout.
            max_name_width: Maximum displayed benchmark name length.
        """
        self.output = output or sys.stdout
        self.use_colors = use_colors and _supports_color(self.output)
        self.max_name_width = max_name_width

    def _color(self, text: str, color: str) -> str:
        """Apply color to text if colors are enabled."""
        if self.use_colors:
            return f"{color}{text}{Colors.RESET}"
        return text

    def _print(self, text: str = "") -> None:
        """Print text to output stream."""
        print(text, file=self.output)

    def _shorten(self, name: str) -> str:
        if len(name) <= self.max_name_width:
            return name
        return name[: self.max_name_width - 1] + "…"

    def report(self, report: Report, title: str = "Benchmark Report") -> None:
        """Print a report.

        Args:
            report: The report to print.
            title: Title for the report section.
        """
        self._print()
        self._print(self._color(f"  {title}", Colors.BOLD))
        self._print(
            f"  Regressions: {report.total_regressions}  Improvements: {report.total_improvements}  "
            f"Indeterminate: {report.total_indeterminate}  Rejected: {report.total_rejected}"
        )
        self._print("  " + "-" * 40)

        if not report.findings and not report.rejections:
            self._print(self._color("  No regressions detected.", Colors.GREEN))

        for finding in report.findings:
            marker, color = _SEVERITY_STYLE[finding.severity]
            name = self._shorten(finding.name)
            if finding.severity == Severity.INDETERMINATE:
                detail = self._color(f"indeterminate: {finding.reason}", Colors.DIM)
            else:
                detail = (
                    f"{finding.baseline_value:.4g} -> {finding.new_value:.4g} {finding.unit}  "
                    f"{self._color(f'(x{finding.ratio:.3f})', color)}"
                )
            self._print(f"  {marker} {finding.suite}  {name}  {detail}")

        for rejection in report.rejections:
            self._print(f"  {self._color('REJECTED', Colors.RED)} {rejection.suite}: {rejection.message}")

        self._print()
        status = self._color("FAIL ✗", Colors.RED) if report.has_regressions else self._color("PASS ✓", Colors.GREEN)
        self._print(f"  Result: {status}")
        self._print()


def _supports_color(stream: TextIO) -> bool:
    """Check if the output stream supports ANSI colors.

    Args:
        stream: Output stream to check.

    Returns:
        True if colors are supported, False otherwise.
    """
    if not hasattr(stream, "isatty") or not stream.isatty():
        return False
    if os.environ.get("NO_COLOR"):
        return False
    return os.environ.get("TERM") != "dumb"
