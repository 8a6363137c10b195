"""JSON reporter for benchledger.

This module provides JSON output for reports, suitable for CI/CD
pipelines and machine processing.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from benchledger.alerts import Report


class JSONReporter:
    """Reporter that outputs reports as JSON.

    Attributes:
        indent: JSON indentation level (None for compact).

    Example:
        >>> print(JSONReporter().report(report))
        {
          "status": "fail",
          "exit_code": 1,
          "total_regressions": 1,
          ...
        }
    """

    def __init__(self, indent: int | None = 2) -> None:
        """Initialize JSONReporter.

        Args:
            indent: JSON indentation level. Defaults to 2. Use None for compact output.
        """
        self.indent = indent

    def to_dict(self, report: Report, metadata: dict[str, Any] | None = None) -> dict[str, Any]:
        """Convert a report to a dictionary, with optional metadata."""
        data = report.to_dict()
        if metadata:
            data["metadata"] = metadata
        return data

    def report(self, report: Report, metadata: dict[str, Any] | None = None) -> str:
        """Render a report as a JSON string.

        Args:
            report: The report to render.
            metadata: Optional metadata to include.

        Returns:
            JSON text.
        """
        return json.dumps(self.to_dict(report, metadata), indent=self.indent)

    def report_to_file(self, report: Report, path: str | Path, metadata: dict[str, Any] | None = None) -> None:
        """Write a report as JSON to ``path``."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.report(report, metadata))
