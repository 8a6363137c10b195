"""Alert emission for benchledger.

Example:
    >>> from benchledger.alerts import AlertEmitter
    >>> report = AlertEmitter().emit(findings)
    >>> if report.has_regressions:
    ...     print(report.summary())
"""

from __future__ import annotations

from benchledger.alerts.emitter import AlertEmitter, Report, emit

__all__ = [
    "AlertEmitter",
    "Report",
    "emit",
]
