"""benchledger: benchmark history ledger with regression detection."""

from __future__ import annotations

__version__ = "0.1.0"

from benchledger.alerts import AlertEmitter, Report  # noqa: E402
from benchledger.core.exceptions import (  # noqa: E402
    BenchLedgerError,
    PolicyConfigError,
    StorageError,
    ValidationError,
)
from benchledger.core.types import BenchResult, Commit, Ledger, Run, RunId  # noqa: E402
from benchledger.history import BenchmarkHistory, JSONLedgerStore, MemoryLedgerStore  # noqa: E402
from benchledger.regression import Finding, RegressionAnalyzer, RegressionPolicy, Severity  # noqa: E402
from benchledger.retention import RetentionManager, RetentionPolicy  # noqa: E402
from benchledger.validation import validate  # noqa: E402

__all__ = [
    # Alerts
    "AlertEmitter",
    "Report",
    # Errors
    "BenchLedgerError",
    "PolicyConfigError",
    "StorageError",
    "ValidationError",
    # Types
    "BenchResult",
    "Commit",
    "Ledger",
    "Run",
    "RunId",
    # History
    "BenchmarkHistory",
    "JSONLedgerStore",
    "MemoryLedgerStore",
    # Regression
    "Finding",
    "RegressionAnalyzer",
    "RegressionPolicy",
    "Severity",
    # Retention
    "RetentionManager",
    "RetentionPolicy",
    # Validation
    "validate",
    # Version
    "__version__",
]
