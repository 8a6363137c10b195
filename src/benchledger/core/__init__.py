"""Core module for benchledger.

This module contains the fundamental types, exceptions, and configuration
used throughout the library.
"""

from __future__ import annotations

from benchledger.core.config import Settings, load_settings
from benchledger.core.exceptions import (
    BenchLedgerError,
    ConfigurationError,
    Issue,
    PolicyConfigError,
    StorageError,
    ValidationError,
)
from benchledger.core.types import (
    BenchResult,
    Commit,
    CommitUser,
    ExtraInfo,
    Ledger,
    Observation,
    Run,
    RunId,
    observations,
)

__all__ = [
    "BenchLedgerError",
    "BenchResult",
    "Commit",
    "CommitUser",
    "ConfigurationError",
    "ExtraInfo",
    "Issue",
    "Ledger",
    "Observation",
    "PolicyConfigError",
    "Run",
    "RunId",
    "Settings",
    "StorageError",
    "ValidationError",
    "load_settings",
    "observations",
]
