"""Custom exceptions for benchledger.

This module defines the exception hierarchy used throughout the library.
All exceptions inherit from BenchLedgerError for easy catching.
"""

from __future__ import annotations

from dataclasses import dataclass


class BenchLedgerError(Exception):
    """Base exception for all benchledger errors.

    Example:
        >>> try:
        ...     # benchledger operations
        ...     pass
        ... except BenchLedgerError as e:
        ...     print(f"benchledger error: {e}")
    """


@dataclass(frozen=True)
class Issue:
    """A single problem found while validating a run payload.

    Attributes:
        location: Dotted path to the offending field (e.g. "benches.0.unit").
        message: Human-readable description of the problem.
    """

    location: str
    message: str

    def __str__(self) -> str:
        return f"{self.location}: {self.message}" if self.location else self.message


class ValidationError(BenchLedgerError):
    """Raised when an incoming run payload is malformed.

    The run is rejected and reported; nothing is appended to the ledger.

    Example:
        >>> raise ValidationError([Issue("commit.id", "must not be empty")])
    """

    def __init__(self, issues: list[Issue], suite: str | None = None) -> None:
        self.issues = list(issues)
        self.suite = suite
        details = "; ".join(str(issue) for issue in self.issues)
        prefix = f"Invalid run for suite '{suite}'" if suite else "Invalid run"
        super().__init__(f"{prefix}: {details}")


class StorageError(BenchLedgerError):
    """Raised when the ledger cannot be read or written.

    Fatal for the invocation. The previously committed ledger is left unchanged.

    Example:
        >>> raise StorageError("Failed to write ledger benchmark-data/data.json")
    """


class PolicyConfigError(BenchLedgerError):
    """Raised when the regression policy is incomplete or invalid.

    Typically a unit observed in the data has no direction-of-improvement
    mapping. Raised before any comparison takes place.

    Example:
        >>> raise PolicyConfigError("No direction configured for unit 'ops/us'")
    """


class ConfigurationError(BenchLedgerError):
    """Raised when configuration is invalid or missing.

    Example:
        >>> raise ConfigurationError("Ledger path is a directory: benchmark-data")
    """
