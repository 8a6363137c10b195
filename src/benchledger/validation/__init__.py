"""Schema validation for run payloads.

Example:
    >>> from benchledger.validation import validate
    >>> run = validate(payload, suite="Run Auth Engine Benchmark")
"""

from __future__ import annotations

from benchledger.validation.validator import MAX_EPOCH_MS, Rejection, validate, validate_many

__all__ = [
    "MAX_EPOCH_MS",
    "Rejection",
    "validate",
    "validate_many",
]
