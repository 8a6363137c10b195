"""Benchmark history tracking for benchledger.

This module provides the ledger stores and the high-level BenchmarkHistory
API that ingests runs, detects regressions and applies retention.

Example:
    >>> from benchledger.history import BenchmarkHistory, JSONLedgerStore
    >>>
    >>> history = BenchmarkHistory(JSONLedgerStore("benchmark-data/data.json"))
    >>> result = await history.ingest("Run Auth Engine Benchmark", payload)
    >>> for finding in result.findings:
    ...     print(finding.message)
"""

from __future__ import annotations

from benchledger.history.history import BenchmarkHistory, IngestResult
from benchledger.history.storage import (
    JSONLedgerStore,
    LedgerStoreBase,
    MemoryLedgerStore,
    RunSequence,
    StorageProtocol,
)

__all__ = [
    "BenchmarkHistory",
    "IngestResult",
    "JSONLedgerStore",
    "LedgerStoreBase",
    "MemoryLedgerStore",
    "RunSequence",
    "StorageProtocol",
]
