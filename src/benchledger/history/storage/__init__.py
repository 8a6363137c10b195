"""Storage backends for the benchmark ledger.

Example:
    >>> from benchledger.history.storage import JSONLedgerStore
    >>> store = JSONLedgerStore("benchmark-data/data.json")
    >>> await store.append("S", run)
"""

from __future__ import annotations

from benchledger.history.storage.base import LedgerStoreBase, RunSequence, StorageProtocol
from benchledger.history.storage.json_store import JSONLedgerStore
from benchledger.history.storage.memory import MemoryLedgerStore

__all__ = [
    "JSONLedgerStore",
    "LedgerStoreBase",
    "MemoryLedgerStore",
    "RunSequence",
    "StorageProtocol",
]
