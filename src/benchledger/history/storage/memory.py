"""In-memory ledger store."""

from __future__ import annotations

from collections.abc import Callable

from benchledger.core.types import Ledger
from benchledger.history.storage.base import LedgerStoreBase


class MemoryLedgerStore(LedgerStoreBase):
    """In-memory ledger store.

    Holds the ledger in a single attribute that is swapped on every write,
    so readers always see a whole committed ledger. Data is lost when the
    process exits.

    Example:
        >>> store = MemoryLedgerStore()
        >>> await store.append("S", run)
        >>> len(await store.load("S"))
        1
    """

    def __init__(self, ledger: Ledger | None = None, clock: Callable[[], int] | None = None) -> None:
        """Initialize the memory store.

        Args:
            ledger: Optional initial ledger contents.
            clock: Source of epoch milliseconds for ``lastUpdate``.
        """
        super().__init__(clock=clock)
        self._ledger = ledger or Ledger()

    def _read_ledger(self) -> Ledger:
        return self._ledger

    def _write_ledger(self, ledger: Ledger) -> None:
        self._ledger = ledger
