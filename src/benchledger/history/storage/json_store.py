"""JSON file storage for the benchmark ledger.

This module provides the file-backed ledger store. The ledger is a single
JSON document, optionally wrapped as a ``data.js`` script
(``window.BENCHMARK_DATA = {...}``) so that a static chart page can load it.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from benchledger.core.exceptions import StorageError
from benchledger.core.types import Ledger
from benchledger.history.storage.base import LedgerStoreBase

logger = logging.getLogger(__name__)

JS_PREFIX = "window.BENCHMARK_DATA = "


def decode_document(content: str) -> dict[str, Any]:
    """Decode ledger text, accepting both plain JSON and the data.js form.

    Args:
        content: File contents.

    Returns:
        The decoded document (empty dict for blank content).

    Raises:
        ValueError: If the content is not a JSON object.
    """
    text = content.strip()
    if not text:
        return {}
    if text.startswith(JS_PREFIX):
        text = text[len(JS_PREFIX) :].rstrip().rstrip(";")
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError("ledger root must be a JSON object")
    return data


def encode_document(data: dict[str, Any], as_script: bool = False) -> str:
    """Encode a ledger document, optionally in data.js form."""
    content = json.dumps(data, indent=2, ensure_ascii=False)
    if as_script:
        return f"{JS_PREFIX}{content}\n"
    return content + "\n"


class JSONLedgerStore(LedgerStoreBase):
    """JSON file storage for the ledger.

    Every write replaces the whole document through a temp file and an
    atomic rename, so an interrupted write leaves the previous ledger intact.
    A ledger file whose name ends in ``.js`` is written in data.js form.

    Example:
        >>> store = JSONLedgerStore("benchmark-data/data.js")
        >>> run_id = await store.append("Run Auth Engine Benchmark", run)
        >>> runs = await store.load("Run Auth Engine Benchmark")
    """

    def __init__(
        self,
        path: str | Path = "benchmark-data/data.json",
        repo_url: str | None = None,
        clock: Callable[[], int] | None = None,
    ) -> None:
        """Initialize the JSON ledger store.

        Args:
            path: Path to the ledger file.
            repo_url: Repository URL recorded in the ledger when it has none.
            clock: Source of epoch milliseconds for ``lastUpdate``.
        """
        super().__init__(clock=clock)
        self._path = Path(path)
        self._repo_url = repo_url

    @property
    def path(self) -> Path:
        return self._path

    def _read_ledger(self) -> Ledger:
        """Load the ledger from disk.

        Raises:
            StorageError: If the file exists but cannot be read or parsed.
        """
        if not self._path.exists():
            return Ledger(repoUrl=self._repo_url)

        try:
            content = self._path.read_text(encoding="utf-8")
            data = decode_document(content)
        except (OSError, ValueError) as e:
            raise StorageError(f"Failed to load ledger from {self._path}: {e}") from e

        if not data:
            return Ledger(repoUrl=self._repo_url)

        try:
            ledger = Ledger.from_dict(data)
        except PydanticValidationError as e:
            raise StorageError(f"Ledger {self._path} does not match the expected shape: {e}") from e

        if ledger.repo_url is None and self._repo_url is not None:
            ledger = ledger.model_copy(update={"repo_url": self._repo_url})
        return ledger

    def _write_ledger(self, ledger: Ledger) -> None:
        """Save the ledger with an atomic write.

        Raises:
            StorageError: If the file cannot be written. The previous ledger
                is left unchanged.
        """
        content = encode_document(ledger.to_dict(), as_script=self._path.suffix == ".js")

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            temp_fd, temp_path = tempfile.mkstemp(
                dir=self._path.parent,
                prefix=".ledger_",
                suffix=".tmp",
            )
        except OSError as e:
            raise StorageError(f"Failed to write ledger {self._path}: {e}") from e

        try:
            with os.fdopen(temp_fd, "w", encoding="utf-8") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            # Atomic rename
            Path(temp_path).replace(self._path)
        except OSError as e:
            Path(temp_path).unlink(missing_ok=True)
            raise StorageError(f"Failed to write ledger {self._path}: {e}") from e
        except BaseException:
            Path(temp_path).unlink(missing_ok=True)
            raise

        logger.debug(f"Wrote ledger {self._path} ({len(content)} bytes)")
