"""Extractors turning harness output into run payloads."""

from __future__ import annotations

from benchledger.extractors.jmh import build_run_payload, extract_benches, load_jmh_results

__all__ = [
    "build_run_payload",
    "extract_benches",
    "load_jmh_results",
]
