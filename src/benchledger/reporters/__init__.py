"""Reporters for benchledger reports."""

from __future__ import annotations

from benchledger.reporters.console import ConsoleReporter
from benchledger.reporters.json import JSONReporter
from benchledger.reporters.markdown import MarkdownReporter

__all__ = [
    "ConsoleReporter",
    "JSONReporter",
    "MarkdownReporter",
]
