"""Retention management for benchledger.

Example:
    >>> from benchledger.retention import RetentionManager, RetentionPolicy
    >>> removed = await RetentionManager(store).prune("S", RetentionPolicy(keep_last=100))
"""

from __future__ import annotations

from benchledger.retention.manager import (
    PrunePlan,
    RetentionManager,
    RetentionPolicy,
    current_keys,
    plan_prune,
    protected_measurements,
)

__all__ = [
    "PrunePlan",
    "RetentionManager",
    "RetentionPolicy",
    "current_keys",
    "plan_prune",
    "protected_measurements",
]
