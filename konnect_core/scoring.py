"""Score derivation per ranking criterion.

- votes: current vote count; ties -> newer entry first
- rating: stored rating; ties -> more votes, then newer entry
- recent: creation time (later is higher)

Every criterion ends with the entry id (ascending) so equal keys never fall
back to incidental input order.
"""
from __future__ import annotations

from typing import Any

from .errors import InvalidArgument
from .types import CRITERIA, ContestEntry


def _ts(entry: ContestEntry) -> float:
    return entry.created_at.timestamp()


def check_criterion(criterion: Any) -> str:
    if criterion not in CRITERIA:
        raise InvalidArgument(f"criterion must be one of {list(CRITERIA)}, got {criterion!r}")
    return criterion


def score(entry: ContestEntry, criterion: str) -> float:
    """Numeric score for ``entry`` under ``criterion`` (higher ranks first)."""
    check_criterion(criterion)
    if criterion == "votes":
        return float(entry.votes)
    if criterion == "rating":
        return float(entry.rating)
    return _ts(entry)


def sort_key(entry: ContestEntry, criterion: str) -> tuple:
    """Ascending sort key: primary score and tie-breaks negated, id last."""
    primary = score(entry, criterion)
    if criterion == "votes":
        return (-primary, -_ts(entry), entry.id)
    if criterion == "rating":
        return (-primary, -int(entry.votes), -_ts(entry), entry.id)
    return (-primary, entry.id)


__all__ = ["check_criterion", "score", "sort_key"]
