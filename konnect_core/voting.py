"""Vote ledger: idempotent like/unlike toggling against per-entry voter sets.

The voter set is the source of truth. The store applies each change to the
set and to the entry's cached ``votes`` in one atomic step, so toggling
never lets the two drift and repeating a call never double-counts.
"""
from __future__ import annotations

import logging
from typing import Any

from .errors import InvalidArgument, NotFound
from .store import ContestStore
from .types import VOTE_ACTIONS, ToggleResult

logger = logging.getLogger(__name__)


def _require_id(name: str, value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgument(f"{name} must be a non-empty identifier")
    return value


class VoteLedger:
    def __init__(self, store: ContestStore) -> None:
        self._store = store

    def toggle(self, entry_id: str, user_id: str, action: str) -> ToggleResult:
        """Apply ``like``/``unlike`` for ``user_id`` on ``entry_id``.

        Returns the voter count after the operation and whether the user is
        currently present. Raises NotFound for an unknown entry and
        InvalidArgument for empty ids or an unknown action.
        """
        _require_id("entryId", entry_id)
        _require_id("userId", user_id)
        if action not in VOTE_ACTIONS:
            raise InvalidArgument(f"action must be one of {list(VOTE_ACTIONS)}, got {action!r}")

        if action == "like":
            voters = self._store.add_voter(entry_id, user_id)
        else:
            voters = self._store.remove_voter(entry_id, user_id)
        if voters is None:
            raise NotFound("Contest entry not found")

        result = ToggleResult(votes=voters.count, is_liked=voters.has(user_id))
        logger.info(
            f"Vote processed: entry_id={entry_id} user_id={user_id} "
            f"action={action} votes={result.votes}"
        )
        return result

    def votes(self, entry_id: str) -> int:
        _require_id("entryId", entry_id)
        voters = self._store.get_voters(entry_id)
        if voters is None:
            raise NotFound("Contest entry not found")
        return voters.count

    def has_liked(self, entry_id: str, user_id: str) -> bool:
        _require_id("entryId", entry_id)
        _require_id("userId", user_id)
        voters = self._store.get_voters(entry_id)
        if voters is None:
            raise NotFound("Contest entry not found")
        return voters.has(user_id)


__all__ = ["VoteLedger"]
