"""Contest service: the boundary a request handler calls (pure core, no HTTP).

Architecture:
- The store is injected (see ``build_store``); the service never reaches for
  a module-level singleton.
- Request payloads are plain dicts (camelCase keys, as sent by the client) or
  already-validated pydantic models; they are validated before use.
- Results are frozen dataclasses with ``to_payload()`` for the JSON body.
- Failures raise KonnectError subclasses carrying ``status_code``; store
  driver errors propagate unchanged.

Operations:
- submit_entry: create a contest entry with 0 votes and 0 rating
- toggle_vote / get_votes: VoteLedger
- leaderboard: snapshot entries, resolve display names, rank
- record_referral / referral_leaderboard: referral raffle
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional

from .errors import NotFound
from .raffle import record_referral as _record_referral
from .ranking import LeaderboardFilters, rank_entries, rank_referrals
from .settings import Settings, get_settings
from .store import ContestStore
from .types import (
    ContestEntry,
    LeaderboardEntry,
    RaffleEntry,
    ReferralStanding,
    ToggleResult,
    utcnow,
)
from .validation import (
    EntrySubmission,
    LeaderboardQuery,
    ReferralRequest,
    VoteRequest,
    parse_request,
)
from .voting import VoteLedger

logger = logging.getLogger(__name__)

Payload = Dict[str, Any]


class _StoreDisplayNames(Mapping[str, str]):
    """user_id -> name, read from the store only for the rows being rendered."""

    def __init__(self, store: ContestStore) -> None:
        self._store = store
        self._names: Dict[str, Optional[str]] = {}

    def __getitem__(self, user_id: str) -> str:
        if user_id not in self._names:
            user = self._store.get_user(user_id)
            self._names[user_id] = user.name if user is not None and user.name else None
        name = self._names[user_id]
        if name is None:
            raise KeyError(user_id)
        return name

    def __iter__(self) -> Iterator[str]:
        return (user_id for user_id, name in self._names.items() if name)

    def __len__(self) -> int:
        return sum(1 for name in self._names.values() if name)


class ContestService:
    def __init__(
        self,
        store: ContestStore,
        settings: Optional[Settings] = None,
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store
        self.settings = settings or get_settings()
        self.ledger = VoteLedger(store)
        self._clock = clock

    # -- entries --------------------------------------------------------

    def submit_entry(self, payload: Payload | EntrySubmission) -> ContestEntry:
        """Create a new entry; votes and rating always start at zero."""
        req = parse_request(EntrySubmission, payload)
        entry = self.store.add_entry(
            ContestEntry(
                id=uuid.uuid4().hex,
                user_id=req.user_id,
                language=req.language,
                region=req.region,
                caption=req.caption,
                video_url=req.video_url,
                votes=0,
                rating=0.0,
                created_at=self._clock(),
            )
        )
        logger.info(
            f"Contest entry created: id={entry.id} language={entry.language} region={entry.region}"
        )
        return entry

    def get_entry(self, entry_id: str) -> ContestEntry:
        entry = self.store.get_entry(entry_id)
        if entry is None:
            raise NotFound("Contest entry not found")
        return entry

    # -- votes ----------------------------------------------------------

    def toggle_vote(self, payload: Payload | VoteRequest) -> ToggleResult:
        req = parse_request(VoteRequest, payload)
        return self.ledger.toggle(req.entry_id, req.user_id, req.action)

    def get_votes(self, entry_id: str) -> int:
        return self.ledger.votes(entry_id)

    # -- leaderboards ---------------------------------------------------

    def leaderboard(
        self, query: Payload | LeaderboardQuery | None = None
    ) -> tuple[LeaderboardEntry, ...]:
        """Rank live entries; always recomputed from the current vote counts."""
        q = parse_request(LeaderboardQuery, query or {})
        filters = LeaderboardFilters(language=q.language, region=q.region)
        rows = rank_entries(
            self.store.list_entries(),
            q.sort_by,
            filters,
            display_names=_StoreDisplayNames(self.store),
            limit=q.limit or self.settings.leaderboard_limit,
        )
        logger.info(
            f"Contest leaderboard fetched: count={len(rows)} sortBy={q.sort_by} "
            f"language={q.language} region={q.region}"
        )
        return rows

    def leaderboard_payload(self, query: Payload | LeaderboardQuery | None = None) -> List[Payload]:
        return [dict(row.to_payload()) for row in self.leaderboard(query)]

    # -- referral raffle ------------------------------------------------

    def record_referral(self, payload: Payload | ReferralRequest) -> RaffleEntry:
        req = parse_request(ReferralRequest, payload)
        return _record_referral(self.store, req.referral_id, req.user_id)

    def referral_leaderboard(self, limit: Optional[int] = None) -> tuple[ReferralStanding, ...]:
        users = {user.id: user for user in self.store.list_users()}
        rows = rank_referrals(
            self.store.list_raffle_entries(),
            users,
            limit=limit or self.settings.leaderboard_limit,
        )
        logger.info(f"Referral leaderboard fetched: count={len(rows)}")
        return rows


__all__ = ["ContestService"]
