"""Leaderboard ranking engine (contest entries + referral raffle).

Single source of truth for leaderboard ordering:
- Filter by language/region (exact match; absent or "all" passes everything).
- Order by the criterion's score descending with deterministic tie-breaks.
- Rank = position + 1, so tied scores still receive distinct ranks.

Works on snapshots only: inputs are never mutated and nothing is cached.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional, Sequence

from .errors import InvalidArgument
from .scoring import check_criterion, score, sort_key
from .types import (
    ANONYMOUS_NAME,
    ContestEntry,
    LeaderboardEntry,
    RaffleEntry,
    ReferralStanding,
    UserRecord,
)

logger = logging.getLogger(__name__)

_ALL = "all"


def _is_wildcard(value: Optional[str]) -> bool:
    return value is None or value == "" or value.lower() == _ALL


@dataclass(frozen=True)
class LeaderboardFilters:
    language: Optional[str] = None
    region: Optional[str] = None

    def matches(self, entry: ContestEntry) -> bool:
        if not _is_wildcard(self.language) and entry.language != self.language:
            return False
        if not _is_wildcard(self.region) and entry.region != self.region:
            return False
        return True


def _check_limit(limit: Optional[int]) -> Optional[int]:
    if limit is None:
        return None
    if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
        raise InvalidArgument(f"limit must be a positive integer, got {limit!r}")
    return limit


def filter_entries(
    entries: Iterable[ContestEntry], filters: Optional[LeaderboardFilters]
) -> list[ContestEntry]:
    if filters is None:
        return list(entries)
    return [entry for entry in entries if filters.matches(entry)]


def _to_leaderboard_entry(
    entry: ContestEntry,
    rank: int,
    criterion: str,
    display_names: Mapping[str, str],
) -> LeaderboardEntry:
    return LeaderboardEntry(
        id=entry.id,
        user_id=entry.user_id,
        user_name=display_names.get(entry.user_id) or ANONYMOUS_NAME,
        score=score(entry, criterion),
        rank=rank,
        language=entry.language,
        region=entry.region,
        caption=entry.caption,
        rating=float(entry.rating),
        votes=int(entry.votes),
        created_at=entry.created_at,
    )


def rank_entries(
    entries: Sequence[ContestEntry],
    criterion: str = "votes",
    filters: Optional[LeaderboardFilters] = None,
    *,
    display_names: Optional[Mapping[str, str]] = None,
    limit: Optional[int] = None,
) -> tuple[LeaderboardEntry, ...]:
    """
    Rank contest entries into a leaderboard.

    Args:
      entries: snapshot of existing entries (any order).
      criterion: "votes" | "rating" | "recent".
      filters: optional language/region filter.
      display_names: user_id -> name; missing users render as "Anonymous".
      limit: optional cap applied after ranking.
    """
    check_criterion(criterion)
    limit = _check_limit(limit)
    names = display_names if display_names is not None else {}

    survivors = filter_entries(entries, filters)
    ordered = sorted(survivors, key=lambda entry: sort_key(entry, criterion))
    if limit is not None:
        ordered = ordered[:limit]

    rows = tuple(
        _to_leaderboard_entry(entry, idx + 1, criterion, names)
        for idx, entry in enumerate(ordered)
    )
    logger.debug(
        f"Leaderboard ranked: criterion={criterion} input={len(entries)} "
        f"filtered={len(survivors)} returned={len(rows)}"
    )
    return rows


@dataclass
class _ReferralTally:
    user_id: str
    total_referrals: int = 0
    tickets_earned: int = 0


def rank_referrals(
    raffle_entries: Iterable[RaffleEntry],
    users: Mapping[str, UserRecord],
    *,
    limit: Optional[int] = None,
) -> tuple[ReferralStanding, ...]:
    """Group raffle entries by referrer and rank by referrals, then tickets."""
    limit = _check_limit(limit)
    tallies: dict[str, _ReferralTally] = {}
    for raffle_entry in raffle_entries:
        tally = tallies.setdefault(
            raffle_entry.referrer_user_id,
            _ReferralTally(user_id=raffle_entry.referrer_user_id),
        )
        tally.total_referrals += 1
        tally.tickets_earned += int(raffle_entry.tickets_earned)

    ordered = sorted(
        tallies.values(),
        key=lambda t: (-t.total_referrals, -t.tickets_earned, t.user_id),
    )
    if limit is not None:
        ordered = ordered[:limit]

    standings: list[ReferralStanding] = []
    for idx, tally in enumerate(ordered):
        user = users.get(tally.user_id)
        standings.append(
            ReferralStanding(
                user_id=tally.user_id,
                user_name=user.name if user and user.name else ANONYMOUS_NAME,
                referral_id=user.referral_id if user else None,
                total_referrals=tally.total_referrals,
                tickets_earned=tally.tickets_earned,
                rank=idx + 1,
            )
        )
    return tuple(standings)


__all__ = [
    "LeaderboardFilters",
    "filter_entries",
    "rank_entries",
    "rank_referrals",
]
