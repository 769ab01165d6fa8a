"""Type definitions for contest entries, vote ledgers and leaderboard rows."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal, Optional, TypedDict


Criterion = Literal["votes", "rating", "recent"]
VoteAction = Literal["like", "unlike"]

CRITERIA: tuple[str, ...] = ("votes", "rating", "recent")
VOTE_ACTIONS: tuple[str, ...] = ("like", "unlike")

ANONYMOUS_NAME = "Anonymous"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Naive datetimes are UTC wall-clock values; aware ones are converted."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _iso(value: datetime) -> str:
    return as_utc(value).isoformat()


@dataclass(frozen=True)
class ContestEntry:
    """A single contest submission.

    ``votes`` is a cached projection of the entry's VoterSet; only the store
    writes it, and always together with the voter set.
    """

    id: str
    user_id: str
    language: str
    region: str
    caption: str
    video_url: str
    votes: int = 0
    rating: float = 0.0
    created_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        object.__setattr__(self, "created_at", as_utc(self.created_at))


@dataclass(frozen=True)
class VoterSet:
    """Users with an active like on one entry. The count is always derived."""

    voters: frozenset[str] = frozenset()

    @property
    def count(self) -> int:
        return len(self.voters)

    def has(self, user_id: str) -> bool:
        return user_id in self.voters

    def with_voter(self, user_id: str) -> "VoterSet":
        if user_id in self.voters:
            return self
        return VoterSet(self.voters | {user_id})

    def without_voter(self, user_id: str) -> "VoterSet":
        if user_id not in self.voters:
            return self
        return VoterSet(self.voters - {user_id})


@dataclass(frozen=True)
class ToggleResult:
    votes: int
    is_liked: bool

    def to_payload(self) -> "VotePayload":
        return {
            "success": True,
            "message": "Vote recorded!",
            "votes": self.votes,
            "isLiked": self.is_liked,
        }


@dataclass(frozen=True)
class LeaderboardEntry:
    """Read-only projection of a ranked entry; rebuilt on every query."""

    id: str
    user_id: str
    user_name: str
    score: float
    rank: int
    language: str
    region: str
    caption: str
    rating: float
    votes: int
    created_at: datetime

    def to_payload(self) -> "LeaderboardRowPayload":
        return {
            "id": self.id,
            "userName": self.user_name,
            "score": self.score,
            "rank": self.rank,
            "language": self.language,
            "region": self.region,
            "caption": self.caption,
            "rating": self.rating,
            "votes": self.votes,
            "createdAt": _iso(self.created_at),
        }


@dataclass(frozen=True)
class UserRecord:
    id: str
    name: str
    referral_id: Optional[str] = None


@dataclass(frozen=True)
class RaffleEntry:
    id: str
    referrer_user_id: str
    referral_id: str
    referred_user_id: str
    tickets_earned: int = 1
    created_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class ReferralStanding:
    user_id: str
    user_name: str
    referral_id: Optional[str]
    total_referrals: int
    tickets_earned: int
    rank: int

    def to_payload(self) -> "ReferralRowPayload":
        return {
            "userId": self.user_id,
            "userName": self.user_name,
            "referralId": self.referral_id,
            "totalReferrals": self.total_referrals,
            "ticketsEarned": self.tickets_earned,
            "rank": self.rank,
        }


class VotePayload(TypedDict):
    """Response body forwarded verbatim by the vote handler."""
    success: bool
    message: str
    votes: int
    isLiked: bool


class LeaderboardRowPayload(TypedDict):
    id: str
    userName: str
    score: float
    rank: int  # 1-based, position in sorted order
    language: str
    region: str
    caption: str
    rating: float
    votes: int
    createdAt: str  # ISO-8601, UTC


class ReferralRowPayload(TypedDict):
    userId: str
    userName: str
    referralId: Optional[str]
    totalReferrals: int
    ticketsEarned: int
    rank: int
