from .contest import ContestService
from .errors import Conflict, InvalidArgument, KonnectError, NotFound
from .ranking import LeaderboardFilters, rank_entries, rank_referrals
from .raffle import generate_referral_id, record_referral
from .scoring import score, sort_key
from .settings import Settings, configure_logging, get_settings
from .store import ContestStore, InMemoryContestStore, MongoContestStore, build_store
from .types import (
    ContestEntry,
    LeaderboardEntry,
    RaffleEntry,
    ReferralStanding,
    ToggleResult,
    UserRecord,
    VoterSet,
)
from .validation import (
    EntrySubmission,
    InputSanitizer,
    LeaderboardQuery,
    ReferralRequest,
    VoteRequest,
)
from .voting import VoteLedger

__all__ = [
    "ContestService",
    "Conflict",
    "InvalidArgument",
    "KonnectError",
    "NotFound",
    "LeaderboardFilters",
    "rank_entries",
    "rank_referrals",
    "generate_referral_id",
    "record_referral",
    "score",
    "sort_key",
    "Settings",
    "configure_logging",
    "get_settings",
    "ContestStore",
    "InMemoryContestStore",
    "MongoContestStore",
    "build_store",
    "ContestEntry",
    "LeaderboardEntry",
    "RaffleEntry",
    "ReferralStanding",
    "ToggleResult",
    "UserRecord",
    "VoterSet",
    "EntrySubmission",
    "InputSanitizer",
    "LeaderboardQuery",
    "ReferralRequest",
    "VoteRequest",
    "VoteLedger",
]
