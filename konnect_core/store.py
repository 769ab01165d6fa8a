"""Contest stores (persistence of entries, voter sets, users, raffle entries).

Stores own ContestEntry records and their VoterSet ledgers. The one contract
beyond plain CRUD: ``add_voter``/``remove_voter`` update the voter set and the
entry's cached ``votes`` as one atomic step, so no reader ever sees the two
disagree. No ranking logic lives here.

Implementations:
- InMemoryContestStore: process-local, per-entry locks (tests, demo mode)
- MongoContestStore: pymongo, single-document pipeline updates
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, Dict, List, Protocol

from pymongo import MongoClient, ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from .demo import seed_demo_data
from .errors import Conflict
from .types import ContestEntry, RaffleEntry, UserRecord, VoterSet

if TYPE_CHECKING:
    from .settings import Settings

logger = logging.getLogger(__name__)


class ContestStore(Protocol):
    def get_entry(self, entry_id: str) -> ContestEntry | None:
        ...

    def list_entries(self) -> List[ContestEntry]:
        ...

    def add_entry(self, entry: ContestEntry, voters: VoterSet | None = None) -> ContestEntry:
        ...

    def get_voters(self, entry_id: str) -> VoterSet | None:
        ...

    def add_voter(self, entry_id: str, user_id: str) -> VoterSet | None:
        ...

    def remove_voter(self, entry_id: str, user_id: str) -> VoterSet | None:
        ...

    def get_user(self, user_id: str) -> UserRecord | None:
        ...

    def find_user_by_referral(self, referral_id: str) -> UserRecord | None:
        ...

    def add_user(self, user: UserRecord) -> UserRecord:
        ...

    def list_users(self) -> List[UserRecord]:
        ...

    def add_raffle_entry(self, entry: RaffleEntry) -> RaffleEntry:
        ...

    def list_raffle_entries(self) -> List[RaffleEntry]:
        ...


# ============================================================
# In-memory store
# ============================================================


@dataclass(frozen=True)
class _EntryRecord:
    entry: ContestEntry
    voters: VoterSet


class InMemoryContestStore:
    """Process-local store.

    Each entry's (entry, voters) pair lives in one immutable record that is
    swapped as a unit. Toggles on the same entry serialise on that entry's
    lock; different entries use different locks. Locks exist only for stored
    entries.
    """

    def __init__(self) -> None:
        self._records: Dict[str, _EntryRecord] = {}
        self._users: Dict[str, UserRecord] = {}
        self._raffle: Dict[str, RaffleEntry] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def _lock_for(self, entry_id: str) -> threading.Lock | None:
        with self._guard:
            return self._locks.get(entry_id)

    # -- entries --------------------------------------------------------

    def get_entry(self, entry_id: str) -> ContestEntry | None:
        record = self._records.get(entry_id)
        return record.entry if record else None

    def list_entries(self) -> List[ContestEntry]:
        return [record.entry for record in list(self._records.values())]

    def add_entry(self, entry: ContestEntry, voters: VoterSet | None = None) -> ContestEntry:
        voters = voters or VoterSet()
        stored = replace(entry, votes=voters.count)
        with self._guard:
            if entry.id in self._records:
                raise Conflict(f"Contest entry already exists: {entry.id}")
            self._locks[entry.id] = threading.Lock()
            self._records[entry.id] = _EntryRecord(entry=stored, voters=voters)
        return stored

    def get_voters(self, entry_id: str) -> VoterSet | None:
        record = self._records.get(entry_id)
        return record.voters if record else None

    def _update_voters(self, entry_id: str, user_id: str, add: bool) -> VoterSet | None:
        lock = self._lock_for(entry_id)
        if lock is None:
            return None
        with lock:
            record = self._records[entry_id]
            voters = record.voters.with_voter(user_id) if add else record.voters.without_voter(user_id)
            if voters is not record.voters:
                self._records[entry_id] = _EntryRecord(
                    entry=replace(record.entry, votes=voters.count),
                    voters=voters,
                )
            return voters

    def add_voter(self, entry_id: str, user_id: str) -> VoterSet | None:
        return self._update_voters(entry_id, user_id, add=True)

    def remove_voter(self, entry_id: str, user_id: str) -> VoterSet | None:
        return self._update_voters(entry_id, user_id, add=False)

    # -- users ----------------------------------------------------------

    def get_user(self, user_id: str) -> UserRecord | None:
        return self._users.get(user_id)

    def find_user_by_referral(self, referral_id: str) -> UserRecord | None:
        for user in list(self._users.values()):
            if user.referral_id == referral_id:
                return user
        return None

    def add_user(self, user: UserRecord) -> UserRecord:
        self._users[user.id] = user
        return user

    def list_users(self) -> List[UserRecord]:
        return list(self._users.values())

    # -- raffle ---------------------------------------------------------

    def add_raffle_entry(self, entry: RaffleEntry) -> RaffleEntry:
        with self._guard:
            if entry.id in self._raffle:
                raise Conflict("Referral already recorded")
            self._raffle[entry.id] = entry
        return entry

    def list_raffle_entries(self) -> List[RaffleEntry]:
        return list(self._raffle.values())


# ============================================================
# MongoDB store
# ============================================================

ENTRIES_COLLECTION = "contestentries"
USERS_COLLECTION = "userprofiles"
RAFFLE_COLLECTION = "raffleentries"


def _entry_to_doc(entry: ContestEntry, voters: VoterSet) -> Dict[str, Any]:
    return {
        "_id": entry.id,
        "userId": entry.user_id,
        "language": entry.language,
        "region": entry.region,
        "caption": entry.caption,
        "videoUrl": entry.video_url,
        "voters": sorted(voters.voters),
        "votes": voters.count,
        "rating": float(entry.rating),
        "createdAt": entry.created_at,
    }


def _doc_to_entry(doc: Dict[str, Any]) -> ContestEntry:
    return ContestEntry(
        id=str(doc["_id"]),
        user_id=str(doc.get("userId") or ""),
        language=doc.get("language", ""),
        region=doc.get("region", ""),
        caption=doc.get("caption", ""),
        video_url=doc.get("videoUrl", ""),
        votes=int(doc.get("votes") or 0),
        rating=float(doc.get("rating") or 0.0),
        created_at=doc["createdAt"],
    )


def _doc_to_voters(doc: Dict[str, Any]) -> VoterSet:
    return VoterSet(frozenset(str(v) for v in doc.get("voters") or []))


def _doc_to_user(doc: Dict[str, Any]) -> UserRecord:
    return UserRecord(id=str(doc["_id"]), name=doc.get("name", ""), referral_id=doc.get("referralId"))


def _doc_to_raffle(doc: Dict[str, Any]) -> RaffleEntry:
    return RaffleEntry(
        id=str(doc["_id"]),
        referrer_user_id=str(doc["userId"]),
        referral_id=doc.get("referralId", ""),
        referred_user_id=str(doc["referredUserId"]),
        tickets_earned=int(doc.get("ticketsEarned") or 1),
        created_at=doc["createdAt"],
    )


class MongoContestStore:
    """MongoDB-backed store.

    Voter toggles are a single ``find_one_and_update`` with a pipeline update:
    the voters array is rewritten with $setUnion/$setDifference and ``votes``
    is recomputed with $size in the same document write.
    """

    def __init__(self, database: Any) -> None:
        self._entries = database[ENTRIES_COLLECTION]
        self._users = database[USERS_COLLECTION]
        self._raffle = database[RAFFLE_COLLECTION]

    @classmethod
    def connect(cls, uri: str, database: str, timeout_ms: int = 3000) -> "MongoContestStore":
        client = MongoClient(uri, serverSelectionTimeoutMS=timeout_ms, tz_aware=True)
        # Fail fast if the server is unreachable.
        client.admin.command("ping")
        logger.info(f"MongoDB connected: database={database}")
        return cls(client[database])

    # -- entries --------------------------------------------------------

    def get_entry(self, entry_id: str) -> ContestEntry | None:
        doc = self._entries.find_one({"_id": entry_id}, projection={"voters": False})
        return _doc_to_entry(doc) if doc else None

    def list_entries(self) -> List[ContestEntry]:
        return [_doc_to_entry(doc) for doc in self._entries.find({}, projection={"voters": False})]

    def add_entry(self, entry: ContestEntry, voters: VoterSet | None = None) -> ContestEntry:
        voters = voters or VoterSet()
        try:
            self._entries.insert_one(_entry_to_doc(entry, voters))
        except DuplicateKeyError:
            raise Conflict(f"Contest entry already exists: {entry.id}")
        return replace(entry, votes=voters.count)

    def get_voters(self, entry_id: str) -> VoterSet | None:
        doc = self._entries.find_one({"_id": entry_id}, projection={"voters": True})
        return _doc_to_voters(doc) if doc else None

    def _update_voters(self, entry_id: str, set_op: str, user_id: str) -> VoterSet | None:
        pipeline = [
            {
                "$set": {
                    "voters": {
                        set_op: [{"$ifNull": ["$voters", []]}, {"$literal": [user_id]}]
                    }
                }
            },
            {"$set": {"votes": {"$size": "$voters"}}},
        ]
        doc = self._entries.find_one_and_update(
            {"_id": entry_id},
            pipeline,
            projection={"voters": True, "votes": True},
            return_document=ReturnDocument.AFTER,
        )
        return _doc_to_voters(doc) if doc else None

    def add_voter(self, entry_id: str, user_id: str) -> VoterSet | None:
        return self._update_voters(entry_id, "$setUnion", user_id)

    def remove_voter(self, entry_id: str, user_id: str) -> VoterSet | None:
        return self._update_voters(entry_id, "$setDifference", user_id)

    # -- users ----------------------------------------------------------

    def get_user(self, user_id: str) -> UserRecord | None:
        doc = self._users.find_one({"_id": user_id})
        return _doc_to_user(doc) if doc else None

    def find_user_by_referral(self, referral_id: str) -> UserRecord | None:
        doc = self._users.find_one({"referralId": referral_id})
        return _doc_to_user(doc) if doc else None

    def add_user(self, user: UserRecord) -> UserRecord:
        self._users.replace_one(
            {"_id": user.id},
            {"_id": user.id, "name": user.name, "referralId": user.referral_id},
            upsert=True,
        )
        return user

    def list_users(self) -> List[UserRecord]:
        return [_doc_to_user(doc) for doc in self._users.find({})]

    # -- raffle ---------------------------------------------------------

    def add_raffle_entry(self, entry: RaffleEntry) -> RaffleEntry:
        try:
            self._raffle.insert_one(
                {
                    "_id": entry.id,
                    "userId": entry.referrer_user_id,
                    "referralId": entry.referral_id,
                    "referredUserId": entry.referred_user_id,
                    "ticketsEarned": entry.tickets_earned,
                    "createdAt": entry.created_at,
                }
            )
        except DuplicateKeyError:
            raise Conflict("Referral already recorded")
        return entry

    def list_raffle_entries(self) -> List[RaffleEntry]:
        return [_doc_to_raffle(doc) for doc in self._raffle.find({})]


def build_store(settings: "Settings") -> ContestStore:
    """Create the store selected by ``settings.store_backend``.

    With the mongo backend and ``mongo_fallback_to_memory`` enabled, an
    unreachable server yields a demo-seeded in-memory store instead.
    """
    if settings.store_backend == "mongo":
        try:
            return MongoContestStore.connect(
                settings.mongo_uri,
                settings.mongo_database,
                timeout_ms=settings.mongo_timeout_ms,
            )
        except PyMongoError as e:
            if not settings.mongo_fallback_to_memory:
                raise
            logger.warning(f"MongoDB connection failed, continuing with in-memory demo data: {e}")
            store = InMemoryContestStore()
            seed_demo_data(store)
            return store

    store = InMemoryContestStore()
    if settings.seed_demo_data:
        seed_demo_data(store)
    logger.info(f"Using in-memory contest store (demo data: {settings.seed_demo_data})")
    return store


__all__ = [
    "build_store",
    "ContestStore",
    "InMemoryContestStore",
    "MongoContestStore",
    "ENTRIES_COLLECTION",
    "USERS_COLLECTION",
    "RAFFLE_COLLECTION",
]
