"""Demo data used when no database is available."""
from __future__ import annotations

from datetime import timedelta
from typing import Any

from .types import ContestEntry, RaffleEntry, UserRecord, VoterSet, utcnow

# (user_id, name, referral_id)
DEMO_USERS = [
    ("mock-user-1", "Alex Johnson", "LK-ABC123"),
    ("mock-user-2", "Maria Garcia", "LK-DEF456"),
    ("mock-user-3", "James Wilson", "LK-GHI789"),
    ("mock-user-4", "Sarah Chen", "LK-JKL012"),
    ("mock-user-5", "Miguel Rodriguez", "LK-MNO345"),
    ("mock-user-6", "Emma Thompson", "LK-PQR678"),
]

# (entry_id, user_id, language, region, caption, votes, rating)
DEMO_ENTRIES = [
    ("mock-1", "mock-user-4", "Spanish", "North America", "Practicing my Spanish pronunciation!", 125, 4.8),
    ("mock-2", "mock-user-5", "Japanese", "South America", "Learning Japanese through anime!", 98, 4.6),
    ("mock-3", "mock-user-6", "French", "Europe", "Bonjour from Paris!", 87, 4.5),
]

# referrer user_id -> number of referred users
DEMO_REFERRALS = {"mock-user-1": 15, "mock-user-2": 12, "mock-user-3": 8}


def seed_demo_data(store: Any) -> None:
    """Populate ``store`` with the demo users, entries and referrals."""
    now = utcnow()
    users = {}
    for user_id, name, referral_id in DEMO_USERS:
        users[user_id] = store.add_user(UserRecord(id=user_id, name=name, referral_id=referral_id))

    for idx, (entry_id, user_id, language, region, caption, votes, rating) in enumerate(DEMO_ENTRIES):
        voters = VoterSet(frozenset(f"demo-voter-{entry_id}-{n}" for n in range(votes)))
        store.add_entry(
            ContestEntry(
                id=entry_id,
                user_id=user_id,
                language=language,
                region=region,
                caption=caption,
                video_url=f"https://placeholder.example.com/videos/{entry_id}.mp4",
                rating=rating,
                created_at=now - timedelta(hours=idx + 1),
            ),
            voters,
        )

    for user_id, count in DEMO_REFERRALS.items():
        referrer = users[user_id]
        for n in range(count):
            referred = f"demo-referred-{user_id}-{n}"
            store.add_raffle_entry(
                RaffleEntry(
                    id=f"{referrer.id}:{referred}",
                    referrer_user_id=referrer.id,
                    referral_id=referrer.referral_id or "",
                    referred_user_id=referred,
                    created_at=now,
                )
            )
