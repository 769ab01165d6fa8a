from __future__ import annotations

import pytest

from konnect_core import (
    Conflict,
    ContestService,
    InvalidArgument,
    NotFound,
    Settings,
    UserRecord,
)

from .factories import BASE_TIME, make_entry, voters


def _submission(**overrides):
    payload = {
        "userId": "u1",
        "language": "Spanish",
        "region": "North America",
        "caption": "Practicing my Spanish pronunciation!",
        "videoUrl": "https://videos.example.com/1.mp4",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def service(store, settings):
    return ContestService(store, settings, clock=lambda: BASE_TIME)


def test_submit_entry_starts_with_zero_votes_and_rating(service, store):
    entry = service.submit_entry(_submission())
    assert entry.votes == 0
    assert entry.rating == 0.0
    assert entry.created_at == BASE_TIME
    assert store.get_entry(entry.id) == entry
    assert store.get_voters(entry.id).count == 0


def test_submit_entry_ids_are_unique(service):
    a = service.submit_entry(_submission())
    b = service.submit_entry(_submission())
    assert a.id != b.id


def test_submit_entry_rejects_missing_caption(service, store):
    with pytest.raises(InvalidArgument):
        service.submit_entry(_submission(caption=""))
    assert store.list_entries() == []


def test_toggle_vote_round_trip(service):
    entry = service.submit_entry(_submission())
    liked = service.toggle_vote({"entryId": entry.id, "userId": "u9", "action": "like"})
    assert (liked.votes, liked.is_liked) == (1, True)
    assert service.get_votes(entry.id) == 1
    unliked = service.toggle_vote({"entryId": entry.id, "userId": "u9", "action": "unlike"})
    assert (unliked.votes, unliked.is_liked) == (0, False)


def test_toggle_vote_unknown_entry(service):
    with pytest.raises(NotFound):
        service.toggle_vote({"entryId": "missing", "userId": "u9", "action": "like"})


def test_toggle_vote_malformed_payload(service):
    with pytest.raises(InvalidArgument):
        service.toggle_vote({"entryId": "e1", "userId": "u9"})


def test_get_entry_not_found(service):
    with pytest.raises(NotFound):
        service.get_entry("missing")


def test_leaderboard_reflects_live_votes(service, store):
    store.add_user(UserRecord(id="sarah", name="Sarah Chen"))
    store.add_entry(make_entry("e1", user_id="sarah"), voters(2))
    store.add_entry(make_entry("e2", user_id="ghost"), voters(3))

    rows = service.leaderboard({"sortBy": "votes"})
    assert [r.id for r in rows] == ["e2", "e1"]

    service.toggle_vote({"entryId": "e1", "userId": "x1", "action": "like"})
    service.toggle_vote({"entryId": "e1", "userId": "x2", "action": "like"})
    rows = service.leaderboard({"sortBy": "votes"})
    assert [r.id for r in rows] == ["e1", "e2"]
    assert rows[0].user_name == "Sarah Chen"
    assert rows[0].score == 4.0
    assert rows[1].user_name == "Anonymous"


def test_leaderboard_filters_and_sort(service, store):
    store.add_entry(make_entry("es-old", language="Spanish", minutes=0))
    store.add_entry(make_entry("es-new", language="Spanish", minutes=5))
    store.add_entry(make_entry("fr", language="French", minutes=10))
    rows = service.leaderboard({"sortBy": "recent", "language": "Spanish"})
    assert [r.id for r in rows] == ["es-new", "es-old"]
    assert [r.rank for r in rows] == [1, 2]


def test_leaderboard_default_page_size(store):
    service = ContestService(store, Settings(leaderboard_limit=50))
    for n in range(60):
        store.add_entry(make_entry(f"e{n:02d}"), voters(n))
    rows = service.leaderboard()
    assert len(rows) == 50
    assert rows[0].id == "e59"
    assert len(service.leaderboard({"limit": 5})) == 5


def test_leaderboard_rejects_unknown_sort(service):
    with pytest.raises(InvalidArgument):
        service.leaderboard({"sortBy": "likes"})


def test_leaderboard_payload_is_json_shaped(service, store):
    store.add_entry(make_entry("e1"), voters(1))
    payload = service.leaderboard_payload()
    assert payload[0]["id"] == "e1"
    assert payload[0]["votes"] == 1
    assert payload[0]["createdAt"] == BASE_TIME.isoformat()


def test_referral_flow(service, store):
    store.add_user(UserRecord(id="alex", name="Alex Johnson", referral_id="LK-ABC123"))
    store.add_user(UserRecord(id="maria", name="Maria Garcia", referral_id="LK-DEF456"))
    service.record_referral({"referralId": "LK-ABC123", "userId": "n1"})
    service.record_referral({"referralId": "LK-ABC123", "userId": "n2"})
    service.record_referral({"referralId": "LK-DEF456", "userId": "n3"})
    with pytest.raises(Conflict):
        service.record_referral({"referralId": "LK-ABC123", "userId": "n1"})

    rows = service.referral_leaderboard()
    assert [(r.user_name, r.total_referrals, r.rank) for r in rows] == [
        ("Alex Johnson", 2, 1),
        ("Maria Garcia", 1, 2),
    ]


def test_referral_unknown_code(service):
    with pytest.raises(NotFound):
        service.record_referral({"referralId": "LK-NOPE", "userId": "n1"})


def test_lookalike_user_ids_never_merge_into_one_voter(service, store):
    entry = service.submit_entry(_submission())
    service.toggle_vote({"entryId": entry.id, "userId": "ab", "action": "like"})
    for lookalike in ("a<b>", " ab "):
        with pytest.raises(InvalidArgument):
            service.toggle_vote({"entryId": entry.id, "userId": lookalike, "action": "like"})
    assert store.get_voters(entry.id).voters == frozenset({"ab"})
    assert service.get_votes(entry.id) == 1


def test_leaderboard_filters_once_and_names_only_ranked_rows(service, store, monkeypatch):
    for n in range(5):
        store.add_entry(make_entry(f"es{n}", votes=0, user_id=f"s{n}"), voters(n + 1))
    store.add_entry(make_entry("fr", language="French", user_id="f0"), voters(50))
    for uid in ("s3", "s4", "f0"):
        store.add_user(UserRecord(id=uid, name=uid.upper()))
    looked_up = []
    get_user = store.get_user
    monkeypatch.setattr(store, "get_user", lambda uid: looked_up.append(uid) or get_user(uid))

    rows = service.leaderboard({"language": "Spanish", "limit": 3})

    assert [(r.user_name, int(r.score)) for r in rows] == [("S4", 5), ("S3", 4), ("Anonymous", 3)]
    assert sorted(looked_up) == ["s2", "s3", "s4"]
    payload = service.leaderboard_payload({"language": "Spanish", "limit": 1})
    assert payload[0]["createdAt"].endswith("+00:00")
