from __future__ import annotations

import pytest

from konnect_core import (
    InvalidArgument,
    LeaderboardFilters,
    RaffleEntry,
    UserRecord,
    rank_entries,
    rank_referrals,
)
from konnect_core.ranking import filter_entries

from .factories import BASE_TIME, make_entry


def _ids(rows):
    return [row.id for row in rows]


def test_already_descending_votes_keep_order():
    entries = [make_entry("e1", votes=127), make_entry("e2", votes=95), make_entry("e3", votes=83)]
    rows = rank_entries(entries, "votes")
    assert _ids(rows) == ["e1", "e2", "e3"]
    assert [row.rank for row in rows] == [1, 2, 3]
    assert [row.score for row in rows] == [127.0, 95.0, 83.0]


def test_votes_reorder_descending():
    entries = [make_entry("e1", votes=95), make_entry("e2", votes=127), make_entry("e3", votes=83)]
    rows = rank_entries(entries, "votes")
    assert _ids(rows) == ["e2", "e1", "e3"]
    assert [row.rank for row in rows] == [1, 2, 3]


def test_distinct_scores_produce_ranks_without_gaps():
    entries = [make_entry(f"e{n}", votes=(n * 37) % 101) for n in range(1, 21)]
    rows = rank_entries(entries, "votes")
    assert [row.rank for row in rows] == list(range(1, 21))


def test_tied_votes_get_distinct_ranks_newest_first():
    entries = [
        make_entry("old", votes=10, minutes=0),
        make_entry("new", votes=10, minutes=5),
        make_entry("top", votes=11, minutes=-30),
    ]
    rows = rank_entries(entries, "votes")
    assert _ids(rows) == ["top", "new", "old"]
    assert [row.rank for row in rows] == [1, 2, 3]


def test_identical_votes_and_time_fall_back_to_entry_id():
    entries = [make_entry("b", votes=3), make_entry("a", votes=3), make_entry("c", votes=3)]
    assert _ids(rank_entries(entries, "votes")) == ["a", "b", "c"]


def test_rating_ties_break_on_votes_then_recency():
    entries = [
        make_entry("low", rating=3.0, votes=100),
        make_entry("few-votes", rating=4.5, votes=5, minutes=60),
        make_entry("many-votes-old", rating=4.5, votes=20, minutes=0),
        make_entry("many-votes-new", rating=4.5, votes=20, minutes=10),
    ]
    rows = rank_entries(entries, "rating")
    assert _ids(rows) == ["many-votes-new", "many-votes-old", "few-votes", "low"]
    assert rows[0].score == 4.5
    assert rows[0].votes == 20


def test_recent_orders_by_creation_time():
    entries = [make_entry("mid", minutes=5), make_entry("first", minutes=0), make_entry("last", minutes=10)]
    rows = rank_entries(entries, "recent")
    assert _ids(rows) == ["last", "mid", "first"]
    assert rows[0].score == (BASE_TIME.timestamp() + 600)


def test_recent_equal_timestamps_use_entry_id():
    entries = [make_entry("z"), make_entry("m"), make_entry("a")]
    assert _ids(rank_entries(entries, "recent")) == ["a", "m", "z"]


def test_language_filter_matches_exactly():
    entries = [
        make_entry("e1", votes=5, language="Spanish"),
        make_entry("e2", votes=9, language="French"),
        make_entry("e3", votes=7, language="Spanish"),
        make_entry("e4", votes=1, language="spanish"),
    ]
    rows = rank_entries(entries, "votes", LeaderboardFilters(language="Spanish"))
    assert _ids(rows) == ["e3", "e1"]


def test_filter_preserves_survivor_order():
    entries = [
        make_entry("e1", language="Spanish"),
        make_entry("e2", language="French"),
        make_entry("e3", language="Spanish"),
        make_entry("e4", language="Japanese"),
        make_entry("e5", language="Spanish"),
    ]
    survivors = filter_entries(entries, LeaderboardFilters(language="Spanish"))
    assert survivors == [e for e in entries if e.language == "Spanish"]


def test_language_and_region_filters_combine():
    entries = [
        make_entry("e1", language="Spanish", region="Europe"),
        make_entry("e2", language="Spanish", region="North America"),
        make_entry("e3", language="French", region="Europe"),
    ]
    rows = rank_entries(entries, "votes", LeaderboardFilters(language="Spanish", region="Europe"))
    assert _ids(rows) == ["e1"]
    assert rows[0].rank == 1


@pytest.mark.parametrize("wildcard", [None, "", "all", "ALL"])
def test_absent_or_all_filter_passes_everything(wildcard):
    entries = [make_entry("e1", language="Spanish"), make_entry("e2", language="French")]
    rows = rank_entries(entries, "votes", LeaderboardFilters(language=wildcard, region=wildcard))
    assert len(rows) == 2


def test_limit_applies_after_ranking():
    entries = [make_entry(f"e{n}", votes=n) for n in range(10)]
    rows = rank_entries(entries, "votes", limit=3)
    assert _ids(rows) == ["e9", "e8", "e7"]


@pytest.mark.parametrize("limit", [0, -1, True, "5"])
def test_invalid_limit_rejected(limit):
    with pytest.raises(InvalidArgument):
        rank_entries([make_entry("e1")], "votes", limit=limit)


def test_unknown_criterion_rejected():
    with pytest.raises(InvalidArgument):
        rank_entries([make_entry("e1")], "popularity")


def test_display_names_resolved_with_anonymous_fallback():
    entries = [make_entry("e1", votes=2, user_id="u1"), make_entry("e2", votes=1, user_id="u2")]
    rows = rank_entries(entries, "votes", display_names={"u1": "Sarah Chen"})
    assert [row.user_name for row in rows] == ["Sarah Chen", "Anonymous"]


def test_inputs_not_mutated_and_result_is_fresh():
    entries = [make_entry("e1", votes=1), make_entry("e2", votes=2)]
    snapshot = list(entries)
    first = rank_entries(entries, "votes")
    second = rank_entries(entries, "votes")
    assert entries == snapshot
    assert first == second
    assert first is not second


def test_empty_input_yields_empty_leaderboard():
    assert rank_entries([], "rating") == ()


def test_row_payload_uses_camel_case():
    row = rank_entries([make_entry("e1", votes=4, rating=4.2)], "votes")[0]
    payload = row.to_payload()
    assert payload["userName"] == "Anonymous"
    assert payload["rank"] == 1
    assert payload["score"] == 4.0
    assert payload["rating"] == 4.2
    assert payload["createdAt"] == BASE_TIME.isoformat()


def _raffle(referrer, referred, tickets=1):
    return RaffleEntry(
        id=f"{referrer}:{referred}",
        referrer_user_id=referrer,
        referral_id=f"LK-{referrer}",
        referred_user_id=referred,
        tickets_earned=tickets,
    )


def test_referrals_grouped_and_ranked():
    raffle_entries = [
        _raffle("alex", "r1"),
        _raffle("maria", "r2"),
        _raffle("alex", "r3"),
        _raffle("james", "r4", tickets=5),
        _raffle("alex", "r5"),
    ]
    users = {
        "alex": UserRecord(id="alex", name="Alex Johnson", referral_id="LK-ABC123"),
        "maria": UserRecord(id="maria", name="Maria Garcia", referral_id="LK-DEF456"),
    }
    rows = rank_referrals(raffle_entries, users)
    assert [r.user_id for r in rows] == ["alex", "james", "maria"]
    assert [r.rank for r in rows] == [1, 2, 3]
    assert rows[0].total_referrals == 3
    assert rows[0].referral_id == "LK-ABC123"
    assert rows[1].user_name == "Anonymous"
    assert rows[1].tickets_earned == 5
    assert rows[2].to_payload()["totalReferrals"] == 1
