"""
Tests for round-robin 2v2 schedule generation.
Deterministic; no teammate pair repeated; rosters under four players rejected.
"""
from collections import Counter
from itertools import permutations

import pytest

from scorekeeper import pairing
from scorekeeper.pairing import (
    InsufficientPlayersError,
    RosterPlayer,
    build_schedule,
    enumerate_pairs,
    generate_schedule,
    pair_key,
)


def roster(labels):
    return [RosterPlayer(id=label, name=f"Player {label}") for label in labels]


def teams(games):
    return [(g.team1.ids, g.team2.ids) for g in games]


def assert_valid(games, players):
    ids = {p.id for p in players}
    seen = set()
    for g in games:
        assert set(g.team1.ids).isdisjoint(g.team2.ids)
        assert set(g.player_ids) <= ids
        for key in (g.team1.key, g.team2.key):
            assert key not in seen
            seen.add(key)


def test_pair_key_is_order_independent():
    assert pair_key("b", "a") == pair_key("a", "b") == ("a", "b")


def test_enumerate_pairs_order():
    pairs = enumerate_pairs(roster("ABCD"))
    assert [p.ids for p in pairs] == [
        ("A", "B"), ("A", "C"), ("A", "D"), ("B", "C"), ("B", "D"), ("C", "D"),
    ]


@pytest.mark.parametrize("n", [0, 1, 2, 3, 5, 8])
def test_enumerate_pairs_count(n):
    assert len(enumerate_pairs(roster("ABCDEFGH"[:n]))) == n * (n - 1) // 2


def test_four_players_single_game():
    games = build_schedule(roster("ABCD"))
    assert teams(games) == [(("A", "B"), ("C", "D"))]


def test_five_players_terminates_with_leftover():
    players = roster("ABCDE")
    games = generate_schedule(players)
    assert len(games) >= 1
    assert teams(games) == [(("A", "B"), ("C", "D"))]
    assert_valid(games, players)


def test_six_players_multiple_games():
    players = roster("ABCDEF")
    games = build_schedule(players)
    assert teams(games) == [
        (("A", "B"), ("C", "D")),
        (("A", "E"), ("B", "F")),
        (("C", "E"), ("D", "F")),
    ]
    assert_valid(games, players)


def test_seven_players_uneven_coverage():
    players = roster("ABCDEFG")
    games = build_schedule(players)
    assert_valid(games, players)
    counts = Counter(pid for g in games for pid in g.player_ids)
    assert counts["A"] == 3
    assert counts["D"] == 1
    assert len(set(counts[p.id] for p in players)) > 1


@pytest.mark.parametrize("n", range(4, 11))
def test_invariants_hold_for_larger_rosters(n):
    players = roster([f"p{i}" for i in range(n)])
    games = build_schedule(players)
    assert games
    assert_valid(games, players)


def test_opponents_are_not_regrouped_as_teammates():
    players = roster("ABCDEFGH")
    games = build_schedule(players)
    met = set()
    for g in games:
        assert g.team1.key not in met
        assert g.team2.key not in met
        met.update({g.team1.key, g.team2.key, *g.opponent_keys()})


def test_deterministic():
    players = roster("ABCDEFG")
    assert build_schedule(players) == build_schedule(list(players))


def test_roster_order_drives_greedy_choice():
    first = build_schedule(roster("ABCD"))
    second = build_schedule(roster("DCBA"))
    assert teams(first) == [(("A", "B"), ("C", "D"))]
    assert teams(second) == [(("D", "C"), ("B", "A"))]


def test_any_order_of_four_gives_one_game():
    for order in permutations("ABCD"):
        assert len(build_schedule(roster(order))) == 1


@pytest.mark.parametrize("n", [0, 1, 2, 3])
def test_small_roster_rejected_before_builder(n, monkeypatch):
    called = []
    monkeypatch.setattr(pairing, "build_schedule", lambda r: called.append(r) or [])
    with pytest.raises(InsufficientPlayersError) as exc:
        generate_schedule(roster("ABC"[:n]))
    assert exc.value.count == n
    assert exc.value.required == 4
    assert called == []


def test_empty_schedule_logs_warning(monkeypatch, caplog):
    monkeypatch.setattr(pairing, "build_schedule", lambda r: [])
    with caplog.at_level("WARNING", logger="scorekeeper.pairing"):
        assert generate_schedule(roster("ABCD")) == []
    assert "no games built" in caplog.text
