"""
Tests for the standings fold over match history.
"""

from competition_scheduler.services.schedule_types import MatchResult
from competition_scheduler.services.standings_calculator import compute_standings


def _r(winner, loser, filter_number, category_id="open") -> MatchResult:
    return MatchResult(category_id=category_id, winner_id=winner, loser_id=loser, filter_number=filter_number)


# A beats B, C beats D, E beats F; A beats C, E has a bye; E beats A in round 3.
HISTORY = [
    _r("A", "B", 1),
    _r("C", "D", 1),
    _r("E", "F", 1),
    _r("A", "C", 2),
    _r("E", None, 2),
    _r("E", "A", 3),
]


def test_round_three_loser_ranks_above_round_one_losers():
    standings = compute_standings("schedule-1", "open", HISTORY)

    assert [s.athlete_id for s in standings] == ["E", "A", "C", "B", "D", "F"]
    assert [s.placement for s in standings] == [1, 2, 3, 4, 5, 6]


def test_counters():
    by_id = {s.athlete_id: s for s in compute_standings("schedule-1", "open", HISTORY)}

    champion = by_id["E"]
    assert (champion.wins, champion.losses, champion.current_round) == (3, 0, 4)
    assert champion.eliminated is False
    assert champion.eliminated_in_round is None

    finalist = by_id["A"]
    assert (finalist.wins, finalist.losses, finalist.current_round) == (2, 1, 3)
    assert finalist.eliminated is True
    assert finalist.eliminated_in_round == 3

    assert by_id["B"].current_round == 1
    assert by_id["B"].eliminated_in_round == 1


def test_same_history_same_standings():
    first = compute_standings("schedule-1", "open", HISTORY)
    second = compute_standings("schedule-1", "open", HISTORY)
    assert first == second


def test_other_categories_ignored():
    history = HISTORY + [_r("X", "Y", 1, category_id="masters")]
    ids = {s.athlete_id for s in compute_standings("schedule-1", "open", history)}
    assert ids == {"A", "B", "C", "D", "E", "F"}


def test_ties_keep_first_seen_order():
    history = [_r("B", "A", 1), _r("D", "C", 1)]
    assert [s.athlete_id for s in compute_standings("schedule-1", "open", history)] == ["B", "D", "A", "C"]


def test_empty_history():
    assert compute_standings("schedule-1", "open", []) == []
