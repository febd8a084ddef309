"""
Standings Calculator

Replays a category's match history into ordered standings. Stateless:
standings are recomputed from the full history on every query, so the same
history always yields the same ranking.

Ordering: athletes still in contention first, then the furthest round
reached, then most wins. Ties keep the order in which athletes first appear
in the history.
"""

from typing import Dict, Iterable, List

from competition_scheduler.services.schedule_types import AthleteStanding, MatchResult


def _standing(table: Dict[str, AthleteStanding], athlete_id: str) -> AthleteStanding:
    standing = table.get(athlete_id)
    if standing is None:
        standing = AthleteStanding(athlete_id=athlete_id)
        table[athlete_id] = standing
    return standing


def compute_standings(schedule_id: str, category_id: str, history: Iterable[MatchResult]) -> List[AthleteStanding]:
    """
    Fold `history` (submission order) into placements for one category.

    Results of other categories are ignored. A bye counts as a win for the
    athlete who received it.
    """
    table: Dict[str, AthleteStanding] = {}

    for result in history:
        if result.category_id != category_id:
            continue

        winner = _standing(table, result.winner_id)
        winner.wins += 1
        winner.current_round = max(winner.current_round, result.filter_number + 1)

        if result.loser_id is None:
            continue
        loser = _standing(table, result.loser_id)
        loser.losses += 1
        loser.eliminated = True
        loser.eliminated_in_round = result.filter_number

    # sorted() is stable, so equal keys keep first-seen order.
    ordered = sorted(
        table.values(),
        key=lambda s: (s.eliminated, -s.current_round, -s.wins),
    )
    for index, standing in enumerate(ordered, start=1):
        standing.placement = index
    return ordered
