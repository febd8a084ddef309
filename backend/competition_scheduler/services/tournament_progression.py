"""
Tournament Progression: advance a category bracket one round at a time.

Per-category state machine: round_1_pending -> ... -> round_k_pending -> complete.

- VERSUS: a round is submitted as match results covering every non-bye match
  of that round's sessions. Winners and bye athletes advance; the field is
  then trimmed or topped up with wildcard losers to the configured size.
- HEATS (athletes_eliminated_per_filter > 0): a round is submitted as the
  full ranking of the round's athletes; the bottom of the ranking is cut.

Guarantees:
- Atomic: work happens on a deep copy; the input schedule is never mutated
  and nothing is returned when a submission is rejected.
- Rounds are immutable once advanced. Resubmitting identical results is a
  no-op; different results raise ImmutableRoundConflict.
- The next round's sessions are appended after the last occupied slot,
  never overwriting earlier rounds.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from competition_scheduler.services.capacity_planner import place_sessions
from competition_scheduler.services.elimination_rules import (
    advancing_count,
    heat_survivor_count,
    plan_field_sizes,
)
from competition_scheduler.services.errors import (
    BracketNotFoundError,
    ConfigurationError,
    ImmutableRoundConflict,
    IncompleteRoundSubmission,
    InvalidMatchResult,
    RoundNotPendingError,
    SchedulingError,
)
from competition_scheduler.services.schedule_types import (
    Bracket,
    BracketRound,
    CompetitionMode,
    Match,
    MatchResult,
    Schedule,
    ScheduleConfig,
    Session,
)
from competition_scheduler.services.session_builder import build_sessions, max_session_minutes

logger = logging.getLogger(__name__)

STATUS_COMPLETE = "complete"
ROUND_COMPLETE = "complete"


def pending_status(filter_number: int) -> str:
    return f"round_{filter_number}_pending"


@dataclass
class RoundOutcome:
    schedule: Schedule
    recorded_results: List[MatchResult] = field(default_factory=list)
    sessions_added: List[Session] = field(default_factory=list)
    no_op: bool = False


# ============================================================================
# Bracket setup (called at generation time)
# ============================================================================


def start_bracket(
    mode: CompetitionMode,
    category_id: str,
    athlete_ids: List[str],
    wod_ids: List[str],
    config: ScheduleConfig,
) -> Bracket:
    """Open a bracket with round 1 pending over the full registered field."""
    total_rounds = len(wod_ids)
    if mode == CompetitionMode.VERSUS:
        sizes = plan_field_sizes(config, category_id, len(athlete_ids), total_rounds)
        expected = advancing_count(config, category_id, 1, len(athlete_ids))
    else:
        sizes = []
        remaining = len(athlete_ids)
        for _ in range(total_rounds):
            sizes.append(remaining)
            remaining = heat_survivor_count(remaining, config.athletes_eliminated_per_filter)
        expected = heat_survivor_count(len(athlete_ids), config.athletes_eliminated_per_filter)

    return Bracket(
        category_id=category_id,
        mode=mode,
        total_rounds=total_rounds,
        wod_ids=list(wod_ids),
        planned_field_sizes=sizes,
        status=pending_status(1),
        rounds=[
            BracketRound(
                filter_number=1,
                wod_id=wod_ids[0],
                athletes=list(athlete_ids),
                expected_advancing=expected,
            )
        ],
    )


# ============================================================================
# Shared helpers
# ============================================================================


def _locate_round(schedule: Schedule, category_id: str, filter_number: int, mode: CompetitionMode):
    bracket = schedule.brackets.get(category_id)
    if bracket is None or bracket.mode != mode:
        raise BracketNotFoundError(
            f"No {mode.value} bracket for category {category_id} in schedule {schedule.schedule_id}",
            {"category_id": category_id},
        )
    round_ = bracket.round(filter_number)
    if round_ is None:
        pending = bracket.pending_round()
        raise RoundNotPendingError(
            f"Round {filter_number} has not started for category {category_id}",
            {
                "category_id": category_id,
                "filter_number": filter_number,
                "pending_round": pending.filter_number if pending else None,
                "bracket_status": bracket.status,
            },
        )
    return bracket, round_


def _append_next_round(
    schedule: Schedule,
    bracket: Bracket,
    filter_number: int,
    advancing: List[str],
) -> List[Session]:
    """Close the bracket or open round filter_number + 1 and schedule it."""
    config = schedule.config
    category_id = bracket.category_id

    if filter_number >= bracket.total_rounds or len(advancing) <= 1:
        bracket.status = STATUS_COMPLETE
        logger.info(
            "PROGRESSION: category_id=%s bracket complete after round %s (remaining=%s)",
            category_id,
            filter_number,
            len(advancing),
        )
        return []

    next_filter = filter_number + 1
    wod_id = bracket.wod_ids[next_filter - 1]
    wod = schedule.wod(wod_id)
    if wod is None:
        raise ConfigurationError(
            f"WOD {wod_id} for round {next_filter} of category {category_id} is not in the schedule roster",
            {"category_id": category_id, "filter_number": next_filter, "wod_id": wod_id},
        )

    if bracket.mode == CompetitionMode.VERSUS:
        expected = advancing_count(config, category_id, next_filter, len(advancing))
    else:
        expected = heat_survivor_count(len(advancing), config.athletes_eliminated_per_filter)

    bracket.rounds.append(
        BracketRound(
            filter_number=next_filter,
            wod_id=wod_id,
            athletes=list(advancing),
            expected_advancing=expected,
        )
    )
    bracket.status = pending_status(next_filter)

    sessions = build_sessions(
        bracket.mode,
        category_id,
        advancing,
        wod,
        config,
        filter_number=next_filter,
        number_of_rounds=bracket.total_rounds,
        limit_minutes=max_session_minutes(config),
    )
    schedule.warnings.extend(place_sessions(sessions, schedule.days, schedule.event_days, config))

    logger.info(
        "PROGRESSION: category_id=%s round=%s athletes=%s sessions_added=%s",
        category_id,
        next_filter,
        len(advancing),
        len(sessions),
    )
    return sessions


# ============================================================================
# VERSUS rounds
# ============================================================================


def _round_matches(schedule: Schedule, category_id: str, filter_number: int) -> List[Match]:
    matches: List[Match] = []
    for session in schedule.sessions_for(category_id, filter_number):
        matches.extend(session.matches or [])
    return matches


def normalize_results(
    matches: List[Match],
    results: List[MatchResult],
    category_id: str,
    filter_number: int,
) -> List[MatchResult]:
    """
    Validate a submission against the round's matches.

    Returns one result per match in match order, byes resolved to athlete1.
    Raises InvalidMatchResult for results that do not fit a match and
    IncompleteRoundSubmission when a non-bye match has no result.
    """
    by_match: Dict[str, MatchResult] = {}
    match_index = {m.match_id: m for m in matches}

    for result in results:
        if result.category_id != category_id or result.filter_number != filter_number:
            raise InvalidMatchResult(
                f"Result for {result.winner_id} targets category {result.category_id} "
                f"round {result.filter_number}, expected category {category_id} round {filter_number}",
                {"winner_id": result.winner_id},
            )
        if result.match_id is not None:
            match = match_index.get(result.match_id)
        else:
            match = next((m for m in matches if result.winner_id in (m.athlete1, m.athlete2)), None)
        if match is None:
            raise InvalidMatchResult(
                f"No round {filter_number} match found for result (match_id={result.match_id}, "
                f"winner_id={result.winner_id})",
                {"match_id": result.match_id, "winner_id": result.winner_id},
            )
        if result.winner_id not in (match.athlete1, match.athlete2):
            raise InvalidMatchResult(
                f"Winner {result.winner_id} is not an athlete of match {match.match_id}",
                {"match_id": match.match_id, "winner_id": result.winner_id},
            )
        loser_id = match.athlete2 if result.winner_id == match.athlete1 else match.athlete1
        if result.loser_id is not None and result.loser_id != loser_id:
            raise InvalidMatchResult(
                f"Loser {result.loser_id} does not match the opponent in match {match.match_id}",
                {"match_id": match.match_id, "loser_id": result.loser_id},
            )
        normalized = MatchResult(
            category_id=category_id,
            match_id=match.match_id,
            winner_id=result.winner_id,
            loser_id=loser_id,
            filter_number=filter_number,
        )
        existing = by_match.get(match.match_id)
        if existing is not None and existing != normalized:
            raise InvalidMatchResult(
                f"Conflicting results submitted for match {match.match_id}",
                {"match_id": match.match_id},
            )
        by_match[match.match_id] = normalized

    missing = [m.match_id for m in matches if not m.is_bye and m.match_id not in by_match]
    if missing:
        raise IncompleteRoundSubmission(
            f"Round {filter_number} of category {category_id} is missing results for {len(missing)} match(es)",
            {"category_id": category_id, "filter_number": filter_number, "missing_match_ids": missing},
        )

    ordered = []
    for match in matches:
        if match.is_bye:
            ordered.append(
                MatchResult(
                    category_id=category_id,
                    match_id=match.match_id,
                    winner_id=match.athlete1,
                    loser_id=None,
                    filter_number=filter_number,
                )
            )
        else:
            ordered.append(by_match[match.match_id])
    return ordered


def select_advancing(
    recorded: List[MatchResult],
    target: int,
    wildcards: Optional[List[str]] = None,
):
    """
    Winners (and byes) in match order, sized to `target`.

    Surplus winners are cut from the end; a deficit is filled with wildcard
    losers, explicit picks first, then losers in match order.
    Returns (advancing, eliminated, wildcards).
    """
    winners = [r.winner_id for r in recorded]
    losers = [r.loser_id for r in recorded if r.loser_id is not None]

    if len(winners) >= target:
        return winners[:target], losers + winners[target:], []

    need = target - len(winners)
    picks = list(dict.fromkeys(wildcards or []))
    unknown = [a for a in picks if a not in losers]
    if unknown:
        raise InvalidMatchResult(
            f"Wildcards must be losers of this round: {', '.join(unknown)}",
            {"wildcards": unknown},
        )
    if len(picks) > need:
        raise InvalidMatchResult(
            f"{len(picks)} wildcards submitted but only {need} place(s) are open",
            {"open_places": need},
        )
    for loser in losers:
        if len(picks) >= need:
            break
        if loser not in picks:
            picks.append(loser)

    eliminated = [a for a in losers if a not in picks]
    return winners + picks, eliminated, picks


def submit_round(
    schedule: Schedule,
    category_id: str,
    filter_number: int,
    results: List[MatchResult],
    wildcards: Optional[List[str]] = None,
) -> RoundOutcome:
    """Record a complete VERSUS round and advance the category bracket."""
    working = schedule.model_copy(deep=True)
    bracket, round_ = _locate_round(working, category_id, filter_number, CompetitionMode.VERSUS)
    matches = _round_matches(working, category_id, filter_number)

    if round_.status == ROUND_COMPLETE:
        try:
            resubmitted = normalize_results(matches, results, category_id, filter_number)
        except SchedulingError as exc:
            raise ImmutableRoundConflict(
                f"Round {filter_number} of category {category_id} already advanced; "
                f"resubmission differs ({exc.message})",
                {"category_id": category_id, "filter_number": filter_number},
            ) from exc
        if resubmitted != round_.results:
            raise ImmutableRoundConflict(
                f"Round {filter_number} of category {category_id} already advanced with different results",
                {"category_id": category_id, "filter_number": filter_number},
            )
        logger.info("PROGRESSION: category_id=%s round=%s resubmitted unchanged", category_id, filter_number)
        return RoundOutcome(schedule=schedule, no_op=True)

    recorded = normalize_results(matches, results, category_id, filter_number)
    advancing, eliminated, picked = select_advancing(recorded, round_.expected_advancing, wildcards)

    round_.results = recorded
    round_.advancing = advancing
    round_.eliminated = eliminated
    round_.wildcards = picked
    round_.status = ROUND_COMPLETE

    sessions = _append_next_round(working, bracket, filter_number, advancing)
    return RoundOutcome(schedule=working, recorded_results=recorded, sessions_added=sessions)


# ============================================================================
# HEATS rounds
# ============================================================================


def submit_heat_ranking(
    schedule: Schedule,
    category_id: str,
    filter_number: int,
    ranking: List[str],
) -> RoundOutcome:
    """Record a HEATS round ranking (best first) and schedule the survivors."""
    working = schedule.model_copy(deep=True)
    bracket, round_ = _locate_round(working, category_id, filter_number, CompetitionMode.HEATS)

    if round_.status == ROUND_COMPLETE:
        if list(ranking) != round_.ranking:
            raise ImmutableRoundConflict(
                f"Round {filter_number} of category {category_id} already advanced with a different ranking",
                {"category_id": category_id, "filter_number": filter_number},
            )
        return RoundOutcome(schedule=schedule, no_op=True)

    unknown = [a for a in ranking if a not in round_.athletes]
    if unknown or len(set(ranking)) != len(ranking):
        raise InvalidMatchResult(
            f"Ranking for round {filter_number} contains unknown or repeated athletes",
            {"unknown": unknown},
        )
    missing = [a for a in round_.athletes if a not in ranking]
    if missing:
        raise IncompleteRoundSubmission(
            f"Ranking for round {filter_number} of category {category_id} is missing {len(missing)} athlete(s)",
            {"category_id": category_id, "filter_number": filter_number, "missing_athlete_ids": missing},
        )

    round_.ranking = list(ranking)
    round_.advancing = list(ranking[: round_.expected_advancing])
    round_.eliminated = list(ranking[round_.expected_advancing :])
    round_.status = ROUND_COMPLETE

    sessions = _append_next_round(working, bracket, filter_number, round_.advancing)
    return RoundOutcome(schedule=working, sessions_added=sessions)
