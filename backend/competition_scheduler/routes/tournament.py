import logging
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, field_validator
from sqlmodel import Session

from competition_scheduler.database import get_session
from competition_scheduler.services import schedule_store
from competition_scheduler.services.errors import SchedulingError
from competition_scheduler.services.schedule_types import AthleteStanding, Bracket, MatchResult, Session as ScheduleSession
from competition_scheduler.services.standings_calculator import compute_standings
from competition_scheduler.services.tournament_progression import submit_heat_ranking, submit_round
from competition_scheduler.utils.schedule_guards import get_schedule_or_404, http_error
from competition_scheduler.utils.schedule_locks import schedule_lock

logger = logging.getLogger(__name__)

router = APIRouter()

_BASE = "/events/{event_id}/schedules/{schedule_id}/categories/{category_id}"


class MatchResultIn(BaseModel):
    match_id: Optional[str] = None
    winner_id: str
    loser_id: Optional[str] = None

    @field_validator("winner_id")
    @classmethod
    def validate_winner_id(cls, v):
        if not v or not v.strip():
            raise ValueError("winner_id cannot be empty")
        return v.strip()


class RoundSubmission(BaseModel):
    results: List[MatchResultIn]
    wildcards: List[str] = []


class HeatRankingSubmission(BaseModel):
    ranking: List[str]

    @field_validator("ranking")
    @classmethod
    def validate_ranking(cls, v):
        if not v:
            raise ValueError("ranking cannot be empty")
        return v


class RoundSubmissionResponse(BaseModel):
    schedule_id: str
    category_id: str
    filter_number: int
    no_op: bool
    bracket: Bracket
    recorded_results: List[MatchResult] = []
    sessions_added: List[ScheduleSession] = []


class StandingsResponse(BaseModel):
    schedule_id: str
    category_id: str
    standings: List[AthleteStanding]


@router.post(_BASE + "/rounds/{filter_number}", response_model=RoundSubmissionResponse)
def submit_versus_round(
    event_id: str,
    schedule_id: str,
    category_id: str,
    filter_number: int,
    body: RoundSubmission,
    session: Session = Depends(get_session),
):
    """
    Submit every match result of one VERSUS round.

    On success the bracket advances and the next round's matches are
    appended to the schedule. Resubmitting identical results is a no-op.
    A write that lost a race with another change to the schedule is
    rejected with 409.
    """
    with schedule_lock(event_id, schedule_id):
        record = get_schedule_or_404(session, event_id, schedule_id)
        results = [
            MatchResult(category_id=category_id, filter_number=filter_number, **r.model_dump()) for r in body.results
        ]
        try:
            outcome = submit_round(record.to_schedule(), category_id, filter_number, results, body.wildcards)
        except SchedulingError as e:
            logger.info("ROUND_REJECTED: schedule_id=%s category_id=%s %s", schedule_id, category_id, e)
            raise http_error(e)

        if not outcome.no_op:
            try:
                schedule_store.record_progress(session, record, outcome.schedule, outcome.recorded_results)
            except SchedulingError as e:
                raise http_error(e)

    return RoundSubmissionResponse(
        schedule_id=schedule_id,
        category_id=category_id,
        filter_number=filter_number,
        no_op=outcome.no_op,
        bracket=outcome.schedule.brackets[category_id],
        recorded_results=outcome.recorded_results,
        sessions_added=outcome.sessions_added,
    )


@router.post(_BASE + "/heat-rounds/{filter_number}", response_model=RoundSubmissionResponse)
def submit_heats_round(
    event_id: str,
    schedule_id: str,
    category_id: str,
    filter_number: int,
    body: HeatRankingSubmission,
    session: Session = Depends(get_session),
):
    """Submit the ranking of a HEATS round (best first); the bottom is cut"""
    with schedule_lock(event_id, schedule_id):
        record = get_schedule_or_404(session, event_id, schedule_id)
        try:
            outcome = submit_heat_ranking(record.to_schedule(), category_id, filter_number, body.ranking)
        except SchedulingError as e:
            logger.info("ROUND_REJECTED: schedule_id=%s category_id=%s %s", schedule_id, category_id, e)
            raise http_error(e)

        if not outcome.no_op:
            try:
                schedule_store.record_progress(session, record, outcome.schedule, [])
            except SchedulingError as e:
                raise http_error(e)

    return RoundSubmissionResponse(
        schedule_id=schedule_id,
        category_id=category_id,
        filter_number=filter_number,
        no_op=outcome.no_op,
        bracket=outcome.schedule.brackets[category_id],
        sessions_added=outcome.sessions_added,
    )


@router.get(_BASE + "/standings", response_model=StandingsResponse)
def get_standings(event_id: str, schedule_id: str, category_id: str, session: Session = Depends(get_session)):
    """Standings recomputed from the category's match history"""
    record = get_schedule_or_404(session, event_id, schedule_id)
    history = schedule_store.load_history(session, record, category_id)
    return StandingsResponse(
        schedule_id=schedule_id,
        category_id=category_id,
        standings=compute_standings(schedule_id, category_id, history),
    )
