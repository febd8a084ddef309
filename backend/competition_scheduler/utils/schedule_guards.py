"""
Schedule Guards and Error Mapping

Reusable route helpers:
- Schedule ownership lookup (404 when missing or owned by another event)
- SchedulingError -> HTTPException translation
"""

from fastapi import HTTPException
from sqlmodel import Session

from competition_scheduler.models.schedule_record import ScheduleRecord
from competition_scheduler.services import schedule_store
from competition_scheduler.services.errors import (
    BracketNotFoundError,
    ImmutableRoundConflict,
    RoundNotPendingError,
    SchedulePublishedError,
    SchedulingError,
    StaleScheduleError,
)

_STATUS_BY_ERROR = (
    (BracketNotFoundError, 404),
    (ImmutableRoundConflict, 409),
    (RoundNotPendingError, 409),
    (SchedulePublishedError, 400),
    (StaleScheduleError, 409),
)


def get_schedule_or_404(session: Session, event_id: str, schedule_id: str) -> ScheduleRecord:
    """
    Load a stored schedule that belongs to `event_id`.

    Raises:
        HTTPException 404: Schedule not found for this event
    """
    record = schedule_store.get_record(session, event_id, schedule_id)
    if not record:
        raise HTTPException(
            status_code=404,
            detail=f"SCHEDULE_NOT_FOUND: Schedule {schedule_id} does not exist for event {event_id}",
        )
    return record


def http_error(exc: SchedulingError) -> HTTPException:
    """Map a service rejection to its HTTP status with a "CODE: message" detail."""
    status_code = 422
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            status_code = code
            break
    return HTTPException(status_code=status_code, detail=str(exc))
