from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlmodel import Session

from competition_scheduler.database import get_session
from competition_scheduler.models.schedule_record import ScheduleRecord
from competition_scheduler.services import schedule_assembler, schedule_store
from competition_scheduler.services.errors import SchedulingError
from competition_scheduler.services.schedule_types import BuildWarning, Roster, Schedule, ScheduleConfig
from competition_scheduler.utils.schedule_guards import get_schedule_or_404, http_error
from competition_scheduler.utils.schedule_locks import schedule_lock

router = APIRouter()


class GenerateScheduleRequest(BaseModel):
    config: ScheduleConfig = Field(default_factory=ScheduleConfig)
    roster: Roster


class ScheduleSummary(BaseModel):
    schedule_id: str
    event_id: str
    competition_mode: str
    published: bool
    published_at: Optional[datetime] = None
    generated_at: datetime
    day_count: int
    session_count: int
    warnings: List[BuildWarning] = []

    @classmethod
    def from_record(cls, record: ScheduleRecord) -> "ScheduleSummary":
        schedule = record.to_schedule()
        return cls(
            schedule_id=record.schedule_id,
            event_id=record.event_id,
            competition_mode=record.competition_mode,
            published=record.published,
            published_at=record.published_at,
            generated_at=record.generated_at,
            day_count=len(schedule.days),
            session_count=sum(1 for _ in schedule.iter_sessions()),
            warnings=schedule.warnings,
        )


@router.post("/events/{event_id}/schedules", response_model=Schedule, status_code=201)
def generate_schedule(event_id: str, body: GenerateScheduleRequest, session: Session = Depends(get_session)):
    """Generate a draft schedule for an event and store it"""
    try:
        schedule = schedule_assembler.generate(event_id, body.config, body.roster)
    except SchedulingError as e:
        raise http_error(e)
    record = schedule_store.save(session, schedule)
    return record.to_schedule()


@router.get("/events/{event_id}/schedules", response_model=List[ScheduleSummary])
def list_schedules(event_id: str, session: Session = Depends(get_session)):
    """List an event's schedules, oldest first"""
    return [ScheduleSummary.from_record(r) for r in schedule_store.list_records(session, event_id)]


@router.get("/events/{event_id}/schedules/{schedule_id}", response_model=Schedule)
def get_schedule(event_id: str, schedule_id: str, session: Session = Depends(get_session)):
    record = get_schedule_or_404(session, event_id, schedule_id)
    return record.to_schedule()


@router.put("/events/{event_id}/schedules/{schedule_id}", response_model=Schedule)
def regenerate_schedule(
    event_id: str, schedule_id: str, body: GenerateScheduleRequest, session: Session = Depends(get_session)
):
    """
    Regenerate a draft schedule in place.

    The previous draft, including any recorded round results, is replaced
    wholesale. Published schedules are rejected with 400.
    """
    with schedule_lock(event_id, schedule_id):
        record = get_schedule_or_404(session, event_id, schedule_id)
        try:
            schedule = schedule_assembler.regenerate(record.to_schedule(), body.config, body.roster)
            record = schedule_store.replace(session, record, schedule)
        except SchedulingError as e:
            raise http_error(e)
    return record.to_schedule()


@router.patch("/events/{event_id}/schedules/{schedule_id}/publish", response_model=ScheduleSummary)
def publish_schedule(event_id: str, schedule_id: str, session: Session = Depends(get_session)):
    """Publish a schedule; any other published schedule of the event is unpublished"""
    with schedule_lock(event_id, schedule_id):
        record = get_schedule_or_404(session, event_id, schedule_id)
        record = schedule_store.publish(session, record)
    return ScheduleSummary.from_record(record)


@router.patch("/events/{event_id}/schedules/{schedule_id}/unpublish", response_model=ScheduleSummary)
def unpublish_schedule(event_id: str, schedule_id: str, session: Session = Depends(get_session)):
    with schedule_lock(event_id, schedule_id):
        record = get_schedule_or_404(session, event_id, schedule_id)
        record = schedule_store.unpublish(session, record)
    return ScheduleSummary.from_record(record)


@router.delete("/events/{event_id}/schedules/{schedule_id}", status_code=204)
def delete_schedule(event_id: str, schedule_id: str, session: Session = Depends(get_session)):
    """Delete a schedule and its match history"""
    with schedule_lock(event_id, schedule_id):
        record = get_schedule_or_404(session, event_id, schedule_id)
        schedule_store.delete(session, record)
    return None
