"""
Schedule Store

Persists Schedule aggregates and their match history with SQLModel.
Every write commits once: either the whole new state is stored or, on a
database error, the transaction is rolled back and nothing changes.

Concurrent writers:
- Payload writes (record_progress, replace) compare-and-swap the record's
  `version`. A write based on a stale load raises StaleScheduleError and
  leaves the stored schedule and its match history untouched.

Store policy:
- At most one published schedule per event; publishing unpublishes siblings.
- Published schedules are not regenerated (enforced via schedule_assembler).
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from competition_scheduler.models import MatchResultRecord, ScheduleRecord
from competition_scheduler.services.errors import StaleScheduleError
from competition_scheduler.services.schedule_types import MatchResult, Schedule

logger = logging.getLogger(__name__)


def get_record(session: Session, event_id: str, schedule_id: str) -> Optional[ScheduleRecord]:
    return session.exec(
        select(ScheduleRecord).where(
            ScheduleRecord.event_id == event_id,
            ScheduleRecord.schedule_id == schedule_id,
        )
    ).first()


def list_records(session: Session, event_id: str) -> List[ScheduleRecord]:
    return list(
        session.exec(
            select(ScheduleRecord)
            .where(ScheduleRecord.event_id == event_id)
            .order_by(ScheduleRecord.created_at, ScheduleRecord.id)
        ).all()
    )


def _commit(session: Session, action: str) -> None:
    try:
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        logger.exception("SCHEDULE_STORE: %s failed, rolled back", action)
        raise


def _claim_version(session: Session, record: ScheduleRecord, expected_version: int, action: str) -> None:
    """Bump the stored version, failing if another write got there first."""
    claimed = session.execute(
        update(ScheduleRecord)
        .where(ScheduleRecord.id == record.id, ScheduleRecord.version == expected_version)
        .values(version=expected_version + 1)
        .execution_options(synchronize_session=False)
    )
    if claimed.rowcount != 1:
        session.rollback()
        logger.info(
            "SCHEDULE_STORE: %s rejected, schedule_id=%s changed since version %s",
            action,
            record.schedule_id,
            expected_version,
        )
        raise StaleScheduleError(
            f"Schedule {record.schedule_id} was modified by another request; reload and retry",
            {"schedule_id": record.schedule_id, "expected_version": expected_version},
        )
    record.version = expected_version + 1


def save(session: Session, schedule: Schedule) -> ScheduleRecord:
    record = ScheduleRecord.from_schedule(schedule)
    session.add(record)
    _commit(session, "save")
    session.refresh(record)
    logger.info("SCHEDULE_STORE: saved schedule_id=%s event_id=%s", schedule.schedule_id, schedule.event_id)
    return record


def replace(
    session: Session,
    record: ScheduleRecord,
    schedule: Schedule,
    expected_version: Optional[int] = None,
) -> ScheduleRecord:
    """Regeneration: new payload, match history of the old draft dropped."""
    if expected_version is None:
        expected_version = record.version
    _claim_version(session, record, expected_version, "replace")
    for result in list(record.results):
        session.delete(result)
    record.apply(schedule)
    session.add(record)
    _commit(session, "replace")
    session.refresh(record)
    return record


def record_progress(
    session: Session,
    record: ScheduleRecord,
    schedule: Schedule,
    results: List[MatchResult],
    expected_version: Optional[int] = None,
) -> ScheduleRecord:
    """
    Store an advanced schedule and its new results in one transaction.

    `expected_version` is the version the schedule was loaded at; it
    defaults to the version held by `record`.
    """
    if expected_version is None:
        expected_version = record.version
    _claim_version(session, record, expected_version, "record_progress")
    record.apply(schedule)
    session.add(record)
    for result in results:
        session.add(
            MatchResultRecord(
                schedule_record_id=record.id,
                category_id=result.category_id,
                match_id=result.match_id,
                winner_id=result.winner_id,
                loser_id=result.loser_id,
                filter_number=result.filter_number,
            )
        )
    _commit(session, "record_progress")
    session.refresh(record)
    return record


def load_history(session: Session, record: ScheduleRecord, category_id: str) -> List[MatchResult]:
    """Match history of one category in submission order."""
    rows = session.exec(
        select(MatchResultRecord)
        .where(
            MatchResultRecord.schedule_record_id == record.id,
            MatchResultRecord.category_id == category_id,
        )
        .order_by(MatchResultRecord.id)
    ).all()
    return [row.to_result() for row in rows]


def publish(session: Session, record: ScheduleRecord) -> ScheduleRecord:
    now = datetime.now(timezone.utc)
    for sibling in list_records(session, record.event_id):
        if sibling.id != record.id and sibling.published:
            sibling.published = False
            sibling.published_at = None
            sibling.updated_at = now
            session.add(sibling)
    record.published = True
    record.published_at = now
    record.updated_at = now
    session.add(record)
    _commit(session, "publish")
    session.refresh(record)
    logger.info("SCHEDULE_STORE: published schedule_id=%s event_id=%s", record.schedule_id, record.event_id)
    return record


def unpublish(session: Session, record: ScheduleRecord) -> ScheduleRecord:
    record.published = False
    record.published_at = None
    record.updated_at = datetime.now(timezone.utc)
    session.add(record)
    _commit(session, "unpublish")
    session.refresh(record)
    return record


def delete(session: Session, record: ScheduleRecord) -> None:
    for result in list(record.results):
        session.delete(result)
    session.delete(record)
    _commit(session, "delete")
    logger.info("SCHEDULE_STORE: deleted schedule_id=%s event_id=%s", record.schedule_id, record.event_id)
