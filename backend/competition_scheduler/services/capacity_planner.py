"""
Capacity Planner: greedy day packing of sessions.

One rule, applied in request order with no reordering:
- The clock starts `setup_time` minutes after the day's start.
- A session fits when clock + duration + transition_time <= usable window.
- A fitting session advances the clock by duration + transition_time.
- The first session that does not fit closes the day; it and everything
  after it move to the next day (existing event days first, then new days
  dated one day after the last).

A session longer than the whole window is placed alone on an empty day and
the day is flagged within_time_limit=False instead of failing.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional

from competition_scheduler.services.schedule_types import (
    BuildWarning,
    EventDay,
    ScheduleConfig,
    ScheduleDay,
    Session,
)

logger = logging.getLogger(__name__)

CAPACITY_OVERFLOW = "CAPACITY_OVERFLOW"


@dataclass
class SlotPlacement:
    offset_minutes: int  # from day start
    fits: bool


@dataclass
class DayFit:
    placements: List[SlotPlacement]
    overflow: List[int]  # durations deferred to the next day, in request order
    clock: int


def fit_day(
    durations: List[int],
    window_minutes: int,
    setup_time: int,
    transition_time: int,
    clock: Optional[int] = None,
) -> DayFit:
    """
    Fill one day from the front of `durations`.

    `clock` resumes a partially filled day; None means an empty day.
    """
    empty_day = clock is None
    clock = setup_time if clock is None else clock
    placements: List[SlotPlacement] = []

    for duration in durations:
        if clock + duration + transition_time <= window_minutes:
            placements.append(SlotPlacement(offset_minutes=clock, fits=True))
            clock += duration + transition_time
            continue
        if empty_day and not placements:
            # Oversized: alone on its own day.
            placements.append(SlotPlacement(offset_minutes=clock, fits=False))
            clock += duration + transition_time
        break

    return DayFit(placements=placements, overflow=durations[len(placements) :], clock=clock)


def open_day(schedule_days: List[ScheduleDay], event_days: List[EventDay], config: ScheduleConfig) -> ScheduleDay:
    """Append the next day: the next event day if one is left, else a new one."""
    position = len(schedule_days)
    if position < len(event_days):
        source = event_days[position]
        day = ScheduleDay(
            day_id=source.day_id,
            date=source.date,
            start_time=source.start_time or config.start_time,
        )
    else:
        if not schedule_days:
            raise ValueError("At least one event day is required to place sessions")
        next_date = schedule_days[-1].date + timedelta(days=1)
        day = ScheduleDay(
            day_id=f"day-{next_date.isoformat()}",
            date=next_date,
            start_time=config.start_time,
        )
        logger.info("CAPACITY: opened overflow day %s", day.day_id)
    schedule_days.append(day)
    return day


def _stamp(session: Session, day: ScheduleDay, offset_minutes: int, config: ScheduleConfig) -> None:
    day_start = datetime.combine(day.date, day.start_time, tzinfo=config.zone)
    session.day_id = day.day_id
    session.start_time = day_start + timedelta(minutes=offset_minutes)
    session.end_time = session.start_time + timedelta(minutes=session.duration)


def place_sessions(
    sessions: List[Session],
    schedule_days: List[ScheduleDay],
    event_days: List[EventDay],
    config: ScheduleConfig,
) -> List[BuildWarning]:
    """
    Place `sessions` after the last occupied slot of `schedule_days`.

    Appends sessions (and new days) to `schedule_days` in place and returns
    one CAPACITY_OVERFLOW warning per oversized session.
    """
    warnings: List[BuildWarning] = []
    remaining = list(sessions)
    if not remaining:
        return warnings

    window = config.usable_window_minutes
    day = schedule_days[-1] if schedule_days else open_day(schedule_days, event_days, config)

    while remaining:
        clock = day.total_duration if day.sessions else None
        fit = fit_day(
            [s.duration for s in remaining],
            window,
            config.setup_time,
            config.transition_time,
            clock=clock,
        )
        for session, slot in zip(remaining, fit.placements):
            _stamp(session, day, slot.offset_minutes, config)
            day.sessions.append(session)
            if not slot.fits:
                day.within_time_limit = False
                warnings.append(
                    BuildWarning(
                        code=CAPACITY_OVERFLOW,
                        message=(
                            f"Session {session.session_id} lasts {session.duration} min, "
                            f"longer than the {window} min day window; placed alone on {day.day_id}"
                        ),
                        category_id=session.category_id,
                    )
                )
        if fit.placements:
            day.total_duration = fit.clock
        remaining = remaining[len(fit.placements) :]
        if remaining:
            day = open_day(schedule_days, event_days, config)

    return warnings
