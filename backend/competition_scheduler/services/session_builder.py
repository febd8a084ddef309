"""
Session Builder: package one (category, wod, round) into Session records.

Durations:
- HEATS:        ceil(heats / concurrent_heats) * wod minutes
- VERSUS:       ceil(matches / concurrent_matches) * match minutes
- SIMULTANEOUS: wod minutes

A partition longer than `max_session_minutes` is split into several
sessions so the capacity planner can spread it across days. Start times are
left unset; the capacity planner stamps them.
"""

import math
from typing import List, Optional

from competition_scheduler.services import competition_modes
from competition_scheduler.services.schedule_types import (
    CompetitionMode,
    ScheduleConfig,
    Session,
    Wod,
)


def session_duration(unit_count: int, concurrency: int, unit_minutes: int) -> int:
    return math.ceil(unit_count / concurrency) * unit_minutes


def max_session_minutes(config: ScheduleConfig) -> int:
    """Longest session that still fits an empty day."""
    return config.usable_window_minutes - config.setup_time - config.transition_time


def _chunk(units: list, concurrency: int, unit_minutes: int, limit: Optional[int]) -> List[list]:
    if limit is None or session_duration(len(units), concurrency, unit_minutes) <= limit:
        return [units]
    slots = max(1, limit // unit_minutes)
    per_session = slots * concurrency
    return [units[i : i + per_session] for i in range(0, len(units), per_session)]


def build_sessions(
    mode: CompetitionMode,
    category_id: str,
    athlete_ids: List[str],
    wod: Wod,
    config: ScheduleConfig,
    filter_number: int = 1,
    number_of_rounds: Optional[int] = None,
    limit_minutes: Optional[int] = None,
) -> List[Session]:
    """
    Build the sessions of one category round.

    Returns [] for an empty athlete list; a session never has zero athletes.
    """
    if not athlete_ids:
        return []

    part = competition_modes.partition(mode, athlete_ids, category_id, wod, config, filter_number)
    chunks = _chunk(part.units, part.concurrency, part.unit_minutes, limit_minutes)

    sessions = []
    for index, chunk in enumerate(chunks, start=1):
        suffix = f"-p{index}" if len(chunks) > 1 else ""
        session = Session(
            session_id=f"{category_id}-{wod.wod_id}-r{filter_number}{suffix}",
            category_id=category_id,
            wod_id=wod.wod_id,
            competition_mode=mode,
            duration=session_duration(len(chunk), part.concurrency, part.unit_minutes),
            heat_number=filter_number,
            number_of_heats=number_of_rounds,
        )
        if mode == CompetitionMode.VERSUS:
            session.matches = chunk
        else:
            session.heats = chunk
        session.athlete_count = len(session.athlete_ids())
        sessions.append(session)
    return sessions
