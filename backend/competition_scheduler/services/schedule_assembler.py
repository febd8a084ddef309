"""
Schedule Assembler - Generate a full event schedule

Pipeline:
0. Validate config against the roster (all-or-nothing)
1. For every category (roster order) with athletes:
   - HEATS / SIMULTANEOUS: one round per WOD, in WOD order
   - VERSUS: round 1 on the WOD mapped to filter 1
2. Pack the ordered session list into days with the capacity planner
3. Open a bracket for categories that progress round by round

Generation is pure: nothing is persisted here, the caller stores the result.
Categories without athletes are skipped with an EMPTY_CATEGORY_SKIPPED warning.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional

from competition_scheduler.services.capacity_planner import place_sessions
from competition_scheduler.services.competition_modes import parse_mode
from competition_scheduler.services.errors import ConfigurationError, SchedulePublishedError
from competition_scheduler.services.schedule_types import (
    Bracket,
    BuildWarning,
    CompetitionMode,
    Roster,
    Schedule,
    ScheduleConfig,
    Session,
)
from competition_scheduler.services.session_builder import build_sessions, max_session_minutes
from competition_scheduler.services.tournament_progression import start_bracket

logger = logging.getLogger(__name__)

EMPTY_CATEGORY_SKIPPED = "EMPTY_CATEGORY_SKIPPED"


def new_schedule_id() -> str:
    return f"schedule-{uuid.uuid4().hex[:12]}"


# ============================================================================
# Validation
# ============================================================================


def validate_config(mode: CompetitionMode, config: ScheduleConfig, roster: Roster) -> Dict[str, List[str]]:
    """
    Check the config can schedule this roster before anything is built.

    Returns the planned WOD ids per category (one per round). Raises
    ConfigurationError on the first problem found.
    """
    if not roster.days:
        raise ConfigurationError("No event days found", {"event_days": 0})
    if not roster.wods:
        raise ConfigurationError("No WODs found for this event", {"wods": 0})

    category_ids = {c.category_id for c in roster.categories}
    stray = sorted({a.category_id for a in roster.athletes if a.category_id not in category_ids})
    if stray:
        raise ConfigurationError(
            f"Athletes reference unknown categories: {', '.join(stray)}",
            {"category_ids": stray},
        )

    plan: Dict[str, List[str]] = {}
    for category in roster.categories:
        if not roster.athletes_in(category.category_id):
            continue

        if mode != CompetitionMode.VERSUS:
            plan[category.category_id] = [w.wod_id for w in roster.wods]
            continue

        rounds = config.category_heats.get(category.category_id)
        if rounds is None:
            raise ConfigurationError(
                f"category_heats has no round count for category {category.category_id}",
                {"category_id": category.category_id},
            )
        if rounds < 1:
            raise ConfigurationError(
                f"Category {category.category_id} needs at least one round, got {rounds}",
                {"category_id": category.category_id, "rounds": rounds},
            )
        wod_ids = []
        for filter_number in range(1, rounds + 1):
            wod_id = config.round_wod_id(category.category_id, filter_number)
            if wod_id is None:
                raise ConfigurationError(
                    f"heat_wod_mapping has no WOD for round {filter_number} of category {category.category_id}",
                    {"category_id": category.category_id, "filter_number": filter_number},
                )
            if roster.wod(wod_id) is None:
                raise ConfigurationError(
                    f"WOD {wod_id} mapped to round {filter_number} of category {category.category_id} does not exist",
                    {"category_id": category.category_id, "filter_number": filter_number, "wod_id": wod_id},
                )
            wod_ids.append(wod_id)
        plan[category.category_id] = wod_ids

    return plan


def _progresses(mode: CompetitionMode, config: ScheduleConfig) -> bool:
    """Whether later rounds depend on submitted results."""
    if mode == CompetitionMode.VERSUS:
        return True
    return mode == CompetitionMode.HEATS and config.athletes_eliminated_per_filter > 0


# ============================================================================
# Generation
# ============================================================================


def generate(
    event_id: str,
    config: ScheduleConfig,
    roster: Roster,
    schedule_id: Optional[str] = None,
) -> Schedule:
    """Build a draft schedule (published=False) for one event."""
    mode = parse_mode(config.competition_mode)
    plan = validate_config(mode, config, roster)
    progresses = _progresses(mode, config)
    limit = max_session_minutes(config)

    warnings: List[BuildWarning] = []
    brackets: Dict[str, Bracket] = {}
    sessions: List[Session] = []

    for category in roster.categories:
        athlete_ids = [a.athlete_id for a in roster.athletes_in(category.category_id)]
        if not athlete_ids:
            warnings.append(
                BuildWarning(
                    code=EMPTY_CATEGORY_SKIPPED,
                    message=f"Category {category.name} has no athletes; skipped",
                    category_id=category.category_id,
                )
            )
            continue

        wod_ids = plan[category.category_id]
        total_rounds = len(wod_ids)

        if progresses:
            brackets[category.category_id] = start_bracket(mode, category.category_id, athlete_ids, wod_ids, config)
            # Only round 1 is known up front; later fields come from results.
            round_wod_ids = wod_ids[:1]
        else:
            round_wod_ids = wod_ids

        for filter_number, wod_id in enumerate(round_wod_ids, start=1):
            sessions.extend(
                build_sessions(
                    mode,
                    category.category_id,
                    athlete_ids,
                    roster.wod(wod_id),
                    config,
                    filter_number=filter_number,
                    number_of_rounds=total_rounds,
                    limit_minutes=limit,
                )
            )

    days = []
    warnings.extend(place_sessions(sessions, days, roster.days, config))

    schedule = Schedule(
        schedule_id=schedule_id or new_schedule_id(),
        event_id=event_id,
        config=config,
        generated_at=datetime.now(timezone.utc),
        published=False,
        days=days,
        brackets=brackets,
        warnings=warnings,
        wods=list(roster.wods),
        event_days=list(roster.days),
    )

    logger.info(
        "SCHEDULE_BUILD: event_id=%s schedule_id=%s mode=%s categories=%s sessions=%s days=%s warnings=%s",
        event_id,
        schedule.schedule_id,
        mode.value,
        len(plan),
        len(sessions),
        len(days),
        len(warnings),
    )
    return schedule


def regenerate(existing: Schedule, config: ScheduleConfig, roster: Roster) -> Schedule:
    """
    Replace a draft wholesale, keeping its id.

    Published schedules must be unpublished first.
    """
    if existing.published:
        raise SchedulePublishedError(
            f"Schedule {existing.schedule_id} is published; unpublish it before regenerating",
            {"schedule_id": existing.schedule_id},
        )
    return generate(existing.event_id, config, roster, schedule_id=existing.schedule_id)
