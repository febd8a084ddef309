"""
Competition mode strategies: HEATS, VERSUS, SIMULTANEOUS.

Each mode is a pure function from an ordered athlete list to heats or 1v1
matches. No state is kept between calls: later rounds receive the survivors
list from the caller. `partition()` is the single dispatch point used by the
session builder.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List

from competition_scheduler.services.errors import ConfigurationError
from competition_scheduler.services.schedule_types import (
    CompetitionMode,
    Heat,
    Match,
    ScheduleConfig,
    Wod,
)


@dataclass
class ModePartition:
    """Strategy output for one (category, wod, round)."""

    mode: CompetitionMode
    unit_minutes: int  # duration of one heat or one match slot
    concurrency: int  # heats / matches running side by side
    heats: List[Heat] = field(default_factory=list)
    matches: List[Match] = field(default_factory=list)

    @property
    def units(self) -> list:
        return self.heats if self.mode != CompetitionMode.VERSUS else self.matches


def parse_mode(value) -> CompetitionMode:
    """Resolve a configured mode name; unknown names are a configuration error."""
    if isinstance(value, CompetitionMode):
        return value
    try:
        return CompetitionMode(str(value).upper())
    except ValueError:
        raise ConfigurationError(
            f"Unknown competition_mode '{value}'",
            {"allowed": [m.value for m in CompetitionMode]},
        )


def wod_minutes(mode: CompetitionMode, wod: Wod, config: ScheduleConfig) -> int:
    """Time cap of one heat/match; falls back to the mode default."""
    if wod.time_cap_minutes:
        return wod.time_cap_minutes
    if mode == CompetitionMode.VERSUS:
        return config.match_slot_minutes
    return config.default_wod_minutes


def build_heats(athlete_ids: List[str], athletes_per_heat: int, heat_prefix: str = "heat") -> List[Heat]:
    """
    Fixed-size heats in roster order; the last heat may be smaller.

    10 athletes, 4 per heat -> [4, 4, 2], ids "<prefix>-h1" .. "<prefix>-h3".
    """
    heats = []
    for start in range(0, len(athlete_ids), athletes_per_heat):
        heats.append(
            Heat(
                heat_id=f"{heat_prefix}-h{start // athletes_per_heat + 1}",
                athletes=list(athlete_ids[start : start + athletes_per_heat]),
            )
        )
    return heats


def pair_versus(athlete_ids: List[str], category_id: str, filter_number: int) -> List[Match]:
    """
    1v1 pairings in insertion order (1v2, 3v4, ...).

    An odd field gives exactly one bye, to the last unpaired athlete.
    """
    matches = []
    for index in range(0, len(athlete_ids), 2):
        athlete2 = athlete_ids[index + 1] if index + 1 < len(athlete_ids) else None
        matches.append(
            Match(
                match_id=f"{category_id}-f{filter_number}-m{index // 2 + 1}",
                athlete1=athlete_ids[index],
                athlete2=athlete2,
                filter_number=filter_number,
            )
        )
    return matches


def build_simultaneous(athlete_ids: List[str], heat_prefix: str = "heat") -> List[Heat]:
    """Every athlete of the category in one heat."""
    return [Heat(heat_id=f"{heat_prefix}-h1", athletes=list(athlete_ids))]


def _heat_prefix(category_id: str, wod: Wod, filter_number: int) -> str:
    # heat ids are unique across the whole schedule
    return f"{category_id}-{wod.wod_id}-r{filter_number}"


def _heats_partition(athlete_ids, category_id, wod, config, filter_number) -> ModePartition:
    return ModePartition(
        mode=CompetitionMode.HEATS,
        unit_minutes=wod_minutes(CompetitionMode.HEATS, wod, config),
        concurrency=config.concurrent_heats,
        heats=build_heats(athlete_ids, config.athletes_per_heat, _heat_prefix(category_id, wod, filter_number)),
    )


def _versus_partition(athlete_ids, category_id, wod, config, filter_number) -> ModePartition:
    return ModePartition(
        mode=CompetitionMode.VERSUS,
        unit_minutes=wod_minutes(CompetitionMode.VERSUS, wod, config),
        concurrency=config.concurrent_matches,
        matches=pair_versus(athlete_ids, category_id, filter_number),
    )


def _simultaneous_partition(athlete_ids, category_id, wod, config, filter_number) -> ModePartition:
    return ModePartition(
        mode=CompetitionMode.SIMULTANEOUS,
        unit_minutes=wod_minutes(CompetitionMode.SIMULTANEOUS, wod, config),
        concurrency=1,
        heats=build_simultaneous(athlete_ids, _heat_prefix(category_id, wod, filter_number)),
    )


_STRATEGIES: Dict[CompetitionMode, Callable[..., ModePartition]] = {
    CompetitionMode.HEATS: _heats_partition,
    CompetitionMode.VERSUS: _versus_partition,
    CompetitionMode.SIMULTANEOUS: _simultaneous_partition,
}


def partition(
    mode: CompetitionMode,
    athlete_ids: List[str],
    category_id: str,
    wod: Wod,
    config: ScheduleConfig,
    filter_number: int = 1,
) -> ModePartition:
    """Split a category's athletes into heats or matches for one round."""
    return _STRATEGIES[mode](athlete_ids, category_id, wod, config, filter_number)
