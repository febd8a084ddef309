"""
Schedule domain types.

Roster inputs, generation config and the produced Schedule aggregate. These
pydantic models are also the wire format: routes return them as-is and the
schedule store persists their JSON dump.
"""

from datetime import date, datetime, time
from enum import Enum
from typing import Dict, Iterator, List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator, model_validator


class CompetitionMode(str, Enum):
    HEATS = "HEATS"
    VERSUS = "VERSUS"
    SIMULTANEOUS = "SIMULTANEOUS"


# ============================================================================
# Roster (read-only inputs)
# ============================================================================


class Athlete(BaseModel):
    athlete_id: str
    first_name: str
    last_name: str
    alias: Optional[str] = None
    category_id: str


class Category(BaseModel):
    category_id: str
    name: str
    max_participants: Optional[int] = None


class Wod(BaseModel):
    wod_id: str
    name: str
    movements: List[str] = Field(default_factory=list)
    time_cap_minutes: Optional[int] = None


class EventDay(BaseModel):
    day_id: str
    date: date
    start_time: Optional[time] = None


class Roster(BaseModel):
    athletes: List[Athlete] = Field(default_factory=list)
    categories: List[Category] = Field(default_factory=list)
    wods: List[Wod] = Field(default_factory=list)
    days: List[EventDay] = Field(default_factory=list)

    def athletes_in(self, category_id: str) -> List[Athlete]:
        """Category athletes in registration order."""
        return [a for a in self.athletes if a.category_id == category_id]

    def wod(self, wod_id: str) -> Optional[Wod]:
        return next((w for w in self.wods if w.wod_id == wod_id), None)


# ============================================================================
# Config
# ============================================================================


class EliminationRule(BaseModel):
    filter: int
    eliminate: int = 0
    wildcards: int = 0

    @field_validator("eliminate", "wildcards")
    @classmethod
    def validate_non_negative(cls, v):
        if v < 0:
            raise ValueError("eliminate and wildcards must be >= 0")
        return v


class ScheduleConfig(BaseModel):
    competition_mode: str = CompetitionMode.HEATS.value
    start_time: time = time(8, 0)
    timezone: str = "UTC"
    max_day_hours: float = 10
    lunch_break_hours: float = 1
    transition_time: int = 5
    setup_time: int = 10

    # HEATS
    athletes_per_heat: int = 8
    concurrent_heats: int = 1
    athletes_eliminated_per_filter: int = 0

    # VERSUS
    category_heats: Dict[str, int] = Field(default_factory=dict)
    category_elimination_rules: Dict[str, List[EliminationRule]] = Field(default_factory=dict)
    heat_wod_mapping: Dict[str, Dict[int, str]] = Field(default_factory=dict)
    concurrent_matches: int = 1

    # Durations used when a WOD carries no time cap
    default_wod_minutes: int = 20
    match_slot_minutes: int = 15

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v):
        if not v or not v.strip():
            raise ValueError("timezone is required")
        try:
            ZoneInfo(v.strip())
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"unknown timezone '{v}'")
        return v.strip()

    @field_validator(
        "athletes_per_heat",
        "concurrent_heats",
        "concurrent_matches",
        "default_wod_minutes",
        "match_slot_minutes",
    )
    @classmethod
    def validate_positive(cls, v):
        if v < 1:
            raise ValueError("must be >= 1")
        return v

    @field_validator("transition_time", "setup_time", "athletes_eliminated_per_filter")
    @classmethod
    def validate_non_negative(cls, v):
        if v < 0:
            raise ValueError("must be >= 0")
        return v

    @model_validator(mode="after")
    def validate_day_window(self):
        if self.lunch_break_hours < 0:
            raise ValueError("lunch_break_hours must be >= 0")
        if self.max_day_hours <= self.lunch_break_hours:
            raise ValueError("max_day_hours must be greater than lunch_break_hours")
        return self

    @property
    def usable_window_minutes(self) -> int:
        return int(round((self.max_day_hours - self.lunch_break_hours) * 60))

    @property
    def zone(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    def elimination_rule(self, category_id: str, filter_number: int) -> Optional[EliminationRule]:
        """Configured rule for a round, matched on its `filter` number."""
        rules = self.category_elimination_rules.get(category_id) or []
        for rule in rules:
            if rule.filter == filter_number:
                return rule
        return None

    def round_wod_id(self, category_id: str, filter_number: int) -> Optional[str]:
        return (self.heat_wod_mapping.get(category_id) or {}).get(filter_number)


# ============================================================================
# Schedule aggregate
# ============================================================================


class Heat(BaseModel):
    heat_id: str
    athletes: List[str]


class Match(BaseModel):
    match_id: str
    athlete1: str
    athlete2: Optional[str] = None  # None means bye
    filter_number: int

    @property
    def is_bye(self) -> bool:
        return self.athlete2 is None


class Session(BaseModel):
    session_id: str
    day_id: Optional[str] = None
    category_id: str
    wod_id: str
    competition_mode: CompetitionMode
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    duration: int
    heat_number: Optional[int] = None  # round (filter) number within the category
    number_of_heats: Optional[int] = None  # rounds planned for the category
    heats: Optional[List[Heat]] = None
    matches: Optional[List[Match]] = None
    athlete_count: int = 0

    def athlete_ids(self) -> List[str]:
        ids: List[str] = []
        for heat in self.heats or []:
            ids.extend(heat.athletes)
        for match in self.matches or []:
            ids.append(match.athlete1)
            if match.athlete2 is not None:
                ids.append(match.athlete2)
        return ids


class ScheduleDay(BaseModel):
    day_id: str
    date: date
    start_time: time
    total_duration: int = 0  # minutes from day start to end of last transition
    within_time_limit: bool = True
    sessions: List[Session] = Field(default_factory=list)


class BuildWarning(BaseModel):
    """Non-fatal generation finding (capacity overflow, skipped category)."""

    code: str
    message: str
    category_id: Optional[str] = None


class MatchResult(BaseModel):
    category_id: str
    match_id: Optional[str] = None
    winner_id: str
    loser_id: Optional[str] = None
    filter_number: int


class BracketRound(BaseModel):
    filter_number: int
    wod_id: str
    athletes: List[str]
    expected_advancing: int
    status: str = "pending"  # "pending" | "complete"
    results: List[MatchResult] = Field(default_factory=list)
    ranking: List[str] = Field(default_factory=list)  # HEATS rounds only
    advancing: List[str] = Field(default_factory=list)
    eliminated: List[str] = Field(default_factory=list)
    wildcards: List[str] = Field(default_factory=list)


class Bracket(BaseModel):
    """Append-only list of rounds for one category, indexed by filter_number."""

    category_id: str
    mode: CompetitionMode
    total_rounds: int
    wod_ids: List[str] = Field(default_factory=list)  # planned WOD per round
    planned_field_sizes: List[int] = Field(default_factory=list)
    status: str = "round_1_pending"
    rounds: List[BracketRound] = Field(default_factory=list)

    def round(self, filter_number: int) -> Optional[BracketRound]:
        if 1 <= filter_number <= len(self.rounds):
            return self.rounds[filter_number - 1]
        return None

    def pending_round(self) -> Optional[BracketRound]:
        return next((r for r in self.rounds if r.status == "pending"), None)

    @property
    def is_complete(self) -> bool:
        return self.status == "complete"


class Schedule(BaseModel):
    schedule_id: str
    event_id: str
    config: ScheduleConfig
    generated_at: datetime
    published: bool = False
    days: List[ScheduleDay] = Field(default_factory=list)
    brackets: Dict[str, Bracket] = Field(default_factory=dict)
    warnings: List[BuildWarning] = Field(default_factory=list)

    # Roster snapshot needed to append later rounds
    wods: List[Wod] = Field(default_factory=list)
    event_days: List[EventDay] = Field(default_factory=list)

    def iter_sessions(self) -> Iterator[Session]:
        for day in self.days:
            yield from day.sessions

    def sessions_for(self, category_id: str, filter_number: Optional[int] = None) -> List[Session]:
        """Sessions of a category, optionally narrowed to one round (heat_number)."""
        return [
            s
            for s in self.iter_sessions()
            if s.category_id == category_id and (filter_number is None or s.heat_number == filter_number)
        ]

    def wod(self, wod_id: str) -> Optional[Wod]:
        return next((w for w in self.wods if w.wod_id == wod_id), None)


class AthleteStanding(BaseModel):
    athlete_id: str
    wins: int = 0
    losses: int = 0
    current_round: int = 1
    eliminated: bool = False
    eliminated_in_round: Optional[int] = None
    placement: Optional[int] = None
