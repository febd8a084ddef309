from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from sqlalchemy import JSON
from sqlmodel import Column, Field, Relationship, SQLModel

from competition_scheduler.services.schedule_types import Schedule

if TYPE_CHECKING:
    from competition_scheduler.models.match_result_record import MatchResultRecord


class ScheduleRecord(SQLModel, table=True):
    """One generated schedule; the full aggregate lives in `payload`."""

    __tablename__ = "schedulerecord"

    id: Optional[int] = Field(default=None, primary_key=True)
    schedule_id: str = Field(index=True, unique=True, max_length=64)
    event_id: str = Field(index=True)
    competition_mode: str
    published: bool = Field(default=False)
    version: int = Field(default=1)  # bumped on every payload write
    published_at: Optional[datetime] = Field(default=None)
    generated_at: datetime
    payload: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # Relationships
    results: List["MatchResultRecord"] = Relationship(back_populates="schedule")

    @classmethod
    def from_schedule(cls, schedule: Schedule) -> "ScheduleRecord":
        record = cls(
            schedule_id=schedule.schedule_id,
            event_id=schedule.event_id,
            competition_mode=schedule.config.competition_mode,
            generated_at=schedule.generated_at,
            published=schedule.published,
        )
        record.apply(schedule)
        return record

    def apply(self, schedule: Schedule) -> None:
        """
        Overwrite the stored aggregate with `schedule`.

        The published flag is left alone; only publish and unpublish change it.
        """
        self.competition_mode = schedule.config.competition_mode
        self.generated_at = schedule.generated_at
        self.payload = schedule.model_dump(mode="json")
        self.updated_at = datetime.now(timezone.utc)

    def to_schedule(self) -> Schedule:
        schedule = Schedule.model_validate(self.payload)
        schedule.published = self.published
        return schedule
