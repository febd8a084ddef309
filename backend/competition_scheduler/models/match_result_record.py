from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlmodel import Field, Relationship, SQLModel

from competition_scheduler.services.schedule_types import MatchResult

if TYPE_CHECKING:
    from competition_scheduler.models.schedule_record import ScheduleRecord


class MatchResultRecord(SQLModel, table=True):
    """Append-only match history; insertion order is submission order."""

    __tablename__ = "matchresultrecord"

    id: Optional[int] = Field(default=None, primary_key=True)
    schedule_record_id: int = Field(foreign_key="schedulerecord.id", index=True)
    category_id: str = Field(index=True)
    match_id: Optional[str] = Field(default=None)
    winner_id: str
    loser_id: Optional[str] = Field(default=None)  # None for a bye
    filter_number: int
    submitted_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # Relationships
    schedule: "ScheduleRecord" = Relationship(back_populates="results")

    def to_result(self) -> MatchResult:
        return MatchResult(
            category_id=self.category_id,
            match_id=self.match_id,
            winner_id=self.winner_id,
            loser_id=self.loser_id,
            filter_number=self.filter_number,
        )
