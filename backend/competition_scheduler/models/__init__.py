from competition_scheduler.models.match_result_record import MatchResultRecord
from competition_scheduler.models.schedule_record import ScheduleRecord

__all__ = [
    "ScheduleRecord",
    "MatchResultRecord",
]
