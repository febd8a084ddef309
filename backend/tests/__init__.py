# Tests package
# Import all models to ensure they're registered with SQLModel metadata
from competition_scheduler.models.match_result_record import MatchResultRecord  # noqa: F401
from competition_scheduler.models.schedule_record import ScheduleRecord  # noqa: F401
