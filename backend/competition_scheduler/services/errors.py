"""
Scheduling errors.

Every rejection raised by the services layer is a SchedulingError carrying a
machine-readable code. Routes translate them to HTTP responses with a
"CODE: message" detail; services never return partial state alongside them.
"""

from typing import Any, Dict, Optional


class SchedulingError(ValueError):
    """Base error for schedule generation and bracket progression."""

    code = "SCHEDULING_ERROR"

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class ConfigurationError(SchedulingError):
    """Invalid generation config (unknown mode, missing WOD mapping, bad round count)."""

    code = "CONFIGURATION_ERROR"


class IncompleteRoundSubmission(SchedulingError):
    """A round submission does not cover every match of the round."""

    code = "INCOMPLETE_ROUND_SUBMISSION"


class ImmutableRoundConflict(SchedulingError):
    """A round that already advanced was resubmitted with different results."""

    code = "IMMUTABLE_ROUND_CONFLICT"


class RoundNotPendingError(SchedulingError):
    code = "ROUND_NOT_PENDING"


class InvalidMatchResult(SchedulingError):
    code = "INVALID_MATCH_RESULT"


class BracketNotFoundError(SchedulingError):
    code = "BRACKET_NOT_FOUND"


class SchedulePublishedError(SchedulingError):
    """Published schedules cannot be regenerated until unpublished."""

    code = "SCHEDULE_PUBLISHED"


class StaleScheduleError(SchedulingError):
    """The stored schedule changed after it was loaded; the write was rejected."""

    code = "STALE_SCHEDULE"
