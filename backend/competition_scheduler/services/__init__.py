"""
Services Layer

Pure business logic services that:
- Accept domain inputs (roster, config, schedule, match results)
- Return domain outputs (Schedule, RoundOutcome, standings)
- Do NOT depend on HTTP request/response objects or the database
- Do NOT mutate their inputs; progression works on a copy of the schedule
"""

from competition_scheduler.services.schedule_assembler import generate, regenerate
from competition_scheduler.services.standings_calculator import compute_standings
from competition_scheduler.services.tournament_progression import (
    RoundOutcome,
    submit_heat_ranking,
    submit_round,
)

__all__ = [
    "RoundOutcome",
    "compute_standings",
    "generate",
    "regenerate",
    "submit_heat_ranking",
    "submit_round",
]
