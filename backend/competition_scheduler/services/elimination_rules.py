"""
Elimination Rules: per-round field sizes (Single Source of Truth)

Every component that needs to know how many athletes start or leave a round
imports from here: the VERSUS strategy when planning a bracket, the
progression engine when advancing one, and the HEATS cut between WOD rounds.

Rules:
- Explicit rule for a round: eliminate `rule.eliminate` athletes.
- No rule: default halving, the field shrinks to ceil(remaining / 2).
- Whatever the rule says, at least one athlete always remains.
"""

import math
from typing import List

from competition_scheduler.services.schedule_types import ScheduleConfig


def default_advancing(remaining: int) -> int:
    """Default halving: ceil(remaining / 2) advance (5 → 3, 4 → 2, 1 → 1)."""
    return max(1, math.ceil(remaining / 2))


def eliminate_count(config: ScheduleConfig, category_id: str, filter_number: int, remaining: int) -> int:
    """
    Number of athletes eliminated by round `filter_number` of a VERSUS bracket.

    Clamped to remaining - 1 so an over-eager rule still leaves one athlete.
    """
    if remaining <= 1:
        return 0
    rule = config.elimination_rule(category_id, filter_number)
    if rule is not None:
        requested = rule.eliminate
    else:
        requested = remaining - default_advancing(remaining)
    return min(requested, remaining - 1)


def advancing_count(config: ScheduleConfig, category_id: str, filter_number: int, remaining: int) -> int:
    """Field size of round filter_number + 1: max(1, remaining - eliminate)."""
    return max(1, remaining - eliminate_count(config, category_id, filter_number, remaining))


def plan_field_sizes(config: ScheduleConfig, category_id: str, total_athletes: int, total_rounds: int) -> List[int]:
    """
    Starting field size of each round 1..total_rounds.

    Monotonically non-increasing; sizes[0] is the registered athlete count.
    """
    sizes: List[int] = []
    remaining = total_athletes
    for filter_number in range(1, total_rounds + 1):
        sizes.append(remaining)
        remaining = advancing_count(config, category_id, filter_number, remaining)
    return sizes


def natural_advancing(field_size: int) -> int:
    """Athletes a 1v1 round advances on its own: winners plus the bye, if any."""
    return math.ceil(field_size / 2)


def wildcard_count(field_size: int, target: int) -> int:
    """Losers who must be revived to reach `target` advancing athletes."""
    return max(0, target - natural_advancing(field_size))


def heat_survivor_count(remaining: int, eliminated_per_filter: int) -> int:
    """HEATS cut between WOD rounds, keeping at least one athlete."""
    return max(1, remaining - eliminated_per_filter)
