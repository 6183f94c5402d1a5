"""
Chore Rotation — Scorer.

Suitability of one person for one area, higher is better. Factors are not
normalized; the weights assume their usual magnitudes, so any change to the
formula changes who gets picked.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from chore_rotation.core.areas import Area
    from chore_rotation.core.metrics import UserMetrics

NEVER_DONE_DAYS = 365
FAMILIARITY_BASE = 10
RELIABILITY_FACTOR = 3

RECENCY_WEIGHT = 0.2
FAMILIARITY_WEIGHT = 0.2
WORKLOAD_WEIGHT = 0.3
RELIABILITY_WEIGHT = 0.2
HISTORY_WEIGHT = 0.1


def max_historical_tasks(metrics: dict[str, UserMetrics]) -> int:
    """Largest lifetime task count in the map, or 1 so it can divide."""
    return max((m.total_historical_tasks for m in metrics.values()), default=0) or 1


def days_since(last: datetime | None, now: datetime) -> int:
    """Whole days between ``last`` and ``now``; NEVER_DONE_DAYS if never."""
    if last is None:
        return NEVER_DONE_DAYS
    return (now - last).days


def score(
    area: Area,
    metrics: UserMetrics,
    target_workload: float,
    max_tasks: int,
    now: datetime,
) -> float:
    """Weighted sum of recency, familiarity, workload, reliability and history."""
    recency = days_since(metrics.last_assigned_areas.get(area.name), now)
    familiarity = FAMILIARITY_BASE - metrics.area_assignment_counts.get(area.name, 0)
    workload_gap = target_workload - metrics.current_workload
    reliability = metrics.completion_rate * RELIABILITY_FACTOR
    history_share = metrics.total_historical_tasks / max_tasks

    return (
        recency * RECENCY_WEIGHT
        + familiarity * FAMILIARITY_WEIGHT
        + workload_gap * WORKLOAD_WEIGHT
        + reliability * RELIABILITY_WEIGHT
        + (1 - history_share) * HISTORY_WEIGHT
    )
