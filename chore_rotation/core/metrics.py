"""
Chore Rotation — Metrics Builder.

Reduces task history into per-person performance and fairness figures.
Only people available this cycle get an entry: nobody else can be scored.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING

from chore_rotation.data.models import VerificationStatus

if TYPE_CHECKING:
    from chore_rotation.data.models import Person, Task


@dataclass
class UserMetrics:
    """Derived figures for one person, rebuilt for every planning run."""

    total_historical_tasks: int = 0
    completed_tasks: int = 0
    incomplete_or_rejected_tasks: int = 0
    completion_rate: float = 1.0
    last_assigned_areas: dict[str, datetime] = field(default_factory=dict)
    area_assignment_counts: dict[str, int] = field(default_factory=dict)
    # Planning-only accumulators
    current_workload: float = 0
    tasks_assigned: int = 0


def _credit(metrics: UserMetrics, was_completed: bool, was_failed: bool) -> None:
    metrics.total_historical_tasks += 1
    if was_completed:
        metrics.completed_tasks += 1
    elif was_failed:
        metrics.incomplete_or_rejected_tasks += 1


def build_metrics(history: list[Task], available_people: list[Person]) -> dict[str, UserMetrics]:
    """Build the metrics map keyed by person id.

    A task counts as completed only when it was both marked done and approved;
    it counts against the person when rejected or never marked done. Pending
    or in-progress verification counts neither way.

    The temporary responsible gets completion credit but not area statistics:
    those belong to whoever the area was assigned to.
    """
    metrics: dict[str, UserMetrics] = {p.id: UserMetrics() for p in available_people}

    for task in history:
        was_completed = task.completed and task.verification_status is VerificationStatus.APPROVED
        was_failed = (
            task.verification_status is VerificationStatus.REJECTED or not task.completed
        )

        for person_id in task.responsibles:
            m = metrics.get(person_id)
            if m is None:
                continue
            _credit(m, was_completed, was_failed)

            last = m.last_assigned_areas.get(task.area)
            if last is None or task.end_date > last:
                m.last_assigned_areas[task.area] = task.end_date
            m.area_assignment_counts[task.area] = m.area_assignment_counts.get(task.area, 0) + 1

        if task.temporary_responsible:
            m = metrics.get(task.temporary_responsible)
            if m is not None:
                _credit(m, was_completed, was_failed)

    for m in metrics.values():
        evaluable = m.completed_tasks + m.incomplete_or_rejected_tasks
        if evaluable > 0:
            m.completion_rate = m.completed_tasks / evaluable

    return metrics
