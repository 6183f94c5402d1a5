"""
Chore Rotation — Assignment Planner.

Plans one full rotation: hardest areas are staffed first, each area goes to
the best-scoring people given the workload handed out so far, and every task
gets up to three verifiers who ideally did not do the work themselves.

Planning is pure. Persisting the result (replacing the previous cycle) is the
caller's job, so a failed plan never leaves a half-written rotation behind.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from chore_rotation.core.areas import end_date_for, target_workload
from chore_rotation.core.errors import InvariantViolation, PreconditionFailed
from chore_rotation.core.metrics import build_metrics
from chore_rotation.core.scorer import max_historical_tasks, score
from chore_rotation.data.models import Task

if TYPE_CHECKING:
    from chore_rotation.core.areas import Area
    from chore_rotation.core.metrics import UserMetrics
    from chore_rotation.data.models import Person

logger = logging.getLogger(__name__)

MIN_PEOPLE = 2
VERIFIERS_PER_TASK = 3


def select_responsibles(
    area: Area,
    people: list[Person],
    metrics: dict[str, UserMetrics],
    target: float,
    now: datetime,
) -> list[str]:
    """Return the ids of the top ``area.people_needed`` scorers for this area.

    Scores use the live workload, so earlier picks in the same rotation push
    people down for later areas. Ties keep roster order.
    """
    max_tasks = max_historical_tasks(metrics)
    scored = [
        (score(area, metrics[p.id], target, max_tasks, now), p.id)
        for p in people
    ]
    scored.sort(key=lambda pair: pair[0], reverse=True)
    return [person_id for _, person_id in scored[: area.people_needed]]


def select_verifiers(
    responsibles: list[str],
    people: list[Person],
    metrics: dict[str, UserMetrics],
) -> list[str]:
    """Pick the most reliable people to check the work, skipping the doers.

    With fewer than three non-responsibles the whole roster is ranked
    instead, so responsibles may end up verifying their own task.
    """
    candidates = [p.id for p in people if p.id not in responsibles]
    if len(candidates) < VERIFIERS_PER_TASK:
        candidates = [p.id for p in people]

    candidates.sort(key=lambda pid: metrics[pid].completion_rate, reverse=True)
    return candidates[:VERIFIERS_PER_TASK]


def plan_rotation(
    history: list[Task],
    available_people: list[Person],
    areas: list[Area],
    now: datetime,
    cycle_id: str | None = None,
) -> list[Task]:
    """Assign every area for the cycle starting at ``now``.

    Args:
        history: All past tasks, most recent first.
        available_people: People available this cycle, in roster order.
        areas: Area configuration, in configuration order.
        now: Start of the new cycle.
        cycle_id: Id stamped on every new task; generated when omitted.

    Returns:
        New tasks, one per area, in the order they were staffed.

    Raises:
        PreconditionFailed: fewer than two people are available.
        InvariantViolation: an area needs more people than are available.
    """
    if len(available_people) < MIN_PEOPLE:
        raise PreconditionFailed(
            f"At least {MIN_PEOPLE} available people are needed to rotate, "
            f"got {len(available_people)}"
        )

    for area in areas:
        if area.people_needed > len(available_people):
            raise InvariantViolation(
                f"Area '{area.name}' needs {area.people_needed} people "
                f"but only {len(available_people)} are available"
            )

    metrics = build_metrics(history, available_people)
    target = target_workload(areas, len(available_people))
    logger.info("Target workload per person: %.2f", target)

    for m in metrics.values():
        m.current_workload = 0
        m.tasks_assigned = 0

    cycle_id = cycle_id or uuid.uuid4().hex
    prioritized = sorted(areas, key=lambda a: a.difficulty, reverse=True)

    tasks: list[Task] = []
    for area in prioritized:
        responsibles = select_responsibles(area, available_people, metrics, target, now)

        for person_id in responsibles:
            m = metrics[person_id]
            m.current_workload += area.difficulty
            m.tasks_assigned += 1
            m.last_assigned_areas[area.name] = now

        verifiers = select_verifiers(responsibles, available_people, metrics)
        frequency = area.effective_frequency

        tasks.append(Task(
            id=uuid.uuid4().hex,
            area=area.name,
            frequency=frequency,
            responsibles=responsibles,
            start_date=now,
            end_date=end_date_for(now, frequency),
            verifiers=verifiers,
            cycle_id=cycle_id,
        ))
        logger.debug(
            "Assigned '%s' (difficulty %d) to %s, verifiers %s",
            area.name, area.difficulty, responsibles, verifiers,
        )

    _log_distribution(available_people, metrics)
    return tasks


def _log_distribution(people: list[Person], metrics: dict[str, UserMetrics]) -> None:
    for person in people:
        m = metrics[person.id]
        logger.info(
            "%s: %d tasks assigned, workload %.2f",
            person.name, m.tasks_assigned, m.current_workload,
        )
