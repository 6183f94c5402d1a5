"""
Chore Rotation — Rotation Service.

The seam every caller (CLI, bot, web handler, scheduler) goes through. Each
operation reads the tasks it needs, runs the pure transition from the core
modules, and writes the result back with a version check, so two concurrent
actions on the same task cannot both succeed.

Errors from the core and the stores propagate unchanged; retrying is the
caller's decision.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Callable

from chore_rotation.core import swaps, verification
from chore_rotation.core.areas import DEFAULT_AREAS
from chore_rotation.core.errors import NotFound, PreconditionFailed, RotationError
from chore_rotation.core.planner import plan_rotation

if TYPE_CHECKING:
    from chore_rotation.core.areas import Area
    from chore_rotation.core.swaps import SwapRequestView
    from chore_rotation.data.models import Person, Task
    from chore_rotation.ports.roster_port import RosterPort
    from chore_rotation.ports.task_store import TaskStore

logger = logging.getLogger(__name__)


class RotationService:
    """Runs rotations and task transitions against a store and a roster."""

    def __init__(
        self,
        tasks: TaskStore,
        roster: RosterPort,
        areas: list[Area] | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._tasks = tasks
        self._roster = roster
        self._areas = list(areas) if areas is not None else list(DEFAULT_AREAS)
        self._clock = clock
        self._rotation_lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def _active_task(self, task_id: str) -> Task:
        task = self._tasks.get_task(task_id)
        if task is None or task.superseded:
            raise NotFound(f"Task {task_id} not found")
        return task

    def _person(self, person_id: str) -> Person:
        person = self._roster.get_person(person_id)
        if person is None:
            raise NotFound(f"Person {person_id} not found")
        return person

    async def active_tasks(self) -> list[Task]:
        """Tasks of the current cycle."""
        return self._tasks.list_active()

    # ------------------------------------------------------------------
    # Rotation
    # ------------------------------------------------------------------

    async def rotate(self) -> list[Task]:
        """Plan a new cycle for everyone available and replace the current one."""
        async with self._rotation_lock:
            now = self._clock()
            people = self._roster.list_people(available_only=True)
            logger.info("Starting rotation with %d available people", len(people))

            history = self._tasks.list_history()
            cycle_id = uuid.uuid4().hex
            try:
                planned = plan_rotation(history, people, self._areas, now, cycle_id=cycle_id)
            except RotationError as exc:
                logger.warning("Rotation aborted: %s", exc)
                raise

            stored = self._tasks.replace_all(planned, cycle_id)
            logger.info("Rotation %s complete: %d tasks", cycle_id, len(stored))
            return stored

    # ------------------------------------------------------------------
    # Swaps
    # ------------------------------------------------------------------

    async def request_swap(
        self, requested_task_id: str, offered_task_id: str, requester_id: str,
    ) -> Task:
        """Ask the holder of ``requested_task_id`` to trade for ``offered_task_id``."""
        requested = self._active_task(requested_task_id)
        offered = self._active_task(offered_task_id)
        pending = self._tasks.count_pending_swap_requests(requester_id)

        updated = swaps.request_swap(requested, offered, requester_id, pending, self._clock())
        (saved,) = self._tasks.save(updated)
        return saved

    async def respond_to_swap(
        self, task_id: str, request_id: str, responder_id: str, accept: bool,
    ) -> list[Task]:
        """Accept or reject a pending request on ``task_id``."""
        requested = self._active_task(task_id)
        request = requested.find_swap_request(request_id)
        if request is None:
            raise NotFound(f"Swap request {request_id} not found")

        offered = None
        if accept:
            offered = self._active_task(request.offered_task_id)

        updated = swaps.respond_to_swap(requested, offered, request_id, responder_id, accept)
        return self._tasks.save(*updated)

    async def direct_swap(self, task1_id: str, task2_id: str, actor_id: str) -> tuple[Task, Task]:
        """Trade the responsibles of two tasks right away."""
        first, second = swaps.direct_swap(
            self._active_task(task1_id), self._active_task(task2_id), actor_id,
        )
        saved_first, saved_second = self._tasks.save(first, second)
        return saved_first, saved_second

    async def list_swap_requests(self, person_id: str) -> list[SwapRequestView]:
        """Pending requests involving ``person_id``, in either direction."""
        return swaps.pending_swaps_for(self._tasks.list_active(), person_id)

    # ------------------------------------------------------------------
    # Completion and verification
    # ------------------------------------------------------------------

    async def mark_completed(self, task_id: str, actor_id: str, completed: bool) -> Task:
        """Mark a task done (or undo it, which restarts verification)."""
        task = self._active_task(task_id)
        actor = self._person(actor_id)
        updated = verification.set_completed(task, actor, completed, self._clock())
        (saved,) = self._tasks.save(updated)
        return saved

    async def cast_vote(
        self, task_id: str, verifier_id: str, approved: bool, comment: str = "",
    ) -> Task:
        """Record a verifier's vote on a completed task."""
        task = self._active_task(task_id)
        updated = verification.cast_vote(task, verifier_id, approved, comment, self._clock())
        (saved,) = self._tasks.save(updated)
        return saved

    async def change_temporary_responsible(
        self, task_id: str, person_id: str | None, actor_id: str,
    ) -> Task:
        """Hand a task to someone else for the rest of the cycle."""
        task = self._active_task(task_id)
        actor = self._person(actor_id)
        if person_id is not None:
            self._person(person_id)
        updated = verification.assign_temporary_responsible(task, person_id, actor)
        (saved,) = self._tasks.save(updated)
        return saved

    # ------------------------------------------------------------------
    # Roster and housekeeping
    # ------------------------------------------------------------------

    async def set_availability(self, person_id: str, available: bool, actor_id: str) -> Person:
        """People may change their own availability; admins anyone's."""
        actor = self._person(actor_id)
        if not actor.is_admin and actor.id != person_id:
            raise PreconditionFailed(f"{actor_id} may not change availability of {person_id}")
        return self._roster.set_availability(person_id, available)

    async def archive_old_tasks(self, days: int | None = None) -> int:
        """Archive approved tasks whose verification finished and that ended long ago."""
        if days is None:
            from chore_rotation.config import settings
            days = settings.ARCHIVE_AFTER_DAYS

        cutoff = self._clock() - timedelta(days=days)
        candidates = self._tasks.list_archivable(cutoff)
        final = [t.id for t in candidates if verification.is_verification_final(t)]
        logger.info(
            "Archiving tasks ended before %s: %d of %d candidates have final verification",
            cutoff.isoformat(), len(final), len(candidates),
        )
        return self._tasks.mark_archived(final)
