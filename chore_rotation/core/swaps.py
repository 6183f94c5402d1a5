"""
Chore Rotation — Swap negotiation.

A swap request lives on the task someone wants to take over (the requested
task) and names the task they give up in return (the offered task). The
requested task's responsible accepts or rejects it; accepting trades the two
responsible sets. A direct swap skips the negotiation.

Every function takes task snapshots and returns updated copies; the caller
writes them back with a version check.
"""

from __future__ import annotations

import copy
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime

from chore_rotation.core.errors import Conflict, InvalidState, NotFound, PreconditionFailed
from chore_rotation.data.models import SwapRequest, SwapStatus, Task

logger = logging.getLogger(__name__)

MAX_PENDING_REQUESTS = 3


@dataclass
class SwapRequestView:
    """A pending request as shown in someone's swap inbox."""

    request: SwapRequest
    requested_task: Task
    offered_task: Task | None
    is_own_request: bool


def request_swap(
    requested_task: Task,
    offered_task: Task,
    requester_id: str,
    pending_count: int,
    now: datetime,
) -> Task:
    """Record a request to trade ``offered_task`` for ``requested_task``.

    Args:
        pending_count: Pending requests the requester already has, system-wide.

    Returns:
        A copy of the requested task with the new request appended.
    """
    if requested_task.id == offered_task.id:
        raise PreconditionFailed("A task cannot be swapped for itself")

    if not offered_task.is_responsible(requester_id):
        raise PreconditionFailed(
            f"{requester_id} is not responsible for task {offered_task.id}"
        )

    for existing in requested_task.swap_requests:
        if (
            existing.status is SwapStatus.PENDING
            and existing.requester_id == requester_id
            and existing.offered_task_id == offered_task.id
        ):
            raise Conflict("A pending swap request already exists for these tasks")

    if pending_count >= MAX_PENDING_REQUESTS:
        raise Conflict(
            f"{requester_id} already has {pending_count} pending swap requests"
        )

    updated = copy.deepcopy(requested_task)
    request = SwapRequest(
        id=uuid.uuid4().hex,
        requester_id=requester_id,
        offered_task_id=offered_task.id,
        created_at=now,
    )
    updated.swap_requests.append(request)
    logger.info(
        "Swap request %s: %s offers '%s' for '%s'",
        request.id, requester_id, offered_task.area, requested_task.area,
    )
    return updated


def _exchange(task1: Task, task2: Task) -> None:
    task1.responsibles, task2.responsibles = task2.responsibles, task1.responsibles
    task1.temporary_responsible = None
    task2.temporary_responsible = None


def respond_to_swap(
    requested_task: Task,
    offered_task: Task | None,
    request_id: str,
    responder_id: str,
    accept: bool,
) -> list[Task]:
    """Accept or reject a pending request on ``requested_task``.

    Returns:
        ``[requested, offered]`` copies when accepted, ``[requested]`` when
        rejected.
    """
    request = requested_task.find_swap_request(request_id)
    if request is None:
        raise NotFound(f"Swap request {request_id} not found on task {requested_task.id}")

    if request.status is not SwapStatus.PENDING:
        raise InvalidState(f"Swap request {request_id} is already {request.status.value}")

    if not requested_task.is_responsible(responder_id):
        raise PreconditionFailed(
            f"{responder_id} is not responsible for task {requested_task.id}"
        )

    updated = copy.deepcopy(requested_task)
    updated_request = updated.find_swap_request(request_id)

    if not accept:
        updated_request.status = SwapStatus.REJECTED
        logger.info("Swap request %s rejected by %s", request_id, responder_id)
        return [updated]

    if offered_task is None or offered_task.id != request.offered_task_id:
        raise NotFound(f"Offered task {request.offered_task_id} not found")

    # The offered task may have changed hands since the request was made.
    if not offered_task.is_responsible(request.requester_id):
        raise PreconditionFailed(
            f"{request.requester_id} no longer holds task {offered_task.id}"
        )

    offered = copy.deepcopy(offered_task)
    _exchange(updated, offered)
    updated_request.status = SwapStatus.ACCEPTED
    logger.info(
        "Swap request %s accepted: '%s' ↔ '%s'", request_id, updated.area, offered.area,
    )
    return [updated, offered]


def direct_swap(task1: Task, task2: Task, actor_id: str) -> tuple[Task, Task]:
    """Trade the responsibles of two tasks immediately.

    Completed tasks are off limits: their outcome is already being judged.
    """
    if task1.id == task2.id:
        raise PreconditionFailed("A task cannot be swapped for itself")

    if not task1.is_responsible(actor_id) and not task2.is_responsible(actor_id):
        raise PreconditionFailed(f"{actor_id} is not responsible for either task")

    if task1.completed or task2.completed:
        raise PreconditionFailed("Completed tasks cannot be swapped")

    first = copy.deepcopy(task1)
    second = copy.deepcopy(task2)
    _exchange(first, second)
    logger.info("Direct swap by %s: '%s' ↔ '%s'", actor_id, first.area, second.area)
    return first, second


def count_pending_requests(tasks: list[Task], person_id: str) -> int:
    """Count pending requests made by ``person_id`` across ``tasks``."""
    return sum(
        1
        for task in tasks
        for request in task.swap_requests
        if request.status is SwapStatus.PENDING and request.requester_id == person_id
    )


def pending_swaps_for(tasks: list[Task], person_id: str) -> list[SwapRequestView]:
    """List the pending requests a person should see.

    That is requests they made, plus requests on tasks they hold. A request
    where the person is on both sides is hidden.
    """
    by_id = {t.id: t for t in tasks}
    views: list[SwapRequestView] = []
    for task in tasks:
        holds_task = task.is_responsible(person_id)
        for request in task.swap_requests:
            if request.status is not SwapStatus.PENDING:
                continue
            is_requester = request.requester_id == person_id
            if holds_task == is_requester:
                continue
            views.append(SwapRequestView(
                request=request,
                requested_task=task,
                offered_task=by_id.get(request.offered_task_id),
                is_own_request=is_requester,
            ))
    return views
