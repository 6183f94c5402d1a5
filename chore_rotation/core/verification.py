"""
Chore Rotation — Completion and verification.

Once a responsible marks a task done, each of its verifiers casts one vote.
The status is recomputed from the tally after every vote and may flip while
votes are still arriving; only the status after the last vote is final.
Un-marking a task wipes its votes, since they judged a different completion.
"""

from __future__ import annotations

import copy
import logging
import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from chore_rotation.core.errors import Conflict, InvalidState, PreconditionFailed
from chore_rotation.data.models import Task, VerificationStatus, VerificationVote

if TYPE_CHECKING:
    from chore_rotation.data.models import Person

logger = logging.getLogger(__name__)


def tally_status(votes: list[VerificationVote], verifier_count: int) -> VerificationStatus:
    """Status implied by ``votes`` out of ``verifier_count`` verifiers.

    Complete voting: approved only on a strict majority, so a tie rejects.
    Incomplete voting: whichever side leads, or in progress on a tie.
    """
    approvals = sum(1 for v in votes if v.approved)
    rejections = len(votes) - approvals

    if len(votes) >= verifier_count:
        return VerificationStatus.APPROVED if approvals > rejections else VerificationStatus.REJECTED

    if approvals > rejections:
        return VerificationStatus.APPROVED
    if rejections > approvals:
        return VerificationStatus.REJECTED
    return VerificationStatus.IN_PROGRESS


def is_verification_final(task: Task) -> bool:
    """True once every verifier has voted."""
    voted = {v.verifier_id for v in task.verifications}
    return bool(task.verifiers) and all(v in voted for v in task.verifiers)


def cast_vote(
    task: Task,
    verifier_id: str,
    approved: bool,
    comment: str = "",
    now: datetime | None = None,
) -> Task:
    """Record one verifier's vote and return the updated task copy."""
    if not task.completed:
        raise InvalidState(f"Task {task.id} is not marked as completed yet")

    if verifier_id not in task.verifiers:
        raise PreconditionFailed(f"{verifier_id} is not a verifier of task {task.id}")

    if any(v.verifier_id == verifier_id for v in task.verifications):
        raise Conflict(f"{verifier_id} has already verified task {task.id}")

    updated = copy.deepcopy(task)
    updated.verifications.append(VerificationVote(
        id=uuid.uuid4().hex,
        verifier_id=verifier_id,
        approved=approved,
        comment=comment or "",
        created_at=now or datetime.now(),
    ))
    updated.verification_status = tally_status(updated.verifications, len(updated.verifiers))

    logger.info(
        "Vote on '%s' by %s: %s → %s (%d/%d)",
        updated.area, verifier_id, "approve" if approved else "reject",
        updated.verification_status.value,
        len(updated.verifications), len(updated.verifiers),
    )
    return updated


def _can_manage(task: Task, actor: Person) -> bool:
    return actor.is_admin or task.is_responsible(actor.id)


def set_completed(task: Task, actor: Person, completed: bool, now: datetime) -> Task:
    """Mark a task done or not done.

    Either way verification restarts at pending. Un-marking also clears the
    votes and the completion timestamp.
    """
    if not _can_manage(task, actor):
        raise PreconditionFailed(f"{actor.id} may not update task {task.id}")

    if completed and task.completed:
        raise InvalidState(f"Task {task.id} is already completed")

    updated = copy.deepcopy(task)
    updated.completed = completed
    updated.verification_status = VerificationStatus.PENDING
    if completed:
        updated.completed_at = now
    else:
        updated.completed_at = None
        updated.verifications = []

    logger.info(
        "Task '%s' marked %s by %s",
        updated.area, "completed" if completed else "not completed", actor.id,
    )
    return updated


def assign_temporary_responsible(task: Task, person_id: str | None, actor: Person) -> Task:
    """Hand a task over to someone else for this cycle only (None clears it)."""
    if not _can_manage(task, actor):
        raise PreconditionFailed(f"{actor.id} may not reassign task {task.id}")

    if task.completed:
        raise PreconditionFailed(f"Task {task.id} is already completed")

    updated = copy.deepcopy(task)
    updated.temporary_responsible = person_id
    logger.info("Task '%s' temporarily reassigned to %s by %s", updated.area, person_id, actor.id)
    return updated
