"""Error kinds raised by the rotation engine and its stores.

All of them propagate to the caller; nothing in the engine retries.
"""

from __future__ import annotations


class RotationError(Exception):
    """Base class for every engine error."""


class PreconditionFailed(RotationError):
    """Not enough people, acting person lacks permission, or task already done."""


class NotFound(RotationError):
    """A referenced task, swap request or person does not exist."""


class Conflict(RotationError):
    """Duplicate vote or swap request, swap ceiling reached, or stale version."""


class InvalidState(RotationError):
    """The transition is not allowed from the entity's current state."""


class InvariantViolation(RotationError):
    """Planning produced an impossible assignment; the rotation is aborted."""
