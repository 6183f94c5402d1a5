"""
Chore Rotation — Data Models.

Tasks persist in SQLite across rotations: the active cycle is what people work
on, superseded cycles stay behind as the history the planner learns from.
Votes and swap requests are owned by their task and never stored elsewhere.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class Frequency(Enum):
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"


class VerificationStatus(Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    APPROVED = "approved"
    REJECTED = "rejected"


class SwapStatus(Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


@dataclass
class Person:
    """Someone on the roster who can be assigned chores."""

    id: str
    name: str
    available: bool = True            # available for the next cycle
    is_admin: bool = False
    preferences: dict = field(default_factory=dict)  # not used by the planner yet


@dataclass
class VerificationVote:
    """One verifier's verdict on a completed task."""

    id: str
    verifier_id: str
    approved: bool
    created_at: datetime
    comment: str = ""


@dataclass
class SwapRequest:
    """A proposal, stored on the requested task, to trade it for the offered one."""

    id: str
    requester_id: str
    offered_task_id: str
    created_at: datetime
    status: SwapStatus = SwapStatus.PENDING


@dataclass
class Task:
    """One area assigned for one cycle.

    ``temporary_responsible`` supersedes ``responsibles`` for permission
    checks only; metrics still credit the responsibles with the area.
    """

    id: str
    area: str
    frequency: Frequency
    responsibles: list[str]
    start_date: datetime
    end_date: datetime
    verifiers: list[str] = field(default_factory=list)
    temporary_responsible: str | None = None
    completed: bool = False
    completed_at: datetime | None = None
    verification_status: VerificationStatus = VerificationStatus.PENDING
    verifications: list[VerificationVote] = field(default_factory=list)
    swap_requests: list[SwapRequest] = field(default_factory=list)
    cycle_id: str = ""
    version: int = 0                  # bumped by the store on every write
    superseded: bool = False          # a later rotation replaced this cycle
    archived: bool = False

    def is_responsible(self, person_id: str) -> bool:
        """True if the person holds this task directly or temporarily."""
        return person_id in self.responsibles or self.temporary_responsible == person_id

    def find_swap_request(self, request_id: str) -> SwapRequest | None:
        for request in self.swap_requests:
            if request.id == request_id:
                return request
        return None
