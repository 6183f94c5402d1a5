"""Task store port — abstract interface for task persistence.

Core services depend on this protocol, never on a specific database.
Writes are atomic: ``save`` is a compare-and-swap on one or two tasks and
``replace_all`` swaps the whole active cycle in one step.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from chore_rotation.data.models import Task


class TaskStore(Protocol):
    """Abstract task persistence used by the rotation service."""

    def list_history(self) -> list[Task]: ...

    def list_active(self) -> list[Task]: ...

    def get_task(self, task_id: str) -> Task | None: ...

    def count_pending_swap_requests(self, person_id: str) -> int: ...

    def replace_all(self, tasks: list[Task], cycle_id: str) -> list[Task]: ...

    def save(self, *tasks: Task) -> list[Task]: ...

    def list_archivable(self, ended_before: datetime) -> list[Task]: ...

    def mark_archived(self, task_ids: list[str]) -> int: ...
