"""Roster port — abstract interface for reading the people pool.

The engine only reads people; availability is the one field it may change.
"""

from __future__ import annotations

from typing import Protocol

from chore_rotation.data.models import Person


class RosterPort(Protocol):
    """Abstract roster interface used by the rotation service."""

    def list_people(self, available_only: bool = False) -> list[Person]: ...

    def get_person(self, person_id: str) -> Person | None: ...

    def set_availability(self, person_id: str, available: bool) -> Person: ...
