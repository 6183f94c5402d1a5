"""Shared test fixtures and configuration.

Sets up environment variables before any chore_rotation imports, and
provides temp-file databases, a roster and task factories.
"""

import os

# Patch env vars BEFORE any chore_rotation imports
os.environ.setdefault("DATABASE_PATH", ":memory:")
os.environ.setdefault("AREAS_PATH", "")
os.environ.setdefault("ARCHIVE_AFTER_DAYS", "30")

import uuid
from datetime import datetime, timedelta

import pytest


NOW = datetime(2024, 1, 15, 10, 0, 0)


def make_task(
    area="Baño 1",
    responsibles=("alice",),
    verifiers=("bob", "carol", "dave"),
    start=NOW,
    **kwargs,
):
    """Build a Task with sensible defaults for tests."""
    from chore_rotation.data.models import Frequency, Task

    return Task(
        id=kwargs.pop("id", uuid.uuid4().hex),
        area=area,
        frequency=kwargs.pop("frequency", Frequency.WEEKLY),
        responsibles=list(responsibles),
        start_date=start,
        end_date=kwargs.pop("end_date", start + timedelta(days=7)),
        verifiers=list(verifiers),
        **kwargs,
    )


def make_people(*names, **flags):
    from chore_rotation.data.models import Person

    return [Person(id=n, name=n.title(), **flags) for n in names]


@pytest.fixture
def people():
    """Four available people in roster order."""
    return make_people("alice", "bob", "carol", "dave")


@pytest.fixture
def tmp_db_path(tmp_path):
    """Return a temporary SQLite DB path."""
    return str(tmp_path / "test_rotation.db")


@pytest.fixture
def task_db(tmp_db_path):
    """Return a TaskDB instance backed by a temp file."""
    from chore_rotation.data.db import TaskDB
    return TaskDB(db_path=tmp_db_path)


@pytest.fixture
def person_db(tmp_db_path):
    """Return a PersonDB with four available people, one of them admin."""
    from chore_rotation.data.db import PersonDB
    db = PersonDB(db_path=tmp_db_path)
    db.add_person("Alice", person_id="alice", is_admin=True)
    db.add_person("Bob", person_id="bob")
    db.add_person("Carol", person_id="carol")
    db.add_person("Dave", person_id="dave")
    return db


@pytest.fixture
def service(task_db, person_db):
    """Return a RotationService over temp databases with a fixed clock."""
    from chore_rotation.core.rotation_service import RotationService
    return RotationService(task_db, person_db, clock=lambda: NOW)
