"""
Chore Rotation — Task and roster databases.

Tasks persist in SQLite across rotations. A rotation never deletes: it marks
the active cycle as superseded and inserts the new one in the same
transaction, so the old cycle stays behind as history. Per-task writes are
compare-and-swap on a version column and only ever touch active rows.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import uuid
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Iterator

from chore_rotation.core.errors import Conflict, NotFound
from chore_rotation.data.models import (
    Frequency,
    Person,
    SwapRequest,
    SwapStatus,
    Task,
    VerificationStatus,
    VerificationVote,
)

logger = logging.getLogger(__name__)


def _dt(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _votes_to_json(votes: list[VerificationVote]) -> str:
    return json.dumps([
        {
            "id": v.id,
            "verifier_id": v.verifier_id,
            "approved": v.approved,
            "comment": v.comment,
            "created_at": v.created_at.isoformat(),
        }
        for v in votes
    ])


def _votes_from_json(raw: str | None) -> list[VerificationVote]:
    return [
        VerificationVote(
            id=item["id"],
            verifier_id=item["verifier_id"],
            approved=bool(item["approved"]),
            comment=item.get("comment") or "",
            created_at=datetime.fromisoformat(item["created_at"]),
        )
        for item in json.loads(raw or "[]")
    ]


def _requests_to_json(requests: list[SwapRequest]) -> str:
    return json.dumps([
        {
            "id": r.id,
            "requester_id": r.requester_id,
            "offered_task_id": r.offered_task_id,
            "status": r.status.value,
            "created_at": r.created_at.isoformat(),
        }
        for r in requests
    ])


def _requests_from_json(raw: str | None) -> list[SwapRequest]:
    return [
        SwapRequest(
            id=item["id"],
            requester_id=item["requester_id"],
            offered_task_id=item["offered_task_id"],
            status=SwapStatus(item["status"]),
            created_at=datetime.fromisoformat(item["created_at"]),
        )
        for item in json.loads(raw or "[]")
    ]


class TaskDB:
    """SQLite-backed storage for rotation tasks."""

    def __init__(self, db_path: str | None = None) -> None:
        if db_path is None:
            from chore_rotation.config import settings
            db_path = settings.DATABASE_PATH

        self._db_path = db_path
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Write transaction that takes the database lock up front."""
        conn = self._connect()
        try:
            conn.execute("BEGIN IMMEDIATE")
            yield conn
            conn.commit()
        except BaseException:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_db(self) -> None:
        """Create the tasks table if it doesn't exist, and migrate schema."""
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS tasks (
                    id                    TEXT    PRIMARY KEY,
                    area                  TEXT    NOT NULL,
                    frequency             TEXT    NOT NULL DEFAULT 'weekly',
                    responsibles          TEXT    NOT NULL,
                    temporary_responsible TEXT,
                    start_date            TEXT    NOT NULL,
                    end_date              TEXT    NOT NULL,
                    verifiers             TEXT    NOT NULL DEFAULT '[]',
                    completed             INTEGER NOT NULL DEFAULT 0,
                    completed_at          TEXT,
                    verification_status   TEXT    NOT NULL DEFAULT 'pending',
                    verifications         TEXT    NOT NULL DEFAULT '[]',
                    swap_requests         TEXT    NOT NULL DEFAULT '[]',
                    cycle_id              TEXT    NOT NULL DEFAULT '',
                    version               INTEGER NOT NULL DEFAULT 1,
                    superseded            INTEGER NOT NULL DEFAULT 0
                )
            """)
            # Migrate existing DBs: add new columns if missing
            existing_cols = {
                row[1] for row in conn.execute("PRAGMA table_info(tasks)").fetchall()
            }
            if "archived" not in existing_cols:
                conn.execute(
                    "ALTER TABLE tasks ADD COLUMN archived INTEGER NOT NULL DEFAULT 0"
                )
        conn.close()
        logger.debug("Tasks table initialized at %s", self._db_path)

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        return Task(
            id=row["id"],
            area=row["area"],
            frequency=Frequency(row["frequency"]),
            responsibles=json.loads(row["responsibles"]),
            temporary_responsible=row["temporary_responsible"],
            start_date=datetime.fromisoformat(row["start_date"]),
            end_date=datetime.fromisoformat(row["end_date"]),
            verifiers=json.loads(row["verifiers"]),
            completed=bool(row["completed"]),
            completed_at=_dt(row["completed_at"]),
            verification_status=VerificationStatus(row["verification_status"]),
            verifications=_votes_from_json(row["verifications"]),
            swap_requests=_requests_from_json(row["swap_requests"]),
            cycle_id=row["cycle_id"],
            version=row["version"],
            superseded=bool(row["superseded"]),
            archived=bool(row["archived"]),
        )

    @staticmethod
    def _mutable_columns(task: Task) -> tuple:
        return (
            json.dumps(task.responsibles),
            task.temporary_responsible,
            json.dumps(task.verifiers),
            int(task.completed),
            task.completed_at.isoformat() if task.completed_at else None,
            task.verification_status.value,
            _votes_to_json(task.verifications),
            _requests_to_json(task.swap_requests),
        )

    def _fetch(self, query: str, params: tuple | list = ()) -> list[Task]:
        conn = self._connect()
        try:
            rows = conn.execute(query, params).fetchall()
        finally:
            conn.close()
        return [self._row_to_task(r) for r in rows]

    def list_history(self) -> list[Task]:
        """Every task ever planned, most recent end date first."""
        return self._fetch("SELECT * FROM tasks ORDER BY end_date DESC, rowid DESC")

    def list_active(self) -> list[Task]:
        """Tasks of the current cycle, in the order they were planned."""
        return self._fetch("SELECT * FROM tasks WHERE superseded = 0 ORDER BY rowid")

    def get_task(self, task_id: str) -> Task | None:
        """Fetch a single task by ID, active or not."""
        tasks = self._fetch("SELECT * FROM tasks WHERE id = ?", (task_id,))
        return tasks[0] if tasks else None

    def count_pending_swap_requests(self, person_id: str) -> int:
        """Pending swap requests made by ``person_id`` on active tasks."""
        return sum(
            1
            for task in self.list_active()
            for request in task.swap_requests
            if request.status is SwapStatus.PENDING and request.requester_id == person_id
        )

    def replace_all(self, tasks: list[Task], cycle_id: str) -> list[Task]:
        """Supersede the active cycle and insert ``tasks`` as the new one."""
        stored = [replace(t, cycle_id=cycle_id, version=1, superseded=False) for t in tasks]
        with self._transaction() as conn:
            cursor = conn.execute(
                "UPDATE tasks SET superseded = 1, version = version + 1 WHERE superseded = 0"
            )
            retired = cursor.rowcount
            conn.executemany(
                """
                INSERT INTO tasks
                    (id, area, frequency, start_date, end_date, cycle_id, version,
                     superseded, archived,
                     responsibles, temporary_responsible, verifiers, completed,
                     completed_at, verification_status, verifications, swap_requests)
                VALUES (?, ?, ?, ?, ?, ?, 1, 0, 0, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        t.id, t.area, t.frequency.value,
                        t.start_date.isoformat(), t.end_date.isoformat(), cycle_id,
                        *self._mutable_columns(t),
                    )
                    for t in stored
                ],
            )
        logger.info(
            "Cycle %s stored: %d tasks inserted, %d superseded",
            cycle_id, len(stored), retired,
        )
        return stored

    def save(self, *tasks: Task) -> list[Task]:
        """Write back tasks read earlier, all or none.

        Raises:
            NotFound: a task does not exist.
            Conflict: a task changed since it was read, or its cycle was
                superseded by a rotation.
        """
        saved: list[Task] = []
        with self._transaction() as conn:
            for task in tasks:
                cursor = conn.execute(
                    """
                    UPDATE tasks SET
                        responsibles = ?, temporary_responsible = ?, verifiers = ?,
                        completed = ?, completed_at = ?, verification_status = ?,
                        verifications = ?, swap_requests = ?,
                        version = version + 1
                    WHERE id = ? AND version = ? AND superseded = 0
                    """,
                    (*self._mutable_columns(task), task.id, task.version),
                )
                if cursor.rowcount == 0:
                    exists = conn.execute(
                        "SELECT 1 FROM tasks WHERE id = ?", (task.id,)
                    ).fetchone()
                    if exists is None:
                        raise NotFound(f"Task {task.id} not found")
                    raise Conflict(f"Task {task.id} was modified or superseded concurrently")
                saved.append(replace(task, version=task.version + 1))
        logger.debug("Saved tasks %s", [t.id for t in saved])
        return saved

    def list_archivable(self, ended_before: datetime) -> list[Task]:
        """Completed, approved, unarchived tasks that ended before the cutoff."""
        return self._fetch(
            """
            SELECT * FROM tasks
            WHERE completed = 1 AND verification_status = 'approved'
              AND archived = 0 AND end_date < ?
            ORDER BY end_date
            """,
            (ended_before.isoformat(),),
        )

    def mark_archived(self, task_ids: list[str]) -> int:
        """Flag tasks as archived; returns how many were changed."""
        if not task_ids:
            return 0
        with self._transaction() as conn:
            cursor = conn.executemany(
                "UPDATE tasks SET archived = 1, version = version + 1 WHERE id = ? AND archived = 0",
                [(task_id,) for task_id in task_ids],
            )
            archived = cursor.rowcount
        logger.info("Archived %d tasks", archived)
        return archived


class PersonDB:
    """SQLite-backed storage for the roster."""

    def __init__(self, db_path: str | None = None) -> None:
        if db_path is None:
            from chore_rotation.config import settings
            db_path = settings.DATABASE_PATH

        self._db_path = db_path
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS people (
                    id          TEXT    PRIMARY KEY,
                    name        TEXT    NOT NULL,
                    available   INTEGER NOT NULL DEFAULT 1,
                    is_admin    INTEGER NOT NULL DEFAULT 0,
                    created_at  TEXT    NOT NULL
                )
            """)
            existing_cols = {
                row[1] for row in conn.execute("PRAGMA table_info(people)").fetchall()
            }
            if "preferences" not in existing_cols:
                conn.execute(
                    "ALTER TABLE people ADD COLUMN preferences TEXT NOT NULL DEFAULT '{}'"
                )
        conn.close()
        logger.debug("People table initialized at %s", self._db_path)

    @staticmethod
    def _row_to_person(row: sqlite3.Row) -> Person:
        return Person(
            id=row["id"],
            name=row["name"],
            available=bool(row["available"]),
            is_admin=bool(row["is_admin"]),
            preferences=json.loads(row["preferences"] or "{}"),
        )

    def add_person(
        self,
        name: str,
        person_id: str | None = None,
        available: bool = True,
        is_admin: bool = False,
    ) -> Person:
        """Register someone on the roster."""
        person_id = person_id or uuid.uuid4().hex
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO people (id, name, available, is_admin, created_at, preferences)
                VALUES (?, ?, ?, ?, ?, '{}')
                """,
                (person_id, name, int(available), int(is_admin), datetime.now().isoformat()),
            )
        conn.close()
        logger.info("Person added: %s '%s'", person_id, name)
        return Person(id=person_id, name=name, available=available, is_admin=is_admin)

    def get_person(self, person_id: str) -> Person | None:
        """Fetch a single person by ID."""
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM people WHERE id = ?", (person_id,)).fetchone()
        conn.close()
        if row is None:
            return None
        return self._row_to_person(row)

    def list_people(self, available_only: bool = False) -> list[Person]:
        """Roster in registration order, optionally only those available."""
        query = "SELECT * FROM people"
        if available_only:
            query += " WHERE available = 1"
        query += " ORDER BY rowid"
        with self._connect() as conn:
            rows = conn.execute(query).fetchall()
        conn.close()
        return [self._row_to_person(r) for r in rows]

    def set_availability(self, person_id: str, available: bool) -> Person:
        """Mark whether someone takes part in the next rotation."""
        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE people SET available = ? WHERE id = ?",
                (int(available), person_id),
            )
        conn.close()
        if cursor.rowcount == 0:
            raise NotFound(f"Person {person_id} not found")
        logger.info("Person %s availability set to %s", person_id, available)
        return self.get_person(person_id)
