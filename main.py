"""
Chore Rotation — Entry Point.

    python main.py rotate            plan a new cycle and print it
    python main.py archive [days]    archive old, fully approved tasks
    python main.py people            list the roster
"""

import asyncio
import logging
import sys

from chore_rotation.config import settings

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

from chore_rotation.core.areas import load_areas
from chore_rotation.core.errors import RotationError
from chore_rotation.core.rotation_service import RotationService
from chore_rotation.data.db import PersonDB, TaskDB

logger = logging.getLogger("chore_rotation")


async def _run(command: str, args: list[str]) -> int:
    people = PersonDB()
    service = RotationService(TaskDB(), people, areas=load_areas(settings.AREAS_PATH))
    names = {p.id: p.name for p in people.list_people()}

    if command == "rotate":
        tasks = await service.rotate()
        for task in tasks:
            print(
                f"{task.area:<22} {', '.join(names.get(r, r) for r in task.responsibles):<30} "
                f"verifiers: {', '.join(names.get(v, v) for v in task.verifiers)} "
                f"(until {task.end_date:%Y-%m-%d})"
            )
        return 0

    if command == "archive":
        days = None
        if args:
            if not args[0].isdigit():
                print(__doc__, file=sys.stderr)
                return 2
            days = int(args[0])
        archived = await service.archive_old_tasks(days)
        print(f"Archived tasks: {archived}")
        return 0

    if command == "people":
        for person in people.list_people():
            flag = "available" if person.available else "away"
            print(f"{person.id}  {person.name:<20} {flag}")
        return 0

    print(__doc__, file=sys.stderr)
    return 2


def main() -> None:
    command = sys.argv[1] if len(sys.argv) > 1 else ""
    try:
        code = asyncio.run(_run(command, sys.argv[2:]))
    except RotationError as exc:
        logger.error("%s: %s", type(exc).__name__, exc)
        code = 1
    sys.exit(code)


if __name__ == "__main__":
    main()
