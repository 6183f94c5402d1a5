"""
Chore Rotation — Area configuration.

Areas are static: a name, how many people it takes, how hard it is, and how
long one cycle of it lasts. The end-date rule here is the only date contract
shared with stored history, so it must stay exactly as is.
"""

from __future__ import annotations

import calendar
import json
import logging
from datetime import datetime, timedelta
from pathlib import Path

from pydantic import BaseModel, field_validator

from chore_rotation.data.models import Frequency

logger = logging.getLogger(__name__)

# Areas that don't repeat weekly; everything else defaults to weekly
FREQUENCY_OVERRIDES: dict[str, Frequency] = {
    "Cortar el pasto": Frequency.MONTHLY,
    "Terraza y Escaleras": Frequency.BIWEEKLY,
}


class Area(BaseModel):
    """A chore zone.

    JSON example:
    {
        "name": "Cocina y Living",
        "people_needed": 2,
        "difficulty": 4,
        "frequency": "weekly"
    }
    """
    name: str
    people_needed: int = 1
    difficulty: int = 1
    frequency: Frequency | None = None   # None → FREQUENCY_OVERRIDES, then weekly

    @field_validator("people_needed", "difficulty")
    @classmethod
    def must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be a positive integer")
        return v

    @property
    def effective_frequency(self) -> Frequency:
        if self.frequency is not None:
            return self.frequency
        return frequency_for_area(self.name)


DEFAULT_AREAS: list[Area] = [
    Area(name="Baño 1", people_needed=1, difficulty=2),
    Area(name="Baño 2", people_needed=1, difficulty=2),
    Area(name="Baño 3", people_needed=1, difficulty=2),
    Area(name="Terraza y Escaleras", people_needed=2, difficulty=3),
    Area(name="Orden de Cocina", people_needed=1, difficulty=1),
    Area(name="Cocina y Living", people_needed=2, difficulty=4),
    Area(name="Basura", people_needed=1, difficulty=1),
    Area(name="Cortar el pasto", people_needed=2, difficulty=3),
]


def frequency_for_area(area_name: str) -> Frequency:
    """Return the configured frequency of a named area (weekly if unlisted)."""
    return FREQUENCY_OVERRIDES.get(area_name, Frequency.WEEKLY)


def add_one_month(start: datetime) -> datetime:
    """Same day next month; days past the month's end spill into the next one.

    Jan 31 2024 → Mar 2 2024, matching how existing history was written.
    """
    year = start.year + (start.month // 12)
    month = start.month % 12 + 1
    days_in_month = calendar.monthrange(year, month)[1]
    if start.day <= days_in_month:
        return start.replace(year=year, month=month)
    overflow = start.day - days_in_month
    return start.replace(year=year, month=month, day=days_in_month) + timedelta(days=overflow)


def end_date_for(start: datetime, frequency: Frequency) -> datetime:
    """Compute when a cycle that begins at ``start`` ends."""
    if frequency is Frequency.MONTHLY:
        return add_one_month(start)
    if frequency is Frequency.BIWEEKLY:
        return start + timedelta(days=14)
    return start + timedelta(days=7)


def target_workload(areas: list[Area], people_count: int) -> float:
    """Fair share of difficulty per person for one full rotation."""
    total = sum(a.difficulty * a.people_needed for a in areas)
    return total / people_count


def load_areas(path: str | None = None) -> list[Area]:
    """Load the area list from a JSON file, or return the built-in defaults."""
    if not path:
        return list(DEFAULT_AREAS)

    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    areas = [Area.model_validate(item) for item in raw]
    names = [a.name for a in areas]
    if len(set(names)) != len(names):
        raise ValueError(f"Duplicate area names in {path}")

    logger.info("Loaded %d areas from %s", len(areas), path)
    return areas
