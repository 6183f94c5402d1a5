"""
Chore Rotation — Centralized configuration.

Loads all settings from .env and validates them.
This module is the foundation for every other module in the project.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

# Load .env from project root (one level up from chore_rotation/config.py)
_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_ENV_PATH)


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # SQLite
    DATABASE_PATH: str = "data/rotation.db"

    # Optional JSON file with the area list; empty → built-in household areas
    AREAS_PATH: str = ""

    # Archival sweep: completed + approved tasks older than this are archived
    ARCHIVE_AFTER_DAYS: int = 30

    LOG_LEVEL: str = "INFO"

    @field_validator("ARCHIVE_AFTER_DAYS", mode="before")
    @classmethod
    def parse_days(cls, v: str | int) -> int:
        days = int(v)
        if days < 0:
            raise ValueError("ARCHIVE_AFTER_DAYS must not be negative")
        return days

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def parse_level(cls, v: str) -> str:
        return (v or "INFO").strip().upper()


def _load_settings() -> Settings:
    """Load settings from environment, validating the areas file if set."""
    areas_path = os.getenv("AREAS_PATH", "")

    if areas_path and not Path(areas_path).is_file():
        print(f"ERROR: AREAS_PATH points to a missing file: {areas_path}", file=sys.stderr)
        sys.exit(1)

    return Settings(
        DATABASE_PATH=os.getenv("DATABASE_PATH", "data/rotation.db"),
        AREAS_PATH=areas_path,
        ARCHIVE_AFTER_DAYS=os.getenv("ARCHIVE_AFTER_DAYS", "30"),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO"),
    )


# Singleton — imported by all other modules as:
#   from chore_rotation.config import settings
settings = _load_settings()
