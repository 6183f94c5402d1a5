"""Tests for chore_rotation.core.areas — area config and end-date rules."""

import json
from datetime import datetime

import pytest
from pydantic import ValidationError

from chore_rotation.core.areas import (
    DEFAULT_AREAS,
    Area,
    add_one_month,
    end_date_for,
    frequency_for_area,
    load_areas,
    target_workload,
)
from chore_rotation.data.models import Frequency


START = datetime(2024, 1, 15)


class TestFrequencyMapping:
    def test_lawn_is_monthly(self):
        area = Area(name="Cortar el pasto")
        assert area.effective_frequency is Frequency.MONTHLY
        assert end_date_for(START, area.effective_frequency) == datetime(2024, 2, 15)

    def test_terrace_is_biweekly(self):
        area = Area(name="Terraza y Escaleras")
        assert area.effective_frequency is Frequency.BIWEEKLY
        assert end_date_for(START, area.effective_frequency) == datetime(2024, 1, 29)

    def test_other_area_is_weekly(self):
        area = Area(name="Baño 2")
        assert area.effective_frequency is Frequency.WEEKLY
        assert end_date_for(START, area.effective_frequency) == datetime(2024, 1, 22)

    def test_unconfigured_area_defaults_to_weekly(self):
        assert frequency_for_area("Garage") is Frequency.WEEKLY

    def test_explicit_frequency_wins(self):
        area = Area(name="Cortar el pasto", frequency="weekly")
        assert area.effective_frequency is Frequency.WEEKLY


class TestAddOneMonth:
    def test_regular_day(self):
        assert add_one_month(datetime(2024, 3, 10, 8, 30)) == datetime(2024, 4, 10, 8, 30)

    def test_december_rolls_year(self):
        assert add_one_month(datetime(2023, 12, 20)) == datetime(2024, 1, 20)

    def test_day_overflow_spills_into_next_month(self):
        assert add_one_month(datetime(2024, 1, 31)) == datetime(2024, 3, 2)

    def test_day_overflow_non_leap_year(self):
        assert add_one_month(datetime(2023, 1, 31)) == datetime(2023, 3, 3)

    def test_thirty_first_into_thirty_day_month(self):
        assert add_one_month(datetime(2024, 5, 31)) == datetime(2024, 7, 1)


class TestTargetWorkload:
    def test_default_household_with_four_people(self):
        assert [a.difficulty for a in DEFAULT_AREAS] == [2, 2, 2, 3, 1, 4, 1, 3]
        assert [a.people_needed for a in DEFAULT_AREAS] == [1, 1, 1, 2, 1, 2, 1, 2]
        assert target_workload(DEFAULT_AREAS, 4) == 7.0

    def test_scales_with_people(self):
        areas = [Area(name="A", difficulty=3, people_needed=2)]
        assert target_workload(areas, 3) == 2.0


class TestAreaValidation:
    def test_rejects_zero_difficulty(self):
        with pytest.raises(ValidationError):
            Area(name="X", difficulty=0)

    def test_rejects_zero_people(self):
        with pytest.raises(ValidationError):
            Area(name="X", people_needed=0)

    def test_rejects_unknown_frequency(self):
        with pytest.raises(ValidationError):
            Area(name="X", frequency="daily")


class TestLoadAreas:
    def test_no_path_returns_defaults(self):
        assert [a.name for a in load_areas("")] == [a.name for a in DEFAULT_AREAS]

    def test_loads_json_file(self, tmp_path):
        path = tmp_path / "areas.json"
        path.write_text(json.dumps([
            {"name": "Garage", "people_needed": 2, "difficulty": 5, "frequency": "monthly"},
            {"name": "Patio"},
        ]), encoding="utf-8")
        areas = load_areas(str(path))
        assert [a.name for a in areas] == ["Garage", "Patio"]
        assert areas[0].effective_frequency is Frequency.MONTHLY
        assert areas[1].people_needed == 1
        assert areas[1].effective_frequency is Frequency.WEEKLY

    def test_duplicate_names_rejected(self, tmp_path):
        path = tmp_path / "areas.json"
        path.write_text(json.dumps([{"name": "A"}, {"name": "A"}]), encoding="utf-8")
        with pytest.raises(ValueError):
            load_areas(str(path))
