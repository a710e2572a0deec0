"""
HarmonizationService tests.

All slot arithmetic is in UTC; DAY is midnight 2027-01-15 UTC.
"""

from __future__ import annotations

import pytest

from temporal_cache.core.entities import TemporalContent
from temporal_cache.core.services import HarmonizationService
from temporal_cache.core.services.harmonization import SECONDS_PER_DAY, parse_time_slot
from temporal_cache.rules.models import HarmonizationRules

DAY = 1_799_971_200
HOUR = 3600


@pytest.fixture
def service() -> HarmonizationService:
    return HarmonizationService(HarmonizationRules(enabled=True, tolerance=HOUR))


class TestParseTimeSlot:
    def test_valid(self) -> None:
        assert parse_time_slot("00:00") == 0
        assert parse_time_slot("06:30") == 6 * HOUR + 30 * 60
        assert parse_time_slot(" 9:05 ") == 9 * HOUR + 5 * 60

    @pytest.mark.parametrize("raw", ["24:00", "12:60", "noon", "12", ""])
    def test_invalid(self, raw: str) -> None:
        assert parse_time_slot(raw) is None


class TestHarmonizeTimestamp:
    def test_snaps_within_tolerance(self, service: HarmonizationService) -> None:
        assert service.harmonize_timestamp(DAY + 6 * HOUR + 1200) == DAY + 6 * HOUR

    def test_snaps_forward(self, service: HarmonizationService) -> None:
        assert service.harmonize_timestamp(DAY + 5 * HOUR + 3000) == DAY + 6 * HOUR

    def test_outside_tolerance_unchanged(self, service: HarmonizationService) -> None:
        ts = DAY + 3 * HOUR
        assert service.harmonize_timestamp(ts) == ts

    def test_disabled_unchanged(self) -> None:
        service = HarmonizationService(HarmonizationRules(enabled=False))
        ts = DAY + 6 * HOUR + 60
        assert service.harmonize_timestamp(ts) == ts

    def test_invalid_slots_skipped(self) -> None:
        service = HarmonizationService(
            HarmonizationRules(enabled=True, slots=["bogus", "12:00"], tolerance=HOUR)
        )
        assert service.slots == [12 * HOUR]
        assert service.harmonize_timestamp(DAY + 12 * HOUR + 600) == DAY + 12 * HOUR


class TestSlotNavigation:
    def test_slots_in_range(self, service: HarmonizationService) -> None:
        slots = service.get_slots_in_range(DAY + HOUR, DAY + SECONDS_PER_DAY)
        assert slots == [
            DAY + 6 * HOUR,
            DAY + 12 * HOUR,
            DAY + 18 * HOUR,
            DAY + SECONDS_PER_DAY,
        ]

    def test_next_slot_same_day(self, service: HarmonizationService) -> None:
        assert service.get_next_slot(DAY + 7 * HOUR) == DAY + 12 * HOUR

    def test_next_slot_wraps_to_tomorrow(self, service: HarmonizationService) -> None:
        assert service.get_next_slot(DAY + 19 * HOUR) == DAY + SECONDS_PER_DAY

    def test_previous_slot_wraps_to_yesterday(self, service: HarmonizationService) -> None:
        assert service.get_previous_slot(DAY) == DAY - 6 * HOUR

    def test_on_slot_boundary(self, service: HarmonizationService) -> None:
        assert service.is_on_slot_boundary(DAY + 18 * HOUR)
        assert not service.is_on_slot_boundary(DAY + 18 * HOUR + 1)

    def test_no_slots(self) -> None:
        service = HarmonizationService(HarmonizationRules(enabled=True, slots=[]))
        assert service.get_next_slot(DAY) is None
        assert service.get_previous_slot(DAY) is None
        assert service.get_slots_in_range(DAY, DAY + SECONDS_PER_DAY) == []


class TestFormattingAndImpact:
    def test_formatted_slots(self, service: HarmonizationService) -> None:
        assert service.get_formatted_slots() == ["00:00", "06:00", "12:00", "18:00"]

    def test_format_slot(self) -> None:
        assert HarmonizationService.format_slot(9 * HOUR + 5 * 60) == "09:05"

    def test_impact(self, service: HarmonizationService) -> None:
        timestamps = [
            DAY + 6 * HOUR - 600,
            DAY + 6 * HOUR + 600,
            DAY + 6 * HOUR + 1200,
            DAY + 3 * HOUR,
        ]
        impact = service.calculate_harmonization_impact(timestamps)
        assert impact == {"original": 4, "harmonized": 2, "reduction": 50.0}

    def test_impact_empty(self, service: HarmonizationService) -> None:
        assert service.calculate_harmonization_impact([]) == {
            "original": 0,
            "harmonized": 0,
            "reduction": 0.0,
        }

    def test_describe(self) -> None:
        assert HarmonizationService.describe(DAY + 8 * HOUR) == "2027-01-15 08:00"


class TestPlanChanges:
    def test_lists_only_moved_times(self, service: HarmonizationService) -> None:
        record = TemporalContent(
            uid=7,
            table_name="content",
            title="Offer",
            pid=1,
            starttime=DAY + 6 * HOUR + 600,
            endtime=DAY + 12 * HOUR,
        )
        untouched = TemporalContent(
            uid=8, table_name="pages", title="Home", pid=0, starttime=None, endtime=DAY + 9 * HOUR
        )

        changes = service.plan_changes([record, untouched])

        assert len(changes) == 1
        change = changes[0]
        assert (change.table_name, change.uid, change.field) == ("content", 7, "starttime")
        assert change.new == DAY + 6 * HOUR
        assert change.shift == -600

    def test_disabled_plans_nothing(self) -> None:
        service = HarmonizationService(HarmonizationRules(enabled=False))
        record = TemporalContent(
            uid=7, table_name="content", title="", pid=1, starttime=DAY + 600, endtime=None
        )
        assert service.plan_changes([record]) == []
