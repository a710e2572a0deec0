"""
HarmonizationService - snap transition times to a few daily slots.

Fewer distinct transition instants means fewer cache invalidations. Slots
are UTC times of day ("HH:MM"); a timestamp within `tolerance` seconds of
its nearest slot is moved onto the slot.

Key behaviors:
- Disabled harmonization leaves timestamps untouched
- Invalid slot strings are skipped
- Impact analysis reports how many distinct instants remain
- Change plans list stored times that would move, without writing them
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TypedDict

from temporal_cache.core.entities import TemporalContent
from temporal_cache.rules.models import HarmonizationRules

SECONDS_PER_DAY = 86400

_SLOT_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


class HarmonizationImpact(TypedDict):
    original: int
    harmonized: int
    reduction: float


@dataclass(frozen=True)
class HarmonizationChange:
    """One stored time that harmonization would move onto a slot."""

    table_name: str
    uid: int
    field: str
    title: str
    old: int
    new: int

    @property
    def shift(self) -> int:
        return self.new - self.old


def parse_time_slot(slot: str) -> int | None:
    """'HH:MM' -> seconds since midnight, or None if invalid."""
    match = _SLOT_RE.match(slot.strip())
    if not match:
        return None
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        return None
    return hours * 3600 + minutes * 60


def _day_start(timestamp: int) -> int:
    return timestamp - (timestamp % SECONDS_PER_DAY)


def _time_of_day(timestamp: int) -> int:
    return timestamp % SECONDS_PER_DAY


class HarmonizationService:
    def __init__(self, rules: HarmonizationRules) -> None:
        self._rules = rules
        self._slots = sorted(
            s for s in (parse_time_slot(raw) for raw in rules.slots) if s is not None
        )

    @property
    def slots(self) -> list[int]:
        return list(self._slots)

    def harmonize_timestamp(self, timestamp: int) -> int:
        if not self._rules.enabled or not self._slots:
            return timestamp

        time_of_day = _time_of_day(timestamp)
        nearest = self._find_nearest_slot(time_of_day)
        if abs(time_of_day - nearest) > self._rules.tolerance:
            return timestamp

        return timestamp + (nearest - time_of_day)

    def _find_nearest_slot(self, time_of_day: int) -> int:
        return min(self._slots, key=lambda slot: abs(time_of_day - slot))

    def get_slots_in_range(self, start_ts: int, end_ts: int) -> list[int]:
        """Every slot instant in [start_ts, end_ts], ascending."""
        if not self._slots:
            return []

        result: list[int] = []
        day = _day_start(start_ts)
        while day <= end_ts:
            for slot in self._slots:
                slot_ts = day + slot
                if start_ts <= slot_ts <= end_ts:
                    result.append(slot_ts)
            day += SECONDS_PER_DAY
        return result

    def get_next_slot(self, timestamp: int) -> int | None:
        if not self._slots:
            return None

        time_of_day = _time_of_day(timestamp)
        for slot in self._slots:
            if slot > time_of_day:
                return _day_start(timestamp) + slot
        return _day_start(timestamp) + SECONDS_PER_DAY + self._slots[0]

    def get_previous_slot(self, timestamp: int) -> int | None:
        if not self._slots:
            return None

        time_of_day = _time_of_day(timestamp)
        for slot in reversed(self._slots):
            if slot < time_of_day:
                return _day_start(timestamp) + slot
        return _day_start(timestamp) - SECONDS_PER_DAY + self._slots[-1]

    def is_on_slot_boundary(self, timestamp: int) -> bool:
        return _time_of_day(timestamp) in self._slots

    @staticmethod
    def format_slot(slot_seconds: int) -> str:
        return f"{slot_seconds // 3600:02d}:{(slot_seconds % 3600) // 60:02d}"

    def get_formatted_slots(self) -> list[str]:
        return [self.format_slot(slot) for slot in self._slots]

    def calculate_harmonization_impact(self, timestamps: list[int]) -> HarmonizationImpact:
        original = len(timestamps)
        if original == 0:
            return {"original": 0, "harmonized": 0, "reduction": 0.0}

        harmonized = len({self.harmonize_timestamp(ts) for ts in timestamps})
        reduction = (original - harmonized) / original * 100
        return {
            "original": original,
            "harmonized": harmonized,
            "reduction": round(reduction, 1),
        }

    def plan_changes(self, records: Iterable[TemporalContent]) -> list[HarmonizationChange]:
        changes: list[HarmonizationChange] = []
        for record in records:
            for field in ("starttime", "endtime"):
                old = getattr(record, field)
                if old is None:
                    continue
                new = self.harmonize_timestamp(old)
                if new != old:
                    changes.append(
                        HarmonizationChange(
                            record.table_name, record.uid, field, record.title, old, new
                        )
                    )
        return changes

    @staticmethod
    def describe(timestamp: int) -> str:
        return datetime.fromtimestamp(timestamp, UTC).strftime("%Y-%m-%d %H:%M")

