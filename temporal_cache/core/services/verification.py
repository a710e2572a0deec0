"""
Installation checks behind the `verify` command.

Each check yields CheckResult rows; the run passes when every row is ok.

Checks:
- every monitored table has an index led by starttime and one led by endtime
- every field selected from a monitored table exists in its schema
- strategy names and, when harmonization is enabled, its slots and tolerance
"""

from __future__ import annotations

from dataclasses import dataclass

from temporal_cache.core.ports.db import SchemaInspectorPort
from temporal_cache.core.services.harmonization import SECONDS_PER_DAY, parse_time_slot
from temporal_cache.rules.models import (
    SCOPING_STRATEGIES,
    TIMING_STRATEGIES,
    TemporalCacheRules,
)

INDEXED_FIELDS = ("starttime", "endtime")


@dataclass(frozen=True)
class CheckResult:
    section: str
    subject: str
    value: str
    ok: bool

    @property
    def status(self) -> str:
        return "OK" if self.ok else "FAILED"


def check_indexes(
    inspector: SchemaInspectorPort, tables: dict[str, tuple[str, ...]]
) -> list[CheckResult]:
    results: list[CheckResult] = []
    for table_name in tables:
        indexed = inspector.indexed_columns(table_name)
        for field in INDEXED_FIELDS:
            results.append(CheckResult("indexes", table_name, field, field in indexed))
    return results


def check_schema(
    inspector: SchemaInspectorPort, tables: dict[str, tuple[str, ...]]
) -> list[CheckResult]:
    results: list[CheckResult] = []
    for table_name, fields in tables.items():
        columns = inspector.table_columns(table_name)
        if not columns:
            results.append(CheckResult("schema", table_name, "table missing", False))
            continue
        missing = [field for field in fields if field not in columns]
        value = f"missing {', '.join(missing)}" if missing else f"{len(fields)} fields"
        results.append(CheckResult("schema", table_name, value, not missing))
    return results


def check_configuration(rules: TemporalCacheRules) -> list[CheckResult]:
    scoping = rules.scoping.strategy
    timing = rules.timing.strategy
    results = [
        CheckResult("config", "scoping strategy", scoping, scoping in SCOPING_STRATEGIES),
        CheckResult("config", "timing strategy", timing, timing in TIMING_STRATEGIES),
    ]

    harmonization = rules.harmonization
    results.append(
        CheckResult(
            "config", "harmonization", "enabled" if harmonization.enabled else "disabled", True
        )
    )
    if not harmonization.enabled:
        return results

    if not harmonization.slots:
        results.append(CheckResult("harmonization", "slots", "not configured", False))
    for slot in harmonization.slots:
        results.append(
            CheckResult("harmonization", "slot", slot, parse_time_slot(slot) is not None)
        )

    tolerance = harmonization.tolerance
    results.append(
        CheckResult(
            "harmonization",
            "tolerance",
            f"{tolerance}s",
            0 < tolerance <= SECONDS_PER_DAY,
        )
    )
    results.append(
        CheckResult(
            "harmonization", "auto_round", "on" if harmonization.auto_round else "off", True
        )
    )
    return results


def verify_installation(
    inspector: SchemaInspectorPort,
    tables: dict[str, tuple[str, ...]],
    rules: TemporalCacheRules,
) -> list[CheckResult]:
    """Run every check in report order."""
    return [
        *check_indexes(inspector, tables),
        *check_schema(inspector, tables),
        *check_configuration(rules),
    ]
