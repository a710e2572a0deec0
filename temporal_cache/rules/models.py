import logging
from typing import Any

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

SCOPING_STRATEGIES = ("global", "per-page", "per-content")
TIMING_STRATEGIES = ("dynamic", "scheduler", "hybrid")
HYBRID_ROUTES = ("dynamic", "scheduler")

MIN_SCHEDULER_INTERVAL = 60
DEFAULT_MAX_LIFETIME = 86400


def _normalize_choice(setting: str, value: Any, allowed: tuple[str, ...], default: str) -> str:
    # Unknown strategy names fall back to the documented default
    if value is None or value == "":
        return default
    if isinstance(value, str) and value.strip().lower() in allowed:
        return value.strip().lower()
    logger.warning("Invalid value for %s: %r (falling back to %r)", setting, value, default)
    return default


class ScopingRules(BaseModel):
    strategy: str = "global"
    use_refindex: bool = True

    @field_validator("strategy", mode="before")
    @classmethod
    def _strategy(cls, v: Any) -> str:
        return _normalize_choice("scoping.strategy", v, SCOPING_STRATEGIES, "global")


class HybridRules(BaseModel):
    pages: str = "dynamic"
    content: str = "scheduler"

    @field_validator("pages", "content", mode="before")
    @classmethod
    def _route(cls, v: Any) -> str:
        return _normalize_choice("timing.hybrid", v, HYBRID_ROUTES, "dynamic")

    def as_routes(self) -> dict[str, str]:
        return {"pages": self.pages, "content": self.content}


class TimingRules(BaseModel):
    strategy: str = "dynamic"
    scheduler_interval: int = MIN_SCHEDULER_INTERVAL
    hybrid: HybridRules = Field(default_factory=HybridRules)

    @field_validator("strategy", mode="before")
    @classmethod
    def _strategy(cls, v: Any) -> str:
        return _normalize_choice("timing.strategy", v, TIMING_STRATEGIES, "dynamic")

    @field_validator("scheduler_interval", mode="after")
    @classmethod
    def _interval_floor(cls, v: int) -> int:
        return max(MIN_SCHEDULER_INTERVAL, v)


class HarmonizationRules(BaseModel):
    enabled: bool = False
    slots: list[str] = Field(default_factory=lambda: ["00:00", "06:00", "12:00", "18:00"])
    tolerance: int = 3600
    auto_round: bool = False

    @field_validator("slots", mode="before")
    @classmethod
    def _split_slots(cls, v: Any) -> Any:
        # "00:00,06:00" and ["00:00", "06:00"] are both accepted
        if isinstance(v, str):
            return [s.strip() for s in v.split(",") if s.strip()]
        return v


class AdvancedRules(BaseModel):
    default_max_lifetime: int = DEFAULT_MAX_LIFETIME
    debug_logging: bool = False
    language_fallback: bool = True


class TableRules(BaseModel):
    name: str
    fields: list[str] = Field(default_factory=list)


class TemporalCacheRules(BaseModel):
    scoping: ScopingRules = Field(default_factory=ScopingRules)
    timing: TimingRules = Field(default_factory=TimingRules)
    harmonization: HarmonizationRules = Field(default_factory=HarmonizationRules)
    advanced: AdvancedRules = Field(default_factory=AdvancedRules)
    tables: list[TableRules] = Field(default_factory=list)

    # Convenience accessors

    @property
    def is_debug_logging_enabled(self) -> bool:
        return self.advanced.debug_logging

    @property
    def default_max_lifetime(self) -> int:
        return self.advanced.default_max_lifetime
