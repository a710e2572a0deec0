# temporal-cache: Ports (Protocol Interfaces)
# Abstract interfaces for adapters; no implementations here

from temporal_cache.core.ports.cache import CacheTagFlushPort
from temporal_cache.core.ports.db import (
    SchemaInspectorPort,
    TemporalContentRepoPort,
    TemporalStatistics,
    WatermarkStorePort,
)
from temporal_cache.core.ports.refindex import ReferenceIndexPort
from temporal_cache.core.ports.time import ClockPort

__all__ = [
    "CacheTagFlushPort",
    "ClockPort",
    "ReferenceIndexPort",
    "SchemaInspectorPort",
    "TemporalContentRepoPort",
    "TemporalStatistics",
    "WatermarkStorePort",
]
