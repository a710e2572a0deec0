"""
Lifetime component - caps page cache lifetimes at the next transition.
"""

from .component import TemporalCacheLifetime, determine_max_lifetime
from .models import LifetimeDecision, LifetimeRequest

__all__ = [
    "LifetimeDecision",
    "LifetimeRequest",
    "TemporalCacheLifetime",
    "determine_max_lifetime",
]
