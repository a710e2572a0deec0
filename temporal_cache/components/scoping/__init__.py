"""
Scoping component - which cache tags a transition invalidates.
"""

from ._impl import (
    GLOBAL_TAG,
    GlobalScopingStrategy,
    PerContentScopingStrategy,
    PerPageScopingStrategy,
    page_tag,
)
from .component import ScopingStrategyFactory, create_scoping_strategy
from .ports import ScopingStrategyPort

__all__ = [
    # Strategies
    "GlobalScopingStrategy",
    "PerContentScopingStrategy",
    "PerPageScopingStrategy",
    # Selection
    "ScopingStrategyFactory",
    "create_scoping_strategy",
    # Ports
    "ScopingStrategyPort",
    # Tags
    "GLOBAL_TAG",
    "page_tag",
]
