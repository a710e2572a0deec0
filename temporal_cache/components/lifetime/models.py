"""
Lifetime component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass

# --- Input Model ---


@dataclass(frozen=True)
class LifetimeRequest:
    """A page render asking for its cache lifetime."""

    proposed_lifetime: int
    site_ceiling: int | None = None
    workspace_id: int = 0
    language_id: int = 0


# --- Output Model ---


@dataclass(frozen=True)
class LifetimeDecision:
    """Final lifetime handed back to the host."""

    lifetime: int
    computed: int | None = None
    ceiling: int | None = None
    modified: bool = False
    error: str | None = None
