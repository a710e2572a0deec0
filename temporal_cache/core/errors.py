"""
Error taxonomy for the temporal cache engine.

Propagation rules:
- ConfigurationError: resolved by falling back to a documented default
- RepositoryError: propagated to the caller of a repository method
- ReferenceIndexError: caught by per-content scoping (parent page fallback)
- DependencyMissingError: surfaces as a failed scheduler run
- InvalidTransitionType: fatal at TransitionEvent construction
"""

from __future__ import annotations


class TemporalCacheError(Exception):
    """Base class for temporal cache errors."""


class ConfigurationError(TemporalCacheError):
    """Raised when a strategy selection is missing or invalid."""

    def __init__(self, setting: str, value: object, fallback: str | None = None) -> None:
        self.setting = setting
        self.value = value
        self.fallback = fallback
        message = f"Invalid value for '{setting}': {value!r}"
        if fallback is not None:
            message += f" (falling back to '{fallback}')"
        super().__init__(message)


class RepositoryError(TemporalCacheError):
    """Raised when the content datastore cannot be queried."""


class ReferenceIndexError(TemporalCacheError):
    """Raised when the reference index lookup fails."""


class DependencyMissingError(TemporalCacheError):
    """Raised when a scheduler task is missing required collaborators."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = missing
        super().__init__(f"Missing required dependencies: {', '.join(missing)}")


class InvalidTransitionType(TemporalCacheError, ValueError):
    """Raised when a TransitionEvent is built with an unknown transition type."""

    def __init__(self, transition_type: str) -> None:
        self.transition_type = transition_type
        super().__init__(
            f'Transition type must be "start", "end", or "unknown", got {transition_type!r}'
        )
