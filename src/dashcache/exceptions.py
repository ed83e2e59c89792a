"""Custom exceptions for the dashboard cache pipeline.

Upstream problems are normally carried as ``ProviderFailure`` values rather
than raised; the exceptions here cover the cases that must stop a sub-task
or signal a contract violation.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from dashcache.providers.base import ProviderFailure


class DashcacheError(Exception):
    """Base exception for all dashcache errors."""


class ProviderError(DashcacheError):
    """Raised when a caller chooses to escalate a provider failure."""

    def __init__(self, failure: ProviderFailure) -> None:
        super().__init__(str(failure))
        self.failure = failure


class NoDataError(DashcacheError):
    """Raised when no usable data could be fetched and nothing is cached."""


class UnknownIndicatorError(DashcacheError):
    """Raised when an indicator or domain name is not registered."""


class CacheBackendError(DashcacheError):
    """Raised when the cache backend is misconfigured or not connected."""
