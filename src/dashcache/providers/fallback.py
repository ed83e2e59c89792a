"""First-success fallback over an ordered list of provider fetches."""

from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from dashcache.logging import get_logger
from dashcache.providers.base import ProviderFailure

logger = get_logger(__name__)

#: (source label, zero-argument coroutine factory)
Attempt = tuple[str, Callable[[], Awaitable[Any]]]


async def first_success(attempts: Sequence[Attempt]) -> tuple[str, Any] | ProviderFailure:
    """Run fetches in order until one returns a value.

    Each failure is logged at warning level and the next source is tried.

    Args:
        attempts: Ordered ``(label, fetch)`` pairs.

    Returns:
        ``(label, value)`` from the first source that succeeded, or the last
        ProviderFailure if every source failed.
    """
    if not attempts:
        raise ValueError("first_success requires at least one attempt")

    last_failure: ProviderFailure | None = None
    for label, fetch in attempts:
        result = await fetch()
        if not isinstance(result, ProviderFailure):
            if last_failure is not None:
                logger.info("provider_fallback_used", source=label)
            return label, result
        logger.warning(
            "provider_fetch_failed",
            source=label,
            provider=result.provider,
            kind=result.kind.value,
            status_code=result.status_code,
            error=result.message,
        )
        last_failure = result

    assert last_failure is not None
    return last_failure
