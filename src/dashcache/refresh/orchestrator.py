"""Sequential sub-task runner shared by every refresh domain.

A domain (market, wallet, indicators, ...) is a fixed list of sub-tasks run
one after another so that a shared rate-limited provider is never hit
concurrently. Each sub-task returns a short detail string on success or a
``ProviderFailure``; either way the next sub-task still runs. A domain
succeeds if at least one of its sub-tasks succeeded.
"""

import time
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import structlog

from dashcache.cache.freshness import FreshnessCache
from dashcache.logging import get_logger
from dashcache.models import RunReport, RunResult
from dashcache.providers.base import ProviderFailure

logger = get_logger(__name__)

SKIPPED_FRESH = "fresh, skipped"


@dataclass
class SubTask:
    """One independently failing unit of a domain refresh.

    Args:
        name: Display name (e.g. "Pi Cycle").
        run: Coroutine factory returning a detail string or a ProviderFailure.
        output_key: Cache key whose ``_meta`` age decides whether a non-forced
            run can skip this sub-task.
    """

    name: str
    run: Callable[[], Awaitable[str | ProviderFailure]]
    output_key: str | None = None


class RefreshOrchestrator:
    """Runs a domain's sub-tasks in order and aggregates a RunReport.

    Args:
        name: Domain name, bound to every log event of the run.
        subtasks: Ordered sub-tasks.
        cache: Used for the freshness gate; None disables the gate.
        min_refresh_seconds: Outputs younger than this are skipped unless forced.
        clock: Monotonic clock for durations.
    """

    def __init__(
        self,
        name: str,
        subtasks: list[SubTask],
        cache: FreshnessCache | None = None,
        min_refresh_seconds: int = 0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._name = name
        self._subtasks = subtasks
        self._cache = cache
        self._min_refresh_seconds = min_refresh_seconds
        self._clock = clock

    async def run(self, force: bool = False) -> RunReport:
        """Run every sub-task; never raises for a sub-task failure."""
        started = self._clock()
        report = RunReport(name=self._name)

        with structlog.contextvars.bound_contextvars(domain=self._name):
            logger.info("domain_refresh_started", subtasks=len(self._subtasks), force=force)
            for subtask in self._subtasks:
                report.results.append(await self._run_subtask(subtask, force))

            report.duration_seconds = round(self._clock() - started, 2)
            logger.info(
                "domain_refresh_complete",
                status=report.status.value,
                succeeded=len(report.succeeded),
                failed=len(report.failed),
                duration_seconds=report.duration_seconds,
            )
        return report

    async def _run_subtask(self, subtask: SubTask, force: bool) -> RunResult:
        started = self._clock()

        if not force and await self._is_recent(subtask):
            logger.info("subtask_skipped_fresh", subtask=subtask.name)
            return RunResult(name=subtask.name, success=True, duration_seconds=0.0, detail=SKIPPED_FRESH)

        try:
            outcome = await subtask.run()
        except Exception as e:
            duration = round(self._clock() - started, 2)
            logger.error("subtask_failed", subtask=subtask.name, error=str(e), exc_info=True)
            return RunResult(
                name=subtask.name, success=False, duration_seconds=duration, error=str(e) or type(e).__name__
            )

        duration = round(self._clock() - started, 2)
        if isinstance(outcome, ProviderFailure):
            logger.warning(
                "subtask_failed",
                subtask=subtask.name,
                provider=outcome.provider,
                kind=outcome.kind.value,
                error=outcome.message,
            )
            return RunResult(name=subtask.name, success=False, duration_seconds=duration, error=str(outcome))

        logger.info("subtask_succeeded", subtask=subtask.name, detail=outcome, duration_seconds=duration)
        return RunResult(name=subtask.name, success=True, duration_seconds=duration, detail=outcome)

    async def _is_recent(self, subtask: SubTask) -> bool:
        if self._cache is None or subtask.output_key is None or self._min_refresh_seconds <= 0:
            return False
        return await self._cache.is_fresh(subtask.output_key, self._min_refresh_seconds)


class DomainRefresher(ABC):
    """Base class for one refresh domain.

    Subclasses set ``name`` and ``title`` and return their sub-tasks from
    ``subtasks``; ``run`` wraps them in a RefreshOrchestrator.
    """

    name: str = "domain"
    title: str = "Domain"

    def __init__(self, cache: FreshnessCache, min_refresh_seconds: int = 0) -> None:
        self._cache = cache
        self._min_refresh_seconds = min_refresh_seconds

    @abstractmethod
    def subtasks(self, force: bool = False) -> list[SubTask]:
        ...

    async def run(self, force: bool = False) -> RunReport:
        orchestrator = RefreshOrchestrator(
            self.name,
            self.subtasks(force),
            cache=self._cache,
            min_refresh_seconds=self._min_refresh_seconds,
        )
        return await orchestrator.run(force=force)
