"""Top-level cache update command: runs every domain in a fixed order.

Domains run sequentially (market, wallet, market data, news & calendar,
indicators). A domain failure never stops the ones after it. The exit code
is 1 if any domain that ran failed entirely, 0 otherwise.
"""

import time
from collections.abc import Mapping
from dataclasses import dataclass, field

from rich.box import SIMPLE
from rich.console import Console
from rich.table import Table

from dashcache.exceptions import UnknownIndicatorError
from dashcache.logging import bound_run, get_logger
from dashcache.models import RunReport, RunResult, RunStatus
from dashcache.refresh.orchestrator import DomainRefresher

logger = get_logger(__name__)

UPDATE_ALL_ORDER: tuple[str, ...] = ("market", "wallet", "market_data", "news_calendar", "indicators")

_STATUS_STYLE = {
    RunStatus.SUCCESS: "[green]success[/green]",
    RunStatus.PARTIAL_FAILURE: "[yellow]partial[/yellow]",
    RunStatus.FAILURE: "[red]failed[/red]",
}


@dataclass
class DomainOutcome:
    """One domain's place in the command report; ``report`` is None when skipped."""

    name: str
    title: str
    report: RunReport | None = None

    @property
    def skipped(self) -> bool:
        return self.report is None


@dataclass
class CommandReport:
    outcomes: list[DomainOutcome] = field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def ran(self) -> list[DomainOutcome]:
        return [o for o in self.outcomes if o.report is not None]

    @property
    def successful(self) -> int:
        return sum(1 for o in self.ran if o.report is not None and o.report.success)

    @property
    def failed(self) -> int:
        return len(self.ran) - self.successful

    @property
    def exit_code(self) -> int:
        return 1 if self.failed else 0


class CacheUpdateCommand:
    """Sequences domain refreshers and aggregates their reports.

    Args:
        domains: Refreshers by domain name; must cover ``order``.
        order: Domain names in execution order.
    """

    def __init__(
        self,
        domains: Mapping[str, DomainRefresher],
        order: tuple[str, ...] = UPDATE_ALL_ORDER,
    ) -> None:
        missing = [name for name in order if name not in domains]
        if missing:
            raise UnknownIndicatorError(f"No refresher registered for domains: {missing}")
        self._domains = domains
        self._order = order

    async def run(self, skip: frozenset[str] = frozenset(), force: bool = False) -> CommandReport:
        unknown = set(skip) - set(self._order)
        if unknown:
            raise UnknownIndicatorError(f"Unknown domains to skip: {sorted(unknown)}")

        started = time.monotonic()
        report = CommandReport()

        with bound_run("update-all"):
            logger.info("cache_update_started", skip=sorted(skip), force=force)
            for name in self._order:
                refresher = self._domains[name]
                outcome = DomainOutcome(name=name, title=refresher.title)
                report.outcomes.append(outcome)
                if name in skip:
                    logger.info("domain_skipped", domain=name)
                    continue
                outcome.report = await self._run_domain(refresher, force)

            report.duration_seconds = round(time.monotonic() - started, 2)
            logger.info(
                "cache_update_complete",
                successful=report.successful,
                failed=report.failed,
                duration_seconds=report.duration_seconds,
                exit_code=report.exit_code,
            )
        return report

    async def _run_domain(self, refresher: DomainRefresher, force: bool) -> RunReport:
        started = time.monotonic()
        try:
            return await refresher.run(force=force)
        except Exception as e:
            # Orchestrators contain sub-task errors; this covers failures building them
            logger.error("domain_refresh_crashed", domain=refresher.name, error=str(e), exc_info=True)
            return RunReport(
                name=refresher.name,
                results=[RunResult(name=refresher.title, success=False, duration_seconds=0.0, error=str(e))],
                duration_seconds=round(time.monotonic() - started, 2),
            )


def get_domain(domains: Mapping[str, DomainRefresher], name: str) -> DomainRefresher:
    """Look up a refresher by name, failing fast on unknown names."""
    key = name.replace("-", "_")
    if key not in domains:
        raise UnknownIndicatorError(f"Unknown domain {name!r}; expected one of {sorted(domains)}")
    return domains[key]


# ──────────────────────────────────────────────
# Operator output
# ──────────────────────────────────────────────


def render_command_report(report: CommandReport, console: Console) -> None:
    """Summary table: one row per domain, then totals."""
    table = Table(title="Cache Update Summary", box=SIMPLE, show_lines=False)
    table.add_column("Cache Type", style="bold")
    table.add_column("Status")
    table.add_column("Duration", justify="right")
    table.add_column("Details", overflow="fold")

    for outcome in report.outcomes:
        if outcome.report is None:
            table.add_row(outcome.title, "[dim]skipped[/dim]", "-", "-")
            continue
        run = outcome.report
        table.add_row(outcome.title, _STATUS_STYLE[run.status], f"{run.duration_seconds:.2f}s", run.detail or "-")

    console.print(table)
    console.print(f"Total duration: {report.duration_seconds:.2f}s")
    console.print(f"Successful: {report.successful}  Failed: {report.failed}")


def render_domain_report(report: RunReport, title: str, console: Console) -> None:
    """Per-component table for a single domain run."""
    table = Table(title=title, box=SIMPLE)
    table.add_column("Component", style="bold")
    table.add_column("Status")
    table.add_column("Details", overflow="fold")
    table.add_column("Error", overflow="fold")

    for result in report.results:
        status = "[green]success[/green]" if result.success else "[red]failed[/red]"
        table.add_row(result.name, status, result.detail or "-", result.error or "-")

    console.print(table)
    console.print(f"Duration: {report.duration_seconds:.2f}s  Status: {report.status.value}")
