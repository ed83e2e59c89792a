"""Command line interface: ``dashcache update-all``, ``refresh``, ``track-wallet``, ``show``."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

import typer
from rich.console import Console

from dashcache.cache.backends import encode
from dashcache.command import get_domain, render_command_report, render_domain_report
from dashcache.config import AppSettings
from dashcache.exceptions import DashcacheError
from dashcache.logging import bound_run, setup_logging
from dashcache.main import Components, build_components

T = TypeVar("T")

app = typer.Typer(add_completion=False, help="Refresh the dashboard cache from upstream market-data APIs.")
console = Console()


@app.callback()
def main(
    ctx: typer.Context,
    log_level: str | None = typer.Option(
        None, "--log-level", help="Root logging level (defaults to LOG_LEVEL / settings)."
    ),
) -> None:
    settings = AppSettings()
    if log_level:
        settings.log_level = log_level.upper()
    setup_logging(settings.log_level, settings.log_format)
    ctx.obj = settings


def _run(settings: AppSettings, body: Callable[[Components], Awaitable[T]]) -> T:
    async def runner() -> T:
        components = await build_components(settings)
        try:
            return await body(components)
        finally:
            await components.close()

    try:
        return asyncio.run(runner())
    except DashcacheError as e:
        console.print(f"[red]error:[/red] {e}")
        raise typer.Exit(code=2) from e


@app.command("update-all")
def update_all(
    ctx: typer.Context,
    skip_market: bool = typer.Option(False, "--skip-market", help="Skip the market cache."),
    skip_wallet: bool = typer.Option(False, "--skip-wallet", help="Skip the wallet cache."),
    skip_market_data: bool = typer.Option(False, "--skip-market-data", help="Skip fear & greed, global stats, trending."),
    skip_news_calendar: bool = typer.Option(False, "--skip-news-calendar", help="Skip news and economic calendar."),
    skip_indicators: bool = typer.Option(False, "--skip-indicators", help="Skip technical indicators."),
    force: bool = typer.Option(False, "--force", help="Recompute even when cached outputs are recent."),
) -> None:
    """Refresh every cache domain in order and print a summary."""
    flags = {
        "market": skip_market,
        "wallet": skip_wallet,
        "market_data": skip_market_data,
        "news_calendar": skip_news_calendar,
        "indicators": skip_indicators,
    }
    skip = frozenset(name for name, enabled in flags.items() if enabled)

    async def body(components: Components) -> int:
        assert components.command is not None
        report = await components.command.run(skip=skip, force=force)
        render_command_report(report, console)
        return report.exit_code

    raise typer.Exit(code=_run(ctx.obj, body))


@app.command()
def refresh(
    ctx: typer.Context,
    domain: str = typer.Argument(..., help="market, wallet, market-data, news-calendar, indicators, sentiment, economic"),
    force: bool = typer.Option(False, "--force", help="Recompute even when cached outputs are recent."),
) -> None:
    """Refresh a single domain. Exits 1 if every sub-task failed."""

    async def body(components: Components) -> int:
        refresher = get_domain(components.domains, domain)
        with bound_run(f"refresh {refresher.name}"):
            report = await refresher.run(force=force)
        render_domain_report(report, refresher.title, console)
        return 0 if report.success else 1

    raise typer.Exit(code=_run(ctx.obj, body))


@app.command("track-wallet")
def track_wallet(
    ctx: typer.Context,
    coin_ids: list[str] = typer.Argument(..., help="CoinGecko coin ids to add to the wallet list."),
) -> None:
    """Register wallet coins so the wallet domain refreshes them."""

    async def body(components: Components) -> list[str]:
        return await components.wallet_tracker.track(coin_ids)

    coins = _run(ctx.obj, body)
    console.print(f"{len(coins)} active wallet coins: {', '.join(coins)}")


@app.command()
def show(
    ctx: typer.Context,
    dataset: str = typer.Argument(..., help="Dataset name, e.g. altcoin-season, markets, rsi, pi-cycle."),
) -> None:
    """Print a cached dataset as JSON."""

    async def body(components: Components) -> dict:
        assert components.reader is not None
        return await components.reader.dataset(dataset)

    console.print_json(encode(_run(ctx.obj, body)))
