"""searchctx CLI: inspect and maintain the stored search context."""
from __future__ import annotations

import argparse
import asyncio
import sys
from datetime import datetime
from pathlib import Path

from rich.console import Console
from rich.prompt import Confirm
from rich.table import Table

from searchctx.config import Config
from searchctx.core.logging_config import setup_logging
from searchctx.models import Location, SearchHistoryFilter
from searchctx.services import SearchContextService
from searchctx.storage import open_store


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="searchctx",
        description="Inspect and maintain the stored search context.",
    )
    parser.add_argument("--config", type=Path, default=None, help="Path to settings.toml.")
    parser.add_argument("--version", action="store_true", help="Print version and exit.")
    sub = parser.add_subparsers(dest="subcommand", metavar="SUBCOMMAND")

    sub.add_parser("stats", help="Show history, pattern and snapshot counts.")

    history_p = sub.add_parser("history", help="List recorded searches.")
    history_p.add_argument("--limit", type=int, default=20, help="Max entries to show.")
    history_p.add_argument("--query", default=None, help="Case-insensitive query filter.")

    recommend_p = sub.add_parser("recommend", help="Suggest searches for a location.")
    recommend_p.add_argument("--lat", type=float, required=True, help="Latitude.")
    recommend_p.add_argument("--lon", type=float, required=True, help="Longitude.")

    clear_p = sub.add_parser("clear", help="Remove search history.")
    clear_p.add_argument(
        "--older-than-days",
        type=float,
        default=None,
        help="Only remove entries older than this many days (default: all).",
    )
    clear_p.add_argument(
        "--force",
        action="store_true",
        default=False,
        help="Clear without confirmation prompt.",
    )

    snapshots_p = sub.add_parser("snapshots", help="List saved context snapshots.")
    snapshots_p.add_argument("--limit", type=int, default=10, help="Max snapshots to show.")

    return parser


def _format_ms(value: int) -> str:
    if not value:
        return "-"
    return datetime.fromtimestamp(value / 1000).strftime("%Y-%m-%d %H:%M")


async def _open_service(config: Config) -> SearchContextService:
    # Background tasks stay off: the CLI reads and exits.
    service = SearchContextService(open_store(config), config)
    await service.load()
    return service


async def _cmd_stats(config: Config, console: Console) -> int:
    service = await _open_service(config)
    stats = service.get_statistics()
    metrics = stats.performance_metrics

    table = Table(title="Search Context", show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("History entries", str(stats.history_entries))
    table.add_row("Patterns", str(stats.search_patterns))
    for pattern_type, count in stats.patterns_by_type.items():
        table.add_row(f"  {pattern_type}", str(count))
    table.add_row("Context snapshots", str(stats.context_snapshots))
    table.add_row("Avg search time (ms)", f"{metrics.average_search_time_ms:.0f}")
    table.add_row("Cache hit rate", f"{metrics.cache_hit_rate:.0%}")
    table.add_row("Satisfaction", f"{metrics.user_satisfaction_score:.1f}")

    console.print(table)
    service.cleanup()
    return 0


async def _cmd_history(args: argparse.Namespace, config: Config, console: Console) -> int:
    service = await _open_service(config)
    entries = service.get_search_history(
        SearchHistoryFilter(limit=args.limit, query=args.query)
    )
    service.cleanup()

    if not entries:
        console.print("[yellow]No search history found.[/yellow]")
        return 0

    table = Table(title=f"Search History ({len(entries)})")
    table.add_column("When", style="dim", no_wrap=True)
    table.add_column("Query", style="cyan")
    table.add_column("Location", no_wrap=True)
    table.add_column("Results", justify="right")
    table.add_column("Source", style="magenta")
    table.add_column("Rating", justify="right")

    for entry in entries:
        rating = entry.user_interaction.rating
        table.add_row(
            _format_ms(entry.timestamp),
            entry.query or "[dim](map move)[/dim]",
            f"{entry.location.latitude:.4f}, {entry.location.longitude:.4f}",
            str(entry.results.count),
            entry.results.source.value,
            str(rating) if rating is not None else "-",
        )

    console.print(table)
    return 0


async def _cmd_recommend(args: argparse.Namespace, config: Config, console: Console) -> int:
    service = await _open_service(config)
    recommendations = await service.get_search_recommendations(Location(args.lat, args.lon))
    service.cleanup()

    if not recommendations:
        console.print("[yellow]No recommendations for this location yet.[/yellow]")
        return 0

    table = Table(title="Recommendations")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Title", style="cyan")
    table.add_column("Type", style="magenta")
    table.add_column("Score", justify="right")
    table.add_column("Description", no_wrap=False, max_width=60)

    for index, rec in enumerate(recommendations, start=1):
        table.add_row(
            str(index),
            rec.title,
            rec.type.value,
            f"{rec.score:.2f}",
            rec.description,
        )

    console.print(table)
    return 0


async def _cmd_clear(args: argparse.Namespace, config: Config, console: Console) -> int:
    service = await _open_service(config)
    scope = (
        f"entries older than {args.older_than_days:g} days"
        if args.older_than_days is not None
        else "all search history"
    )

    if not args.force:
        confirmed = Confirm.ask(f"Remove {scope}?", default=False)
        if not confirmed:
            console.print("[yellow]Aborted.[/yellow]")
            service.cleanup()
            return 0

    removed = await service.clear_search_history(args.older_than_days)
    service.cleanup()
    console.print(f"[bold green]Removed {removed} entries[/bold green] ({scope})")
    return 0


async def _cmd_snapshots(args: argparse.Namespace, config: Config, console: Console) -> int:
    service = await _open_service(config)
    snapshots = service.context_snapshots[: max(0, args.limit)]
    service.cleanup()

    if not snapshots:
        console.print("[yellow]No context snapshots saved.[/yellow]")
        return 0

    table = Table(title=f"Context Snapshots ({len(snapshots)})")
    table.add_column("When", style="dim", no_wrap=True)
    table.add_column("Location", no_wrap=True)
    table.add_column("Active query", style="cyan")
    table.add_column("Mode", style="magenta")
    table.add_column("Time", justify="right")

    for snapshot in snapshots:
        time_context = snapshot.environmental_context.time_context
        table.add_row(
            _format_ms(snapshot.timestamp),
            f"{snapshot.location.latitude:.4f}, {snapshot.location.longitude:.4f}",
            snapshot.search_state.active_query or "-",
            snapshot.user_state.interaction_mode.value,
            time_context.value if time_context else "-",
        )

    console.print(table)
    return 0


def run(argv: list[str]) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.version:
        from searchctx import __version__

        print(__version__)
        return 0

    if not args.subcommand:
        parser.print_help()
        return 0

    console = Console()
    try:
        config = Config.load(args.config)
    except (FileNotFoundError, ValueError) as exc:
        console.print(f"[red]{exc}[/red]")
        return 1
    setup_logging(config.logging)

    if args.subcommand == "stats":
        return asyncio.run(_cmd_stats(config, console))
    elif args.subcommand == "history":
        return asyncio.run(_cmd_history(args, config, console))
    elif args.subcommand == "recommend":
        return asyncio.run(_cmd_recommend(args, config, console))
    elif args.subcommand == "clear":
        return asyncio.run(_cmd_clear(args, config, console))
    elif args.subcommand == "snapshots":
        return asyncio.run(_cmd_snapshots(args, config, console))

    parser.print_help()
    return 1


def main() -> None:
    """Entry point for the ``searchctx`` console script."""
    sys.exit(run(sys.argv[1:]))


if __name__ == "__main__":
    main()
