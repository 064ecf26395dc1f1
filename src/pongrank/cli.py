"""CLI for PongRank."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Annotated, Literal, TypeVar

import structlog
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from pongrank import __version__
from pongrank.core.config import AppConfig, load_config
from pongrank.core.errors import ConfigurationError, PongRankError
from pongrank.models import CATEGORIES
from pongrank.ranking import PlayerStats, create_rating_engine
from pongrank.services.dashboard import compute_dashboard
from pongrank.services.llm import create_client
from pongrank.services.parsing import MatchParser
from pongrank.services.reporting import (
    LEADERBOARD_HEADERS,
    MATCH_HEADERS,
    filter_rankings,
    generate_dashboard_report,
    generate_leaderboard_report,
    generate_matches_report,
    leaderboard_rows,
    match_rows,
    rankings_to_json,
)
from pongrank.services.roster import RosterService
from pongrank.services.snapshot import RankingFeed
from pongrank.services.storage import PongStore
from pongrank.services.submission import SubmissionService

T = TypeVar("T")

# Configure structlog
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

app = typer.Typer(
    name="pongrank",
    help="PongRank - table-tennis results and Elo leaderboard",
    add_completion=False,
)
players_app = typer.Typer(help="Manage the player roster", no_args_is_help=True)
matches_app = typer.Typer(help="List, delete and edit recorded matches", no_args_is_help=True)
app.add_typer(players_app, name="players")
app.add_typer(matches_app, name="matches")
console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"pongrank v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    config_path: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Path to config YAML (default: ./pongrank.yaml)"),
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-V", help="Verbose output")] = False,
    version: Annotated[
        bool | None,
        typer.Option("--version", "-v", callback=version_callback, is_eager=True),
    ] = None,
) -> None:
    """PongRank CLI."""
    log_level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )
    ctx.obj = {"config_path": config_path, "verbose": verbose}


def _load(ctx: typer.Context) -> AppConfig:
    return load_config(ctx.obj["config_path"] if ctx.obj else None)


def _execute(ctx: typer.Context, work: Callable[[AppConfig, PongStore], Awaitable[T]]) -> T:
    """Load config, open the store, run ``work`` and report errors uniformly."""
    verbose = bool(ctx.obj and ctx.obj.get("verbose"))
    try:
        config = _load(ctx)

        async def _run() -> T:
            store = PongStore(config)
            try:
                return await work(config, store)
            finally:
                await store.close()

        return asyncio.run(_run())

    except FileNotFoundError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e
    except ConfigurationError as e:
        console.print(f"[red]{e}")
        raise typer.Exit(1) from e
    except PongRankError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e
    except Exception as e:
        console.print(f"[red]Unexpected error:[/red] {e}")
        if verbose:
            console.print_exception()
        raise typer.Exit(1) from e


def _print_table(title: str, headers: tuple[str, ...], rows: list[tuple]) -> None:
    table = Table(title=title)
    for header in headers:
        table.add_column(header)
    for row in rows:
        table.add_row(*(str(cell) for cell in row))
    console.print(table)


async def _rankings(config: AppConfig, store: PongStore) -> list[PlayerStats]:
    feed = RankingFeed(create_rating_engine(config))
    snapshot = await feed.refresh(store)
    return list(snapshot.rankings)


# ==================== Players ====================


@players_app.command("add")
def players_add(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Full name")],
    nicknames: Annotated[str, typer.Option("--nicknames", "-n", help="Comma-separated nicknames")],
    category: Annotated[
        str, typer.Option("--category", help=f"One of: {', '.join(CATEGORIES)}")
    ] = "C",
    email: Annotated[str, typer.Option("--email", help="Contact email")] = "",
) -> None:
    """Register a new player."""

    async def _work(_config: AppConfig, store: PongStore) -> None:
        player = await RosterService(store).register_player(name, nicknames, category, email)
        console.print(f"[green]Registered[/green] {player.full_name} ({player.id})")

    _execute(ctx, _work)


@players_app.command("edit")
def players_edit(
    ctx: typer.Context,
    player_id: Annotated[str, typer.Argument(help="Player ID")],
    name: Annotated[str | None, typer.Option("--name", help="New full name")] = None,
    nicknames: Annotated[
        str | None, typer.Option("--nicknames", "-n", help="Comma-separated nicknames")
    ] = None,
    category: Annotated[str | None, typer.Option("--category", help="New category")] = None,
    email: Annotated[str | None, typer.Option("--email", help="New email")] = None,
) -> None:
    """Edit a player. Past matches keep the name they were recorded with."""

    async def _work(_config: AppConfig, store: PongStore) -> None:
        player = await RosterService(store).edit_player(
            player_id, full_name=name, nicknames=nicknames, category=category, email=email
        )
        console.print(f"[green]Updated[/green] {player.full_name}")

    _execute(ctx, _work)


@players_app.command("remove")
def players_remove(
    ctx: typer.Context,
    player_id: Annotated[str, typer.Argument(help="Player ID")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation")] = False,
) -> None:
    """Delete a player. Their matches are kept."""
    if not yes:
        typer.confirm(
            "Delete this player? Their matches are kept but they leave the roster.",
            abort=True,
        )

    async def _work(_config: AppConfig, store: PongStore) -> None:
        await RosterService(store).delete_player(player_id)
        console.print("[green]Player deleted[/green]")

    _execute(ctx, _work)


@players_app.command("list")
def players_list(ctx: typer.Context) -> None:
    """Show the roster."""

    async def _work(_config: AppConfig, store: PongStore) -> None:
        players = await RosterService(store).list_players()
        rows = [(p.full_name, ", ".join(p.nicknames), p.category, p.email, p.id) for p in players]
        _print_table("Players", ("Name", "Nicknames", "Category", "Email", "ID"), rows)

    _execute(ctx, _work)


# ==================== Matches ====================


@app.command()
def record(
    ctx: typer.Context,
    text: Annotated[str, typer.Argument(help='Result text, e.g. "Koba 3 Vini 1"')],
    dry_run: Annotated[
        bool, typer.Option("--dry-run", help="Resolve the text offline, no API calls")
    ] = False,
) -> None:
    """Record a match from free text or a speech transcript."""

    async def _work(config: AppConfig, store: PongStore) -> None:
        if dry_run:
            console.print("[yellow]DRY RUN MODE - resolving text offline[/yellow]")
            client = create_client(dry_run=True)
        else:
            client = create_client(api_key=config.get_api_key())
        try:
            service = SubmissionService(store, MatchParser(client, config.parser))
            match = await service.submit(text)
        finally:
            await client.close()
        console.print(
            f"[green]Recorded:[/green] {match.player1} {match.score1}x{match.score2} "
            f"{match.player2}"
        )

    _execute(ctx, _work)


@matches_app.command("list")
def matches_list(
    ctx: typer.Context,
    limit: Annotated[int | None, typer.Option("--limit", help="Number of matches")] = None,
    output: Annotated[
        Literal["table", "markdown"],
        typer.Option("--format", "-f", help="Output format"),
    ] = "table",
) -> None:
    """Show the most recent matches."""

    async def _work(config: AppConfig, store: PongStore) -> None:
        matches = await store.matches.list_recent(limit or config.recent_matches)
        if output == "markdown":
            console.print(generate_matches_report(matches), markup=False)
        else:
            _print_table("Recent Matches", MATCH_HEADERS, match_rows(matches))

    _execute(ctx, _work)


@matches_app.command("remove")
def matches_remove(
    ctx: typer.Context,
    match_id: Annotated[str, typer.Argument(help="Match ID")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation")] = False,
) -> None:
    """Delete a match."""
    if not yes:
        typer.confirm("Delete this match?", abort=True)

    async def _work(_config: AppConfig, store: PongStore) -> None:
        removed = await SubmissionService(store).delete_match(match_id)
        console.print(f"[green]Deleted[/green] {removed.player1} vs {removed.player2}")

    _execute(ctx, _work)


@matches_app.command("edit")
def matches_edit(
    ctx: typer.Context,
    match_id: Annotated[str, typer.Argument(help="Match ID")],
) -> None:
    """Delete a match and print the text to record its corrected version."""

    async def _work(_config: AppConfig, store: PongStore) -> None:
        text = await SubmissionService(store).edit_match(match_id)
        console.print("Match removed. Correct and record it again:")
        console.print(f'  pongrank record "{text}"', markup=False)

    _execute(ctx, _work)


# ==================== Views ====================


@app.command()
def ranking(
    ctx: typer.Context,
    search: Annotated[
        str | None, typer.Option("--search", "-s", help="Filter by name or nickname")
    ] = None,
    output: Annotated[
        Literal["table", "markdown", "json"],
        typer.Option("--format", "-f", help="Output format"),
    ] = "table",
) -> None:
    """Show the leaderboard, recomputed from the full match history."""

    async def _work(config: AppConfig, store: PongStore) -> None:
        rankings = filter_rankings(await _rankings(config, store), search)
        if output == "json":
            console.print_json(json.dumps(rankings_to_json(rankings)))
        elif output == "markdown":
            console.print(generate_leaderboard_report(rankings), markup=False)
        else:
            _print_table("Leaderboard", LEADERBOARD_HEADERS, leaderboard_rows(rankings))

    _execute(ctx, _work)


@app.command()
def dashboard(ctx: typer.Context) -> None:
    """Show match statistics."""

    async def _work(config: AppConfig, store: PongStore) -> None:
        feed = RankingFeed(create_rating_engine(config))
        snapshot = await feed.refresh(store)
        stats = compute_dashboard(snapshot.players, snapshot.matches, snapshot.rankings)
        console.print(generate_dashboard_report(stats), markup=False)

    _execute(ctx, _work)


@app.command()
def validate(
    config_path: Annotated[Path, typer.Argument(help="Path to config YAML file")],
) -> None:
    """Validate a configuration file without running.

    Args:
        config_path: Path to YAML configuration file.
    """
    try:
        config = load_config(config_path)
        console.print("[green]Configuration is valid![/green]")
        console.print(f"  Database: {config.database_path}")
        console.print(f"  Parser model: {config.parser.model}")
        console.print(f"  Initial rating: {config.rating.initial_rating}")
        console.print(f"  K-factor: {config.rating.k_factor}")

    except FileNotFoundError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e
    except ConfigurationError as e:
        console.print(f"[red]{e}")
        raise typer.Exit(1) from e
    except Exception as e:
        console.print(f"[red]Validation error:[/red] {e}")
        raise typer.Exit(1) from e


@app.command()
def info() -> None:
    """Show tool information and example commands."""
    console.print("[bold]PongRank[/bold]")
    console.print(f"Version: {__version__}\n")

    console.print("[bold]Example Commands:[/bold]")
    console.print("  # Register players")
    console.print(
        '  uv run pongrank players add "Lucas Koba" --nicknames "Koba, Lucas" --category A\n'
    )

    console.print("  # Record a match (needs GEMINI_API_KEY)")
    console.print('  uv run pongrank record "Koba 3 a 1 Vini ontem"\n')

    console.print("  # Record offline")
    console.print('  uv run pongrank record "Koba 3 Vini 1" --dry-run\n')

    console.print("  # Leaderboard, filtered")
    console.print("  uv run pongrank ranking --search koba\n")

    console.print("  # Dashboard")
    console.print("  uv run pongrank dashboard")


if __name__ == "__main__":
    app()
