"""Report generation services for PongRank."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import asdict
from datetime import datetime
from typing import Any

from tabulate import tabulate

from pongrank.models import Match
from pongrank.ranking import PlayerStats
from pongrank.services.dashboard import DashboardStats

LEADERBOARD_HEADERS = ("#", "Player", "Category", "Rating", "W / L")
MATCH_HEADERS = ("When", "Result", "ID")


def filter_rankings(rankings: Sequence[PlayerStats], query: str | None) -> list[PlayerStats]:
    """Keep entries whose name or a nickname contains ``query`` (case-insensitive)."""
    if not query:
        return list(rankings)
    needle = query.lower()
    return [
        s
        for s in rankings
        if needle in s.name.lower() or any(needle in n.lower() for n in s.nicknames)
    ]


def leaderboard_rows(rankings: Sequence[PlayerStats]) -> list[tuple[Any, ...]]:
    """Table rows in leaderboard order, positions starting at 1."""
    return [
        (i, s.name, s.category, s.rating, f"{s.wins} / {s.losses}")
        for i, s in enumerate(rankings, 1)
    ]


def format_timestamp(timestamp: int) -> str:
    """Local date and time of a ms timestamp."""
    return datetime.fromtimestamp(timestamp / 1000).strftime("%d/%m/%Y %H:%M")


def format_result(match: Match) -> str:
    return f"{match.player1} {match.score1} x {match.score2} {match.player2}"


def match_rows(matches: Sequence[Match]) -> list[tuple[str, str, str]]:
    return [(format_timestamp(m.timestamp), format_result(m), m.id) for m in matches]


def rankings_to_json(rankings: Sequence[PlayerStats]) -> list[dict[str, Any]]:
    """Plain dicts for JSON export, in leaderboard order."""
    return [{"rank": i, **asdict(s)} for i, s in enumerate(rankings, 1)]


def generate_leaderboard_report(
    rankings: Sequence[PlayerStats],
    title: str = "Leaderboard",
) -> str:
    """Markdown leaderboard.

    Args:
        rankings: Entries in display order.
        title: Report title (markdown heading).

    Returns:
        Markdown report content.
    """
    lines = [f"# {title}", ""]
    if not rankings:
        lines.append("No players yet.")
    else:
        lines.append(
            tabulate(leaderboard_rows(rankings), headers=LEADERBOARD_HEADERS, tablefmt="github")
        )
    return "\n".join(lines)


def generate_matches_report(matches: Sequence[Match], title: str = "Recent Matches") -> str:
    lines = [f"# {title}", ""]
    if not matches:
        lines.append("No matches recorded.")
    else:
        lines.append(tabulate(match_rows(matches), headers=MATCH_HEADERS, tablefmt="github"))
    return "\n".join(lines)


def generate_dashboard_report(stats: DashboardStats) -> str:
    """Markdown dashboard with summary figures, daily activity and categories."""
    rivalry = "N/A"
    if stats.top_rivalry:
        rivalry = f"{stats.top_rivalry.label} ({stats.top_rivalry.matches})"
    top_player = "N/A"
    if stats.top_player:
        top_player = f"{stats.top_player.name} ({stats.top_player.rating})"

    summary = [
        ("Total matches", stats.total_matches),
        ("Active players", stats.active_players),
        ("Sets played", stats.total_sets),
        ("Average sets/match", f"{stats.average_sets:.1f}"),
        ("Most common score", stats.most_common_score or "N/A"),
        ("Top rivalry", rivalry),
        ("Top player", top_player),
    ]
    activity = [(day.strftime("%d/%m"), count) for day, count in stats.matches_per_day]

    lines = ["# Dashboard", ""]
    lines.append(tabulate(summary, headers=("Metric", "Value"), tablefmt="github"))
    lines.extend(["", "## Matches per day", ""])
    lines.append(tabulate(activity, headers=("Day", "Matches"), tablefmt="github"))
    lines.extend(["", "## Categories", ""])
    if stats.category_distribution:
        lines.append(
            tabulate(
                stats.category_distribution, headers=("Category", "Players"), tablefmt="github"
            )
        )
    else:
        lines.append("No players yet.")
    return "\n".join(lines)
