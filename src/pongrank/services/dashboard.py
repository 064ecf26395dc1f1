"""Descriptive dashboard statistics over the match list."""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

from pongrank.models import CATEGORIES, Match, Player
from pongrank.ranking import PlayerStats

ACTIVITY_DAYS = 7


@dataclass(frozen=True)
class Rivalry:
    """Most frequent pairing."""

    players: tuple[str, str]
    matches: int

    @property
    def label(self) -> str:
        return " vs ".join(self.players)


@dataclass(frozen=True)
class DashboardStats:
    """Aggregates shown on the dashboard. Recomputed on every call.

    Attributes:
        total_matches: Number of recorded matches.
        active_players: Roster size.
        total_sets: Sum of both scores over all matches.
        average_sets: Sets per match (0.0 with no matches).
        most_common_score: Most frequent final score, winner's side first.
        top_rivalry: Most frequent unordered pair of players.
        top_player: Highest-rated entry.
        matches_per_day: (day, count) for the last 7 days, oldest first.
        category_distribution: (category, players) for non-empty categories.
    """

    total_matches: int
    active_players: int
    total_sets: int
    average_sets: float
    most_common_score: str | None
    top_rivalry: Rivalry | None
    top_player: PlayerStats | None
    matches_per_day: list[tuple[date, int]] = field(default_factory=list)
    category_distribution: list[tuple[str, int]] = field(default_factory=list)


def score_key(match: Match) -> str:
    """Final score with the larger number first, e.g. "3-1"."""
    high, low = sorted((match.score1, match.score2), reverse=True)
    return f"{high}-{low}"


def rivalry_key(match: Match) -> tuple[str, str]:
    first, second = sorted((match.player1, match.player2))
    return first, second


def _match_day(match: Match) -> date:
    return datetime.fromtimestamp(match.timestamp / 1000).date()


def matches_per_day(
    matches: Sequence[Match],
    today: date | None = None,
    days: int = ACTIVITY_DAYS,
) -> list[tuple[date, int]]:
    """Count matches per local calendar day over a window ending today."""
    today = today or date.today()
    counts = Counter(_match_day(m) for m in matches)
    window = [today - timedelta(days=offset) for offset in range(days - 1, -1, -1)]
    return [(day, counts.get(day, 0)) for day in window]


def category_distribution(players: Sequence[Player]) -> list[tuple[str, int]]:
    counts = Counter(p.category for p in players)
    return [(cat, counts[cat]) for cat in CATEGORIES if counts[cat] > 0]


def compute_dashboard(
    players: Sequence[Player],
    matches: Sequence[Match],
    rankings: Sequence[PlayerStats],
    today: date | None = None,
) -> DashboardStats:
    """Reduce the current roster and match list to dashboard figures.

    Ties for the most common score or rivalry go to whichever was seen first
    in ``matches``.
    """
    total_matches = len(matches)
    total_sets = sum(m.score1 + m.score2 for m in matches)

    most_common_score = None
    top_rivalry = None
    if matches:
        most_common_score = Counter(score_key(m) for m in matches).most_common(1)[0][0]
        pair, count = Counter(rivalry_key(m) for m in matches).most_common(1)[0]
        top_rivalry = Rivalry(players=pair, matches=count)

    return DashboardStats(
        total_matches=total_matches,
        active_players=len(players),
        total_sets=total_sets,
        average_sets=total_sets / total_matches if total_matches else 0.0,
        most_common_score=most_common_score,
        top_rivalry=top_rivalry,
        top_player=rankings[0] if rankings else None,
        matches_per_day=matches_per_day(matches, today),
        category_distribution=category_distribution(players),
    )
