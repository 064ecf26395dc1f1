"""Elo rating calculations for PongRank.

Ratings are never stored. Every call replays the full match history in
timestamp order, starting from the baseline, and rounds after each match.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass, field

from pongrank.ranking.base import MatchLike, PlayerLike

INITIAL_RATING = 1200
K_FACTOR = 32.0
GHOST_CATEGORY = "?"
GHOST_NICKNAMES = ("Unknown",)


@dataclass
class PlayerStats:
    """Derived standing for one player name.

    Attributes:
        name: Player full name (as stored in match records).
        nicknames: Alternate names, copied from the roster.
        category: Roster category, or "?" for ghost entries.
        rating: Current integer Elo rating.
        wins: Strict wins.
        losses: Strict losses.
        matches_played: Matches played, draws included.
    """

    name: str
    nicknames: list[str] = field(default_factory=list)
    category: str = GHOST_CATEGORY
    rating: int = INITIAL_RATING
    wins: int = 0
    losses: int = 0
    matches_played: int = 0

    @property
    def is_ghost(self) -> bool:
        """Whether this entry was synthesized for a name missing from the roster."""
        return self.category == GHOST_CATEGORY

    def record_match(self, new_rating: int, outcome: float) -> None:
        """Record a match result.

        Args:
            new_rating: Rating after the match.
            outcome: 1.0 for a win, 0.0 for a loss, 0.5 for a draw.
        """
        self.rating = new_rating
        self.matches_played += 1
        if outcome == 1.0:
            self.wins += 1
        elif outcome == 0.0:
            self.losses += 1


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up (1216.5 -> 1217)."""
    return math.floor(value + 0.5)


def calculate_expected_score(rating_a: float, rating_b: float) -> float:
    """Calculate expected score for player A against player B.

    Uses the standard Elo formula:
    E_A = 1 / (1 + 10^((R_B - R_A) / 400))

    Args:
        rating_a: Rating of player A.
        rating_b: Rating of player B.

    Returns:
        Expected score of A (0.0 to 1.0).
    """
    return 1.0 / (1.0 + 10 ** ((rating_b - rating_a) / 400))


def calculate_elo(
    rating: float,
    opponent_rating: float,
    actual_score: float,
    k_factor: float = K_FACTOR,
) -> int:
    """Compute a player's new rating after one match.

    Args:
        rating: Player's rating before the match.
        opponent_rating: Opponent's rating before the match.
        actual_score: 1.0 win, 0.0 loss, 0.5 draw.
        k_factor: K-factor for updates.

    Returns:
        New rating, rounded half up.
    """
    expected = calculate_expected_score(rating, opponent_rating)
    return round_half_up(rating + k_factor * (actual_score - expected))


def match_outcome(score1: int, score2: int) -> float:
    """Actual score for side 1; side 2 gets ``1 - outcome``."""
    if score1 > score2:
        return 1.0
    if score1 < score2:
        return 0.0
    return 0.5


def compute_rankings(
    players: Iterable[PlayerLike],
    matches: Iterable[MatchLike],
    initial_rating: int = INITIAL_RATING,
    k_factor: float = K_FACTOR,
) -> list[PlayerStats]:
    """Replay all matches and build the leaderboard.

    Names in matches are resolved by exact (case-sensitive) full name. A name
    with no roster entry gets a ghost entry that keeps its rating for the
    rest of the replay.

    Args:
        players: Current roster.
        matches: Full match history, in any order.
        initial_rating: Baseline rating.
        k_factor: K-factor for updates.

    Returns:
        One PlayerStats per distinct name, sorted by rating descending and
        then by name.
    """
    stats: dict[str, PlayerStats] = {}
    for p in players:
        stats[p.full_name] = PlayerStats(
            name=p.full_name,
            nicknames=list(p.nicknames),
            category=p.category,
            rating=initial_rating,
        )

    def _resolve(name: str) -> PlayerStats:
        if name not in stats:
            stats[name] = PlayerStats(
                name=name,
                nicknames=list(GHOST_NICKNAMES),
                category=GHOST_CATEGORY,
                rating=initial_rating,
            )
        return stats[name]

    # sorted() is stable, so equal timestamps keep their input order
    for match in sorted(matches, key=lambda m: m.timestamp):
        p1 = _resolve(match.player1)
        p2 = _resolve(match.player2)

        outcome = match_outcome(match.score1, match.score2)
        # Both updates use the pre-match pair
        new_p1 = calculate_elo(p1.rating, p2.rating, outcome, k_factor)
        new_p2 = calculate_elo(p2.rating, p1.rating, 1.0 - outcome, k_factor)

        p1.record_match(new_p1, outcome)
        p2.record_match(new_p2, 1.0 - outcome)

    return sorted(stats.values(), key=lambda s: (-s.rating, s.name))


class EloSystem:
    """Elo ranking system bound to a baseline and K-factor.

    Attributes:
        initial_rating: Starting rating for every player.
        k_factor: K-factor for rating adjustments.
    """

    def __init__(
        self,
        initial_rating: int = INITIAL_RATING,
        k_factor: float = K_FACTOR,
    ) -> None:
        """Initialize Elo system.

        Args:
            initial_rating: Starting rating for players.
            k_factor: K-factor for rating adjustments.
        """
        self.initial_rating = initial_rating
        self.k_factor = k_factor

    def rank(
        self,
        players: Iterable[PlayerLike],
        matches: Iterable[MatchLike],
    ) -> list[PlayerStats]:
        """Recompute the leaderboard from the full roster and match list."""
        return compute_rankings(
            players,
            matches,
            initial_rating=self.initial_rating,
            k_factor=self.k_factor,
        )
