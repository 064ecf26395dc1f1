"""Ranking module for PongRank.

Provides the replay-based Elo engine.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pongrank.ranking.base import MatchLike, PlayerLike
from pongrank.ranking.elo import (
    GHOST_CATEGORY,
    INITIAL_RATING,
    K_FACTOR,
    EloSystem,
    PlayerStats,
    calculate_elo,
    calculate_expected_score,
    compute_rankings,
    match_outcome,
    round_half_up,
)

if TYPE_CHECKING:
    from pongrank.core.config import AppConfig


def create_rating_engine(config: AppConfig) -> EloSystem:
    """Create the Elo engine from config.

    Args:
        config: Application configuration.

    Returns:
        Configured EloSystem.
    """
    return EloSystem(
        initial_rating=config.rating.initial_rating,
        k_factor=config.rating.k_factor,
    )


__all__ = [
    "GHOST_CATEGORY",
    "INITIAL_RATING",
    "K_FACTOR",
    "EloSystem",
    "MatchLike",
    "PlayerLike",
    "PlayerStats",
    "calculate_elo",
    "calculate_expected_score",
    "compute_rankings",
    "create_rating_engine",
    "match_outcome",
    "round_half_up",
]
