"""Core configuration and errors for PongRank."""

from pongrank.core.config import (
    AppConfig,
    ParserConfig,
    RatingConfig,
    load_config,
)
from pongrank.core.errors import (
    APIKeyError,
    ConfigurationError,
    DuplicatePlayerError,
    InvalidPlayerError,
    MatchNotFoundError,
    MatchParseError,
    NotEnoughPlayersError,
    PlayerNotFoundError,
    PongRankError,
    SelfPlayError,
    UnresolvedMatchError,
    ValidationError,
)

__all__ = [
    "AppConfig",
    "ParserConfig",
    "RatingConfig",
    "load_config",
    "APIKeyError",
    "ConfigurationError",
    "DuplicatePlayerError",
    "InvalidPlayerError",
    "MatchNotFoundError",
    "MatchParseError",
    "NotEnoughPlayersError",
    "PlayerNotFoundError",
    "PongRankError",
    "SelfPlayError",
    "UnresolvedMatchError",
    "ValidationError",
]
