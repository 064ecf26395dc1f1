from .match_repository import MatchRepository
from .player_repository import PlayerRepository
from .store import PongStore

__all__ = ["MatchRepository", "PlayerRepository", "PongStore"]
