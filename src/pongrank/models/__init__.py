from .match import Match, now_ms
from .player import CATEGORIES, Category, Player

__all__ = ["CATEGORIES", "Category", "Match", "Player", "now_ms"]
