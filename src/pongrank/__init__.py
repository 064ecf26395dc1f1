"""PongRank.

Track table-tennis results for a small roster and rank players
with a replayed Elo rating.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
