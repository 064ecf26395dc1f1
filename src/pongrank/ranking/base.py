"""Input protocols for the rating engine."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable


@runtime_checkable
class PlayerLike(Protocol):
    """Roster entry as seen by the rating engine.

    Any object with these attributes works, including ``Player`` rows.
    """

    full_name: str
    nicknames: Sequence[str]
    category: str


@runtime_checkable
class MatchLike(Protocol):
    """Match record as seen by the rating engine.

    ``player1``/``player2`` hold full names, ``timestamp`` is in
    milliseconds since the epoch.
    """

    player1: str
    score1: int
    player2: str
    score2: int
    timestamp: int
