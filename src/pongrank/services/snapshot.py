"""One-way ranking pipeline over roster and match snapshots.

The storage side publishes immutable snapshots; every publish re-runs the
rating engine against the latest complete pair and hands the result to
subscribers.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass

import structlog

from pongrank.models import Match, Player
from pongrank.ranking import EloSystem, PlayerStats
from pongrank.services.storage import PongStore

logger = structlog.get_logger()


@dataclass(frozen=True)
class RankingSnapshot:
    """Roster, matches and the rankings computed from exactly that pair."""

    players: tuple[Player, ...]
    matches: tuple[Match, ...]
    rankings: tuple[PlayerStats, ...]


Subscriber = Callable[[RankingSnapshot], None]


class RankingFeed:
    """Recompute rankings whenever the roster or the match list changes."""

    def __init__(self, engine: EloSystem) -> None:
        self.engine = engine
        self._players: tuple[Player, ...] = ()
        self._matches: tuple[Match, ...] = ()
        self._subscribers: list[Subscriber] = []
        self.latest = RankingSnapshot((), (), ())

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a callback; returns a function that unsubscribes it.

        The callback is invoked right away with the current snapshot.
        """
        self._subscribers.append(callback)
        callback(self.latest)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    def publish_players(self, players: Iterable[Player]) -> RankingSnapshot:
        """Replace the roster snapshot."""
        self._players = tuple(players)
        return self._recompute()

    def publish_matches(self, matches: Iterable[Match]) -> RankingSnapshot:
        """Replace the match snapshot."""
        self._matches = tuple(matches)
        return self._recompute()

    def publish(self, players: Iterable[Player], matches: Iterable[Match]) -> RankingSnapshot:
        """Replace both snapshots with a single recompute."""
        self._players = tuple(players)
        self._matches = tuple(matches)
        return self._recompute()

    async def refresh(self, store: PongStore) -> RankingSnapshot:
        """Load the current state from storage and publish it."""
        players, matches = await store.snapshot()
        return self.publish(players, matches)

    def _recompute(self) -> RankingSnapshot:
        rankings = self.engine.rank(self._players, self._matches)
        self.latest = RankingSnapshot(self._players, self._matches, tuple(rankings))
        logger.debug(
            "rankings_recomputed",
            players=len(self._players),
            matches=len(self._matches),
            entries=len(rankings),
        )
        for callback in list(self._subscribers):
            callback(self.latest)
        return self.latest
