"""Tests for the ranking snapshot feed."""

from pongrank.models import Match, Player
from pongrank.ranking import EloSystem
from pongrank.services.snapshot import RankingFeed, RankingSnapshot

ALICE = Player(full_name="Alice", nicknames=["Al"])
BOB = Player(full_name="Bob", nicknames=["B"])
WIN = Match(player1="Alice", score1=3, player2="Bob", score2=1, timestamp=1_000)


def test_initial_snapshot_empty():
    feed = RankingFeed(EloSystem())
    assert feed.latest == RankingSnapshot((), (), ())


def test_subscriber_called_immediately_and_on_publish():
    feed = RankingFeed(EloSystem())
    seen: list[RankingSnapshot] = []

    feed.subscribe(seen.append)
    feed.publish_players([ALICE, BOB])
    feed.publish_matches([WIN])

    assert len(seen) == 3
    assert [s.rating for s in seen[-1].rankings] == [1216, 1184]


def test_recompute_uses_latest_pair():
    feed = RankingFeed(EloSystem())
    feed.publish_matches([WIN])
    snapshot = feed.publish_players([ALICE])

    assert snapshot.players == (ALICE,)
    assert snapshot.matches == (WIN,)
    names = {s.name: s for s in snapshot.rankings}
    assert names["Bob"].is_ghost
    assert names["Alice"].rating == 1216


def test_deleting_a_player_turns_them_into_ghost():
    feed = RankingFeed(EloSystem())
    feed.publish([ALICE, BOB], [WIN])

    snapshot = feed.publish_players([ALICE])

    bob = next(s for s in snapshot.rankings if s.name == "Bob")
    assert bob.category == "?"
    assert bob.rating == 1184


def test_unsubscribe():
    feed = RankingFeed(EloSystem())
    seen: list[RankingSnapshot] = []

    unsubscribe = feed.subscribe(seen.append)
    unsubscribe()
    feed.publish([ALICE], [])

    assert len(seen) == 1


async def test_refresh_from_store(store):
    await store.players.add(Player(full_name="Alice", nicknames=["Al"]))
    await store.players.add(Player(full_name="Bob", nicknames=["B"]))
    await store.matches.add(Match(player1="Bob", score1=3, player2="Alice", score2=0, timestamp=5))

    snapshot = await RankingFeed(EloSystem()).refresh(store)

    assert [(s.name, s.rating) for s in snapshot.rankings] == [("Bob", 1216), ("Alice", 1184)]
