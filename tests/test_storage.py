"""Tests for the DuckDB-backed repositories."""

from pongrank.models import Match, Player


class TestPlayerRepository:
    async def test_add_and_list(self, store):
        await store.players.add(Player(full_name="Bob", nicknames=["B"], category="B"))
        await store.players.add(Player(full_name="Alice", nicknames=["Al", "Ally"], category="A"))

        players = await store.players.list_all()

        assert [p.full_name for p in players] == ["Alice", "Bob"]
        assert players[0].nicknames == ["Al", "Ally"]

    async def test_update(self, store):
        player = await store.players.add(Player(full_name="Alice", nicknames=["Al"]))

        updated = await store.players.update(player.id, full_name="Alicia", nicknames=["Ali"])

        assert updated is not None
        assert updated.full_name == "Alicia"
        fetched = await store.players.get(player.id)
        assert fetched.nicknames == ["Ali"]

    async def test_update_missing(self, store):
        assert await store.players.update("missing", full_name="X") is None

    async def test_delete(self, store):
        player = await store.players.add(Player(full_name="Alice", nicknames=["Al"]))

        assert await store.players.delete(player.id) is True
        assert await store.players.delete(player.id) is False
        assert await store.players.list_all() == []


class TestMatchRepository:
    async def test_add_keeps_millisecond_timestamp(self, store):
        saved = await store.matches.add(
            Match(player1="Alice", score1=3, player2="Bob", score2=1, timestamp=1_792_245_600_000)
        )

        fetched = await store.matches.get(saved.id)
        assert fetched.timestamp == 1_792_245_600_000

    async def test_list_all_oldest_first(self, store):
        await store.matches.add(
            Match(player1="A", score1=3, player2="B", score2=0, timestamp=2_000)
        )
        await store.matches.add(
            Match(player1="A", score1=0, player2="B", score2=3, timestamp=1_000)
        )

        matches = await store.matches.list_all()
        assert [m.timestamp for m in matches] == [1_000, 2_000]

    async def test_list_recent_newest_first(self, store):
        for ts in (1_000, 3_000, 2_000):
            await store.matches.add(
                Match(player1="A", score1=3, player2="B", score2=0, timestamp=ts)
            )

        recent = await store.matches.list_recent(2)
        assert [m.timestamp for m in recent] == [3_000, 2_000]

    async def test_delete_returns_removed_record(self, store):
        saved = await store.matches.add(
            Match(player1="Alice", score1=3, player2="Bob", score2=1, timestamp=1_000)
        )

        removed = await store.matches.delete(saved.id)

        assert removed is not None
        assert (removed.player1, removed.score1, removed.player2, removed.score2) == (
            "Alice",
            3,
            "Bob",
            1,
        )
        assert await store.matches.get(saved.id) is None
        assert await store.matches.delete(saved.id) is None


async def test_snapshot_returns_both_collections(store):
    await store.players.add(Player(full_name="Alice", nicknames=["Al"]))
    await store.matches.add(
        Match(player1="Alice", score1=3, player2="Ghost", score2=0, timestamp=1)
    )

    players, matches = await store.snapshot()

    assert [p.full_name for p in players] == ["Alice"]
    assert [m.player2 for m in matches] == ["Ghost"]
