"""Tests for match submission, deletion and edit-as-resubmit."""

import asyncio
from datetime import datetime

import pytest

from pongrank.core.config import ParserConfig
from pongrank.core.errors import (
    ConfigurationError,
    MatchNotFoundError,
    NotEnoughPlayersError,
    SelfPlayError,
    UnresolvedMatchError,
)
from pongrank.models import Match, Player
from pongrank.services.llm import FakeLLMClient, LLMClient, LLMResponse
from pongrank.services.parsing import MatchParser, ParsedMatch
from pongrank.services.roster import RosterService
from pongrank.services.submission import SubmissionService, build_match, resubmit_text

NOW = datetime(2026, 10, 18, 12, 0)
NOW_MS = int(NOW.timestamp() * 1000)

ROSTER = [
    Player(full_name="Lucas Koba", nicknames=["Koba"]),
    Player(full_name="Vinicius Souza", nicknames=["Vini"]),
]


class _StaticClient(LLMClient):
    def __init__(self, content: str) -> None:
        self.content = content

    async def complete(self, _model, _messages, _max_tokens, _temperature) -> LLMResponse:
        return LLMResponse(
            content=self.content, prompt_tokens=1, completion_tokens=1, total_tokens=2
        )


class _BlockingFirstClient(LLMClient):
    """First call hangs until cancelled; later calls answer right away."""

    def __init__(self) -> None:
        self.started = asyncio.Event()
        self.calls = 0
        self.fake = FakeLLMClient()

    async def complete(self, model, messages, max_tokens, temperature) -> LLMResponse:
        self.calls += 1
        if self.calls == 1:
            self.started.set()
            await asyncio.Event().wait()
        return await self.fake.complete(model, messages, max_tokens, temperature)


@pytest.fixture
async def roster(store):
    service = RosterService(store)
    await service.register_player("Lucas Koba", "Koba", "A")
    await service.register_player("Vinicius Souza", "Vini, Vinny", "B")
    return service


def _service(store, client: LLMClient | None = None) -> SubmissionService:
    return SubmissionService(store, MatchParser(client or FakeLLMClient(), ParserConfig()))


class TestBuildMatch:
    """Tests for validation of parser output."""

    def test_valid(self):
        parsed = ParsedMatch(
            valid=True, player1="Lucas Koba", score1=3, player2="Vinicius Souza", score2=1
        )
        match = build_match(parsed, ROSTER, NOW)

        assert (match.player1, match.score1, match.player2, match.score2) == (
            "Lucas Koba",
            3,
            "Vinicius Souza",
            1,
        )
        assert match.timestamp == NOW_MS

    def test_match_date_overrides_now(self):
        parsed = ParsedMatch(
            valid=True,
            player1="Lucas Koba",
            score1=3,
            player2="Vinicius Souza",
            score2=1,
            match_date=datetime(2026, 10, 17, 14, 0),
        )
        match = build_match(parsed, ROSTER, NOW)
        assert match.timestamp == int(datetime(2026, 10, 17, 14, 0).timestamp() * 1000)

    def test_names_normalized_to_roster_spelling(self):
        parsed = ParsedMatch(
            valid=True, player1="lucas koba", score1=3, player2="VINICIUS SOUZA", score2=1
        )
        match = build_match(parsed, ROSTER, NOW)
        assert (match.player1, match.player2) == ("Lucas Koba", "Vinicius Souza")

    def test_invalid_flag(self):
        with pytest.raises(UnresolvedMatchError):
            build_match(ParsedMatch(valid=False), ROSTER, NOW)

    def test_unknown_player(self):
        parsed = ParsedMatch(valid=True, player1="Lucas Koba", score1=3, player2="Pedro", score2=1)
        with pytest.raises(UnresolvedMatchError, match="Pedro"):
            build_match(parsed, ROSTER, NOW)

    def test_missing_player(self):
        parsed = ParsedMatch(valid=True, player1="Lucas Koba", score1=3, score2=1)
        with pytest.raises(UnresolvedMatchError):
            build_match(parsed, ROSTER, NOW)

    def test_self_play(self):
        parsed = ParsedMatch(
            valid=True, player1="Lucas Koba", score1=3, player2="lucas koba", score2=1
        )
        with pytest.raises(SelfPlayError):
            build_match(parsed, ROSTER, NOW)

    def test_missing_score(self):
        parsed = ParsedMatch(valid=True, player1="Lucas Koba", score1=3, player2="Vinicius Souza")
        with pytest.raises(UnresolvedMatchError, match="score"):
            build_match(parsed, ROSTER, NOW)

    def test_negative_score(self):
        parsed = ParsedMatch(
            valid=True, player1="Lucas Koba", score1=-1, player2="Vinicius Souza", score2=3
        )
        with pytest.raises(UnresolvedMatchError, match="negative"):
            build_match(parsed, ROSTER, NOW)

    def test_tie_allowed(self):
        parsed = ParsedMatch(
            valid=True, player1="Lucas Koba", score1=2, player2="Vinicius Souza", score2=2
        )
        assert build_match(parsed, ROSTER, NOW).score1 == 2


class TestSubmit:
    """Tests for the end-to-end submission flow."""

    async def test_records_match(self, store, roster):
        match = await _service(store).submit("Koba 3 x 1 Vini", now=NOW)

        stored = await store.matches.list_all()
        assert [m.id for m in stored] == [match.id]
        assert stored[0].player1 == "Lucas Koba"
        assert stored[0].player2 == "Vinicius Souza"
        assert stored[0].timestamp == NOW_MS

    async def test_requires_two_players(self, store):
        await RosterService(store).register_player("Lucas Koba", "Koba")

        with pytest.raises(NotEnoughPlayersError):
            await _service(store).submit("Koba 3 x 1 Vini", now=NOW)

    async def test_unresolved_text_records_nothing(self, store, roster):
        with pytest.raises(UnresolvedMatchError):
            await _service(store).submit("Koba 3 x 1 Pedro", now=NOW)
        assert await store.matches.list_all() == []

    async def test_self_play_records_nothing(self, store, roster):
        client = _StaticClient(
            '{"valid": true, "player1": "Lucas Koba", "score1": 3,'
            ' "player2": "Lucas Koba", "score2": 1}'
        )
        with pytest.raises(SelfPlayError):
            await _service(store, client).submit("Koba 3 x 1 Koba", now=NOW)
        assert await store.matches.list_all() == []

    async def test_parser_date_used(self, store, roster):
        client = _StaticClient(
            '{"valid": true, "player1": "Lucas Koba", "score1": 3,'
            ' "player2": "Vinicius Souza", "score2": 1, "matchDate": "2026-10-17T20:00:00"}'
        )
        match = await _service(store, client).submit("Koba 3 x 1 Vini ontem", now=NOW)
        assert match.timestamp == int(datetime(2026, 10, 17, 20, 0).timestamp() * 1000)

    async def test_newer_submission_supersedes_pending(self, store, roster):
        client = _BlockingFirstClient()
        service = _service(store, client)

        first = asyncio.create_task(service.submit("Koba 3 x 1 Vini", now=NOW))
        await client.started.wait()
        second = await service.submit("Vini 3 x 2 Koba", now=NOW)

        with pytest.raises(asyncio.CancelledError):
            await first

        stored = await store.matches.list_all()
        assert [m.id for m in stored] == [second.id]
        assert stored[0].player1 == "Vinicius Souza"

    async def test_submission_already_writing_is_not_superseded(self, store, roster, monkeypatch):
        service = _service(store)
        writing = asyncio.Event()
        release = asyncio.Event()
        original_add = store.matches.add
        calls = 0

        async def slow_first_add(match: Match) -> Match:
            nonlocal calls
            calls += 1
            if calls == 1:
                writing.set()
                await release.wait()
            return await original_add(match)

        monkeypatch.setattr(store.matches, "add", slow_first_add)

        first = asyncio.create_task(service.submit("Koba 3 x 1 Vini", now=NOW))
        await writing.wait()
        second = await service.submit("Vini 3 x 2 Koba", now=NOW)
        release.set()
        recorded = await first

        assert recorded.player1 == "Lucas Koba"
        assert recorded.score1 == 3
        stored = await store.matches.list_all()
        assert {m.id for m in stored} == {recorded.id, second.id}

    async def test_without_parser(self, store, roster):
        with pytest.raises(ConfigurationError):
            await SubmissionService(store).submit("Koba 3 x 1 Vini")


class TestDeleteAndEdit:
    async def test_delete_match(self, store):
        saved = await store.matches.add(
            Match(player1="Lucas Koba", score1=3, player2="Vinicius Souza", score2=1, timestamp=1)
        )

        removed = await SubmissionService(store).delete_match(saved.id)

        assert removed.id == saved.id
        assert await store.matches.list_all() == []

    async def test_delete_unknown(self, store):
        with pytest.raises(MatchNotFoundError):
            await SubmissionService(store).delete_match("missing")

    async def test_edit_is_delete_then_resubmit(self, store, roster):
        service = _service(store)
        original = await service.submit("Koba 3 x 1 Vini", now=NOW)

        text = await service.edit_match(original.id)
        assert text == "Lucas Koba 3 Vinicius Souza 1"
        assert await store.matches.list_all() == []

        corrected = await service.submit(text.replace(" 1", " 2"), now=NOW)
        assert corrected.id != original.id
        assert corrected.score2 == 2

    async def test_recent_matches(self, store):
        for ts in (1_000, 3_000, 2_000):
            await store.matches.add(
                Match(player1="A", score1=3, player2="B", score2=0, timestamp=ts)
            )

        recent = await SubmissionService(store).recent_matches(limit=2)
        assert [m.timestamp for m in recent] == [3_000, 2_000]


def test_resubmit_text():
    match = Match(player1="Ana Lima", score1=2, player2="Lucas Koba", score2=3, timestamp=1)
    assert resubmit_text(match) == "Ana Lima 2 Lucas Koba 3"
