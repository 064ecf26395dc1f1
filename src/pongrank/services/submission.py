"""Match submission: parse free text, validate, record."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from datetime import datetime

import structlog

from pongrank.core.errors import (
    ConfigurationError,
    MatchNotFoundError,
    NotEnoughPlayersError,
    SelfPlayError,
    UnresolvedMatchError,
)
from pongrank.models import Match, Player, now_ms
from pongrank.services.parsing import MatchParser, ParsedMatch
from pongrank.services.storage import PongStore

logger = structlog.get_logger()


def _resolve_name(name: str | None, roster: dict[str, str]) -> str:
    """Map a parsed name onto the roster's canonical full name."""
    if not name:
        raise UnresolvedMatchError("a player is missing")
    canonical = roster.get(name.lower())
    if canonical is None:
        raise UnresolvedMatchError(f"'{name}' is not a registered player")
    return canonical


def build_match(
    parsed: ParsedMatch,
    players: Sequence[Player],
    now: datetime | None = None,
) -> Match:
    """Check a parser result against the roster and build the Match to store.

    Names are accepted when they equal a roster full name ignoring case and
    are stored in the roster's spelling.

    Raises:
        UnresolvedMatchError: If the result is invalid, a name is unknown or
            a score is missing or negative.
        SelfPlayError: If both names resolve to the same player.
    """
    if not parsed.valid:
        raise UnresolvedMatchError()

    roster = {p.full_name.lower(): p.full_name for p in players}
    player1 = _resolve_name(parsed.player1, roster)
    player2 = _resolve_name(parsed.player2, roster)
    if player1 == player2:
        raise SelfPlayError(player1)

    if parsed.score1 is None or parsed.score2 is None:
        raise UnresolvedMatchError("a score is missing")
    if parsed.score1 < 0 or parsed.score2 < 0:
        raise UnresolvedMatchError("scores cannot be negative")

    timestamp = parsed.timestamp_ms()
    if timestamp is None:
        timestamp = int(now.timestamp() * 1000) if now else now_ms()

    return Match(
        player1=player1,
        score1=parsed.score1,
        player2=player2,
        score2=parsed.score2,
        timestamp=timestamp,
    )


def resubmit_text(match: Match) -> str:
    """Text that re-creates a match when submitted again."""
    return f"{match.player1} {match.score1} {match.player2} {match.score2}"


class SubmissionService:
    """Record, delete and edit matches.

    Only one submission is in flight at a time: a new ``submit`` cancels the
    pending one, whose caller gets ``asyncio.CancelledError``. A submission
    that has already started writing is not cancelled and returns its Match.
    """

    def __init__(self, store: PongStore, parser: MatchParser | None = None) -> None:
        self.store = store
        self.parser = parser
        self._pending: asyncio.Task[Match] | None = None
        self._writing: asyncio.Task | None = None

    async def submit(self, text: str, now: datetime | None = None) -> Match:
        """Parse a result text and record the match.

        Args:
            text: Typed result or speech transcript.
            now: Reference time for relative dates and the default timestamp.

        Returns:
            The stored Match.

        Raises:
            NotEnoughPlayersError: If fewer than two players are registered.
            MatchParseError: If the parser reply is unreadable.
            UnresolvedMatchError: If the result cannot be matched to the roster.
            SelfPlayError: If both sides are the same player.
        """
        pending = self._pending
        if pending is not None and not pending.done() and pending is not self._writing:
            logger.info("submission_superseded")
            pending.cancel()

        task = asyncio.ensure_future(self._submit(text, now))
        self._pending = task
        try:
            return await task
        finally:
            if self._pending is task:
                self._pending = None

    async def _submit(self, text: str, now: datetime | None) -> Match:
        if self.parser is None:
            raise ConfigurationError(
                "No match parser configured", "Pass a MatchParser to record matches."
            )
        players = await self.store.players.list_all()
        if len(players) < 2:
            raise NotEnoughPlayersError()

        parsed = await self.parser.parse(text, players, now)
        match = build_match(parsed, players, now)

        # Past this point a newer submit no longer supersedes this one
        self._writing = asyncio.current_task()
        try:
            saved = await asyncio.shield(self.store.matches.add(match))
        finally:
            if self._writing is asyncio.current_task():
                self._writing = None
        logger.info(
            "match_recorded",
            match_id=saved.id,
            player1=saved.player1,
            score1=saved.score1,
            player2=saved.player2,
            score2=saved.score2,
        )
        return saved

    async def delete_match(self, match_id: str) -> Match:
        """Delete a match.

        Raises:
            MatchNotFoundError: If no match has this id.
        """
        removed = await self.store.matches.delete(match_id)
        if removed is None:
            raise MatchNotFoundError(match_id)
        logger.info("match_deleted", match_id=match_id)
        return removed

    async def edit_match(self, match_id: str) -> str:
        """Delete a match and return the text to submit its corrected version.

        The corrected match is recorded under a new id.
        """
        removed = await self.delete_match(match_id)
        return resubmit_text(removed)

    async def recent_matches(self, limit: int = 5) -> list[Match]:
        """Newest matches first."""
        return await self.store.matches.list_recent(limit)
