"""Roster management: register, edit and delete players."""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from pongrank.core.errors import (
    DuplicatePlayerError,
    InvalidPlayerError,
    PlayerNotFoundError,
)
from pongrank.models import CATEGORIES, Player
from pongrank.services.storage import PongStore

logger = structlog.get_logger()


def parse_nicknames(raw: str | Iterable[str]) -> list[str]:
    """Split a comma-separated nickname field.

    Entries are trimmed, blanks dropped and repeats removed, keeping the
    first occurrence.
    """
    parts = raw.split(",") if isinstance(raw, str) else list(raw)
    nicknames: list[str] = []
    for part in parts:
        nick = part.strip()
        if nick and nick not in nicknames:
            nicknames.append(nick)
    return nicknames


def _validate_fields(full_name: str, nicknames: list[str], category: str) -> str:
    name = full_name.strip()
    if not name:
        raise InvalidPlayerError("Player name cannot be empty")
    if not nicknames:
        raise InvalidPlayerError("At least one nickname is required")
    if category not in CATEGORIES:
        raise InvalidPlayerError(
            f"Unknown category '{category}' (expected one of: {', '.join(CATEGORIES)})"
        )
    return name


def _ensure_unique(name: str, roster: Iterable[Player], exclude_id: str | None = None) -> None:
    lowered = name.lower()
    for p in roster:
        if p.id != exclude_id and p.full_name.lower() == lowered:
            raise DuplicatePlayerError(name)


class RosterService:
    """Validate and persist roster changes.

    Matches store full names, so renaming or deleting a player leaves past
    matches untouched; the rating engine shows them as ghost entries.
    """

    def __init__(self, store: PongStore) -> None:
        self.store = store

    async def list_players(self) -> list[Player]:
        return await self.store.players.list_all()

    async def register_player(
        self,
        full_name: str,
        nicknames: str | Iterable[str],
        category: str = "C",
        email: str = "",
    ) -> Player:
        """Add a new player.

        Raises:
            InvalidPlayerError: On an empty name, no nicknames or a bad category.
            DuplicatePlayerError: If the name is taken (case-insensitive).
        """
        nicks = parse_nicknames(nicknames)
        name = _validate_fields(full_name, nicks, category)
        _ensure_unique(name, await self.store.players.list_all())

        player = await self.store.players.add(
            Player(full_name=name, nicknames=nicks, category=category, email=email.strip())
        )
        logger.info("player_registered", player_id=player.id, name=name, category=category)
        return player

    async def edit_player(
        self,
        player_id: str,
        full_name: str | None = None,
        nicknames: str | Iterable[str] | None = None,
        category: str | None = None,
        email: str | None = None,
    ) -> Player:
        """Rewrite any of a player's fields; omitted fields keep their value.

        Raises:
            PlayerNotFoundError: If no player has this id.
            InvalidPlayerError: On invalid new values.
            DuplicatePlayerError: If the new name belongs to another player.
        """
        current = await self.store.players.get(player_id)
        if current is None:
            raise PlayerNotFoundError(player_id)

        nicks = parse_nicknames(nicknames) if nicknames is not None else list(current.nicknames)
        name = _validate_fields(
            full_name if full_name is not None else current.full_name,
            nicks,
            category if category is not None else current.category,
        )
        _ensure_unique(name, await self.store.players.list_all(), exclude_id=player_id)

        updated = await self.store.players.update(
            player_id,
            full_name=name,
            nicknames=nicks,
            category=category if category is not None else current.category,
            email=email.strip() if email is not None else current.email,
        )
        if updated is None:
            raise PlayerNotFoundError(player_id)
        if name != current.full_name:
            logger.info("player_renamed", player_id=player_id, old=current.full_name, new=name)
        logger.info("player_updated", player_id=player_id)
        return updated

    async def delete_player(self, player_id: str) -> None:
        """Remove a player from the roster. Their matches are kept.

        Raises:
            PlayerNotFoundError: If no player has this id.
        """
        if not await self.store.players.delete(player_id):
            raise PlayerNotFoundError(player_id)
        logger.info("player_deleted", player_id=player_id)
