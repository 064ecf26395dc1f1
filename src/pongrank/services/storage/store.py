"""DuckDB-backed storage for the roster and match history."""

from __future__ import annotations

import gc
from pathlib import Path

import structlog
from sqlalchemy.pool import NullPool
from sqlmodel import SQLModel, create_engine

from pongrank.core.config import AppConfig
from pongrank.models import Match, Player

from .match_repository import MatchRepository
from .player_repository import PlayerRepository

logger = structlog.get_logger()


class PongStore:
    """Unified persistence layer for PongRank data.

    Owns the SQLModel engine and exposes one repository per table.
    """

    def __init__(self, config: AppConfig) -> None:
        """Initialize store.

        Args:
            config: Application configuration.
        """
        self.config = config
        self.db_path = Path(config.database_path)
        self._engine = None
        self._init_db()
        self.players = PlayerRepository(self._engine)
        self.matches = MatchRepository(self._engine)

    def _init_db(self) -> None:
        """Initialize DuckDB database and create tables."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        db_url = f"duckdb:///{self.db_path}"
        # Use NullPool to avoid connection pooling issues on Windows
        self._engine = create_engine(db_url, poolclass=NullPool)
        SQLModel.metadata.create_all(self._engine)
        logger.debug("store_init", path=str(self.db_path))

    async def snapshot(self) -> tuple[list[Player], list[Match]]:
        """Load the full roster and match list together."""
        players = await self.players.list_all()
        matches = await self.matches.list_all()
        return players, matches

    async def close(self) -> None:
        """Dispose of the database engine."""
        if self._engine:
            self._engine.dispose()

    def close_sync(self) -> None:
        """Synchronously dispose of the database engine."""
        if self._engine:
            self._engine.dispose()
            self._engine = None

        gc.collect()
