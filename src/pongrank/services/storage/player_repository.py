"""Database persistence for roster entries."""

from __future__ import annotations

from sqlmodel import Session, col, select

from pongrank.models import Player

from .repository import AsyncRepository


class PlayerRepository(AsyncRepository[Player]):
    """Persist and query players."""

    model = Player

    async def update(self, player_id: str, **fields: object) -> Player | None:
        """Rewrite fields on an existing player. Returns None if it is gone."""

        def _update(session: Session) -> Player | None:
            existing = session.get(Player, player_id)
            if existing is None:
                return None
            for key, value in fields.items():
                setattr(existing, key, value)
            session.add(existing)
            session.commit()
            session.refresh(existing)
            return existing

        return await self._run_session(_update)

    async def delete(self, player_id: str) -> bool:
        """Delete a player. Returns False if it did not exist."""

        def _delete(session: Session) -> bool:
            existing = session.get(Player, player_id)
            if existing is None:
                return False
            session.delete(existing)
            session.commit()
            return True

        return await self._run_session(_delete)

    async def list_all(self) -> list[Player]:
        """Get the whole roster ordered by name."""

        def _list(session: Session) -> list[Player]:
            statement = select(Player).order_by(col(Player.full_name))
            return list(session.exec(statement).all())

        return await self._run_session(_list)
