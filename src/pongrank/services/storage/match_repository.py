"""Database persistence for match records."""

from __future__ import annotations

from sqlmodel import Session, col, select

from pongrank.models import Match

from .repository import AsyncRepository


class MatchRepository(AsyncRepository[Match]):
    """Persist and query match records."""

    model = Match

    async def delete(self, match_id: str) -> Match | None:
        """Delete a match, returning the removed record if it existed."""

        def _delete(session: Session) -> Match | None:
            existing = session.get(Match, match_id)
            if existing is None:
                return None
            removed = Match.model_validate(existing.model_dump())
            session.delete(existing)
            session.commit()
            return removed

        return await self._run_session(_delete)

    async def list_all(self) -> list[Match]:
        """Get every match, oldest first."""

        def _list(session: Session) -> list[Match]:
            statement = select(Match).order_by(col(Match.timestamp))
            return list(session.exec(statement).all())

        return await self._run_session(_list)

    async def list_recent(self, limit: int) -> list[Match]:
        """Get the newest matches first."""

        def _list(session: Session) -> list[Match]:
            statement = select(Match).order_by(col(Match.timestamp).desc()).limit(limit)
            return list(session.exec(statement).all())

        return await self._run_session(_list)
