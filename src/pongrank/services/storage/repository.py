"""Async wrappers around SQLModel sessions, one repository per table."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import TYPE_CHECKING, ClassVar, Generic, TypeVar

from sqlmodel import Session, SQLModel

if TYPE_CHECKING:
    from sqlalchemy import Engine

T = TypeVar("T")
RowT = TypeVar("RowT", bound=SQLModel)


class AsyncRepository(Generic[RowT]):
    """Base for table repositories.

    DuckDB access is synchronous, so each unit of work runs inside its own
    Session on a worker thread.
    """

    model: ClassVar[type[SQLModel]]

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    async def _run_session(self, fn: Callable[[Session], T]) -> T:
        """Run a sync function inside a Session on a worker thread."""

        def _run() -> T:
            with Session(self._engine) as session:
                return fn(session)

        return await asyncio.to_thread(_run)

    async def add(self, row: RowT) -> RowT:
        """Insert a row and return it refreshed from the database."""

        def _add(session: Session) -> RowT:
            session.add(row)
            session.commit()
            session.refresh(row)
            return row

        return await self._run_session(_add)

    async def get(self, row_id: str) -> RowT | None:
        """Get a row by primary key."""
        return await self._run_session(lambda session: session.get(self.model, row_id))
