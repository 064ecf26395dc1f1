import time
import uuid

from sqlalchemy import BigInteger, Column
from sqlmodel import Field, SQLModel


def now_ms() -> int:
    """Current time in milliseconds since the epoch."""
    return int(time.time() * 1000)


class Match(SQLModel, table=True):
    """A recorded match between two players, referenced by full name."""

    __tablename__ = "matches"

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    player1: str
    score1: int
    player2: str
    score2: int
    # ms since epoch, does not fit a 32-bit INTEGER
    timestamp: int = Field(default_factory=now_ms, sa_column=Column(BigInteger, index=True))
