import uuid
from typing import Literal

from sqlalchemy import Column
from sqlmodel import JSON, Field, SQLModel

Category = Literal["A", "B", "C", "D", "E", "Master", "Kids"]
CATEGORIES: tuple[str, ...] = ("A", "B", "C", "D", "E", "Master", "Kids")


class Player(SQLModel, table=True):
    """A registered player; ``full_name`` is the key matches refer to."""

    __tablename__ = "players"

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    full_name: str = Field(index=True)
    nicknames: list[str] = Field(default_factory=list, sa_column=Column(JSON))
    email: str = ""
    category: str = "C"
