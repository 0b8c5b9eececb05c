# No `from __future__ import annotations` here: SQLModel resolves relationship
# annotations at class creation.
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import Text
from sqlmodel import SQLModel, Field, Relationship, UniqueConstraint


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)

    name: str = Field(index=True, nullable=False)
    secret_hash: str = Field(nullable=False)

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    __table_args__ = (UniqueConstraint("name"),)

    def __str__(self) -> str:
        return self.name


class Library(SQLModel, table=True):
    __tablename__ = "libraries"

    id: Optional[int] = Field(default=None, primary_key=True)

    name: str = Field(index=True, nullable=False)

    floors: List["Floor"] = Relationship(back_populates="library")

    __table_args__ = (UniqueConstraint("name"),)

    def __str__(self) -> str:
        return self.name


class Floor(SQLModel, table=True):
    __tablename__ = "floors"

    id: Optional[int] = Field(default=None, primary_key=True)

    # Null when the floor isn't assigned to any library
    library_id: Optional[int] = Field(default=None, foreign_key="libraries.id", index=True)

    name: str = Field(index=True, nullable=False)
    directions: Optional[str] = Field(default=None, sa_type=Text)

    # Position within its library; unordered floors sort last
    order: Optional[int] = Field(default=None)

    library: Optional[Library] = Relationship(back_populates="floors")

    __table_args__ = (UniqueConstraint("name"),)

    def __str__(self) -> str:
        return self.name
