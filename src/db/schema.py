"""Database tables / schema"""

from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, DateTime, ForeignKey
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class DBCounter(Base):
    """Named monotonic id allocators (one for games, one for trophies). Ids are never reused."""

    __tablename__ = "counters"
    name: Mapped[str] = mapped_column(primary_key=True)
    value: Mapped[int] = mapped_column(default=0)
    version: Mapped[int] = mapped_column(nullable=False)

    __mapper_args__ = {"version_id_col": version}


class DBGame(Base):
    __tablename__ = "games"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=False)
    player1: Mapped[str]
    player2: Mapped[Optional[str]]
    board: Mapped[list[int]] = mapped_column(JSON)
    current_turn: Mapped[str]
    winner: Mapped[Optional[str]]
    state: Mapped[str] = mapped_column(index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    last_move_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    # bumped on every UPDATE, which then only matches the version that was read
    version: Mapped[int] = mapped_column(nullable=False)

    __mapper_args__ = {"version_id_col": version}


class DBPlayerGame(Base):
    """Per-player index of games created or joined. `seq` preserves insertion order."""

    __tablename__ = "player_games"
    seq: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    player: Mapped[str] = mapped_column(index=True)
    game_id: Mapped[int] = mapped_column(ForeignKey("games.id"))


class DBPlayerStats(Base):
    __tablename__ = "player_stats"
    player: Mapped[str] = mapped_column(primary_key=True)
    wins: Mapped[int] = mapped_column(default=0)
    total_games: Mapped[int] = mapped_column(default=0)


class DBTrophy(Base):
    __tablename__ = "trophies"
    token_id: Mapped[int] = mapped_column(primary_key=True, autoincrement=False)
    owner: Mapped[str] = mapped_column(index=True)
    game_id: Mapped[int] = mapped_column(ForeignKey("games.id"), unique=True)
