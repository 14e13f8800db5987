"""Implementation of the ledger repositories using SQLAlchemy.

Repository methods only flush. Committing (or rolling back) is up to SQLLedgerStore.atomic(), so a failing call leaves nothing behind.
Games and counters carry a version column: a write based on a stale read matches no row and the whole unit is rejected.
"""

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from src.core.exceptions import ConcurrentUpdateError
from src.core.models import GameModel, PlayerStatsModel, TrophyModel
from src.core.shared_types import Address, GameState
from src.db.schema import DBCounter, DBGame, DBPlayerGame, DBPlayerStats, DBTrophy

GAME_COUNTER = "games"
TROPHY_COUNTER = "trophies"


def _as_utc(value: datetime) -> datetime:
    """SQLite drops the timezone on the way back."""
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


def allocate_id(db: Session, counter_name: str) -> int:
    """Hand out the current value of a named counter and move it forward by one."""
    counter = db.get(DBCounter, counter_name)
    if counter is None:
        counter = DBCounter(name=counter_name, value=0)
        db.add(counter)
    allocated = counter.value
    counter.value = allocated + 1
    db.flush()
    return allocated


def peek_counter(db: Session, counter_name: str) -> int:
    counter = db.get(DBCounter, counter_name)
    return counter.value if counter is not None else 0


class SQLGameRegistry:
    """Game records stored using SQL / methods implemented using SQLAlchemy"""

    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def get_game(self, game_id: int) -> GameModel | None:
        """Get game by ID, if record exists."""
        game_db = self._fetch_game(game_id)
        if game_db:
            return self._to_model(game_db)
        return None

    def create_game(self, game: GameModel) -> tuple[GameModel, int]:
        """Store new game and return the stored data + newly allocated game ID."""

        new_id = allocate_id(self.db, GAME_COUNTER)
        game_db = DBGame(
            id=new_id,
            player1=game.player1,
            player2=game.player2,
            board=list(game.board),
            current_turn=game.current_turn,
            winner=game.winner,
            state=game.state,
            created_at=game.created_at,
            last_move_at=game.last_move_at,
        )
        self.db.add(game_db)
        self.db.flush()
        return self._to_model(game_db), new_id

    def update_game(self, game_id: int, game: GameModel) -> GameModel | None:
        """Add new info to existing record."""
        game_db = self._fetch_game(game_id)
        if not game_db:
            return None
        game_db.player2 = game.player2
        # assign a fresh list so the JSON column registers the change
        game_db.board = list(game.board)
        game_db.current_turn = game.current_turn
        game_db.winner = game.winner
        game_db.state = game.state
        game_db.last_move_at = game.last_move_at
        self.db.flush()
        return self._to_model(game_db)

    def list_open_games(self) -> list[int]:
        query = (
            select(DBGame.id)
            .where(DBGame.state == GameState.WAITING_FOR_PLAYER.value)
            .order_by(DBGame.id)
        )
        return list(self.db.scalars(query))

    def list_player_games(self, player: Address) -> list[int]:
        query = (
            select(DBPlayerGame.game_id)
            .where(DBPlayerGame.player == player)
            .order_by(DBPlayerGame.seq)
        )
        return list(self.db.scalars(query))

    def add_player_game(self, player: Address, game_id: int) -> None:
        self.db.add(DBPlayerGame(player=player, game_id=game_id))
        self.db.flush()

    def game_count(self) -> int:
        return peek_counter(self.db, GAME_COUNTER)

    def _fetch_game(self, game_id: int) -> DBGame | None:
        query = select(DBGame).where(DBGame.id == game_id)
        return self.db.scalar(query)

    def _to_model(self, game_db: DBGame) -> GameModel:
        """Convert SQLAlchemy model to data transfer model."""
        return GameModel(
            player1=game_db.player1,
            player2=game_db.player2,
            board=list(game_db.board),
            current_turn=game_db.current_turn,
            winner=game_db.winner,
            state=game_db.state,
            created_at=_as_utc(game_db.created_at),
            last_move_at=_as_utc(game_db.last_move_at),
        )


class SQLPlayerLedger:
    """Per-player counters. Rows are created lazily on the first increment."""

    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def get_stats(self, player: Address) -> PlayerStatsModel:
        stats_db = self.db.get(DBPlayerStats, player)
        if stats_db is None:
            return PlayerStatsModel()
        return PlayerStatsModel(wins=stats_db.wins, total_games=stats_db.total_games)

    def record_game_played(self, player: Address) -> None:
        stats_db = self._fetch_or_create(player)
        stats_db.total_games += 1
        self.db.flush()

    def record_win(self, player: Address) -> None:
        stats_db = self._fetch_or_create(player)
        stats_db.wins += 1
        self.db.flush()

    def _fetch_or_create(self, player: Address) -> DBPlayerStats:
        stats_db = self.db.get(DBPlayerStats, player)
        if stats_db is None:
            stats_db = DBPlayerStats(player=player, wins=0, total_games=0)
            self.db.add(stats_db)
        return stats_db


class SQLTrophyLedger:
    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def mint(self, owner: Address, game_id: int) -> int:
        token_id = allocate_id(self.db, TROPHY_COUNTER)
        self.db.add(DBTrophy(token_id=token_id, owner=owner, game_id=game_id))
        self.db.flush()
        return token_id

    def get_trophy(self, token_id: int) -> TrophyModel | None:
        trophy_db = self.db.get(DBTrophy, token_id)
        if trophy_db is None:
            return None
        return TrophyModel(
            token_id=trophy_db.token_id, owner=trophy_db.owner, game_id=trophy_db.game_id
        )

    def owner_of(self, token_id: int) -> Address | None:
        return self.db.scalar(select(DBTrophy.owner).where(DBTrophy.token_id == token_id))

    def balance_of(self, owner: Address) -> int:
        query = select(func.count()).select_from(DBTrophy).where(DBTrophy.owner == owner)
        return self.db.scalar(query) or 0

    def tokens_of(self, owner: Address) -> list[int]:
        query = (
            select(DBTrophy.token_id)
            .where(DBTrophy.owner == owner)
            .order_by(DBTrophy.token_id)
        )
        return list(self.db.scalars(query))

    def total_supply(self) -> int:
        return self.db.scalar(select(func.count()).select_from(DBTrophy)) or 0


class SQLLedgerStore:
    """All repositories sharing one session, so one commit covers a whole call."""

    def __init__(self, db_session: Session) -> None:
        self.db = db_session
        self.games = SQLGameRegistry(db_session)
        self.players = SQLPlayerLedger(db_session)
        self.trophies = SQLTrophyLedger(db_session)

    @contextmanager
    def atomic(self) -> Iterator[None]:
        try:
            yield
            self.db.commit()
        except (StaleDataError, IntegrityError) as error:
            # lost a race: a version no longer matched, or the same id was inserted twice
            self.db.rollback()
            raise ConcurrentUpdateError(
                "The ledger was changed by another call, nothing was applied."
            ) from error
        except Exception:
            self.db.rollback()
            raise
