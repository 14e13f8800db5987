"""Unit tests for src/db/sql_repository.py"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.orm import Session, sessionmaker

from src.core.exceptions import ConcurrentUpdateError
from src.db.sql_repository import (
    GameModel,
    PlayerStatsModel,
    SQLGameRegistry,
    SQLLedgerStore,
    SQLPlayerLedger,
    SQLTrophyLedger,
)

NOW = datetime(2025, 1, 1, tzinfo=timezone.utc)


def make_model(state: str = "waiting_for_player", **overrides) -> GameModel:
    fields = dict(
        player1="player_x",
        player2=None,
        board=[0] * 9,
        current_turn="player_x",
        winner=None,
        state=state,
        created_at=NOW,
        last_move_at=NOW,
    )
    fields.update(overrides)
    return GameModel(**fields)


# --- GAME REGISTRY ---
def test_create_game(db_session_repo: Session) -> None:
    """Conversion from a GameModel to DBGame for a new entry to the database."""
    model = make_model()
    repo = SQLGameRegistry(db_session_repo)
    record_in_db, game_id = repo.create_game(model)
    assert isinstance(record_in_db, GameModel)
    assert record_in_db == model
    assert game_id == 0


def test_game_ids_are_sequential(db_session_repo: Session) -> None:
    repo = SQLGameRegistry(db_session_repo)
    ids = [repo.create_game(make_model())[1] for _ in range(4)]
    assert ids == [0, 1, 2, 3]
    assert repo.game_count() == 4


def test_game_count_starts_at_zero(db_session_repo: Session) -> None:
    assert SQLGameRegistry(db_session_repo).game_count() == 0


def test_get_game_by_id(db_session_repo: Session) -> None:
    """Create a game, commit, then fetch it from db (timezone survives the trip)."""
    repo = SQLGameRegistry(db_session_repo)
    expected_game, game_id = repo.create_game(make_model())
    db_session_repo.commit()
    db_session_repo.expire_all()

    game_found = repo.get_game(game_id)
    assert isinstance(game_found, GameModel)
    assert game_found == expected_game
    assert game_found.created_at.tzinfo is not None


def test_get_unknown_game(db_session_repo: Session) -> None:
    """Should return None if ID does not match anything in database."""
    repo = SQLGameRegistry(db_session_repo)
    assert repo.get_game(0) is None

    repo.create_game(make_model())
    assert repo.get_game(1) is None


def test_update_game(db_session_repo: Session) -> None:
    repo = SQLGameRegistry(db_session_repo)
    _, game_id = repo.create_game(make_model())

    after = make_model(
        state="in_progress",
        player2="player_o",
        board=[1, 0, 0, 0, 0, 0, 0, 0, 0],
        current_turn="player_o",
        last_move_at=NOW + timedelta(seconds=5),
    )
    updated_game = repo.update_game(game_id, after)
    db_session_repo.commit()
    db_session_repo.expire_all()

    assert updated_game == after
    assert repo.get_game(game_id) == after


def test_consecutive_board_updates(db_session_repo: Session) -> None:
    """The JSON board column must pick up every change, not only the first one."""
    repo = SQLGameRegistry(db_session_repo)
    _, game_id = repo.create_game(make_model(state="in_progress", player2="player_o"))

    board = [0] * 9
    for position, mark in [(4, 1), (0, 2), (8, 1)]:
        board[position] = mark
        repo.update_game(
            game_id, make_model(state="in_progress", player2="player_o", board=list(board))
        )
        db_session_repo.commit()

    db_session_repo.expire_all()
    stored = repo.get_game(game_id)
    assert stored is not None
    assert stored.board == [2, 0, 0, 0, 1, 0, 0, 0, 1]


def test_attempt_updating_unknown_game(db_session_repo: Session) -> None:
    repo = SQLGameRegistry(db_session_repo)
    assert repo.update_game(42, make_model()) is None


def test_list_open_games(db_session_repo: Session) -> None:
    repo = SQLGameRegistry(db_session_repo)
    for state in ["waiting_for_player", "in_progress", "waiting_for_player", "draw"]:
        repo.create_game(make_model(state=state))
    assert repo.list_open_games() == [0, 2]


def test_list_player_games_keeps_insertion_order(db_session_repo: Session) -> None:
    repo = SQLGameRegistry(db_session_repo)
    for _ in range(3):
        repo.create_game(make_model())
    repo.add_player_game("alice", 2)
    repo.add_player_game("alice", 0)
    repo.add_player_game("bob", 1)

    assert repo.list_player_games("alice") == [2, 0]
    assert repo.list_player_games("bob") == [1]
    assert repo.list_player_games("carol") == []


# --- PLAYER LEDGER ---
def test_stats_default_to_zero(db_session_repo: Session) -> None:
    ledger = SQLPlayerLedger(db_session_repo)
    assert ledger.get_stats("nobody") == PlayerStatsModel(wins=0, total_games=0)


def test_record_games_and_wins(db_session_repo: Session) -> None:
    ledger = SQLPlayerLedger(db_session_repo)
    ledger.record_game_played("alice")
    ledger.record_game_played("alice")
    ledger.record_win("alice")
    ledger.record_game_played("bob")

    assert ledger.get_stats("alice") == PlayerStatsModel(wins=1, total_games=2)
    assert ledger.get_stats("bob") == PlayerStatsModel(wins=0, total_games=1)


# --- TROPHY LEDGER ---
def test_mint_sequential_trophies(db_session_repo: Session) -> None:
    games = SQLGameRegistry(db_session_repo)
    for _ in range(3):
        games.create_game(make_model())

    trophies = SQLTrophyLedger(db_session_repo)
    assert trophies.total_supply() == 0
    assert trophies.mint("alice", 0) == 0
    assert trophies.mint("bob", 1) == 1
    assert trophies.mint("alice", 2) == 2

    assert trophies.total_supply() == 3
    assert trophies.tokens_of("alice") == [0, 2]
    assert trophies.tokens_of("carol") == []
    assert trophies.balance_of("alice") == 2
    assert trophies.balance_of("carol") == 0
    assert trophies.owner_of(2) == "alice"
    assert trophies.owner_of(3) is None

    trophy = trophies.get_trophy(1)
    assert trophy is not None
    assert (trophy.owner, trophy.game_id) == ("bob", 1)
    assert trophies.get_trophy(3) is None


def test_trophy_counter_is_separate_from_game_counter(db_session_repo: Session) -> None:
    games = SQLGameRegistry(db_session_repo)
    for _ in range(5):
        games.create_game(make_model())
    assert SQLTrophyLedger(db_session_repo).mint("alice", 4) == 0


# --- LEDGER STORE ---
def test_atomic_commits_on_success(db_session_repo: Session) -> None:
    store = SQLLedgerStore(db_session_repo)
    with store.atomic():
        store.games.create_game(make_model())
        store.players.record_game_played("alice")

    db_session_repo.expire_all()
    assert store.games.game_count() == 1
    assert store.players.get_stats("alice").total_games == 1


def test_atomic_rolls_back_everything_on_error(db_session_repo: Session) -> None:
    store = SQLLedgerStore(db_session_repo)
    with store.atomic():
        store.games.create_game(make_model())

    with pytest.raises(RuntimeError):
        with store.atomic():
            store.games.create_game(make_model())
            store.players.record_win("alice")
            raise RuntimeError("abort")

    assert store.games.game_count() == 1
    assert store.games.get_game(1) is None
    assert store.players.get_stats("alice").wins == 0

    # the counter did not move either: the next id is still 1
    with store.atomic():
        _, game_id = store.games.create_game(make_model())
    assert game_id == 1


# --- OVERLAPPING UNITS OF WORK ---
def test_update_based_on_stale_read_is_rejected(file_sessions: sessionmaker[Session]) -> None:
    """Two sessions read the same game. Only the first to commit gets its update in."""
    with file_sessions() as first, file_sessions() as second:
        early, late = SQLLedgerStore(first), SQLLedgerStore(second)
        with early.atomic():
            _, game_id = early.games.create_game(make_model())

        late.games.get_game(game_id)
        with early.atomic():
            early.games.update_game(
                game_id, make_model(state="in_progress", player2="player_o")
            )

        with pytest.raises(ConcurrentUpdateError):
            with late.atomic():
                late.games.update_game(
                    game_id, make_model(state="in_progress", player2="player_z")
                )

        stored = late.games.get_game(game_id)
        assert stored is not None
        assert stored.player2 == "player_o"


def test_overlapping_id_allocation_is_rejected(file_sessions: sessionmaker[Session]) -> None:
    """A counter value read before another session moved it forward is never handed out twice."""
    with file_sessions() as first, file_sessions() as second:
        early, late = SQLLedgerStore(first), SQLLedgerStore(second)
        with early.atomic():
            early.games.create_game(make_model())

        assert late.games.game_count() == 1
        with early.atomic():
            _, game_id = early.games.create_game(make_model())
        assert game_id == 1

        with pytest.raises(ConcurrentUpdateError):
            with late.atomic():
                late.games.create_game(make_model())

        # after the rollback the counter is read again
        assert late.games.game_count() == 2
        with late.atomic():
            _, game_id = late.games.create_game(make_model())
        assert game_id == 2
