"""
The Game class is the entrypoint into the domain layer for the service layer.
It enforces the lifecycle of a single game (who may call what, and when) and asks the board engine for the outcome of a move.

Lifecycle:
    WAITING_FOR_PLAYER --(join)--> IN_PROGRESS --(move)--> FINISHED | DRAW

The Game never touches persistence, counters or trophies. It reports the outcome of a move and the service acts on it.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum, auto
from typing import Optional, Self

from src.core.exceptions import (
    AlreadyStartedError,
    CellOccupiedError,
    GameStateError,
    NotAParticipantError,
    NotInProgressError,
    NotYourTurnError,
    OutOfRangeError,
    SelfJoinError,
)
from src.core.models import GameModel
from src.core.shared_types import Address, GameState
from src.game.board import (
    Board,
    Cell,
    Line,
    apply_mark,
    empty_board,
    from_cells,
    has_winner,
    is_full,
    is_within_bounds,
    winning_line,
)


class MoveOutcome(Enum):
    """Exactly one of these follows every accepted move."""

    CONTINUE = auto()
    WIN = auto()
    DRAW = auto()


@dataclass
class Game:
    # --- DOMAIN LAYER API CALLED BY SERVICE---

    player1: Address
    player2: Optional[Address]
    board: Board
    current_turn: Address
    winner: Optional[Address]
    state: GameState
    created_at: datetime
    last_move_at: datetime

    @classmethod
    def from_model(cls, model: GameModel) -> Self:
        """Define how to construct a Game from the information the Service layer actually has"""

        # Validation
        if model.state not in {state.value for state in GameState}:
            raise GameStateError(
                f"Invalid game state: {model.state!r}. \nPick one from {','.join(state.value for state in GameState)}"
            )
        try:
            board = from_cells(model.board)
        except ValueError as e:
            raise GameStateError(f"Stored board is corrupt: {e}") from e

        return cls(
            player1=model.player1,
            player2=model.player2,
            board=board,
            current_turn=model.current_turn,
            winner=model.winner,
            state=GameState(model.state),
            created_at=model.created_at,
            last_move_at=model.last_move_at,
        )

    def to_model(self) -> GameModel:
        """Encode back into a format the Service layer uses"""

        return GameModel(
            player1=self.player1,
            player2=self.player2,
            board=[int(cell) for cell in self.board],
            current_turn=self.current_turn,
            winner=self.winner,
            state=self.state.value,
            created_at=self.created_at,
            last_move_at=self.last_move_at,
        )

    @classmethod
    def new_game(cls, creator: Address, now: datetime) -> Self:
        """The creator plays X and gets the first move once someone joins."""
        return cls(
            player1=creator,
            player2=None,
            board=empty_board(),
            current_turn=creator,
            winner=None,
            state=GameState.WAITING_FOR_PLAYER,
            created_at=now,
            last_move_at=now,
        )

    @property
    def winning_line(self) -> Optional[Line]:
        """Cells to highlight once the game has been won."""
        if self.state != GameState.FINISHED or self.winner is None:
            return None
        return winning_line(self.board, self.mark_of(self.winner))

    def is_participant(self, player: Address) -> bool:
        return player in (self.player1, self.player2)

    def mark_of(self, player: Address) -> Cell:
        """player1 plays X, player2 plays O"""
        if player == self.player1:
            return Cell.X
        if self.player2 is not None and player == self.player2:
            return Cell.O
        raise NotAParticipantError(f"{player} is not playing this game.")

    def opponent_of(self, player: Address) -> Address:
        if self.player2 is None:
            raise GameStateError("Game has no second player yet.")
        return self.player2 if player == self.player1 else self.player1

    def register_player(self, player: Address, now: datetime) -> None:
        """Registering the 2nd player to an open game"""
        if self.state != GameState.WAITING_FOR_PLAYER:
            raise AlreadyStartedError(
                f"Cannot join this game. Game is not accepting new players. state: {self.state}"
            )
        if player == self.player1:
            raise SelfJoinError("Cannot join a game you created yourself.")

        self.player2 = player
        self._change_state(GameState.IN_PROGRESS)
        self._touch(now)

    def make_move(self, player: Address, position: int, now: datetime) -> MoveOutcome:
        """
        Attempt to place the player's mark.
        -----

        1. validate lifecycle, identity, turn and target cell (nothing changes if any check fails)
        2. place the mark
        3. decide the outcome: win, then draw, otherwise hand the turn to the opponent
        """
        # make sure the game is (still) in progress
        if self.state != GameState.IN_PROGRESS:
            raise NotInProgressError(f"Game is not in progress. state: {self.state}")

        if not self.is_participant(player):
            raise NotAParticipantError(f"{player} is not playing this game.")

        # make sure it is your turn
        self._assert_your_turn(player)

        self._assert_free_cell(position)

        mark = self.mark_of(player)
        self.board = apply_mark(self.board, position, mark)
        self._touch(now)

        # NOTE the turn is only handed over when the game goes on
        if has_winner(self.board, mark):
            self.winner = player
            self._change_state(GameState.FINISHED)
            return MoveOutcome.WIN

        if is_full(self.board):
            self._change_state(GameState.DRAW)
            return MoveOutcome.DRAW

        self.current_turn = self.opponent_of(player)
        return MoveOutcome.CONTINUE

    # -- PRIVATE HELPERS ---
    def _assert_your_turn(self, player: Address) -> None:
        """You must wait for your turn before making a move."""
        if player != self.current_turn:
            raise NotYourTurnError(
                f"It is not your turn. Waiting for player {self.current_turn} to make a move first."
            )

    def _assert_free_cell(self, position: int) -> None:
        if not is_within_bounds(position):
            raise OutOfRangeError(f"Position {position} is not on the board (0-8).")
        if self.board[position] != Cell.EMPTY:
            raise CellOccupiedError(f"Cell {position} is already occupied.")

    def _change_state(self, new_state: GameState) -> None:
        self.state = new_state

    def _touch(self, now: datetime) -> None:
        """Timestamps never move backwards, even if the clock does."""
        self.last_move_at = max(self.last_move_at, now)
