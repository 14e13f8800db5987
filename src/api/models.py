"""Requests and Response models"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from src.core.exceptions import InvalidRequestError, OutOfRangeError
from src.core.shared_types import Address, GameState
from src.game.board import BOARD_SIZE, is_within_bounds
from src.trophy.metadata import TrophyMetadata


def _validate_caller(value: str) -> str:
    if not value.strip():
        raise InvalidRequestError("The caller identity cannot be empty.")
    return value


# --- REQUEST MODELS ---
class CreateGameRequest(BaseModel):
    caller: Address

    @field_validator("caller")
    @classmethod
    def validate_caller(cls, value: str) -> str:
        return _validate_caller(value)


class JoinGameRequest(BaseModel):
    caller: Address
    game_id: int

    @field_validator("caller")
    @classmethod
    def validate_caller(cls, value: str) -> str:
        return _validate_caller(value)


class MoveRequest(BaseModel):
    caller: Address
    game_id: int
    position: int

    @field_validator("caller")
    @classmethod
    def validate_caller(cls, value: str) -> str:
        return _validate_caller(value)

    @field_validator("position")
    @classmethod
    def validate_position(cls, value: int) -> int:
        # rejected before the game is even looked up
        if not is_within_bounds(value):
            raise OutOfRangeError(
                f"Position {value} is not on the board (0-{BOARD_SIZE - 1})."
            )
        return value


class GetGameRequest(BaseModel):
    game_id: int


# --- RESPONSE MODELS ---
class GameResponse(BaseModel):
    game_id: int
    player1: Address
    player2: Optional[Address]
    board: list[int]
    current_turn: Address
    winner: Optional[Address]
    state: GameState
    created_at: datetime
    last_move_at: datetime
    winning_line: Optional[list[int]] = None


class PlayerStatsResponse(BaseModel):
    player: Address
    wins: int
    total_games: int
    trophy_balance: int
    trophies: list[int]


class TrophyResponse(BaseModel):
    token_id: int
    owner: Address
    game_id: int
    metadata: TrophyMetadata
    token_uri: str


class CollectionResponse(BaseModel):
    name: str
    symbol: str
    total_supply: int
    game_count: int
