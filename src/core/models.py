"""
Contract for the Service layer.

Domain level data models of the information the ledger keeps: game records, per-player counters and trophies.
(Decouples the data model specific to the DB layer, API layer, or domain layer from the information needed to send across boundaries)
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from src.core.shared_types import Address


@dataclass
class GameModel:
    """Transport-safe representation of a tic-tac-toe game used between API, Service, DB, and Game layers."""

    player1: Address
    player2: Optional[Address]
    board: list[int]
    current_turn: Address
    winner: Optional[Address]
    state: str
    created_at: datetime
    last_move_at: datetime


@dataclass
class PlayerStatsModel:
    wins: int = 0
    total_games: int = 0


@dataclass
class TrophyModel:
    token_id: int
    owner: Address
    game_id: int

