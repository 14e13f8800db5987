"""Protocol repositories: the ledger the service reads from and writes to (SQLAlchemy today, anything with the same shape later)."""

from contextlib import AbstractContextManager
from typing import Protocol

from src.core.models import GameModel, PlayerStatsModel, TrophyModel
from src.core.shared_types import Address


class GameRegistry(Protocol):
    """Owns the game records, the game id counter and the per-player game index."""

    def get_game(self, game_id: int) -> GameModel | None:
        """Get game by ID, if record exists."""
        ...

    def create_game(self, game: GameModel) -> tuple[GameModel, int]:
        """Store new game and return the stored data + newly allocated (sequential) game ID."""
        ...

    def update_game(self, game_id: int, game: GameModel) -> GameModel | None:
        """Add new info to existing record."""
        ...

    def list_open_games(self) -> list[int]:
        """IDs of games waiting for a second player, ascending."""
        ...

    def list_player_games(self, player: Address) -> list[int]:
        """IDs of games the player created or joined, in the order that happened."""
        ...

    def add_player_game(self, player: Address, game_id: int) -> None: ...

    def game_count(self) -> int: ...


class PlayerLedger(Protocol):
    """Owns the per-player counters."""

    def get_stats(self, player: Address) -> PlayerStatsModel:
        """Zeroed stats for a player without history."""
        ...

    def record_game_played(self, player: Address) -> None: ...

    def record_win(self, player: Address) -> None: ...


class TrophyLedger(Protocol):
    """Owns the trophy id counter and the trophy -> owner association."""

    def mint(self, owner: Address, game_id: int) -> int:
        """Allocate the next trophy id for `owner` and return it."""
        ...

    def get_trophy(self, token_id: int) -> TrophyModel | None: ...

    def owner_of(self, token_id: int) -> Address | None:
        """None if the token was never minted."""
        ...

    def balance_of(self, owner: Address) -> int: ...

    def tokens_of(self, owner: Address) -> list[int]: ...

    def total_supply(self) -> int: ...


class LedgerStore(Protocol):
    """All persisted state, plus the unit of work every mutating call runs in."""

    games: GameRegistry
    players: PlayerLedger
    trophies: TrophyLedger

    def atomic(self) -> AbstractContextManager[None]:
        """Apply everything done inside the block, or nothing at all.

        Raises ConcurrentUpdateError when another unit changed the same records first.
        """
        ...
