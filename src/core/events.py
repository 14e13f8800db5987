"""
Notifications emitted by the service, one per meaningful transition.

External observers (indexers, the presentation layer) subscribe through an EventChannel. The core never reads events back.
"""

import logging
from dataclasses import asdict, dataclass, field
from typing import Protocol, TypeVar

from src.core.shared_types import Address

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GameCreated:
    game_id: int
    player1: Address


@dataclass(frozen=True)
class GameJoined:
    game_id: int
    player2: Address


@dataclass(frozen=True)
class MoveMade:
    game_id: int
    player: Address
    position: int


@dataclass(frozen=True)
class GameWon:
    game_id: int
    winner: Address


@dataclass(frozen=True)
class GameDrawn:
    game_id: int


@dataclass(frozen=True)
class TrophyMinted:
    token_id: int
    winner: Address
    game_id: int


GameEvent = GameCreated | GameJoined | MoveMade | GameWon | GameDrawn | TrophyMinted
E = TypeVar("E", GameCreated, GameJoined, MoveMade, GameWon, GameDrawn, TrophyMinted)


class EventChannel(Protocol):
    """Where the service sends its notifications."""

    def publish(self, event: GameEvent) -> None: ...


@dataclass
class EventLog:
    """Keeps every published event in memory, in publication order."""

    events: list[GameEvent] = field(default_factory=list)

    def publish(self, event: GameEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: type[E]) -> list[E]:
        return [event for event in self.events if isinstance(event, event_type)]

    def clear(self) -> None:
        self.events.clear()


class LoggingEventChannel:
    """Default channel: write each event to the log."""

    def publish(self, event: GameEvent) -> None:
        logger.info(
            "event %s %s", type(event).__name__, asdict(event), extra=asdict(event)
        )
