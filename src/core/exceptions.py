"""
Custom exceptions shared by all layers.

Every error is a precondition violation: the call that raised it changed nothing, and the caller decides whether to retry.
"""


class GameError(Exception):
    """Top-level exception for anything that goes wrong while handling a game."""


# --- PERSISTENCE ---
class RepositoryError(GameError):
    """A requested record does not exist."""


class GameNotFoundError(RepositoryError):
    pass


class TrophyNotFoundError(RepositoryError):
    pass


# --- LIFECYCLE ---
class GameStateError(GameError):
    """The game is not in a state that allows the requested operation."""


class AlreadyStartedError(GameStateError):
    pass


class NotInProgressError(GameStateError):
    pass


# --- CALLER IDENTITY ---
class PlayerError(GameError):
    """The caller is not allowed to perform the requested operation."""


class SelfJoinError(PlayerError):
    pass


class NotAParticipantError(PlayerError):
    pass


class NotYourTurnError(PlayerError):
    pass


# --- MOVES ---
class IllegalMoveError(GameError):
    """The move itself cannot be placed on the board."""


class OutOfRangeError(IllegalMoveError):
    pass


class CellOccupiedError(IllegalMoveError):
    pass


# --- REQUESTS ---
class InvalidRequestError(GameError):
    """Request could not be interpreted."""


# --- CONCURRENCY ---
class ConcurrentUpdateError(GameStateError):
    """Another call changed the same records first. Nothing was applied; read again and retry."""
