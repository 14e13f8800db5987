"""
Type definitions used across layers
"""

from enum import StrEnum


class GameState(StrEnum):
    WAITING_FOR_PLAYER = "waiting_for_player"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"
    DRAW = "draw"


# Identities are opaque, environment-authenticated references (ex. a wallet address)
Address = str
