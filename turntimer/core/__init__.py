from .phase import Phase
from .player import MAX_PLAYERS, MIN_PLAYERS, PALETTE, PALETTE_HEX, Player
from .session import InvariantError, Session

__all__ = ["Phase", "Player", "PALETTE", "PALETTE_HEX", "MIN_PLAYERS", "MAX_PLAYERS", "Session", "InvariantError"]
