from enum import Enum


class Phase(Enum):
    """Lifecycle stage of a session."""
    SETUP = "setup"
    PLAYING = "playing"
    PAUSED = "paused"
    FINISHED = "finished"
