"""Turn-based cumulative timer for small groups of players."""

__version__ = "1.0.0"
