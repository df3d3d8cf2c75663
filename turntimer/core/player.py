"""Player value type and the fixed color palette."""

from dataclasses import dataclass

MIN_PLAYERS = 2
MAX_PLAYERS = 5

# Order matters: index 0 is the fallback color, and legacy saves are colored by index.
PALETTE = (
    "red",
    "blue",
    "green",
    "orange",
    "purple",
    "teal",
    "pink",
    "amber",
)

# ARGB values for hosts that actually draw the colors.
PALETTE_HEX = {
    "red": "#FFE53935",
    "blue": "#FF1E88E5",
    "green": "#FF43A047",
    "orange": "#FFFB8C00",
    "purple": "#FF7E57C2",
    "teal": "#FF00897B",
    "pink": "#FFC2185B",
    "amber": "#FFFDD835",
}


@dataclass(frozen=True)
class Player:
    """One participant. Immutable; the session swaps in updated copies."""
    id: int
    name: str
    color: str = PALETTE[0]
    elapsed_ms: int = 0


def available_colors(used_colors):
    return [c for c in PALETTE if c not in used_colors]


# Lowest-indexed free color, or PALETTE[0] once everything is taken (can't happen with MAX_PLAYERS < 8).
def next_available_color(used_colors):
    free = available_colors(used_colors)
    return free[0] if free else PALETTE[0]
