"""Module for tile-related classes and functions."""

from dataclasses import dataclass, field
from enum import IntEnum

from e2sat.errors import ConfigurationError

BLANK = 0
"""Pattern index of the blank (border) pattern."""

MAX_PATTERNS = 26
"""Number of representable patterns: letters 'a' (blank) to 'z'."""

N_ROTATIONS = 4
"""Number of quarter-turn rotations."""


class Side(IntEnum):
    """Tile sides, in clockwise order starting at the top."""

    NORTH = 0
    EAST = 1
    SOUTH = 2
    WEST = 3

    def opposite(self) -> "Side":
        """Return the side facing this one across a shared edge."""
        return Side((self + 2) % N_ROTATIONS)


def pattern_from_char(ch: str) -> int:
    """Convert a pattern letter ('a' to 'z') to its pattern index.

    Raises:
        ConfigurationError: If the character is not a lowercase letter.
    """
    if len(ch) != 1 or not "a" <= ch <= "z":
        raise ConfigurationError(f"Invalid pattern character: {ch!r}")
    return ord(ch) - ord("a")


def pattern_to_char(pattern: int) -> str:
    """Convert a pattern index to its letter."""
    return chr(ord("a") + pattern)


def parse_edges(edges: str) -> tuple[int, int, int, int]:
    """Parse a four-letter N, E, S, W pattern string such as "ajra"."""
    if len(edges) != N_ROTATIONS:
        raise ConfigurationError(f"A tile needs exactly 4 edge patterns, got {edges!r}")
    north, east, south, west = (pattern_from_char(ch) for ch in edges)
    return north, east, south, west


def rotated_pattern(edges: tuple[int, ...], rotation: int, side: int) -> int:
    """Return the pattern shown on `side` after `rotation` counter-clockwise quarter turns.

    A quarter turn to the left brings the east pattern to the north side, so the pattern seen on
    side `s` is the one stored at `(s + rotation) % 4`.
    """
    return edges[(side + rotation) % N_ROTATIONS]


def rotational_period(edges: tuple[int, ...]) -> int:
    """Return the number of distinct rotations of a tile (1, 2 or 4)."""
    for period in (1, 2):
        if all(edges[i] == edges[(i + period) % N_ROTATIONS] for i in range(N_ROTATIONS)):
            return period
    return N_ROTATIONS


@dataclass(frozen=True)
class Tile:
    """A square tile with one pattern per side."""

    tile_id: int
    """Index of the tile in the catalog (0-based)."""

    edges: tuple[int, int, int, int]
    """Pattern indices on the N, E, S, W sides at rotation 0."""

    period: int = field(init=False)
    """Number of distinct rotations; only rotations 0..period-1 are enumerated."""

    def __post_init__(self) -> None:
        object.__setattr__(self, "period", rotational_period(self.edges))

    @property
    def rotations(self) -> range:
        """The canonical rotations of this tile."""
        return range(self.period)

    def canonical_rotation(self, rotation: int) -> int:
        """Map any rotation to the equivalent canonical one."""
        return rotation % self.period

    def pattern(self, side: int, rotation: int = 0) -> int:
        """Return the pattern on `side` of this tile after `rotation`."""
        return rotated_pattern(self.edges, rotation, side)

    def rotated(self, rotation: int) -> tuple[int, int, int, int]:
        """Return the N, E, S, W patterns of this tile after `rotation`."""
        north, east, south, west = (self.pattern(side, rotation) for side in Side)
        return north, east, south, west

    def blank_sides(self) -> int:
        """Return the number of blank sides."""
        return sum(1 for p in self.edges if p == BLANK)

    def is_corner(self) -> bool:
        """Whether the tile has exactly two blank sides, and they are adjacent."""
        if self.blank_sides() != 2:
            return False
        return any(
            self.edges[side] == BLANK and self.edges[(side + 1) % N_ROTATIONS] == BLANK
            for side in Side
        )

    def __str__(self) -> str:
        return "".join(pattern_to_char(p) for p in self.edges)


def find_rotated_tile(tiles: list[Tile], edges: str) -> tuple[int, int] | None:
    """Find the tile and rotation showing the given N, E, S, W patterns.

    Args:
        tiles: The tile catalog.
        edges: Four pattern letters, e.g. "ajra".

    Returns:
        A (tile_id, rotation) pair, or None if no tile matches.
    """
    goal = parse_edges(edges)
    for tile in tiles:
        for rotation in tile.rotations:
            if tile.rotated(rotation) == goal:
                return tile.tile_id, rotation
    return None
