"""Loader and validation for puzzle configurations (tile catalog, clues, board size)."""

from collections import Counter
from dataclasses import dataclass, field
from os import PathLike
from pathlib import Path
from typing import NamedTuple

from e2sat import catalog
from e2sat.errors import ConfigurationError
from e2sat.tiles import BLANK, N_ROTATIONS, Side, Tile, parse_edges


class Clue(NamedTuple):
    """A pre-placed tile."""

    row: int
    col: int
    tile_id: int
    rotation: int


@dataclass
class PuzzleConfig:
    """A puzzle configuration.

    Immutable for the lifetime of a run and passed explicitly to every component that needs it.
    """

    name: str
    """A short name for the puzzle, used in logs and comments."""

    size: int
    """The number of rows (and columns) of the square board."""

    tiles: list[Tile]
    """The tile catalog, indexed by tile id."""

    clues: list[Clue] = field(default_factory=list)
    """Pre-placed tiles. Rotations are stored canonicalised."""

    def __post_init__(self) -> None:
        """Validate the catalog and clues."""
        if self.size < 2:
            raise ConfigurationError(f"Board size must be at least 2, got {self.size}.")
        if len(self.tiles) != self.n_cells:
            raise ConfigurationError(
                f"A {self.size}x{self.size} board needs {self.n_cells} tiles, "
                f"got {len(self.tiles)}."
            )
        for idx, tile in enumerate(self.tiles):
            if tile.tile_id != idx:
                raise ConfigurationError(f"Tile at position {idx} has id {tile.tile_id}.")

        clue_cells: set[tuple[int, int]] = set()
        clue_tiles: set[int] = set()
        canonical: list[Clue] = []
        for clue in self.clues:
            row, col, tile_id, rotation = clue
            if not (0 <= row < self.size and 0 <= col < self.size):
                raise ConfigurationError(f"Clue cell ({row},{col}) is outside the board.")
            if not 0 <= tile_id < len(self.tiles):
                raise ConfigurationError(
                    f"Clue at ({row},{col}) references unknown tile {tile_id}."
                )
            if not 0 <= rotation < N_ROTATIONS:
                raise ConfigurationError(
                    f"Clue at ({row},{col}) has rotation {rotation} outside 0..3."
                )
            if (row, col) in clue_cells:
                raise ConfigurationError(f"More than one clue for cell ({row},{col}).")
            if tile_id in clue_tiles:
                raise ConfigurationError(f"Tile {tile_id} is used by more than one clue.")
            clue_cells.add((row, col))
            clue_tiles.add(tile_id)

            tile = self.tiles[tile_id]
            rotation = tile.canonical_rotation(rotation)
            cell = self.cell_index(row, col)
            for side in self.border_sides(cell):
                if tile.pattern(side, rotation) != BLANK:
                    raise ConfigurationError(
                        f"Clue at ({row},{col}): tile {tile_id} rotation {rotation} shows a "
                        f"non-blank pattern on the {side.name.lower()} border."
                    )
            canonical.append(Clue(row, col, tile_id, rotation))
        self.clues = canonical

    def __str__(self) -> str:
        """Return a string representation of the PuzzleConfig."""
        return (
            f"{self.name} ({self.size}x{self.size}): {len(self.tiles)} tiles, "
            f"{len(self.clues)} clue(s)"
        )

    @property
    def n_cells(self) -> int:
        """Number of cells on the board."""
        return self.size * self.size

    def cell_index(self, row: int, col: int) -> int:
        """Convert a (row, col) tuple to a 1D (row-major) cell index."""
        return row * self.size + col

    def cell_coords(self, cell: int) -> tuple[int, int]:
        """Convert a 1D cell index to a (row, col) tuple."""
        return divmod(cell, self.size)

    def border_sides(self, cell: int) -> list[Side]:
        """Return the sides of a cell that face the outside of the board."""
        row, col = self.cell_coords(cell)
        last = self.size - 1
        sides = []
        if row == 0:
            sides.append(Side.NORTH)
        if col == last:
            sides.append(Side.EAST)
        if row == last:
            sides.append(Side.SOUTH)
        if col == 0:
            sides.append(Side.WEST)
        return sides

    def border_mask(self, cell: int) -> int:
        """Return the border-facing sides of a cell as a 4-bit mask (bit i set for Side i)."""
        mask = 0
        for side in self.border_sides(cell):
            mask |= 1 << side
        return mask

    def is_legal(
        self, cell: int, tile_id: int, rotation: int, *, forbid_interior_blank: bool = True
    ) -> bool:
        """Whether a placement respects the border rules of its cell.

        Border-facing sides must show the blank pattern; with `forbid_interior_blank`, the other
        sides must not.
        """
        return mask_allows(
            self.border_mask(cell),
            self.tiles[tile_id].rotated(rotation),
            forbid_interior_blank=forbid_interior_blank,
        )

    def adjacent_pairs(self) -> list[tuple[int, int, Side]]:
        """Return every pair of adjacent cells as (cell, neighbor, side of cell facing neighbor).

        Horizontal pairs come first (row-major), then vertical pairs (row-major).
        """
        pairs: list[tuple[int, int, Side]] = []
        for row in range(self.size):
            for col in range(self.size - 1):
                cell = self.cell_index(row, col)
                pairs.append((cell, cell + 1, Side.EAST))
        for row in range(self.size - 1):
            for col in range(self.size):
                cell = self.cell_index(row, col)
                pairs.append((cell, cell + self.size, Side.SOUTH))
        return pairs

    def clue_map(self) -> dict[int, Clue]:
        """Return the clues keyed by cell index."""
        return {self.cell_index(c.row, c.col): c for c in self.clues}

    def pattern_alphabet(self) -> int:
        """Return the number of pattern indices in use (highest pattern index plus one)."""
        return max(max(tile.edges) for tile in self.tiles) + 1

    def unmatched_patterns(self) -> dict[int, int]:
        """Return non-blank patterns that occur an odd number of times across all tiles.

        Every interior edge pairs two equal patterns, so such a catalog cannot be solved.
        """
        counts = Counter(p for tile in self.tiles for p in tile.edges if p != BLANK)
        return {p: n for p, n in sorted(counts.items()) if n % 2}

    def to_dict(self) -> dict:
        """Return a dictionary representation of the PuzzleConfig for serialization.

        This is useful for supplying the PuzzleConfig to child processes via
        `multiprocessing`, which requires arguments to be pickleable.
        """
        return {
            "name": self.name,
            "size": self.size,
            "tiles": [str(tile) for tile in self.tiles],
            "clues": [tuple(clue) for clue in self.clues],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PuzzleConfig":
        """Create a PuzzleConfig instance from a dictionary representation."""
        return cls(
            name=data["name"],
            size=data["size"],
            tiles=[Tile(idx, parse_edges(edges)) for idx, edges in enumerate(data["tiles"])],
            clues=[Clue(*clue) for clue in data["clues"]],
        )


def mask_allows(
    border_mask: int, patterns: tuple[int, ...], *, forbid_interior_blank: bool = True
) -> bool:
    """Whether rotated N, E, S, W patterns fit a cell with the given border mask."""
    for side in Side:
        facing_out = bool(border_mask >> side & 1)
        if facing_out and patterns[side] != BLANK:
            return False
        if forbid_interior_blank and not facing_out and patterns[side] == BLANK:
            return False
    return True


def eternity2(*, with_clues: bool = True) -> PuzzleConfig:
    """Return the compiled-in Eternity II puzzle."""
    return PuzzleConfig(
        name="eternity2" if with_clues else "eternity2-noclues",
        size=catalog.BOARD_SIZE,
        tiles=[Tile(idx, parse_edges(edges)) for idx, edges in enumerate(catalog.TILES)],
        clues=[Clue(*clue) for clue in catalog.CLUES] if with_clues else [],
    )


def load_puzzle(path: PathLike | str) -> PuzzleConfig:
    """Load a puzzle file.

    The first non-comment line holds the board size, followed by one line per tile of the form
    `<tile_id> <NESW letters>`, then an optional `clues` line followed by clue lines of the form
    `<row> <col> <tile_id> <rotation>`.  Lines starting with '#' and blank lines are ignored.

    Args:
        path (PathLike): Path to the puzzle file.

    Raises:
        ConfigurationError: If the file is malformed or describes an invalid puzzle.
    """
    path = Path(path)
    size: int | None = None
    edges_by_id: dict[int, tuple[int, int, int, int]] = {}
    clues: list[Clue] = []
    in_clues = False

    with open(path, "r", encoding="utf-8") as f:
        for lineno, raw in enumerate(f, start=1):
            line = raw.split("#", 1)[0].strip()
            if not line:
                continue
            where = f"{path.name}:{lineno}"
            if size is None:
                try:
                    size = int(line)
                except ValueError:
                    raise ConfigurationError(f"{where}: invalid board size line {line!r}") from None
                continue
            if line.lower() == "clues":
                in_clues = True
                continue

            fields = line.split()
            if in_clues:
                try:
                    row, col, tile_id, rotation = map(int, fields)
                except ValueError:
                    raise ConfigurationError(f"{where}: invalid clue line {line!r}") from None
                clues.append(Clue(row, col, tile_id, rotation))
                continue

            if len(fields) != 2 or not fields[0].isdigit():
                raise ConfigurationError(f"{where}: invalid tile line {line!r}")
            tile_id = int(fields[0])
            if tile_id in edges_by_id:
                raise ConfigurationError(f"{where}: duplicate tile id {tile_id}")
            edges_by_id[tile_id] = parse_edges(fields[1])

    if size is None:
        raise ConfigurationError(f"{path}: empty puzzle file")
    missing = sorted(set(range(len(edges_by_id))) - set(edges_by_id))
    if missing:
        raise ConfigurationError(f"{path}: tile ids are not dense, missing {missing[:10]}")

    return PuzzleConfig(
        name=path.stem,
        size=size,
        tiles=[Tile(idx, edges_by_id[idx]) for idx in range(len(edges_by_id))],
        clues=clues,
    )
