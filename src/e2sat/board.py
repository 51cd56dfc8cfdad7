"""Classes and functions for representing a solved board."""

from array import array
from typing import Iterable, NamedTuple

from e2sat.puzzle_config import PuzzleConfig
from e2sat.tiles import pattern_to_char


class Placement(NamedTuple):
    """A tile and its (canonical) rotation."""

    tile_id: int
    rotation: int


class Board:
    """Store a 2D matrix of placements as two parallel 1D arrays.

    Contains support for both 1D and 2D indexing.
    """

    def __init__(self, puzzle: PuzzleConfig, placements: Iterable[Placement]) -> None:
        placements = list(placements)
        if len(placements) != puzzle.n_cells:
            raise ValueError(
                f"A {puzzle.size}x{puzzle.size} board needs {puzzle.n_cells} placements, "
                f"got {len(placements)}."
            )
        self.puzzle = puzzle
        self.tile_ids = array("h", (p.tile_id for p in placements))
        self.rotations = array("b", (p.rotation for p in placements))
        self.n_rows = puzzle.size
        self.n_cols = puzzle.size

    def __len__(self) -> int:
        return len(self.tile_ids)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return (
            self.n_cols == other.n_cols
            and self.tile_ids == other.tile_ids
            and self.rotations == other.rotations
        )

    def __getitem__(self, idx: int | tuple[int, int]) -> Placement:
        """Get a placement by 1D (row-major order) or 2D index."""
        if isinstance(idx, tuple) and len(idx) == 2:
            idx = self.get_1d_idx(*idx)
        if isinstance(idx, int):
            return Placement(self.tile_ids[idx], self.rotations[idx])
        raise IndexError("Invalid index type for Board.")

    def __iter__(self):
        for idx in range(len(self)):
            yield self[idx]

    def get_2d_idx(self, one_d_idx: int) -> tuple[int, int]:
        """Convert a 1D index to a (row, col) tuple."""
        return divmod(one_d_idx, self.n_cols)

    def get_1d_idx(self, row: int, col: int) -> int:
        """Convert a (row, col) tuple to a 1D index."""
        return row * self.n_cols + col

    def patterns(self, idx: int) -> tuple[int, int, int, int]:
        """Return the rotated N, E, S, W patterns of the tile at a cell."""
        tile_id, rotation = self[idx]
        return self.puzzle.tiles[tile_id].rotated(rotation)

    def edge_string(self, idx: int) -> str:
        """Return the rotated N, E, S, W patterns of a cell as letters."""
        return "".join(pattern_to_char(p) for p in self.patterns(idx))

    def render(self) -> str:
        """Return a plain-text grid of `tile/rotation` entries, one board row per line."""
        width = len(str(len(self.puzzle.tiles) - 1)) + 2
        lines = []
        for row in range(self.n_rows):
            cells = (
                f"{self.tile_ids[idx]}/{self.rotations[idx]}".rjust(width)
                for idx in range(row * self.n_cols, (row + 1) * self.n_cols)
            )
            lines.append(" ".join(cells))
        return "\n".join(lines)

    def print(self) -> None:
        """Print the board to the console."""
        print(self.render())

    def __str__(self) -> str:
        """Returns a string representation of the board."""
        return self.render()


def board_from_rows(puzzle: PuzzleConfig, rows: list[list[tuple[int, int]]]) -> Board:
    """Build a board from nested (tile_id, rotation) rows, canonicalising rotations."""
    placements = []
    for row in rows:
        for tile_id, rotation in row:
            rotation = puzzle.tiles[tile_id].canonical_rotation(rotation)
            placements.append(Placement(tile_id, rotation))
    return Board(puzzle, placements)
