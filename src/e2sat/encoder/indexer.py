"""Variable numbering: placement variables and the auxiliary blocks that follow them.

Placement variables come first, cell by cell in row-major order; within a cell, by ascending
tile id and then ascending rotation.  Cells sharing the same border-facing sides share a
*class*, and each class owns a dense table from `tile * 4 + rotation` to a slot, so that

    id(cell, tile, rotation) = offset[cell] + slot[class[cell], tile * 4 + rotation] + 1

is pure table arithmetic.  Decoding binary-searches the cell offsets and inverts the slot.
"""

from dataclasses import dataclass
from typing import Literal

import numpy as np

from e2sat.config import EncoderConfig
from e2sat.encoder.cardinality import at_most_one_aux_count
from e2sat.errors import ConfigurationError, IndexRangeError
from e2sat.puzzle_config import PuzzleConfig, mask_allows
from e2sat.tiles import N_ROTATIONS, Side


class VariableIndexer:
    """Bijection between legal (cell, tile, rotation) triples and ids 1..num_placements."""

    def __init__(
        self,
        puzzle: PuzzleConfig,
        *,
        border_mode: Literal["exclude", "clause"] = "exclude",
        forbid_interior_blank: bool = True,
    ) -> None:
        self.puzzle = puzzle
        self.border_mode = border_mode
        self.forbid_interior_blank = forbid_interior_blank
        self.n_cells = puzzle.n_cells
        self.n_tiles = len(puzzle.tiles)
        n_codes = self.n_tiles * N_ROTATIONS

        if border_mode == "exclude":
            cell_keys = [puzzle.border_mask(cell) for cell in range(self.n_cells)]
        elif border_mode == "clause":
            cell_keys = [0] * self.n_cells
        else:
            raise ConfigurationError(f"Unknown border mode: {border_mode!r}")

        class_keys = sorted(set(cell_keys))
        self.class_masks: list[int] = class_keys
        """Border mask of each class (all zero in "clause" mode, where there is one class)."""

        key_to_class = {key: idx for idx, key in enumerate(class_keys)}
        self.cell_class = np.array([key_to_class[key] for key in cell_keys], dtype=np.int32)
        """Class index of each cell."""

        slot_table = np.full((len(class_keys), n_codes), -1, dtype=np.int32)
        members: list[np.ndarray] = []
        for class_idx, mask in enumerate(class_keys):
            codes = []
            for tile in puzzle.tiles:
                for rotation in tile.rotations:
                    if border_mode == "clause" or mask_allows(
                        mask,
                        tile.rotated(rotation),
                        forbid_interior_blank=forbid_interior_blank,
                    ):
                        codes.append(tile.tile_id * N_ROTATIONS + rotation)
            code_arr = np.array(codes, dtype=np.int32)
            slot_table[class_idx, code_arr] = np.arange(len(codes), dtype=np.int32)
            members.append(code_arr)

        self.slot_table = slot_table
        """Slot of each `tile * 4 + rotation` code per class, -1 when not a variable."""

        self.members = members
        """Codes (`tile * 4 + rotation`) of each class, in slot order."""

        class_sizes = np.array([len(m) for m in members], dtype=np.int64)
        cell_sizes = class_sizes[self.cell_class]
        self.offsets = np.zeros(self.n_cells + 1, dtype=np.int64)
        """Number of placement variables before each cell; the last entry is the total."""
        np.cumsum(cell_sizes, out=self.offsets[1:])

        self.num_placements = int(self.offsets[-1])
        """Number of placement variables (P)."""

        # Plain-list copies for the hot paths of clause generation.
        self._slots: list[list[int]] = [row.tolist() for row in slot_table]
        self._members: list[list[int]] = [m.tolist() for m in members]
        self._cell_class: list[int] = self.cell_class.tolist()
        self._offsets: list[int] = self.offsets.tolist()
        self._side_patterns: dict[tuple[int, int], list[int]] = {}

        for cell in range(self.n_cells):
            if not self._members[self._cell_class[cell]]:
                row, col = puzzle.cell_coords(cell)
                raise ConfigurationError(f"No tile can legally be placed at cell ({row},{col}).")

    def __len__(self) -> int:
        return self.num_placements

    def id(self, cell: int, tile_id: int, rotation: int) -> int:
        """Return the variable id of a placement.

        Raises:
            IndexRangeError: If the triple is outside the board or tile set, or is not a
                variable (an excluded placement or a non-canonical rotation).
        """
        if not (0 <= cell < self.n_cells and 0 <= tile_id < self.n_tiles):
            raise IndexRangeError(
                f"Placement ({cell}, {tile_id}, {rotation}) is outside the board or tile set.",
                value=(cell, tile_id, rotation),
            )
        if not 0 <= rotation < N_ROTATIONS:
            raise IndexRangeError(
                f"Rotation {rotation} is outside 0..3.", value=(cell, tile_id, rotation)
            )
        slot = self._slots[self._cell_class[cell]][tile_id * N_ROTATIONS + rotation]
        if slot < 0:
            row, col = self.puzzle.cell_coords(cell)
            raise IndexRangeError(
                f"Tile {tile_id} rotation {rotation} at cell ({row},{col}) is not a variable.",
                value=(cell, tile_id, rotation),
            )
        return self._offsets[cell] + slot + 1

    def find(self, cell: int, tile_id: int, rotation: int) -> int | None:
        """Return the variable id of a placement, or None if it is not a variable."""
        try:
            return self.id(cell, tile_id, rotation)
        except IndexRangeError:
            return None

    def decode(self, var: int) -> tuple[int, int, int]:
        """Return the (cell, tile_id, rotation) triple of a placement variable.

        Raises:
            IndexRangeError: If `var` is outside 1..num_placements.
        """
        if not 1 <= var <= self.num_placements:
            raise IndexRangeError(
                f"Variable {var} is outside the placement range 1..{self.num_placements}.",
                value=var,
            )
        idx = var - 1
        cell = int(np.searchsorted(self.offsets, idx, side="right")) - 1
        code = self._members[self._cell_class[cell]][idx - self._offsets[cell]]
        tile_id, rotation = divmod(code, N_ROTATIONS)
        return cell, tile_id, rotation

    def cell_variables(self, cell: int) -> range:
        """Return the (contiguous) variable ids of a cell."""
        return range(self._offsets[cell] + 1, self._offsets[cell + 1] + 1)

    def cell_domain(self, cell: int) -> list[tuple[int, int]]:
        """Return the (tile_id, rotation) pairs of a cell, in variable order."""
        return [divmod(code, N_ROTATIONS) for code in self._members[self._cell_class[cell]]]

    def cell_size(self, cell: int) -> int:
        """Return the number of placement variables of a cell."""
        return self._offsets[cell + 1] - self._offsets[cell]

    def tile_variables(self, tile_id: int) -> list[int]:
        """Return the variable ids placing a tile, by ascending cell and rotation."""
        tile = self.puzzle.tiles[tile_id]
        base = tile_id * N_ROTATIONS
        ids = []
        for cell in range(self.n_cells):
            slots = self._slots[self._cell_class[cell]]
            offset = self._offsets[cell] + 1
            for rotation in tile.rotations:
                slot = slots[base + rotation]
                if slot >= 0:
                    ids.append(offset + slot)
        return ids

    def side_patterns(self, cell: int, side: Side) -> list[int]:
        """Return, in variable order, the pattern each placement of a cell shows on `side`."""
        class_idx = self._cell_class[cell]
        key = (class_idx, int(side))
        patterns = self._side_patterns.get(key)
        if patterns is None:
            tiles = self.puzzle.tiles
            patterns = [
                tiles[code // N_ROTATIONS].pattern(side, code % N_ROTATIONS)
                for code in self._members[class_idx]
            ]
            self._side_patterns[key] = patterns
        return patterns


@dataclass(frozen=True)
class VariableBlock:
    """A contiguous range of variable ids."""

    name: str
    first: int
    count: int

    @property
    def last(self) -> int:
        """Last id of the block (first - 1 when empty)."""
        return self.first + self.count - 1

    def __contains__(self, var: object) -> bool:
        return isinstance(var, int) and self.first <= var <= self.last


class VariableLayout:
    """All variables of an encoding: placements followed by auxiliary blocks.

    Every block size is a pure function of the puzzle and the encoder settings, so the total
    variable count is known before any clause is generated.
    """

    def __init__(self, puzzle: PuzzleConfig, config: EncoderConfig) -> None:
        self.puzzle = puzzle
        self.config = config
        self.indexer = VariableIndexer(
            puzzle,
            border_mode=config.border_mode,
            forbid_interior_blank=config.forbid_interior_blank,
        )
        self.n_patterns = puzzle.pattern_alphabet()
        self.edges = puzzle.adjacent_pairs()

        next_id = 1
        self.placements = VariableBlock("placements", next_id, self.indexer.num_placements)
        next_id += self.placements.count

        encoding = config.amo_encoding
        group_size = config.commander_group_size
        self.cell_group_first: list[int] = []
        """First commander id of each cell's at-most-one group."""
        first = next_id
        for cell in range(puzzle.n_cells):
            self.cell_group_first.append(next_id)
            next_id += at_most_one_aux_count(
                self.indexer.cell_size(cell), encoding=encoding, group_size=group_size
            )
        self.cell_commanders = VariableBlock("cell commanders", first, next_id - first)

        self.tile_group_sizes: list[int] = [
            len(self.indexer.tile_variables(tile.tile_id)) for tile in puzzle.tiles
        ]
        for tile_id, size in enumerate(self.tile_group_sizes):
            if size == 0:
                raise ConfigurationError(f"Tile {tile_id} cannot legally be placed anywhere.")
        self.tile_group_first: list[int] = []
        """First commander id of each tile's at-most-one group."""
        first = next_id
        for size in self.tile_group_sizes:
            self.tile_group_first.append(next_id)
            next_id += at_most_one_aux_count(size, encoding=encoding, group_size=group_size)
        self.tile_commanders = VariableBlock("tile commanders", first, next_id - first)

        n_colors = 0
        if config.adjacency_encoding == "edge_color":
            n_colors = len(self.edges) * self.n_patterns
        self.edge_colors = VariableBlock("edge colors", next_id, n_colors)
        next_id += n_colors

        self.num_variables = next_id - 1
        """Total number of variables (V)."""

    @property
    def blocks(self) -> list[VariableBlock]:
        """All blocks, in id order."""
        return [self.placements, self.cell_commanders, self.tile_commanders, self.edge_colors]

    def edge_color(self, edge_idx: int, pattern: int) -> int:
        """Return the variable stating that internal edge `edge_idx` shows `pattern`."""
        if self.edge_colors.count == 0:
            raise IndexRangeError("The encoding has no edge color variables.", value=edge_idx)
        if not (0 <= edge_idx < len(self.edges) and 0 <= pattern < self.n_patterns):
            raise IndexRangeError(
                f"Edge color ({edge_idx}, {pattern}) is out of range.", value=(edge_idx, pattern)
            )
        return self.edge_colors.first + edge_idx * self.n_patterns + pattern

    def block_of(self, var: int) -> VariableBlock:
        """Return the block a variable belongs to.

        Raises:
            IndexRangeError: If `var` is outside 1..num_variables.
        """
        for block in self.blocks:
            if var in block:
                return block
        raise IndexRangeError(
            f"Variable {var} is outside the range 1..{self.num_variables}.", value=var
        )

    def describe(self) -> list[str]:
        """Return a human-readable summary of the layout, one line per block."""
        lines = []
        for block in self.blocks:
            if block.count:
                lines.append(f"{block.name}: {block.first}..{block.last} ({block.count:,})")
        lines.append(f"total variables: {self.num_variables:,}")
        return lines
