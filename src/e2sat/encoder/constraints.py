"""The constraint model: every clause family of the encoding, produced lazily.

Each family is a sequence of independent *units* (one clue, one cell, one tile, one pair of
adjacent cells, ...).  `ConstraintModel.iter_family` yields the clauses of a range of units, so a
family can be streamed whole or split into shards that are generated independently.
"""

from collections import Counter
from collections.abc import Iterator
from enum import IntEnum
from typing import Literal

import numpy as np

from e2sat.config import EncoderConfig
from e2sat.encoder.cardinality import (
    Clause,
    at_least_one,
    at_most_one,
    at_most_one_clause_count,
    pairwise_at_most_one,
    pairwise_clause_count,
)
from e2sat.encoder.indexer import VariableLayout
from e2sat.errors import ConfigurationError
from e2sat.puzzle_config import PuzzleConfig, mask_allows
from e2sat.tiles import Side


class ClauseFamily(IntEnum):
    """Clause families, in emission order."""

    CLUES = 0
    SYMMETRY = 1
    BORDER = 2
    CELL_COVERAGE = 3
    CELL_UNIQUENESS = 4
    TILE_COVERAGE = 5
    TILE_UNIQUENESS = 6
    ADJACENCY = 7

    @property
    def label(self) -> str:
        """Lowercase name for logs and comments."""
        return self.name.lower().replace("_", " ")


CountMethod = Literal["enumerate", "formula"]


class ConstraintModel:
    """Clause generator for one puzzle under one set of encoder settings.

    Holds only the read-only puzzle, the variable layout and a few small lookup caches, so it can
    be rebuilt cheaply in any worker process from `puzzle.to_dict()` and `config.model_dump()`.
    """

    def __init__(self, puzzle: PuzzleConfig, config: EncoderConfig) -> None:
        self.puzzle = puzzle
        self.config = config
        self.layout = VariableLayout(puzzle, config)
        self.indexer = self.layout.indexer

        self.notes: list[str] = []
        """Human-readable remarks about choices made for this puzzle (logged by the writer)."""

        self._clue_vars: list[int] = []
        for clue in puzzle.clues:
            cell = puzzle.cell_index(clue.row, clue.col)
            if not puzzle.is_legal(
                cell,
                clue.tile_id,
                clue.rotation,
                forbid_interior_blank=config.forbid_interior_blank,
            ):
                raise ConfigurationError(
                    f"Clue at ({clue.row},{clue.col}): tile {clue.tile_id} rotation "
                    f"{clue.rotation} shows the blank pattern on an interior side."
                )
            self._clue_vars.append(self.indexer.id(cell, clue.tile_id, clue.rotation))

        self._symmetry_clauses: list[Clause] = self._build_symmetry_clauses()
        self._mismatch_cache: dict[tuple[int, int, int], list[int]] = {}
        self._illegal_cache: dict[tuple[int, int], list[int]] = {}

    @property
    def num_variables(self) -> int:
        """Total number of variables (V)."""
        return self.layout.num_variables

    def _build_symmetry_clauses(self) -> list[Clause]:
        if not self.config.symmetry_breaking:
            self.notes.append("symmetry breaking disabled")
            return []
        if self.puzzle.clues:
            self.notes.append("symmetry breaking skipped: the clues already fix the board rotation")
            return []
        if not self.config.forbid_interior_blank:
            self.notes.append(
                "symmetry breaking skipped: corner tiles are only confined to corners when "
                "interior blanks are forbidden"
            )
            return []
        corner = next((tile for tile in self.puzzle.tiles if tile.is_corner()), None)
        if corner is None:
            self.notes.append("symmetry breaking skipped: no corner tile in the catalog")
            return []
        rotations = [
            rotation
            for rotation in corner.rotations
            if self.puzzle.is_legal(0, corner.tile_id, rotation, forbid_interior_blank=True)
        ]
        self.notes.append(f"symmetry breaking: corner tile {corner.tile_id} fixed to cell (0,0)")
        return [tuple(self.indexer.id(0, corner.tile_id, rotation) for rotation in rotations)]

    def family_units(self, family: ClauseFamily) -> int:
        """Return the number of independent units of a family."""
        if family == ClauseFamily.CLUES:
            return len(self._clue_vars)
        if family == ClauseFamily.SYMMETRY:
            return len(self._symmetry_clauses)
        if family == ClauseFamily.BORDER:
            return self.puzzle.n_cells if self.config.border_mode == "clause" else 0
        if family in (ClauseFamily.CELL_COVERAGE, ClauseFamily.CELL_UNIQUENESS):
            return self.puzzle.n_cells
        if family in (ClauseFamily.TILE_COVERAGE, ClauseFamily.TILE_UNIQUENESS):
            return len(self.puzzle.tiles)
        if family == ClauseFamily.ADJACENCY:
            return len(self.layout.edges)
        raise ValueError(f"Unknown clause family: {family!r}")

    def __iter__(self) -> Iterator[Clause]:
        """Yield every clause of every family, in emission order."""
        for family in ClauseFamily:
            yield from self.iter_family(family)

    def iter_family(
        self, family: ClauseFamily, start: int = 0, stop: int | None = None
    ) -> Iterator[Clause]:
        """Yield the clauses of units `start` to `stop - 1` of a family.

        Args:
            family (ClauseFamily): The clause family.
            start (int): First unit.
            stop (int | None): One past the last unit; None for the end of the family.
        """
        n_units = self.family_units(family)
        stop = n_units if stop is None else min(stop, n_units)
        units = range(start, stop)

        if family == ClauseFamily.CLUES:
            for unit in units:
                yield (self._clue_vars[unit],)
        elif family == ClauseFamily.SYMMETRY:
            for unit in units:
                yield self._symmetry_clauses[unit]
        elif family == ClauseFamily.BORDER:
            for cell in units:
                for var in self._illegal_variables(cell):
                    yield (-var,)
        elif family == ClauseFamily.CELL_COVERAGE:
            for cell in units:
                yield from at_least_one(self.indexer.cell_variables(cell))
        elif family == ClauseFamily.CELL_UNIQUENESS:
            for cell in units:
                yield from at_most_one(
                    self.indexer.cell_variables(cell),
                    encoding=self.config.amo_encoding,
                    first_aux=self.layout.cell_group_first[cell],
                    group_size=self.config.commander_group_size,
                )
        elif family == ClauseFamily.TILE_COVERAGE:
            for tile_id in units:
                yield from at_least_one(self.indexer.tile_variables(tile_id))
        elif family == ClauseFamily.TILE_UNIQUENESS:
            for tile_id in units:
                yield from at_most_one(
                    self.indexer.tile_variables(tile_id),
                    encoding=self.config.amo_encoding,
                    first_aux=self.layout.tile_group_first[tile_id],
                    group_size=self.config.commander_group_size,
                )
        elif self.config.adjacency_encoding == "edge_color":
            for edge_idx in units:
                yield from self._edge_color_clauses(edge_idx)
        else:
            for edge_idx in units:
                yield from self._direct_adjacency_clauses(edge_idx)

    def _illegal_variables(self, cell: int) -> list[int]:
        """Placement variables of a cell that break its border rules ("clause" mode)."""
        mask = self.puzzle.border_mask(cell)
        key = (int(self.indexer.cell_class[cell]), mask)
        slots = self._illegal_cache.get(key)
        if slots is None:
            tiles = self.puzzle.tiles
            slots = [
                slot
                for slot, (tile_id, rotation) in enumerate(self.indexer.cell_domain(cell))
                if not mask_allows(
                    mask,
                    tiles[tile_id].rotated(rotation),
                    forbid_interior_blank=self.config.forbid_interior_blank,
                )
            ]
            self._illegal_cache[key] = slots
        first = self.indexer.cell_variables(cell).start
        return [first + slot for slot in slots]

    def _mismatching_slots(self, cell: int, side: Side, pattern: int) -> list[int]:
        """Slots of a cell whose pattern on `side` differs from `pattern`."""
        key = (int(self.indexer.cell_class[cell]), int(side), pattern)
        slots = self._mismatch_cache.get(key)
        if slots is None:
            patterns = np.array(self.indexer.side_patterns(cell, side), dtype=np.int16)
            slots = np.flatnonzero(patterns != pattern).tolist()
            self._mismatch_cache[key] = slots
        return slots

    def _direct_adjacency_clauses(self, edge_idx: int) -> Iterator[Clause]:
        cell_a, cell_b, side = self.layout.edges[edge_idx]
        facing = side.opposite()
        first_a = self.indexer.cell_variables(cell_a).start
        first_b = self.indexer.cell_variables(cell_b).start
        for slot_a, pattern in enumerate(self.indexer.side_patterns(cell_a, side)):
            neg_a = -(first_a + slot_a)
            for slot_b in self._mismatching_slots(cell_b, facing, pattern):
                yield (neg_a, -(first_b + slot_b))

    def _edge_color_clauses(self, edge_idx: int) -> Iterator[Clause]:
        cell_a, cell_b, side = self.layout.edges[edge_idx]
        color = self.layout.edge_colors.first + edge_idx * self.layout.n_patterns
        for cell, cell_side in ((cell_a, side), (cell_b, side.opposite())):
            first = self.indexer.cell_variables(cell).start
            for slot, pattern in enumerate(self.indexer.side_patterns(cell, cell_side)):
                yield (-(first + slot), color + pattern)
        yield from pairwise_at_most_one(range(color, color + self.layout.n_patterns))

    def count_clauses(
        self,
        family: ClauseFamily,
        start: int = 0,
        stop: int | None = None,
        *,
        method: CountMethod = "enumerate",
    ) -> int:
        """Return the number of clauses of a unit range of a family.

        Args:
            family (ClauseFamily): The clause family.
            start (int): First unit.
            stop (int | None): One past the last unit; None for the end of the family.
            method: "enumerate" generates and counts the clauses; "formula" computes the count
                from the variable layout without generating anything.
        """
        if method == "enumerate":
            return sum(1 for _ in self.iter_family(family, start, stop))
        if method != "formula":
            raise ValueError(f"Unknown count method: {method!r}")

        n_units = self.family_units(family)
        stop = n_units if stop is None else min(stop, n_units)
        units = range(start, stop)
        encoding = self.config.amo_encoding
        group_size = self.config.commander_group_size

        if family == ClauseFamily.BORDER:
            return sum(len(self._illegal_variables(cell)) for cell in units)
        if family == ClauseFamily.CELL_UNIQUENESS:
            return sum(
                at_most_one_clause_count(
                    self.indexer.cell_size(cell), encoding=encoding, group_size=group_size
                )
                for cell in units
            )
        if family == ClauseFamily.TILE_UNIQUENESS:
            return sum(
                at_most_one_clause_count(
                    self.layout.tile_group_sizes[tile_id],
                    encoding=encoding,
                    group_size=group_size,
                )
                for tile_id in units
            )
        if family == ClauseFamily.ADJACENCY:
            return sum(self._adjacency_clause_count(edge_idx) for edge_idx in units)
        # One clause per unit: clues, symmetry, cell coverage, tile coverage.
        return len(units)

    def _adjacency_clause_count(self, edge_idx: int) -> int:
        cell_a, cell_b, side = self.layout.edges[edge_idx]
        patterns_a = self.indexer.side_patterns(cell_a, side)
        patterns_b = self.indexer.side_patterns(cell_b, side.opposite())
        if self.config.adjacency_encoding == "edge_color":
            return (
                len(patterns_a)
                + len(patterns_b)
                + pairwise_clause_count(self.layout.n_patterns)
            )
        counts_a = Counter(patterns_a)
        counts_b = Counter(patterns_b)
        matching = sum(n * counts_b[pattern] for pattern, n in counts_a.items())
        return len(patterns_a) * len(patterns_b) - matching

    def family_counts(self, *, method: CountMethod = "enumerate") -> dict[ClauseFamily, int]:
        """Return the clause count of every family."""
        return {family: self.count_clauses(family, method=method) for family in ClauseFamily}

    def describe(self, counts: dict[ClauseFamily, int] | None = None) -> list[str]:
        """Return human-readable lines describing the encoding (for comments and logs).

        Args:
            counts: Per-family clause counts to include, if known.
        """
        config = self.config
        lines = [
            f"puzzle: {self.puzzle}",
            f"border mode: {config.border_mode}, interior blanks "
            f"{'forbidden' if config.forbid_interior_blank else 'allowed'}",
            f"at-most-one: {config.amo_encoding}"
            + (
                f" (group size {config.commander_group_size})"
                if config.amo_encoding == "commander"
                else ""
            ),
            f"adjacency: {config.adjacency_encoding}",
        ]
        lines.extend(self.notes)
        lines.extend(self.layout.describe())
        if counts is not None:
            for family, count in counts.items():
                lines.append(f"{family.label}: {count:,} clauses")
            lines.append(f"total clauses: {sum(counts.values()):,}")
        return lines
