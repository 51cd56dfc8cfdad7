"""Reconstruction and validation of a board from a satisfying assignment."""

from collections.abc import Iterable
from dataclasses import dataclass

from bitarray.util import zeros

from e2sat.board import Board, Placement
from e2sat.decoder.solver_output import SolverResult, Verdict, parse_solver_output
from e2sat.encoder.indexer import VariableLayout
from e2sat.errors import InconsistentAssignment
from e2sat.puzzle_config import PuzzleConfig
from e2sat.tiles import BLANK, Side


@dataclass
class DecodeOutcome:
    """Terminal outcome of decoding a solver result."""

    verdict: Verdict
    board: Board | None
    """The decoded board; None unless the verdict is SATISFIABLE."""

    result: SolverResult


def _cell_str(puzzle: PuzzleConfig, cell: int) -> str:
    row, col = puzzle.cell_coords(cell)
    return f"({row},{col})"


def validate_board(board: Board, *, forbid_interior_blank: bool = True) -> list[str]:
    """Check a board against the puzzle's rules.

    Every tile is used exactly once, border-facing sides show the blank pattern (and, with
    `forbid_interior_blank`, interior-facing sides do not), shared edges match and clue cells
    hold their clue.

    Returns:
        One human-readable line per problem found; empty if the board is valid.
    """
    puzzle = board.puzzle
    problems: list[str] = []

    used = zeros(len(puzzle.tiles))
    cells_of_tile: dict[int, list[int]] = {}
    for cell, (tile_id, _) in enumerate(board):
        if not 0 <= tile_id < len(puzzle.tiles):
            problems.append(f"cell {_cell_str(puzzle, cell)}: unknown tile {tile_id}")
            continue
        if used[tile_id]:
            cells_of_tile[tile_id].append(cell)
        else:
            used[tile_id] = 1
            cells_of_tile[tile_id] = [cell]
    if problems:
        return problems
    for tile_id, cells in sorted(cells_of_tile.items()):
        if len(cells) > 1:
            where = ", ".join(_cell_str(puzzle, cell) for cell in cells)
            problems.append(f"tile {tile_id} is placed {len(cells)} times: {where}")
    if used.count(0):
        for tile_id in range(len(used)):
            if not used[tile_id]:
                problems.append(f"tile {tile_id} is never placed")

    for cell in range(len(board)):
        border = puzzle.border_sides(cell)
        patterns = board.patterns(cell)
        for side in Side:
            facing_out = side in border
            if facing_out and patterns[side] != BLANK:
                problems.append(
                    f"cell {_cell_str(puzzle, cell)}: tile {board[cell].tile_id} rotation "
                    f"{board[cell].rotation} shows a non-blank pattern on the "
                    f"{side.name.lower()} border"
                )
            elif forbid_interior_blank and not facing_out and patterns[side] == BLANK:
                problems.append(
                    f"cell {_cell_str(puzzle, cell)}: tile {board[cell].tile_id} rotation "
                    f"{board[cell].rotation} shows the blank pattern on its interior "
                    f"{side.name.lower()} side"
                )

    for cell_a, cell_b, side in puzzle.adjacent_pairs():
        pattern_a = board.patterns(cell_a)[side]
        pattern_b = board.patterns(cell_b)[side.opposite()]
        if pattern_a != pattern_b:
            problems.append(
                f"edge {_cell_str(puzzle, cell_a)}-{_cell_str(puzzle, cell_b)}: "
                f"patterns {pattern_a} and {pattern_b} differ"
            )

    for cell, clue in puzzle.clue_map().items():
        if board[cell] != Placement(clue.tile_id, clue.rotation):
            tile_id, rotation = board[cell]
            problems.append(
                f"clue cell {_cell_str(puzzle, cell)}: holds tile {tile_id} rotation {rotation}, "
                f"expected tile {clue.tile_id} rotation {clue.rotation}"
            )
    return problems


def decode_assignment(result: SolverResult, layout: VariableLayout) -> Board:
    """Reconstruct the board described by a satisfying assignment.

    Auxiliary (commander and edge color) variables are ignored.  Nothing is ever repaired: any
    problem makes the whole assignment invalid.

    Args:
        result (SolverResult): A parsed satisfiable solver result.
        layout (VariableLayout): The variable layout the CNF was generated with.

    Returns:
        The decoded Board, with canonical rotations.

    Raises:
        InconsistentAssignment: Listing every problem found, with cell coordinates and the
            decoded candidates.
    """
    indexer = layout.indexer
    problems: list[str] = []

    for var in result.contradictions:
        problems.append(f"variable {var} is assigned both true and false")
    highest = result.max_variable()
    if highest > layout.num_variables:
        problems.append(
            f"variable {highest} is beyond the {layout.num_variables} variables of the encoding"
        )

    candidates: list[list[tuple[int, int, int]]] = [[] for _ in range(indexer.n_cells)]
    for var in result.true_vars.irange(1, indexer.num_placements):
        cell, tile_id, rotation = indexer.decode(var)
        candidates[cell].append((var, tile_id, rotation))

    placements: list[Placement] = []
    for cell, found in enumerate(candidates):
        if len(found) == 1:
            _, tile_id, rotation = found[0]
            placements.append(Placement(tile_id, rotation))
            continue
        if not found:
            problems.append(
                f"cell {_cell_str(layout.puzzle, cell)}: no placement variable is true"
            )
        else:
            listing = ", ".join(
                f"{var} (tile {tile_id} rotation {rotation})" for var, tile_id, rotation in found
            )
            problems.append(
                f"cell {_cell_str(layout.puzzle, cell)}: {len(found)} placement variables are "
                f"true: {listing}"
            )

    board: Board | None = None
    if len(placements) == indexer.n_cells:
        board = Board(layout.puzzle, placements)
        problems.extend(
            validate_board(board, forbid_interior_blank=layout.config.forbid_interior_blank)
        )
    if problems or board is None:
        raise InconsistentAssignment(problems)
    return board


def decode_solver_output(lines: Iterable[str], layout: VariableLayout) -> DecodeOutcome:
    """Parse a solver result stream and decode the board if the verdict is satisfiable.

    Args:
        lines (Iterable[str]): Lines of solver output.
        layout (VariableLayout): The variable layout the CNF was generated with.

    Returns:
        A DecodeOutcome. UNSATISFIABLE and UNKNOWN verdicts are outcomes, not errors.

    Raises:
        SolverOutputError: If the solver output cannot be read.
        InconsistentAssignment: If the assignment does not describe a valid board.
    """
    result = parse_solver_output(lines)
    if result.verdict != Verdict.SATISFIABLE:
        return DecodeOutcome(verdict=result.verdict, board=None, result=result)
    return DecodeOutcome(
        verdict=result.verdict,
        board=decode_assignment(result, layout),
        result=result,
    )
