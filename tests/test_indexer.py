import pytest

from conftest import make_config, make_puzzle
from e2sat.encoder.indexer import VariableIndexer, VariableLayout
from e2sat.errors import ConfigurationError, IndexRangeError
from e2sat.puzzle_config import eternity2


def test_toy_exclude_mode_layout(toy_puzzle):
    indexer = VariableIndexer(toy_puzzle)
    assert indexer.num_placements == 16
    # Cell 0 (top-left): each corner tile fits in exactly one rotation.
    assert indexer.cell_domain(0) == [(0, 3), (1, 2), (2, 1), (3, 1)]
    assert indexer.id(0, 3, 1) == 4
    assert indexer.id(1, 2, 0) == 7
    assert indexer.id(2, 0, 0) == 9
    assert indexer.id(3, 1, 0) == 14


def test_toy_clause_mode_layout(toy_puzzle):
    indexer = VariableIndexer(toy_puzzle, border_mode="clause")
    assert indexer.num_placements == 64
    assert indexer.id(0, 0, 0) == 1
    assert indexer.id(2, 3, 1) == 2 * 16 + 3 * 4 + 1 + 1


@pytest.mark.parametrize("border_mode", ["exclude", "clause"])
def test_round_trip(square3_puzzle, border_mode):
    indexer = VariableIndexer(square3_puzzle, border_mode=border_mode)
    seen = set()
    for cell in range(square3_puzzle.n_cells):
        for tile_id, rotation in indexer.cell_domain(cell):
            var = indexer.id(cell, tile_id, rotation)
            assert indexer.decode(var) == (cell, tile_id, rotation)
            seen.add(var)
    assert seen == set(range(1, indexer.num_placements + 1))


def test_placement_count_matches_legal_triples(square3_puzzle):
    indexer = VariableIndexer(square3_puzzle)
    expected = sum(
        1
        for cell in range(square3_puzzle.n_cells)
        for tile in square3_puzzle.tiles
        for rotation in tile.rotations
        if square3_puzzle.is_legal(cell, tile.tile_id, rotation)
    )
    assert indexer.num_placements == expected
    # 4 corner tiles x 4 corners, 4 edge tiles x 4 edge cells, 1 interior tile x 4 rotations.
    assert expected == 16 + 16 + 4


def test_symmetric_tiles_enumerate_fewer_rotations():
    puzzle = make_puzzle("sym", 3, ["bcbc", "abea", "abda", "cdba", "edca", "cbba", "aabc",
                                    "deba", "caac"])
    indexer = VariableIndexer(puzzle)
    centre = indexer.cell_domain(4)
    assert (0, 0) in centre and (0, 1) in centre
    assert (0, 2) not in centre
    with pytest.raises(IndexRangeError):
        indexer.id(4, 0, 2)


def test_id_rejects_out_of_domain(toy_puzzle):
    indexer = VariableIndexer(toy_puzzle)
    with pytest.raises(IndexRangeError) as exc_info:
        indexer.id(0, 3, 0)
    assert exc_info.value.value == (0, 3, 0)
    with pytest.raises(IndexRangeError):
        indexer.id(4, 0, 0)
    with pytest.raises(IndexRangeError):
        indexer.id(0, 4, 0)
    with pytest.raises(IndexRangeError):
        indexer.id(0, 0, 4)
    assert indexer.find(0, 3, 0) is None


@pytest.mark.parametrize("var", [0, -1, 17])
def test_decode_rejects_out_of_range(toy_puzzle, var):
    with pytest.raises(IndexRangeError):
        VariableIndexer(toy_puzzle).decode(var)


def test_tile_variables(toy_puzzle):
    indexer = VariableIndexer(toy_puzzle)
    assert indexer.tile_variables(3) == [4, 8, 12, 16]


def test_side_patterns_follow_variable_order(toy_puzzle):
    indexer = VariableIndexer(toy_puzzle)
    # East side of the top-left cell: d, c, e, b.
    assert indexer.side_patterns(0, 1) == [3, 2, 4, 1]


def test_cell_without_legal_tile():
    # No tile has two adjacent blanks, so no corner can be filled.
    tiles = ["abab", "bcbc", "cdcd", "dede"]
    with pytest.raises(ConfigurationError, match="cell"):
        VariableIndexer(make_puzzle("none", 2, tiles))


def test_layout_blocks(toy_puzzle):
    layout = VariableLayout(toy_puzzle, make_config())
    assert layout.num_variables == 16
    assert layout.cell_commanders.count == 0
    assert layout.edge_colors.count == 0

    layout = VariableLayout(toy_puzzle, make_config(amo_encoding="commander"))
    # Groups of 4 variables need 2 commanders each: 4 cells and 4 tiles.
    assert layout.cell_commanders.first == 17
    assert layout.cell_commanders.count == 8
    assert layout.tile_commanders.first == 25
    assert layout.num_variables == 32
    assert layout.block_of(20) is layout.cell_commanders

    layout = VariableLayout(toy_puzzle, make_config(adjacency_encoding="edge_color"))
    # 4 internal edges x 5 patterns (a..e).
    assert layout.edge_colors.count == 20
    assert layout.num_variables == 36
    assert layout.edge_color(1, 2) == 17 + 5 + 2
    with pytest.raises(IndexRangeError):
        layout.block_of(37)


def test_eternity2_placement_count():
    indexer = VariableIndexer(eternity2())
    # 4 corner tiles x 4 corners, 56 edge tiles x 56 edge cells, 196 interior tiles x 196
    # interior cells x 4 rotations.
    assert indexer.num_placements == 4 * 4 + 56 * 56 + 196 * 196 * 4
    assert len(indexer.class_masks) == 9
    var = indexer.id(8 * 16 + 7, 135, 0)
    assert indexer.decode(var) == (8 * 16 + 7, 135, 0)
