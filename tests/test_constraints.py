import pytest

from conftest import ENCODINGS, make_config, make_puzzle
from e2sat.encoder.constraints import ClauseFamily, ConstraintModel
from e2sat.encoder.writer import validate_clause
from e2sat.errors import ConfigurationError
from e2sat.puzzle_config import eternity2


def test_toy_family_counts(toy_puzzle):
    model = ConstraintModel(toy_puzzle, make_config())
    assert model.family_counts() == {
        ClauseFamily.CLUES: 0,
        ClauseFamily.SYMMETRY: 1,
        ClauseFamily.BORDER: 0,
        ClauseFamily.CELL_COVERAGE: 4,
        ClauseFamily.CELL_UNIQUENESS: 24,
        ClauseFamily.TILE_COVERAGE: 4,
        ClauseFamily.TILE_UNIQUENESS: 24,
        ClauseFamily.ADJACENCY: 48,
    }


@pytest.mark.parametrize("overrides", ENCODINGS)
@pytest.mark.parametrize("puzzle_fixture", ["toy_puzzle", "toy_clue_puzzle", "square3_puzzle"])
def test_formula_counts_match_enumeration(request, puzzle_fixture, overrides):
    model = ConstraintModel(request.getfixturevalue(puzzle_fixture), make_config(**overrides))
    assert model.family_counts(method="formula") == model.family_counts(method="enumerate")


@pytest.mark.parametrize("overrides", ENCODINGS)
def test_every_clause_is_well_formed(square3_puzzle, overrides):
    model = ConstraintModel(square3_puzzle, make_config(**overrides))
    for clause in model:
        validate_clause(clause, model.num_variables)


def test_generation_is_deterministic(square3_puzzle):
    model = ConstraintModel(square3_puzzle, make_config())
    assert list(model) == list(model)


def test_unit_ranges_partition_a_family(square3_puzzle):
    model = ConstraintModel(square3_puzzle, make_config())
    family = ClauseFamily.ADJACENCY
    whole = list(model.iter_family(family))
    parts = [
        clause
        for start in range(0, model.family_units(family), 5)
        for clause in model.iter_family(family, start, start + 5)
    ]
    assert parts == whole
    assert model.count_clauses(family, 2, 7, method="formula") == len(
        list(model.iter_family(family, 2, 7))
    )


def test_clue_clause(toy_clue_puzzle):
    model = ConstraintModel(toy_clue_puzzle, make_config())
    assert list(model.iter_family(ClauseFamily.CLUES)) == [(4,)]
    # Clues fix the board rotation, so no symmetry clause is added.
    assert model.family_units(ClauseFamily.SYMMETRY) == 0
    assert any("clues" in note for note in model.notes)


def test_symmetry_clause_fixes_lowest_corner_tile(toy_puzzle):
    model = ConstraintModel(toy_puzzle, make_config())
    # Tile 0 fits the top-left corner only at rotation 3, which is variable 1.
    assert list(model.iter_family(ClauseFamily.SYMMETRY)) == [(1,)]

    model = ConstraintModel(toy_puzzle, make_config(symmetry_breaking=False))
    assert model.family_units(ClauseFamily.SYMMETRY) == 0


def test_border_clause_forbids_non_blank_border(toy_puzzle):
    model = ConstraintModel(toy_puzzle, make_config(border_mode="clause"))
    clauses = list(model.iter_family(ClauseFamily.BORDER))
    # Per corner cell, 4 tiles x 4 rotations, of which one rotation per tile is legal.
    assert len(clauses) == 4 * 12
    illegal = model.indexer.id(0, 0, 0)  # tile 0 unrotated shows 'd' on the north border
    assert (-illegal,) in clauses
    legal = model.indexer.id(0, 3, 1)
    assert (-legal,) not in clauses


def test_no_border_clauses_in_exclude_mode(toy_puzzle):
    model = ConstraintModel(toy_puzzle, make_config())
    assert model.family_units(ClauseFamily.BORDER) == 0


def test_direct_adjacency_forbids_exactly_the_mismatches(toy_puzzle):
    model = ConstraintModel(toy_puzzle, make_config())
    indexer = model.indexer
    clauses = set(model.iter_family(ClauseFamily.ADJACENCY, 0, 1))
    # Cells 0 and 1 share an edge: top-left east side against top-right west side.
    for var_a in indexer.cell_variables(0):
        _, tile_a, rot_a = indexer.decode(var_a)
        for var_b in indexer.cell_variables(1):
            _, tile_b, rot_b = indexer.decode(var_b)
            east = toy_puzzle.tiles[tile_a].pattern(1, rot_a)
            west = toy_puzzle.tiles[tile_b].pattern(3, rot_b)
            assert ((-var_a, -var_b) in clauses) == (east != west)


def test_edge_color_clauses(toy_puzzle):
    model = ConstraintModel(toy_puzzle, make_config(adjacency_encoding="edge_color"))
    clauses = list(model.iter_family(ClauseFamily.ADJACENCY, 0, 1))
    # 4 + 4 implications and C(5, 2) colour exclusions.
    assert len(clauses) == 18
    # Tile 3 rotation 1 at the top-left shows 'b' (1) on its east side.
    assert (-4, model.layout.edge_color(0, 1)) in clauses


def test_clue_with_interior_blank_is_rejected(square3_puzzle):
    # Corner tile 1 on the top edge keeps the north side blank but shows a second blank inwards.
    tiles = [str(tile) for tile in square3_puzzle.tiles]
    puzzle = make_puzzle("bad-clue", 3, tiles, clues=[(0, 1, 1, 0)])
    with pytest.raises(ConfigurationError, match="interior"):
        ConstraintModel(puzzle, make_config())


def test_describe_mentions_layout_and_counts(toy_puzzle):
    model = ConstraintModel(toy_puzzle, make_config())
    lines = model.describe(model.family_counts())
    assert "placements: 1..16 (16)" in lines
    assert "total clauses: 105" in lines


def test_eternity2_adjacency_formula_on_sample_edges():
    model = ConstraintModel(eternity2(), make_config())
    assert model.num_variables == 4 * 4 + 56 * 56 + 196 * 196 * 4
    for start, stop in [(0, 2), (14, 16)]:
        assert model.count_clauses(ClauseFamily.ADJACENCY, start, stop, method="formula") == (
            model.count_clauses(ClauseFamily.ADJACENCY, start, stop, method="enumerate")
        )
