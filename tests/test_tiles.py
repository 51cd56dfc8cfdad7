import pytest

from e2sat.errors import ConfigurationError
from e2sat.tiles import (
    BLANK,
    Side,
    Tile,
    find_rotated_tile,
    parse_edges,
    pattern_from_char,
    pattern_to_char,
    rotated_pattern,
    rotational_period,
)


def test_pattern_letters():
    assert pattern_from_char("a") == BLANK
    assert pattern_from_char("w") == 22
    assert pattern_to_char(25) == "z"
    with pytest.raises(ConfigurationError):
        pattern_from_char("A")


def test_parse_edges_rejects_wrong_length():
    assert parse_edges("abcd") == (0, 1, 2, 3)
    with pytest.raises(ConfigurationError):
        parse_edges("abc")


def test_rotation_shifts_patterns_counter_clockwise():
    edges = parse_edges("abcd")
    # One counter-clockwise quarter turn brings the east pattern to the north side.
    assert rotated_pattern(edges, 1, Side.NORTH) == edges[Side.EAST]
    assert Tile(0, edges).rotated(1) == parse_edges("bcda")
    assert Tile(0, edges).rotated(2) == parse_edges("cdab")
    assert Tile(0, edges).rotated(3) == parse_edges("dabc")


def test_rotating_four_times_is_identity():
    edges = parse_edges("abce")
    for side in Side:
        assert rotated_pattern(edges, 4, side) == edges[side]


@pytest.mark.parametrize(
    "edges, period",
    [("bbbb", 1), ("bcbc", 2), ("bbcc", 4), ("abcd", 4)],
)
def test_rotational_period(edges, period):
    assert rotational_period(parse_edges(edges)) == period
    tile = Tile(0, parse_edges(edges))
    assert list(tile.rotations) == list(range(period))


def test_canonical_rotation():
    tile = Tile(0, parse_edges("bcbc"))
    assert tile.canonical_rotation(3) == 1
    assert tile.canonical_rotation(2) == 0
    assert tile.rotated(3) == tile.rotated(1)


def test_side_opposite():
    assert Side.NORTH.opposite() == Side.SOUTH
    assert Side.EAST.opposite() == Side.WEST
    assert Side.WEST.opposite() == Side.EAST


def test_corner_detection():
    assert Tile(0, parse_edges("aabd")).is_corner()
    assert not Tile(0, parse_edges("abad")).is_corner()
    assert not Tile(0, parse_edges("abcd")).is_corner()
    assert Tile(0, parse_edges("baad")).blank_sides() == 2


def test_find_rotated_tile(toy_puzzle):
    assert find_rotated_tile(toy_puzzle.tiles, "abda") == (3, 1)
    assert find_rotated_tile(toy_puzzle.tiles, "dcaa") == (0, 0)
    assert find_rotated_tile(toy_puzzle.tiles, "bbbb") is None


def test_tile_str_round_trips_letters():
    assert str(Tile(7, parse_edges("ajra"))) == "ajra"
