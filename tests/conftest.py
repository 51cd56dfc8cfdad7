"""Shared fixtures: small synthetic puzzles with known solutions."""

import pytest

from e2sat.board import Board, board_from_rows
from e2sat.config import DecoderConfig, EncoderConfig
from e2sat.puzzle_config import Clue, PuzzleConfig
from e2sat.tiles import Tile, parse_edges

# 2x2: every tile is a corner tile.  Solution (tile, rotation) by row:
#   3/1 2/0
#   0/0 1/0
TOY_TILES = ["dcaa", "eaac", "aaeb", "aabd"]
TOY_SOLUTION = [[(3, 1), (2, 0)], [(0, 0), (1, 0)]]

# 3x3 with one interior cell; tiles are stored pre-rotated.  Solution by row:
#   1/0 3/3 6/0
#   4/0 0/1 7/2
#   8/3 5/1 2/2
SQUARE3_TILES = ["ddeb", "abea", "abda", "cdba", "edca", "cbba", "aabc", "deba", "caac"]
SQUARE3_SOLUTION = [[(1, 0), (3, 3), (6, 0)], [(4, 0), (0, 1), (7, 2)], [(8, 3), (5, 1), (2, 2)]]

# Encoder settings every clause generator is exercised under.
ENCODINGS = [
    {},
    {"border_mode": "clause"},
    {"amo_encoding": "commander"},
    {"amo_encoding": "commander", "commander_group_size": 2},
    {"adjacency_encoding": "edge_color"},
    {"border_mode": "clause", "adjacency_encoding": "edge_color", "amo_encoding": "commander"},
    {"forbid_interior_blank": False},
    {"symmetry_breaking": False},
]


def make_puzzle(name: str, size: int, tiles: list[str], clues=()) -> PuzzleConfig:
    return PuzzleConfig(
        name=name,
        size=size,
        tiles=[Tile(idx, parse_edges(edges)) for idx, edges in enumerate(tiles)],
        clues=[Clue(*clue) for clue in clues],
    )


def make_config(**overrides) -> EncoderConfig:
    """An EncoderConfig with defaults pinned, independent of the environment."""
    settings = {
        "border_mode": "exclude",
        "forbid_interior_blank": True,
        "amo_encoding": "pairwise",
        "commander_group_size": 3,
        "adjacency_encoding": "direct",
        "symmetry_breaking": True,
        "header_strategy": "recount",
        "check_clauses": True,
        "write_comments": True,
        "report_interval": 10_000_000,
        "max_workers": 1,
        "shard_units": 64,
    }
    settings.update(overrides)
    return EncoderConfig(**settings)


@pytest.fixture
def toy_puzzle() -> PuzzleConfig:
    return make_puzzle("toy", 2, TOY_TILES)


@pytest.fixture
def toy_clue_puzzle() -> PuzzleConfig:
    return make_puzzle("toy-clue", 2, TOY_TILES, clues=[(0, 0, 3, 1)])


@pytest.fixture
def toy_board(toy_puzzle) -> Board:
    return board_from_rows(toy_puzzle, TOY_SOLUTION)


@pytest.fixture
def square3_puzzle() -> PuzzleConfig:
    return make_puzzle("square3", 3, SQUARE3_TILES)


@pytest.fixture
def square3_board(square3_puzzle) -> Board:
    return board_from_rows(square3_puzzle, SQUARE3_SOLUTION)


@pytest.fixture
def encoder_config() -> EncoderConfig:
    return make_config()


@pytest.fixture
def decoder_config() -> DecoderConfig:
    return DecoderConfig(viewer_base_url="https://e2.bucas.name/", motifs_order="jblackwood")


@pytest.fixture
def toy_puzzle_file(tmp_path):
    path = tmp_path / "toy.txt"
    lines = ["# 2x2 toy puzzle", "2"]
    lines += [f"{idx} {edges}" for idx, edges in enumerate(TOY_TILES)]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path
