"""Serialization of a board to an address of the e2.bucas.name board viewer."""

from e2sat.board import Board
from e2sat.config import DecoderConfig
from e2sat.config import decoder_config as default_decoder_config
from e2sat.errors import EncodingRangeError
from e2sat.tiles import MAX_PATTERNS, N_ROTATIONS, pattern_to_char


def board_edges(board: Board) -> str:
    """Return the viewer's `board_edges` value for a board.

    Four letters per cell, row-major, giving the rotated patterns on the top, right, bottom and
    left sides; pattern 0 is 'a'.

    Raises:
        EncodingRangeError: If a cell holds an unknown tile, a rotation outside 0..3, or a
            pattern the letter alphabet cannot represent.
    """
    n_tiles = len(board.puzzle.tiles)
    chars: list[str] = []
    for cell, (tile_id, rotation) in enumerate(board):
        row, col = board.get_2d_idx(cell)
        if not 0 <= tile_id < n_tiles:
            raise EncodingRangeError(f"Cell ({row},{col}) holds unknown tile {tile_id}.")
        if not 0 <= rotation < N_ROTATIONS:
            raise EncodingRangeError(f"Cell ({row},{col}) has rotation {rotation} outside 0..3.")
        for pattern in board.patterns(cell):
            if not 0 <= pattern < MAX_PATTERNS:
                raise EncodingRangeError(
                    f"Cell ({row},{col}): pattern {pattern} has no letter in the viewer's alphabet."
                )
            chars.append(pattern_to_char(pattern))
    return "".join(chars)


def to_viewer_url(board: Board, *, config: DecoderConfig | None = None) -> str:
    """Return the viewer address showing a board.

    Args:
        board (Board): The board to show.
        config (DecoderConfig | None): Viewer settings; defaults to the environment's.

    Raises:
        EncodingRangeError: If the board cannot be represented.
    """
    config = config or default_decoder_config
    return (
        f"{config.viewer_base_url}#board_w={board.n_cols}&board_h={board.n_rows}"
        f"&board_edges={board_edges(board)}&motifs_order={config.motifs_order}"
    )
