"""Eternity II SAT encoder and decoder.

Encodes an edge-matching puzzle (by default the 16x16 Eternity II puzzle) as a DIMACS CNF
problem for an external SAT solver, and decodes the solver's satisfying assignment back into a
board, shown as a link to the e2.bucas.name board viewer.

    e2sat emit [PUZZLE_FILE] > problem.cnf
    cadical problem.cnf > solution.txt
    e2sat decode [PUZZLE_FILE] < solution.txt
"""

import sys
from datetime import datetime
from pathlib import Path
from sys import argv, exit
from time import time
from typing import TextIO

from .config import DecoderConfig, EncoderConfig, LogConfig
from .config import decoder_config as default_decoder_config
from .config import encoder_config as default_encoder_config
from .config import log_config as default_log_config
from .decoder.assignment import decode_solver_output
from .decoder.url import to_viewer_url
from .encoder.constraints import ConstraintModel
from .encoder.indexer import VariableLayout
from .encoder.parallel import write_cnf_sharded
from .encoder.writer import write_cnf
from .errors import E2SatError, InconsistentAssignment
from .puzzle_config import PuzzleConfig, eternity2, load_puzzle
from .tiles import find_rotated_tile
from .util import time_str, timestamp

USAGE = """\
Usage:
  e2sat emit [PUZZLE_FILE]        Write the CNF encoding to stdout.
  e2sat decode [PUZZLE_FILE]      Read solver output from stdin, print the board.
  e2sat find-tile EDGES [PUZZLE_FILE]
                                  Find the tile and rotation showing EDGES (N, E, S, W).

PUZZLE_FILE defaults to the built-in Eternity II puzzle with its clues.  decode must run with
the same puzzle and E2SAT_ENCODER_* settings as the emit that produced the CNF."""

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_NO_BOARD = 2


class Tee:
    """A minimal text stream writing to several streams at once."""

    def __init__(self, *streams: TextIO) -> None:
        self.streams = streams

    def write(self, text: str) -> int:
        for stream in self.streams:
            stream.write(text)
        return len(text)

    def flush(self) -> None:
        for stream in self.streams:
            stream.flush()


def _load(path: str | None) -> PuzzleConfig:
    return eternity2() if path is None else load_puzzle(path)


def _emit(
    puzzle: PuzzleConfig, encoder_config: EncoderConfig, out: TextIO, logf: TextIO
) -> int:
    model = ConstraintModel(puzzle, encoder_config)
    if encoder_config.max_workers == 1:
        write_cnf(model, out, logf=logf)
    else:
        write_cnf_sharded(model, out, logf=logf)
    return EXIT_OK


def _decode(
    puzzle: PuzzleConfig,
    encoder_config: EncoderConfig,
    decoder_config: DecoderConfig,
    stdin: TextIO,
    out: TextIO,
    logf: TextIO,
) -> int:
    layout = VariableLayout(puzzle, encoder_config)
    print(f"Decoding against {layout.num_variables:,} variables...", file=logf, flush=True)
    try:
        outcome = decode_solver_output(stdin, layout)
    except InconsistentAssignment:
        print("Variable layout in effect:", file=logf)
        for line in layout.describe():
            print(f"  {line}", file=logf)
        print(
            "The E2SAT_ENCODER_* settings must match those the CNF was emitted with.",
            file=logf,
            flush=True,
        )
        raise
    if outcome.board is None:
        print(outcome.verdict.name, file=out, flush=True)
        print(f"Solver verdict: {outcome.verdict.name}, no board.", file=logf, flush=True)
        return EXIT_NO_BOARD
    url = to_viewer_url(outcome.board, config=decoder_config)
    print(url, file=out)
    print(outcome.board.render(), file=out, flush=True)
    print(f"Decoded board:\n{outcome.board.render()}", file=logf, flush=True)
    print(f"Viewer: {url}", file=logf, flush=True)
    return EXIT_OK


def run(
    args: list[str],
    *,
    encoder_config: EncoderConfig | None = None,
    decoder_config: DecoderConfig | None = None,
    log_config: LogConfig | None = None,
    stdin: TextIO | None = None,
    stdout: TextIO | None = None,
    stderr: TextIO | None = None,
) -> int:
    """Run one command and return its exit status.

    Args:
        args (list[str]): Command-line arguments, without the program name.
        encoder_config, decoder_config, log_config: Settings; default to the environment's.
        stdin, stdout, stderr: Streams; default to the process's.

    Returns:
        0 on success, 1 on error, 2 if the solver reported no board (UNSAT or UNKNOWN).
    """
    encoder_config = encoder_config or default_encoder_config
    decoder_config = decoder_config or default_decoder_config
    log_config = log_config or default_log_config
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout
    stderr = stderr or sys.stderr

    if not args or args[0] not in ("emit", "decode", "find-tile"):
        print(USAGE, file=stderr)
        return EXIT_ERROR
    command, rest = args[0], args[1:]
    max_args = 2 if command == "find-tile" else 1
    min_args = 1 if command == "find-tile" else 0
    if not min_args <= len(rest) <= max_args:
        print(USAGE, file=stderr)
        return EXIT_ERROR

    try:
        if command == "find-tile":
            puzzle = _load(rest[1] if len(rest) > 1 else None)
            found = find_rotated_tile(puzzle.tiles, rest[0])
            if found is None:
                print("No tile matched", file=stdout)
                return EXIT_ERROR
            print(f"Matched tile {found[0]} {found[1]}", file=stdout)
            return EXIT_OK

        puzzle = _load(rest[0] if rest else None)
        stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
        logfile = Path(log_config.log_dir) / puzzle.name / f"{command}-{stamp}.log"
        logfile.parent.mkdir(parents=True, exist_ok=True)
        print(f"Log file: {logfile}", file=stderr, flush=True)

        with open(logfile, "w", encoding="utf-8") as f:
            logf = Tee(stderr, f)
            start_time = time()
            print(f"Start time: {timestamp(start_time)}", file=logf, flush=True)
            print(f"Puzzle: {puzzle}", file=logf, flush=True)
            try:
                if command == "emit":
                    status = _emit(puzzle, encoder_config, stdout, logf)
                else:
                    status = _decode(puzzle, encoder_config, decoder_config, stdin, stdout, logf)
            except (E2SatError, OSError) as e:
                print(f"error: {e}", file=f, flush=True)
                raise
            print(f"Finished in {time_str(time() - start_time)}", file=logf, flush=True)
            return status
    except (E2SatError, OSError) as e:
        print(f"error: {e}", file=stderr, flush=True)
        return EXIT_ERROR


def main() -> None:
    """Main entry point for the e2sat command."""
    try:
        exit(run(argv[1:]))
    except KeyboardInterrupt:
        print("Interrupted by user.", file=sys.stderr)
        exit(EXIT_ERROR)
