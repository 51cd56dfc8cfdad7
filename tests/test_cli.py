import io

import pytest

from conftest import make_config
from e2sat import EXIT_ERROR, EXIT_NO_BOARD, EXIT_OK, run
from e2sat.config import LogConfig


@pytest.fixture
def streams():
    return {"stdout": io.StringIO(), "stderr": io.StringIO()}


def run_with(args, tmp_path, streams, stdin_text="", **config):
    return run(
        args,
        encoder_config=make_config(**config),
        log_config=LogConfig(log_dir=str(tmp_path / "logs")),
        stdin=io.StringIO(stdin_text),
        **streams,
    )


def test_find_tile(toy_puzzle_file, tmp_path, streams):
    status = run_with(["find-tile", "abda", str(toy_puzzle_file)], tmp_path, streams)
    assert status == EXIT_OK
    assert streams["stdout"].getvalue() == "Matched tile 3 1\n"


def test_find_tile_without_match(toy_puzzle_file, tmp_path, streams):
    status = run_with(["find-tile", "bbbb", str(toy_puzzle_file)], tmp_path, streams)
    assert status == EXIT_ERROR
    assert streams["stdout"].getvalue() == "No tile matched\n"


def test_find_tile_in_eternity2(tmp_path, streams):
    # The centre clue tile turned once.
    status = run_with(["find-tile", "ggls"], tmp_path, streams)
    assert status == EXIT_OK
    assert streams["stdout"].getvalue() == "Matched tile 135 1\n"


def test_emit(toy_puzzle_file, tmp_path, streams):
    status = run_with(["emit", str(toy_puzzle_file)], tmp_path, streams)
    assert status == EXIT_OK
    assert "p cnf 16 105\n" in streams["stdout"].getvalue()
    logs = list((tmp_path / "logs" / "toy").glob("emit-*.log"))
    assert len(logs) == 1
    assert "Encoder config:" in logs[0].read_text(encoding="utf-8")
    assert "Encoder config:" in streams["stderr"].getvalue()


def test_decode(toy_puzzle_file, tmp_path, streams):
    status = run_with(
        ["decode", str(toy_puzzle_file)],
        tmp_path,
        streams,
        stdin_text="s SATISFIABLE\nv 4 7 9 14 0\n",
    )
    assert status == EXIT_OK
    first_line = streams["stdout"].getvalue().splitlines()[0]
    assert first_line.endswith("board_edges=abdaaaebdcaaeaac&motifs_order=jblackwood")


def test_decode_unsat(toy_puzzle_file, tmp_path, streams):
    status = run_with(
        ["decode", str(toy_puzzle_file)], tmp_path, streams, stdin_text="s UNSATISFIABLE\n"
    )
    assert status == EXIT_NO_BOARD
    assert streams["stdout"].getvalue() == "UNSATISFIABLE\n"


def test_decode_inconsistent(toy_puzzle_file, tmp_path, streams):
    status = run_with(
        ["decode", str(toy_puzzle_file)], tmp_path, streams, stdin_text="s SATISFIABLE\nv 1 4 0\n"
    )
    assert status == EXIT_ERROR
    assert "error: " in streams["stderr"].getvalue()
    log = next((tmp_path / "logs" / "toy").glob("decode-*.log")).read_text(encoding="utf-8")
    assert "error: " in log
    assert "placements: 1..16 (16)" in log


def test_decode_with_other_settings_than_emit(toy_puzzle_file, tmp_path, streams):
    # Commander variables start at 17, beyond the pairwise layout.
    status = run_with(
        ["decode", str(toy_puzzle_file)],
        tmp_path,
        streams,
        stdin_text="s SATISFIABLE\nv 4 7 9 14 17 0\n",
    )
    assert status == EXIT_ERROR
    stderr = streams["stderr"].getvalue()
    assert "beyond the 16 variables" in stderr
    assert "total variables: 16" in stderr
    assert "E2SAT_ENCODER_* settings must match" in stderr


def test_missing_puzzle_file(tmp_path, streams):
    status = run_with(["emit", str(tmp_path / "missing.txt")], tmp_path, streams)
    assert status == EXIT_ERROR
    assert streams["stderr"].getvalue().startswith("error: ")


@pytest.mark.parametrize("args", [[], ["solve"], ["find-tile"], ["emit", "a", "b"]])
def test_usage(args, tmp_path, streams):
    assert run_with(args, tmp_path, streams) == EXIT_ERROR
    assert "Usage:" in streams["stderr"].getvalue()
    assert "E2SAT_ENCODER_*" in streams["stderr"].getvalue()
