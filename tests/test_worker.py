import io
from multiprocessing import Value

import pytest

from conftest import make_config
from e2sat.encoder import worker
from e2sat.encoder.constraints import ClauseFamily, ConstraintModel
from e2sat.encoder.worker import init_worker_globals, segment_path, worker_task
from e2sat.encoder.writer import ClauseSink


@pytest.fixture
def fresh_worker_state(monkeypatch):
    monkeypatch.setattr(worker, "worker_state", None)


def test_uninitialized_worker(fresh_worker_state):
    with pytest.raises(RuntimeError, match="not initialized"):
        worker_task(0, int(ClauseFamily.CELL_COVERAGE), 0, 1)


def test_worker_writes_its_shard(square3_puzzle, tmp_path, fresh_worker_state):
    config = make_config(amo_encoding="commander")
    counter = Value("i", 3)
    init_worker_globals(counter, square3_puzzle.to_dict(), config.model_dump(), str(tmp_path))
    assert counter.value == 4

    family = ClauseFamily.CELL_COVERAGE
    clauses, written, worker_idx = worker_task(5, int(family), 2, 6)
    assert worker_idx == 3

    model = ConstraintModel(square3_puzzle, config)
    expected = io.StringIO()
    sink = ClauseSink(expected, num_variables=model.num_variables)
    sink.write_clauses(model.iter_family(family, 2, 6))
    sink.flush()

    text = segment_path(tmp_path, 5).read_text(encoding="ascii")
    assert text == expected.getvalue()
    assert clauses == sink.clauses_written
    assert written == len(text)
