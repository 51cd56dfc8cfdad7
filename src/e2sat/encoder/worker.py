"""Worker side of sharded CNF generation: each task writes one shard to a segment file."""

from __future__ import annotations

from dataclasses import dataclass
from multiprocessing.sharedctypes import Synchronized
from pathlib import Path

from e2sat.config import EncoderConfig
from e2sat.encoder.constraints import ClauseFamily, ConstraintModel
from e2sat.encoder.writer import ClauseSink
from e2sat.puzzle_config import PuzzleConfig


@dataclass(kw_only=True)
class WorkerState:
    """Global state maintained by each worker process."""

    worker_idx: int
    """Index of the worker process."""

    model: ConstraintModel
    """Constraint model rebuilt from the parent's puzzle and settings."""

    segment_dir: Path
    """Directory receiving the segment files."""


worker_state: WorkerState | None = None
"""Global state for each worker process."""


def init_worker_globals(
    worker_ctr: Synchronized[int],
    puzzle_config: dict,
    encoder_config: dict,
    segment_dir: str,
) -> None:
    """Initialize global variables for worker processes.

    Args:
        worker_ctr (Synchronized[int]): Shared counter for workers.
        puzzle_config (dict): Dict representation of a PuzzleConfig.
        encoder_config (dict): `model_dump()` of the parent's EncoderConfig.
        segment_dir (str): Directory receiving the segment files.
    """
    global worker_state  # noqa: PLW0603
    with worker_ctr.get_lock():
        # Get and set the shared worker counter atomically, using the obtained value
        # as the worker index
        worker_idx = worker_ctr.value
        worker_ctr.value += 1

    model = ConstraintModel(
        PuzzleConfig.from_dict(puzzle_config),
        EncoderConfig(**encoder_config),
    )
    worker_state = WorkerState(
        worker_idx=worker_idx,
        model=model,
        segment_dir=Path(segment_dir),
    )


def segment_path(segment_dir: Path, shard_idx: int) -> Path:
    """Return the segment file of a shard."""
    return segment_dir / f"shard-{shard_idx:06d}.cnf"


def worker_task(shard_idx: int, family: int, start: int, stop: int) -> tuple[int, int, int]:
    """Write the clauses of one shard to its segment file.

    Args:
        shard_idx (int): Index of the shard, which names its segment file.
        family (int): The ClauseFamily of the shard.
        start (int): First unit of the family.
        stop (int): One past the last unit.

    Returns:
        The number of clauses and bytes written, and the index of the worker.
    """
    # Ensure worker_state is initialized
    if not worker_state:
        raise RuntimeError("Worker state not initialized. Call init_worker_globals first.")

    model = worker_state.model
    path = segment_path(worker_state.segment_dir, shard_idx)
    with open(path, "w", encoding="ascii", newline="\n") as segment:
        sink = ClauseSink(
            segment,
            num_variables=model.num_variables,
            check=model.config.check_clauses,
        )
        sink.family = ClauseFamily(family)
        sink.write_clauses(model.iter_family(ClauseFamily(family), start, stop))
        sink.flush()

    return sink.clauses_written, sink.bytes_written, worker_state.worker_idx
