"""Sharded CNF generation: shard planning, worker management and segment concatenation."""

from __future__ import annotations

import os
import shutil
import sys
import traceback
from concurrent.futures import ProcessPoolExecutor, as_completed
from concurrent.futures.process import BrokenProcessPool
from dataclasses import dataclass
from multiprocessing import Value
from multiprocessing.context import BaseContext
from multiprocessing.sharedctypes import Synchronized
from pathlib import Path
from tempfile import TemporaryDirectory
from time import time
from typing import Literal, NamedTuple, TextIO, TypedDict

from e2sat.encoder.constraints import ClauseFamily, ConstraintModel
from e2sat.encoder.worker import init_worker_globals, segment_path, worker_task
from e2sat.encoder.writer import ClauseSink, WriteStats, header_line, log_encoding, write_comments
from e2sat.errors import ArtifactWriteError
from e2sat.util import byte_str, int_comma, time_str


class Shard(NamedTuple):
    """A contiguous range of units of one clause family."""

    idx: int
    family: ClauseFamily
    start: int
    stop: int


class ShardPayload(TypedDict):
    """Payload submitted to worker processes."""

    shard_idx: int
    """Index of the shard, which names its segment file."""
    family: int
    """The ClauseFamily of the shard."""
    start: int
    """First unit."""
    stop: int
    """One past the last unit."""


@dataclass
class ShardResult:
    """Wrapper for worker task results."""

    shard_idx: int
    status: Literal["success", "error"]
    clauses_written: int = 0
    bytes_written: int = 0
    worker_idx: int | None = None
    err_msg: str | None = None


def plan_shards(model: ConstraintModel, shard_units: int) -> list[Shard]:
    """Split every clause family into shards of at most `shard_units` units, in emission order."""
    if shard_units < 1:
        raise ValueError(f"shard_units must be at least 1, got {shard_units}.")
    shards: list[Shard] = []
    for family in ClauseFamily:
        n_units = model.family_units(family)
        for start in range(0, n_units, shard_units):
            shards.append(Shard(len(shards), family, start, min(start + shard_units, n_units)))
    return shards


def get_executor(
    *,
    n_workers: int | None,
    model: ConstraintModel,
    segment_dir: str,
    logf: TextIO,
    mp_context: BaseContext | None = None,
) -> ProcessPoolExecutor:
    """Get a ProcessPoolExecutor whose workers rebuild `model` and write into `segment_dir`.

    Args:
        n_workers (int | None): Number of worker processes to create.  If None,
            defaults to number of CPU cores minus one.
        model (ConstraintModel): The model to rebuild in each worker.
        segment_dir (str): Directory receiving the segment files.
        logf (TextIO): Stream for diagnostics.
        mp_context (BaseContext | None): Start method context for the workers (default: the
            platform default).

    Returns:
        A ProcessPoolExecutor instance for worker processes.
    """
    worker_ctr: Synchronized[int] = Value("i", 0)

    cpus = os.cpu_count() or 1  # Fallback to 1 if os.cpu_count() is None
    if n_workers is None:
        n_workers = max(1, cpus - 1)  # Leave one core free
    if n_workers > cpus:
        print(
            f"Requested number of workers ({n_workers}) exceeds CPU count ({cpus}).",
            file=logf,
            flush=True,
        )
    return ProcessPoolExecutor(
        max_workers=n_workers,
        mp_context=mp_context,
        initializer=init_worker_globals,
        initargs=(
            worker_ctr,
            model.puzzle.to_dict(),
            model.config.model_dump(),
            segment_dir,
        ),
    )


def _worker_task(args: ShardPayload) -> ShardResult:
    """Worker task writing one shard.

    Args:
        args (dict): Dictionary received from `executor.submit`, see `ShardPayload`.

    Returns:
        A ShardResult wrapper.
    """
    try:
        clauses_written, bytes_written, worker_idx = worker_task(**args)
        return ShardResult(
            shard_idx=args["shard_idx"],
            status="success",
            clauses_written=clauses_written,
            bytes_written=bytes_written,
            worker_idx=worker_idx,
        )
    except Exception as e:
        return ShardResult(
            shard_idx=args.get("shard_idx", -1),
            status="error",
            err_msg=f"Worker encountered an error: {str(e)}\n{traceback.format_exc()}",
        )


def _shard_error(shard: Shard, reason: str) -> ArtifactWriteError:
    return ArtifactWriteError(
        f"Shard {shard.idx} ({shard.family.label}, units {shard.start}..{shard.stop - 1}) "
        f"failed: {reason}",
        bytes_written=0,
        clauses_written=0,
        family=shard.family.name,
    )


def write_cnf_sharded(
    model: ConstraintModel,
    out: TextIO,
    *,
    logf: TextIO | None = None,
    mp_context: BaseContext | None = None,
) -> WriteStats:
    """Generate the encoding of `model` in worker processes and write it to `out`.

    Shards are written to segment files in a temporary directory.  Once every shard is done, the
    header (with the summed shard counts) is written and the segments are copied in shard order,
    so the output is identical to that of `write_cnf` with the "recount" header strategy.

    Args:
        model (ConstraintModel): The constraint model to write.
        out (TextIO): Output stream.
        logf (TextIO | None): Stream for progress and diagnostics (default: stderr).
        mp_context (BaseContext | None): Start method context for the workers.

    Returns:
        A WriteStats summary.

    Raises:
        ArtifactWriteError: If a worker fails or writing to `out` fails; the partial output must
            be discarded.
    """
    logf = logf or sys.stderr
    config = model.config
    start_time = time()
    log_encoding(model, logf)

    shards = plan_shards(model, config.shard_units)
    print(
        f"Generating {len(shards)} shards of at most {config.shard_units} units each...",
        file=logf,
        flush=True,
    )

    with TemporaryDirectory(prefix="e2sat-") as segment_dir:
        results: dict[int, ShardResult] = {}
        with get_executor(
            n_workers=config.max_workers,
            model=model,
            segment_dir=segment_dir,
            logf=logf,
            mp_context=mp_context,
        ) as executor:
            payloads: list[ShardPayload] = [
                {
                    "shard_idx": shard.idx,
                    "family": int(shard.family),
                    "start": shard.start,
                    "stop": shard.stop,
                }
                for shard in shards
            ]
            futures = {
                executor.submit(_worker_task, payload): shards[payload["shard_idx"]]
                for payload in payloads
            }
            for future in as_completed(futures):
                try:
                    result = future.result()
                except BrokenProcessPool as e:
                    # A worker exited without reporting (killed, out of memory, ...).
                    executor.shutdown(wait=False, cancel_futures=True)
                    raise _shard_error(futures[future], f"worker process died: {e}") from e
                if result.status == "error":
                    executor.shutdown(wait=False, cancel_futures=True)
                    print(result.err_msg, file=logf, flush=True)
                    raise _shard_error(
                        shards[result.shard_idx], (result.err_msg or "").splitlines()[0]
                    )
                results[result.shard_idx] = result
                if len(results) % max(1, len(shards) // 10) == 0:
                    print(
                        f"{len(results)}/{len(shards)} shards done "
                        f"in {time_str(time() - start_time)}",
                        file=logf,
                        flush=True,
                    )

        counts = {family: 0 for family in ClauseFamily}
        for shard in shards:
            counts[shard.family] += results[shard.idx].clauses_written
        total = sum(counts.values())

        sink = ClauseSink(out, num_variables=model.num_variables)
        write_comments(sink, model, counts)
        sink.write_text(header_line(model.num_variables, total))
        for shard in shards:
            sink.family = shard.family
            path = segment_path(Path(segment_dir), shard.idx)
            with open(path, "r", encoding="ascii", newline="\n") as segment:
                try:
                    shutil.copyfileobj(segment, out)
                except OSError as e:
                    raise sink.write_error(e) from e
            sink.bytes_written += results[shard.idx].bytes_written
            sink.clauses_written += results[shard.idx].clauses_written
        sink.family = None
        sink.flush()

    elapsed = time() - start_time
    print(
        f"Wrote {int_comma(model.num_variables)} variables, {int_comma(total)} clauses "
        f"({byte_str(sink.bytes_written)}) in {time_str(elapsed)}",
        file=logf,
        flush=True,
    )
    return WriteStats(
        num_variables=model.num_variables,
        num_clauses=total,
        bytes_written=sink.bytes_written,
        family_counts=counts,
        elapsed=elapsed,
    )
