"""Streaming DIMACS CNF writer."""

import io
import sys
from collections.abc import Iterable
from dataclasses import dataclass, field
from pprint import pprint
from time import time
from typing import TextIO

from e2sat.encoder.cardinality import Clause
from e2sat.encoder.constraints import ClauseFamily, ConstraintModel
from e2sat.errors import ArtifactWriteError, ClauseCountMismatch, MalformedClause
from e2sat.util import byte_str, int_comma, time_str

BATCH_SIZE = 4096
"""Number of clause lines joined into a single write."""

COUNT_WIDTH = 20
"""Width of the clause-count field of a patched header."""


def validate_clause(clause: Clause, num_variables: int) -> None:
    """Check that a clause is non-empty, in range and not tautological.

    Raises:
        MalformedClause: If any check fails.
    """
    if not clause:
        raise MalformedClause("Empty clause.")
    seen: set[int] = set()
    for lit in clause:
        if lit == 0 or abs(lit) > num_variables:
            raise MalformedClause(
                f"Literal {lit} in clause {clause} is outside [-{num_variables}, {num_variables}]."
            )
        if -lit in seen:
            raise MalformedClause(f"Clause {clause} contains both {lit} and {-lit}.")
        seen.add(lit)


def header_line(num_variables: int, num_clauses: int, *, width: int = 0) -> str:
    """Return the DIMACS problem line, with the clause count right-aligned to `width`."""
    return f"p cnf {num_variables} {num_clauses:>{width}}\n"


class ClauseSink:
    """Write clause lines to a text stream in batches, counting clauses and bytes.

    Write failures are re-raised as `ArtifactWriteError` carrying the totals so far and the name
    of the family in progress.
    """

    def __init__(
        self,
        out: TextIO,
        *,
        num_variables: int,
        check: bool = False,
        report_interval: int = 0,
        logf: TextIO | None = None,
    ) -> None:
        self.out = out
        self.num_variables = num_variables
        self.check = check
        self.report_interval = report_interval
        self.logf = logf
        self.start_time = time()

        self.clauses_written = 0
        """Clauses handed to the stream so far."""

        self.bytes_written = 0
        """Bytes handed to the stream so far (all output is ASCII)."""

        self.family: ClauseFamily | None = None
        """Family currently being written, for error reports."""

        self._next_report = report_interval if report_interval > 0 else None

    def write_text(self, text: str) -> None:
        """Write raw text (comments, the header, a copied segment)."""
        try:
            self.out.write(text)
        except OSError as e:
            raise self.write_error(e) from e
        self.bytes_written += len(text)

    def write_clauses(self, clauses: Iterable[Clause]) -> int:
        """Write clauses, one line each; return how many were written."""
        n_written = 0
        batch: list[str] = []
        for clause in clauses:
            if self.check:
                validate_clause(clause, self.num_variables)
            batch.append(" ".join(map(str, clause)) + " 0\n")
            if len(batch) >= BATCH_SIZE:
                n_written += self._flush_batch(batch)
                batch = []
        if batch:
            n_written += self._flush_batch(batch)
        return n_written

    def _flush_batch(self, batch: list[str]) -> int:
        self.write_text("".join(batch))
        self.clauses_written += len(batch)
        if self._next_report is not None and self.clauses_written >= self._next_report:
            self.report_progress()
            while self._next_report <= self.clauses_written:
                self._next_report += self.report_interval
        return len(batch)

    def report_progress(self) -> None:
        """Log the totals so far."""
        if self.logf is None:
            return
        print(
            f"{int_comma(self.clauses_written)} clauses written "
            f"({byte_str(self.bytes_written)}) in {time_str(time() - self.start_time)}",
            file=self.logf,
            flush=True,
        )

    def flush(self) -> None:
        """Flush the underlying stream."""
        try:
            self.out.flush()
        except OSError as e:
            raise self.write_error(e) from e

    def write_error(self, e: OSError) -> ArtifactWriteError:
        """Wrap an OSError from the output stream with the totals so far."""
        family = None
        where = "while writing"
        if self.family is not None:
            family = self.family.name
            where = f"while writing {self.family.label} clauses"
        return ArtifactWriteError(
            f"Write failed {where} after {int_comma(self.clauses_written)} clauses "
            f"({int_comma(self.bytes_written)} bytes): {e}",
            bytes_written=self.bytes_written,
            clauses_written=self.clauses_written,
            family=family,
        )


@dataclass
class WriteStats:
    """Summary of a finished CNF artifact."""

    num_variables: int
    num_clauses: int
    bytes_written: int
    family_counts: dict[ClauseFamily, int] = field(default_factory=dict)
    elapsed: float = 0.0
    """Wall-clock seconds spent writing."""


def is_seekable(out: TextIO) -> bool:
    """Whether a stream supports seeking back to patch the header."""
    try:
        return out.seekable()
    except (AttributeError, ValueError, OSError):
        return False


def log_encoding(model: ConstraintModel, logf: TextIO) -> None:
    """Log the encoder settings and the variable layout."""
    print("Encoder config:", file=logf, flush=True)
    pprint(model.config.model_dump(), stream=logf, width=120)
    print(f"Puzzle: {model.puzzle}", file=logf, flush=True)
    for note in model.notes:
        print(f"Note: {note}", file=logf, flush=True)
    print("Variable layout:", file=logf, flush=True)
    for line in model.layout.describe():
        print(f"  {line}", file=logf, flush=True)


def write_comments(sink: ClauseSink, model: ConstraintModel, counts: dict | None) -> None:
    """Write the descriptive comment block that precedes the header."""
    if model.config.write_comments:
        sink.write_text("".join(f"c {line}\n" for line in model.describe(counts)))


def write_cnf(
    model: ConstraintModel, out: TextIO, *, logf: TextIO | None = None
) -> WriteStats:
    """Stream the whole encoding of `model` to `out` in DIMACS CNF format.

    Args:
        model (ConstraintModel): The constraint model to write.
        out (TextIO): Output stream.  Seekable streams support the "patch" header strategy.
        logf (TextIO | None): Stream for progress and diagnostics (default: stderr).

    Returns:
        A WriteStats summary.

    Raises:
        ArtifactWriteError: If writing to `out` fails; the partial output must be discarded.
        ClauseCountMismatch: If the clauses written differ from the declared count.
        MalformedClause: If `check_clauses` is enabled and a clause is invalid.
    """
    logf = logf or sys.stderr
    config = model.config
    start_time = time()
    log_encoding(model, logf)

    strategy = config.header_strategy
    if strategy == "patch" and not is_seekable(out):
        print("Output is not seekable, counting clauses first instead.", file=logf, flush=True)
        strategy = "recount"

    counts: dict[ClauseFamily, int] | None = None
    if strategy != "patch":
        print(f"Counting clauses ({strategy})...", file=logf, flush=True)
        method = "enumerate" if strategy == "recount" else "formula"
        counts = model.family_counts(method=method)
        for family, count in counts.items():
            print(f"  {family.label}: {int_comma(count)}", file=logf, flush=True)
        print(
            f"Total: {int_comma(sum(counts.values()))} clauses, counted in "
            f"{time_str(time() - start_time)}",
            file=logf,
            flush=True,
        )

    sink = ClauseSink(
        out,
        num_variables=model.num_variables,
        check=config.check_clauses,
        report_interval=config.report_interval,
        logf=logf,
    )
    write_comments(sink, model, counts)

    header_pos = None
    if counts is not None:
        sink.write_text(header_line(model.num_variables, sum(counts.values())))
    else:
        try:
            header_pos = out.tell()
        except OSError as e:
            raise sink.write_error(e) from e
        sink.write_text(header_line(model.num_variables, 0, width=COUNT_WIDTH))

    written: dict[ClauseFamily, int] = {}
    for family in ClauseFamily:
        sink.family = family
        written[family] = sink.write_clauses(model.iter_family(family))
        if counts is not None and written[family] != counts[family]:
            raise ClauseCountMismatch(
                f"Declared {int_comma(counts[family])} {family.label} clauses, "
                f"wrote {int_comma(written[family])}."
            )
    sink.family = None

    total = sum(written.values())
    if header_pos is not None:
        try:
            out.seek(header_pos)
            out.write(header_line(model.num_variables, total, width=COUNT_WIDTH))
            out.seek(0, io.SEEK_END)
        except OSError as e:
            raise sink.write_error(e) from e
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
        family_counts=written,
        elapsed=elapsed,
    )
