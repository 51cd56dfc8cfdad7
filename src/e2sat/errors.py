"""Error taxonomy for the encoder and decoder.

Every error is terminal for the run: each stage depends on the full correctness of the stage
before it, so nothing here is meant to be caught and recovered from locally.
"""


class E2SatError(Exception):
    """Base class for all errors raised by e2sat."""


class ConfigurationError(E2SatError, ValueError):
    """Malformed tile catalog or clue table (raised at load time, never partially applied)."""


class IndexRangeError(E2SatError, IndexError):
    """The variable indexer was given an input outside its domain."""

    def __init__(self, message: str, *, value: object = None) -> None:
        super().__init__(message)
        self.value = value
        """The offending input (a variable id or a (cell, tile, rotation) triple)."""


class ArtifactWriteError(E2SatError, OSError):
    """Writing the CNF artifact failed; the partial output must be discarded."""

    def __init__(
        self,
        message: str,
        *,
        bytes_written: int,
        clauses_written: int,
        family: str | None,
    ) -> None:
        super().__init__(message)
        self.bytes_written = bytes_written
        """Bytes successfully handed to the output stream before the failure."""

        self.clauses_written = clauses_written
        """Clauses successfully written before the failure."""

        self.family = family
        """Name of the clause family in progress, or None if the header was being written."""


class SolverOutputError(E2SatError, OSError):
    """The solver output could not be read (truncated, garbled, or empty)."""


class InconsistentAssignment(E2SatError):
    """A satisfying assignment that does not describe a valid board.

    Never auto-repaired: it means an encoder/decoder mismatch, a mis-reported verdict, or
    corrupted solver output.
    """

    def __init__(self, problems: list[str]) -> None:
        shown = problems[:20]
        message = f"{len(problems)} problem(s) in assignment:\n  " + "\n  ".join(shown)
        if len(problems) > len(shown):
            message += f"\n  ... and {len(problems) - len(shown)} more"
        super().__init__(message)
        self.problems = problems
        """Every problem found, one human-readable line each."""


class EncodingRangeError(E2SatError, ValueError):
    """The board cannot be represented in the viewer's address scheme."""


class ClauseCountMismatch(E2SatError):
    """The number of clauses written differs from the count declared in the header."""


class MalformedClause(E2SatError, ValueError):
    """A generated clause is empty, tautological, or references an out-of-range variable."""
