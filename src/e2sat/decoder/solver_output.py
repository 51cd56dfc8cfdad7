"""Parser for SAT solver result streams.

Understands the SAT competition output format printed by CaDiCaL, Kissat, Glucose and most
modern solvers:

    c <comment>
    s SATISFIABLE
    v 1 -2 3 ...
    v ... 0

and the result file written by MiniSat (`minisat problem.cnf result.txt`):

    SAT
    1 -2 3 ... 0

A bare listing of integer lines without any verdict, as written by some solver wrappers, is
read as a satisfying assignment too:

    1 -2 3
    ... 0

Variables that are not listed are false.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import IntEnum

from sortedcontainers import SortedSet

from e2sat.errors import SolverOutputError

VERDICT_TOKENS = {
    "SATISFIABLE": "SATISFIABLE",
    "UNSATISFIABLE": "UNSATISFIABLE",
    "UNKNOWN": "UNKNOWN",
    "SAT": "SATISFIABLE",
    "UNSAT": "UNSATISFIABLE",
    "INDET": "UNKNOWN",
}


class Verdict(IntEnum):
    """Solver verdicts, valued as the conventional solver exit codes."""

    UNKNOWN = 0
    SATISFIABLE = 10
    UNSATISFIABLE = 20


@dataclass
class SolverResult:
    """The verdict and assignment read from a solver result stream."""

    verdict: Verdict
    true_vars: SortedSet = field(default_factory=SortedSet)
    """Variables assigned true, in ascending order."""

    false_vars: SortedSet = field(default_factory=SortedSet)
    """Variables explicitly assigned false, in ascending order."""

    contradictions: list[int] = field(default_factory=list)
    """Variables listed both positive and negative."""

    def max_variable(self) -> int:
        """Return the highest variable listed, or 0 if none is."""
        highest = 0
        if self.true_vars:
            highest = self.true_vars[-1]
        if self.false_vars:
            highest = max(highest, self.false_vars[-1])
        return highest


def is_literal_line(line: str) -> bool:
    """Whether a line consists only of integer tokens."""
    tokens = line.split()
    return bool(tokens) and all(token.lstrip("-").isdigit() for token in tokens)


def parse_solver_output(lines: Iterable[str]) -> SolverResult:
    """Parse a solver result stream.

    Args:
        lines (Iterable[str]): Lines of solver output (e.g. an open file or `sys.stdin`).

    Returns:
        A SolverResult. Literals without any verdict line imply SATISFIABLE.

    Raises:
        SolverOutputError: If the stream holds neither a verdict nor literals, if a satisfiable
            literal listing is not terminated by 0, or if a literal token is not an integer.
    """
    verdict: Verdict | None = None
    bare_literals = False
    terminated = False
    seen_literals = False
    true_vars: SortedSet = SortedSet()
    false_vars: SortedSet = SortedSet()
    contradictions: list[int] = []

    for lineno, raw in enumerate(lines, start=1):
        line = raw.strip()
        if not line or line.startswith("c"):
            continue

        if line.startswith("s ") or line in VERDICT_TOKENS:
            token = line[2:].strip() if line.startswith("s ") else line
            if token not in VERDICT_TOKENS:
                raise SolverOutputError(f"line {lineno}: unknown verdict {line!r}")
            verdict = Verdict[VERDICT_TOKENS[token]]
            bare_literals = line == "SAT"
            continue

        if line.startswith("v ") or line == "v":
            tokens = line[1:].split()
        elif bare_literals or (verdict is None and is_literal_line(line)):
            tokens = line.split()
        else:
            # Solver log line
            continue

        if terminated:
            continue
        for token in tokens:
            try:
                lit = int(token)
            except ValueError:
                raise SolverOutputError(
                    f"line {lineno}: invalid literal {token!r} in {line[:60]!r}"
                ) from None
            if lit == 0:
                terminated = True
                break
            seen_literals = True
            var = abs(lit)
            if lit > 0:
                if var in false_vars:
                    contradictions.append(var)
                true_vars.add(var)
            else:
                if var in true_vars:
                    contradictions.append(var)
                false_vars.add(var)

    if verdict is None:
        if not seen_literals and not terminated:
            raise SolverOutputError("Solver output holds neither a verdict nor an assignment.")
        verdict = Verdict.SATISFIABLE
    if verdict == Verdict.SATISFIABLE and not terminated:
        raise SolverOutputError(
            "Satisfiable solver output ends before the assignment's terminating 0 "
            "(truncated output?)."
        )
    return SolverResult(
        verdict=verdict,
        true_vars=true_vars,
        false_vars=false_vars,
        contradictions=contradictions,
    )
