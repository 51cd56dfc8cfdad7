"""At-least-one and at-most-one clause encodings.

Variables are positive DIMACS ids; clauses are tuples of signed literals.
"""

from collections.abc import Iterator, Sequence
from math import ceil
from typing import TypeAlias

from e2sat.errors import ConfigurationError

Clause: TypeAlias = tuple[int, ...]


def at_least_one(variables: Sequence[int]) -> Iterator[Clause]:
    """Yield the single clause requiring at least one of `variables` to be true."""
    yield tuple(variables)


def pairwise_at_most_one(variables: Sequence[int]) -> Iterator[Clause]:
    """Yield a binary clause for every pair of `variables`, forbidding both to be true."""
    for i, a in enumerate(variables):
        for b in variables[i + 1 :]:
            yield (-a, -b)


def pairwise_clause_count(n: int) -> int:
    """Number of clauses produced by `pairwise_at_most_one` for `n` variables."""
    return n * (n - 1) // 2


def _check_group_size(group_size: int) -> None:
    if group_size < 2:
        raise ConfigurationError(f"Commander group size must be at least 2, got {group_size}.")


def commander_aux_count(n: int, group_size: int) -> int:
    """Number of commander variables the commander encoding needs for `n` variables."""
    _check_group_size(group_size)
    total = 0
    while n > group_size:
        n = ceil(n / group_size)
        total += n
    return total


def commander_clause_count(n: int, group_size: int) -> int:
    """Number of clauses produced by `commander_at_most_one` for `n` variables."""
    _check_group_size(group_size)
    total = 0
    while n > group_size:
        n_groups = ceil(n / group_size)
        last = n - group_size * (n_groups - 1)
        # Per group of size s: pairwise within the group, c -> OR(group), and s times x -> c.
        total += (n_groups - 1) * (pairwise_clause_count(group_size) + 1 + group_size)
        total += pairwise_clause_count(last) + 1 + last
        n = n_groups
    return total + pairwise_clause_count(n)


def commander_at_most_one(
    variables: Sequence[int], first_aux: int, group_size: int
) -> Iterator[Clause]:
    """Yield the commander encoding of at-most-one (Klieber and Kwon).

    The variables are split into consecutive groups of `group_size`, each with a fresh commander
    variable that is true exactly when some member is.  At most one member per group and, one
    level up, at most one commander, are then required.  Commanders are numbered consecutively
    from `first_aux`, level by level; `commander_aux_count` gives how many are used.

    Args:
        variables: Positive variable ids.
        first_aux: First unused variable id reserved for commanders.
        group_size: Number of variables per group (at least 2).
    """
    _check_group_size(group_size)
    level = list(variables)
    next_aux = first_aux
    while len(level) > group_size:
        commanders: list[int] = []
        for start in range(0, len(level), group_size):
            group = level[start : start + group_size]
            commander = next_aux
            next_aux += 1
            commanders.append(commander)
            yield from pairwise_at_most_one(group)
            yield (-commander, *group)
            for x in group:
                yield (-x, commander)
        level = commanders
    yield from pairwise_at_most_one(level)


def at_most_one(
    variables: Sequence[int],
    *,
    encoding: str,
    first_aux: int = 0,
    group_size: int = 3,
) -> Iterator[Clause]:
    """Yield an at-most-one encoding of `variables` ("pairwise" or "commander")."""
    if encoding == "pairwise":
        return pairwise_at_most_one(variables)
    if encoding == "commander":
        return commander_at_most_one(variables, first_aux, group_size)
    raise ConfigurationError(f"Unknown at-most-one encoding: {encoding!r}")


def at_most_one_aux_count(n: int, *, encoding: str, group_size: int = 3) -> int:
    """Number of auxiliary variables `at_most_one` needs for `n` variables."""
    if encoding == "commander":
        return commander_aux_count(n, group_size)
    return 0


def at_most_one_clause_count(n: int, *, encoding: str, group_size: int = 3) -> int:
    """Number of clauses `at_most_one` produces for `n` variables."""
    if encoding == "commander":
        return commander_clause_count(n, group_size)
    return pairwise_clause_count(n)
