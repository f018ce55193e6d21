"""Tournament selection of parents."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from gpgomea.node import Node


def _rng(rng):
    return rng if rng is not None else np.random.default_rng()


def _draw(candidates: Sequence[Node], rng) -> Node:
    return candidates[int(rng.random() * len(candidates))]


def tournament_winner(candidates: Sequence[Node], tournament_size: int, rng=None) -> Node:
    """Best cached fitness among ``tournament_size`` candidates drawn with replacement."""
    rng = _rng(rng)
    winner = _draw(candidates, rng)
    for _ in range(1, tournament_size):
        candidate = _draw(candidates, rng)
        if candidate.cached_fitness < winner.cached_fitness:
            winner = candidate
    return winner


def mo_tournament_winner(candidates: Sequence[Node], tournament_size: int, rng=None) -> Node:
    """Tournament on Pareto rank, ties broken by larger crowding distance."""
    rng = _rng(rng)
    winner = _draw(candidates, rng)
    for _ in range(1, tournament_size):
        candidate = _draw(candidates, rng)
        if candidate.rank < winner.rank or (
            candidate.rank == winner.rank and candidate.crowding_distance > winner.crowding_distance
        ):
            winner = candidate
    return winner


def population_tournament_selection(
    population: Sequence[Node],
    selection_size: int,
    tournament_size: int,
    rng=None,
) -> list[Node]:
    """Rounds of disjoint tournaments over random permutations of ``population``.

    Each round splits a permutation into groups of ``tournament_size`` and keeps
    the fittest of each group; as many full rounds as fit in ``selection_size``
    are played.
    """
    rng = _rng(rng)
    n_pop = len(population)
    per_round = n_pop // tournament_size if tournament_size > 0 else 0
    if per_round == 0:
        raise ValueError("tournament size must be between 1 and the population size")
    n_rounds = selection_size // per_round

    selected: list[Node] = []
    for _ in range(n_rounds):
        perm = rng.permutation(n_pop)
        for start in range(0, per_round * tournament_size, tournament_size):
            group = [population[int(i)] for i in perm[start : start + tournament_size]]
            winner = group[0]
            for contender in group[1:]:
                if contender.cached_fitness < winner.cached_fitness:
                    winner = contender
            selected.append(winner)
    return selected