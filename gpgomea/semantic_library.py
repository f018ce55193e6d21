"""Library of small subtrees indexed by their output on the training data."""

from __future__ import annotations

import enum
import logging
import math
from collections.abc import Sequence
from typing import NamedTuple

import numpy as np

from gpgomea.kdtree import KDTree
from gpgomea.node import Node
from gpgomea.operators import Operator
from gpgomea.tree_init import TreeInitializer, TreeInitShape
from gpgomea.utils import (
    compute_distance,
    distance_with_dont_cares,
    hash_vector,
    linear_scaling_terms,
    mean_std,
)

_log = logging.getLogger(__name__)


class SemanticLibraryType(enum.Enum):
    """How the library is filled: random trees once, random trees anew, or the population."""

    RANDOM_STATIC = "random_static"
    RANDOM_DYNAMIC = "random_dynamic"
    POPULATION = "population"


class ClosestSubtree(NamedTuple):
    """Result of a library search.

    ``scaling`` holds the (intercept, slope) fitted to the query when a
    linearly scaled search was requested and succeeded, else None.
    """

    node: Node | None
    distance: float
    scaling: tuple[float, float] | None = None


def _as_candidates(x) -> list[np.ndarray]:
    """A query as one array of candidate values per element."""
    return [np.atleast_1d(np.asarray(v, dtype=float)) for v in x]


class SemanticLibrary:
    """Stores subtrees with distinct, non-constant outputs, grouped by height."""

    def __init__(self, normalize_outputs: bool = False, linear_parse_library: bool = False) -> None:
        self.normalize_outputs = normalize_outputs
        self.linear_parse_library = linear_parse_library
        self.max_tries = 100000
        self.libraries_kdtrees: dict[int, KDTree] = {}
        self.libraries_vectors: dict[int, list[tuple[Node, np.ndarray]]] = {}
        self.stored_solutions: dict[int, tuple[Node, np.ndarray]] = {}
        self.normalization_stored_solutions_mean_std: dict[Node, tuple[float, float]] = {}
        self.already_stored_semantics: set[int] = set()

    def __len__(self) -> int:
        return len(self.stored_solutions)

    def _reset(self) -> None:
        self.libraries_kdtrees.clear()
        self.libraries_vectors.clear()
        self.already_stored_semantics.clear()
        self.stored_solutions.clear()
        self.normalization_stored_solutions_mean_std.clear()

    def _finish(self) -> None:
        sizes = []
        if self.linear_parse_library:
            for node, out in self.stored_solutions.values():
                self.libraries_vectors.setdefault(node.height(True), []).append((node, out))
            sizes = [(h, len(v)) for h, v in sorted(self.libraries_vectors.items())]
        else:
            for h in sorted(self.libraries_kdtrees):
                tree = self.libraries_kdtrees[h]
                tree.build()
                sizes.append((h, len(tree)))
        _log.info(
            "generated semantic library (tot. size %d: %s)",
            len(self.stored_solutions),
            " ".join(f"h={h}:s={s}" for h, s in sizes),
        )

    def _add(self, node: Node, train_x, caching: bool) -> bool:
        out = np.ravel(np.asarray(node.output(train_x, caching), dtype=float))

        m = sd = math.nan
        if self.normalize_outputs:
            m, sd = mean_std(out)
            if not math.isfinite(m) or sd == 0 or not math.isfinite(sd):
                return False
            if not self.linear_parse_library:
                out = out - m

        if self.normalize_outputs:
            is_constant = sd == 0.0
        else:
            is_constant = out.size == 0 or all(out[0] == v for v in out[1:])
        if is_constant:
            return False

        key = hash_vector(out)
        height: int | None = None

        if key in self.already_stored_semantics:
            other = self.stored_solutions[key][0]
            size = len(node.subtree_nodes(True))
            other_size = len(other.subtree_nodes(True))
            other_height = other.height(True)
            height = node.height(True)
            if other_size <= size:
                return False
            self.normalization_stored_solutions_mean_std.pop(other, None)
            if other_height != height and not self.linear_parse_library:
                self.libraries_kdtrees[other_height].delete_point(out)

        self.already_stored_semantics.add(key)
        self.stored_solutions[key] = (node, out)
        if height is None:
            height = node.height(False)
        if not self.linear_parse_library:
            self.libraries_kdtrees.setdefault(height, KDTree()).add_point(out)
        if self.normalize_outputs:
            self.normalization_stored_solutions_mean_std[node] = (m, sd)
        return True

    def generate_population_library(
        self,
        max_height: int,
        max_library_size: int,
        population: Sequence[Node],
        train_x,
        caching: bool = False,
    ) -> None:
        """Fill the library with copies of the active subtrees of ``population``."""
        self._reset()
        for individual in population:
            for node in individual.subtree_nodes(True):
                if node.height(False) > max_height:
                    continue
                added = self._add(node.clone_subtree(), train_x, caching)
                if added and len(self.stored_solutions) >= max_library_size:
                    break
            if len(self.stored_solutions) >= max_library_size:
                break
        self._finish()

    def generate_random_library(
        self,
        max_height: int,
        max_library_size: int,
        train_x,
        functions: Sequence[Operator],
        terminals: Sequence[Operator],
        tree_init: TreeInitializer,
        caching: bool = False,
        rng: np.random.Generator | None = None,
    ) -> None:
        """Fill the library with random trees, giving up after ``max_tries`` attempts."""
        rng = rng if rng is not None else np.random.default_rng()
        self._reset()
        tries = 0
        while len(self.stored_solutions) < max_library_size and tries < self.max_tries:
            height = int(rng.random() * (max_height - 2 + 1) + 2)
            shape = TreeInitShape.FULL if rng.random() > 0.5 else TreeInitShape.GROW
            tree = tree_init.initialize_random_tree(shape, height, functions, terminals, 1)
            self._add(tree, train_x, caching)
            tries += 1
        self._finish()

    def closest_subtree(
        self,
        x,
        max_height: int,
        want_scaling: bool = False,
        avoid_zero: bool = False,
    ) -> ClosestSubtree:
        """The stored subtree whose output is nearest to ``x``.

        ``x`` is either a vector or a sequence of candidate arrays per element
        (NaN candidates match anything). With ``want_scaling`` on a normalized,
        linearly parsed library the distance is taken after linear scaling and
        the fitted coefficients are returned too.
        """
        candidates = _as_candidates(x)
        best_dist = math.inf
        best_node: Node | None = None
        best_out: np.ndarray | None = None
        best_idx: int | None = None
        best_h: int | None = None
        linear_active = self.normalize_outputs and want_scaling
        query = np.empty(0)
        mean_query = 0.0
        var_query = np.empty(0)

        if not self.linear_parse_library:
            for h in sorted(self.libraries_kdtrees):
                if h > max_height:
                    continue
                idx, dist = self.libraries_kdtrees[h].nn_search_dont_cares(candidates, avoid_zero)
                if dist < best_dist:
                    best_dist, best_idx, best_h = dist, idx, h
        elif linear_active:
            query = np.array([float(c[0]) for c in candidates])
            mean_query = float(np.mean(query))
            var_query = query - mean_query
            for h in range(max_height):
                for node, out in self.libraries_vectors.get(h, []):
                    dist = compute_distance(query, out, True, mean_query, var_query)
                    if dist < best_dist:
                        best_dist, best_node, best_out = dist, node, out
        else:
            for h in range(max_height):
                for node, out in self.libraries_vectors.get(h, []):
                    dist = distance_with_dont_cares(candidates, out)
                    if dist < best_dist:
                        best_dist, best_node = dist, node

        if math.isinf(best_dist):
            return ClosestSubtree(best_node, best_dist)

        scaling = None
        if not self.linear_parse_library:
            point = self.libraries_kdtrees[best_h].point(best_idx)
            best_node = self.stored_solutions[hash_vector(point)][0]
        elif linear_active:
            scaling = linear_scaling_terms(best_out, query, mean_query, var_query)
        return ClosestSubtree(best_node, best_dist, scaling)