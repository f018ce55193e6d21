"""k-d tree over semantic vectors, with nearest-neighbour queries."""

from __future__ import annotations

import bisect
import math
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from gpgomea.utils import compute_distance, distance_with_dont_cares, dont_care_query, hash_vector


@dataclass
class _KDNode:
    idx: int
    axis: int
    left: "_KDNode | None" = None
    right: "_KDNode | None" = None

    def child(self, direction: int) -> "_KDNode | None":
        return self.left if direction == 0 else self.right


class KDTree:
    """A k-d tree; points added after building are searched after the next build."""

    def __init__(self, points: Sequence | None = None) -> None:
        self._root: _KDNode | None = None
        self._points: list[np.ndarray] = []
        self._dim = 0
        if points is not None:
            self.build(points)

    def __len__(self) -> int:
        return len(self._points)

    def build(self, points: Sequence | None = None) -> None:
        """Build the tree over ``points``, or over the stored points if none are given."""
        if points is not None:
            points = [np.asarray(p, dtype=float) for p in points]
            self.clear()
            self._points = points
        else:
            self._root = None
        if not self._points:
            return
        self._dim = self._points[0].size
        self._root = self._build(list(range(len(self._points))), 0)

    def _build(self, indices: list[int], depth: int) -> _KDNode | None:
        if not indices:
            return None
        axis = depth % self._dim
        mid = (len(indices) - 1) // 2
        indices = sorted(indices, key=lambda i: self._points[i][axis])
        node = _KDNode(indices[mid], axis)
        node.left = self._build(indices[:mid], depth + 1)
        node.right = self._build(indices[mid + 1 :], depth + 1)
        return node

    def add_point(self, point) -> None:
        """Store a point; it is indexed by the next ``build``."""
        self._points.append(np.asarray(point, dtype=float))

    def delete_point(self, point) -> None:
        """Remove the first stored point equal to ``point``, if any."""
        target = hash_vector(point)
        for index, p in enumerate(self._points):
            if hash_vector(p) == target:
                del self._points[index]
                return

    def clear(self) -> None:
        """Drop the tree and all points."""
        self._root = None
        self._points = []

    def validate(self) -> bool:
        """Check the ordering of every node that has two children."""

        def ok(node: _KDNode | None) -> bool:
            if node is None:
                return True
            if node.left is not None and node.right is not None:
                value = self._points[node.idx][node.axis]
                if value < self._points[node.left.idx][node.axis]:
                    return False
                if value > self._points[node.right.idx][node.axis]:
                    return False
            return ok(node.left) and ok(node.right)

        return ok(self._root)

    def nn_search(self, query, no_perfect_match: bool = False) -> tuple[int | None, float]:
        """Index of the nearest point and its squared distance.

        With ``no_perfect_match`` points at distance zero are skipped.
        The index is None when no point qualifies.
        """
        query = np.asarray(query, dtype=float)
        best: list = [None, math.inf]

        def visit(node: _KDNode | None) -> None:
            if node is None:
                return
            train = self._points[node.idx]
            dist = compute_distance(query, train)
            if (not no_perfect_match or dist != 0) and dist < best[1]:
                best[0], best[1] = node.idx, dist
            q = float(query[node.axis])
            t = float(train[node.axis])
            direction = 0 if q < t or math.isnan(q) else 1
            visit(node.child(direction))
            if abs(q - t) < best[1] or math.isnan(q):
                visit(node.child(1 - direction))

        visit(self._root)
        return best[0], best[1]

    def nn_search_dont_cares(self, query: Sequence, no_perfect_match: bool = False) -> tuple[int | None, float]:
        """Nearest point to a query given as candidate values per element.

        NaN candidates match anything. Returns the index (None if no point
        qualifies) and the squared distance.
        """
        best: list = [None, math.inf]

        def visit(node: _KDNode | None) -> None:
            if node is None:
                return
            train = self._points[node.idx]
            dist = distance_with_dont_cares(query, train)
            generated = dont_care_query(query, train)
            if (not no_perfect_match or dist != 0) and dist < best[1]:
                best[0], best[1] = node.idx, dist
            g = float(generated[node.axis])
            t = float(train[node.axis])
            direction = 0 if g < t else 1
            visit(node.child(direction))
            if abs(g - t) < best[1]:
                visit(node.child(1 - direction))

        visit(self._root)
        return best[0], best[1]

    def point(self, index: int) -> np.ndarray:
        """The stored point at ``index``."""
        return self._points[index]

    def points(self, indices: Sequence[int]) -> list[np.ndarray]:
        """The stored points at ``indices``."""
        return [self._points[i] for i in indices]

    def knn_search(self, query, k: int) -> list[int]:
        """Indices of up to ``k`` nearest points, nearest first."""
        query = np.asarray(query, dtype=float)
        queue: list[tuple[float, int]] = []

        def visit(node: _KDNode | None) -> None:
            if node is None:
                return
            train = self._points[node.idx]
            bisect.insort_right(queue, (compute_distance(query, train), node.idx))
            del queue[k:]
            direction = 0 if query[node.axis] < train[node.axis] else 1
            visit(node.child(direction))
            diff = abs(float(query[node.axis]) - float(train[node.axis]))
            if len(queue) < k or diff < queue[-1][0]:
                visit(node.child(1 - direction))

        if k > 0:
            visit(self._root)
        return [idx for _, idx in queue]

    def radius_search(self, query, radius: float) -> list[int]:
        """Indices of points whose squared distance is below ``radius``."""
        query = np.asarray(query, dtype=float)
        found: list[int] = []

        def visit(node: _KDNode | None) -> None:
            if node is None:
                return
            train = self._points[node.idx]
            if compute_distance(query, train) < radius:
                found.append(node.idx)
            direction = 0 if query[node.axis] < train[node.axis] else 1
            visit(node.child(direction))
            if abs(float(query[node.axis]) - float(train[node.axis])) < radius:
                visit(node.child(1 - direction))

        visit(self._root)
        return found