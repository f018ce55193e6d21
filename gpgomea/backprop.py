"""Semantic backpropagation of target outputs down to a node of a tree."""

from __future__ import annotations

import numpy as np

from gpgomea.node import SingleNode
from gpgomea.utils import linear_scaling_terms


def compute_semantic_backpropagation(
    x,
    y,
    node: SingleNode,
    use_caching: bool = False,
    linear_scaling: bool = False,
) -> list[np.ndarray]:
    """Outputs wanted from ``node`` so that its tree produces ``y`` on ``x``.

    The result holds one array of candidate values per row of ``x``. An
    infinite first candidate means impossible, NaN means any value. A result
    with a single element holding infinity marks an overall impossibility.
    With ``linear_scaling`` the targets are first mapped back through the
    linear scaling that best fits the tree's current output to ``y``.
    """
    ancestors: list[SingleNode] = []
    current: SingleNode | None = node
    while current is not None:
        ancestors.append(current)
        current = current.parent

    root = ancestors[-1]
    targets = np.ravel(np.asarray(y, dtype=float))

    if linear_scaling:
        out = np.ravel(np.asarray(root.output(x, use_caching), dtype=float))
        a, b = linear_scaling_terms(out, targets)
        with np.errstate(divide="ignore", invalid="ignore"):
            targets = (targets - a) / b

    desired = [np.array([float(v)]) for v in targets]
    for ancestor in reversed(ancestors):
        desired = ancestor.desired_output(desired, x, use_caching)
    return desired