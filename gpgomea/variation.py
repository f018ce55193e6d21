"""Subtree-based variation: crossover, mutation and semantic operators."""

from __future__ import annotations

import math
from collections.abc import Sequence

import numpy as np

from gpgomea.backprop import compute_semantic_backpropagation
from gpgomea.node import Node, SingleNode
from gpgomea.operators import Operator
from gpgomea.regression import OpPlus, OpRegrConstant, OpTimes
from gpgomea.semantic_library import SemanticLibrary
from gpgomea.tree_init import TreeInitializer, TreeInitShape
from gpgomea.utils import distance_with_dont_cares


def _rng(rng):
    return rng if rng is not None else np.random.default_rng()


def _choose(nodes: Sequence[Node], rng) -> Node:
    return nodes[int(rng.random() * len(nodes))]


def _candidates(root: Node, unif_depth_var: bool, rng) -> list[Node]:
    nodes = root.subtree_nodes(True)
    if unif_depth_var:
        nodes = nodes_at_uniform_random_depth(root, nodes, rng)
    return nodes


def _replace(old: SingleNode, new: SingleNode) -> None:
    parent = old.parent
    index = parent.detach_child(old)
    parent.insert_child(new, index)


def nodes_at_uniform_random_depth(root: Node, nodes: Sequence[Node], rng=None) -> list[Node]:
    """The nodes lying at a depth drawn uniformly between 0 and the height of ``root``."""
    rng = _rng(rng)
    max_d = root.height()
    d = int(rng.random() * (max_d + 1))
    return [n for n in nodes if n.depth == d]


def subtree_crossover(p1: Node, p2: Node, unif_depth_var=False, use_caching=False, rng=None):
    """Two offspring made by swapping a random subtree of copies of ``p1`` and ``p2``."""
    rng = _rng(rng)
    o1 = p1.clone_subtree()
    o2 = p2.clone_subtree()
    nodes_o1 = _candidates(o1, unif_depth_var, rng)
    nodes_o2 = _candidates(o2, unif_depth_var, rng)

    chosen_o1 = _choose(nodes_o1, rng)
    chosen_o2 = _choose(nodes_o2, rng)
    parent_o1 = chosen_o1.parent
    parent_o2 = chosen_o2.parent

    if parent_o1 is None and parent_o2 is None:
        pass  # swapping roots leaves both trees as they are
    elif parent_o1 is None:
        _replace(chosen_o2, chosen_o1)
        o1 = chosen_o2
    elif parent_o2 is None:
        _replace(chosen_o1, chosen_o2)
        o2 = chosen_o1
    else:
        i1 = parent_o1.detach_child(chosen_o1)
        i2 = parent_o2.detach_child(chosen_o2)
        parent_o1.insert_child(chosen_o2, i1)
        parent_o2.insert_child(chosen_o1, i2)

    if use_caching:
        chosen_o1.clear_cached_output(True)
        chosen_o2.clear_cached_output(True)
    return o1, o2


def subtree_mutation(
    p: Node,
    tree_initializer: TreeInitializer,
    functions: Sequence[Operator],
    terminals: Sequence[Operator],
    initial_max_tree_height: int,
    unif_depth_var=False,
    use_caching=False,
    rng=None,
) -> Node:
    """A copy of ``p`` with a random subtree replaced by a freshly grown one."""
    rng = _rng(rng)
    branch = tree_initializer.initialize_random_tree(
        TreeInitShape.GROW, initial_max_tree_height, functions, terminals, 1
    )
    o = p.clone_subtree()
    chosen = _choose(_candidates(o, unif_depth_var, rng), rng)
    if chosen.parent is not None:
        _replace(chosen, branch)
    else:
        o = branch
    if use_caching:
        branch.clear_cached_output(True)
    return o


def top_mutation(
    p: Node,
    tree_initializer: TreeInitializer,
    functions: Sequence[Operator],
    terminals: Sequence[Operator],
    initial_max_tree_height: int,
    rng=None,
) -> Node:
    """A grown tree with a copy of ``p`` put in place of one of its leaves.

    If the grown tree is a single leaf, that leaf is returned.
    """
    rng = _rng(rng)
    branch = tree_initializer.initialize_random_tree(
        TreeInitShape.GROW, initial_max_tree_height, functions, terminals, 1
    )
    leaves = [n for n in branch.subtree_nodes(True) if not n.children]
    leaf = _choose(leaves, rng)
    if leaf.parent is None:
        return leaf
    _replace(leaf, p.clone_subtree())
    return branch


def subtree_rdo(
    p: Node,
    max_height: int,
    x,
    y,
    semlib: SemanticLibrary,
    unif_depth_var=False,
    use_caching=False,
    linear_scaling=False,
    rng=None,
) -> Node:
    """Random desired operator: replace a random subtree so the tree moves towards ``y``."""
    rng = _rng(rng)
    o = p.clone_subtree()
    chosen = _choose(_candidates(o, unif_depth_var, rng), rng)

    desired = compute_semantic_backpropagation(x, y, chosen, use_caching, linear_scaling)
    if len(desired) == 1:  # impossibility
        return o

    max_h = max_height - chosen.depth
    branch = find_replacement_subtree(desired, semlib, max_h, rng)
    if branch is None:
        return o

    if chosen.parent is not None:
        _replace(chosen, branch)
    else:
        o = branch
    if use_caching:
        branch.clear_cached_output(True)
    return o


def subtree_agx(
    p1: Node,
    p2: Node,
    max_height: int,
    x,
    semlib: SemanticLibrary,
    unif_depth_var=False,
    use_caching=False,
    linear_scaling=False,
    rng=None,
):
    """Approximate geometric crossover: both parents are moved towards their semantic midpoint."""
    rng = _rng(rng)
    y1 = np.ravel(np.asarray(p2.output(x, use_caching), dtype=float))
    y2 = np.ravel(np.asarray(p1.output(x, use_caching), dtype=float))
    midpoint = (y1 + y2) / 2
    o1 = subtree_rdo(p1, max_height, x, midpoint, semlib, unif_depth_var, use_caching, linear_scaling, rng)
    o2 = subtree_rdo(p2, max_height, x, midpoint, semlib, unif_depth_var, use_caching, linear_scaling, rng)
    return o1, o2


def _in_random_order(parent: SingleNode, a: SingleNode, b: SingleNode, rng) -> SingleNode:
    first, second = (a, b) if rng.random() < 0.5 else (b, a)
    parent.append_child(first)
    parent.append_child(second)
    return parent


def find_replacement_subtree(desired_output, semlib: SemanticLibrary, max_h: int, rng=None):
    """A subtree matching ``desired_output`` as closely as possible, or None.

    Either a library subtree (scaled and shifted when the library is normalized)
    or a constant, whichever is closer.
    """
    rng = _rng(rng)
    desired_output = [np.atleast_1d(np.asarray(d, dtype=float)) for d in desired_output]
    use_normalization = semlib.normalize_outputs
    use_linear = semlib.linear_parse_library
    search_normalized = use_normalization and max_h > 1

    desired_mean = 0.0
    vals = np.empty(0)
    vals_wo_mean = np.empty(0)
    if search_normalized:
        vals = np.full(len(desired_output), math.inf)
        known = []
        for i, candidates in enumerate(desired_output):
            for v in candidates:
                if not math.isinf(v):
                    vals[i] = v
                    if not math.isnan(v):
                        known.append(float(v))
                    break
        if known:
            desired_mean = sum(known) / len(known)
        vals_wo_mean = vals - desired_mean
        if not known:
            # anything is fine: query with a random normalized-looking vector
            vals_wo_mean = np.asarray(rng.standard_normal(vals.size), dtype=float)
        elif not use_linear and not math.isfinite(desired_mean):
            search_normalized = False

    best_node: Node | None = None
    best_dist = math.inf
    intercept, slope = math.nan, math.nan

    if search_normalized:
        max_h -= 1
        if use_linear:
            max_h -= 1
            found = semlib.closest_subtree(vals, max_h, True)
            if found.scaling is not None:
                intercept, slope = found.scaling
        else:
            found = semlib.closest_subtree(vals_wo_mean, max_h)
            best_mean, _ = semlib.normalization_stored_solutions_mean_std.get(found.node, (0.0, 0.0))
            intercept = desired_mean - best_mean
        best_node, best_dist = found.node, found.distance
    elif not use_normalization:
        found = semlib.closest_subtree(desired_output, max_h)
        best_node, best_dist = found.node, found.distance

    if use_normalization:
        constant_vec = np.full(len(desired_output), desired_mean)
        const_value, const_dist = desired_mean, distance_with_dont_cares(desired_output, constant_vec)
    else:
        const_value, const_dist = constant_from_desired_output(desired_output, best_dist)

    if math.isinf(const_dist) and math.isinf(best_dist):
        return None

    if const_dist < best_dist:
        return SingleNode(OpRegrConstant(const_value))

    if best_node is None:
        return None
    result = best_node.clone_subtree()
    if search_normalized:
        times = result
        if use_linear and slope != 1.0:
            times = _in_random_order(SingleNode(OpTimes()), SingleNode(OpRegrConstant(slope)), result, rng)
        plus = times
        if intercept != 0.0:
            plus = _in_random_order(SingleNode(OpPlus()), SingleNode(OpRegrConstant(intercept)), times, rng)
        result = plus
    return result


def constant_from_desired_output(desired_output, thresh_dist: float) -> tuple[float, float]:
    """The candidate value closest, as a constant, to all desired outputs.

    Returns the constant and its distance; a distance above ``thresh_dist``
    counts as infinite. With no acceptable constant the result is (nan, inf).
    """
    desired_output = [np.atleast_1d(np.asarray(d, dtype=float)) for d in desired_output]
    candidates = sorted({float(v) for d in desired_output for v in d if math.isfinite(v)})

    constant = math.nan
    min_dist = math.inf
    for c in candidates:
        dist = 0.0
        for d in desired_output:
            within = math.inf
            for v in d:
                if math.isnan(v):
                    continue
                within = min(within, (float(v) - c) ** 2)
            dist += within
            if dist > thresh_dist:
                dist = math.inf
                break
        if dist < min_dist:
            min_dist, constant = dist, c
    return constant, min_dist