"""Genotype made of several independent expression trees."""

from __future__ import annotations

import numpy as np

from gpgomea.node import Node, NodeType, SingleNode


class Multitree(Node):
    """A container of expression trees whose outputs form the columns of one matrix."""

    def __init__(self) -> None:
        super().__init__(NodeType.MULTI)
        self.nodes: list[SingleNode] = []

    def __repr__(self) -> str:
        return f"Multitree({self.nodes!r})"

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self):
        return iter(self.nodes)

    def output(self, x, use_caching: bool = False) -> np.ndarray:
        """Matrix with one row per row of ``x`` and one column per tree."""
        if use_caching and self.cached_output is not None:
            return self.cached_output
        columns = [np.asarray(n.output(x, False), dtype=float) for n in self.nodes]
        out = np.column_stack(columns)
        if use_caching:
            self.cached_output = out
        return out

    def clear_cached_output(self, also_ancestors: bool = False) -> None:
        self.cached_output = None

    def clone_subtree(self) -> "Multitree":
        clone = Multitree()
        for n in self.nodes:
            clone.append_tree(n.clone_subtree())
        clone.cached_objectives = np.array(self.cached_objectives, dtype=float)
        clone.cached_objectives_test = np.array(self.cached_objectives_test, dtype=float)
        return clone

    def subtree_expression(self, only_active: bool = True) -> str:
        return "".join(
            f"Expression{index}{n.subtree_expression(only_active)}\n "
            for index, n in enumerate(self.nodes, start=1)
        )

    def human_expression(self) -> str:
        return "".join(
            f"Expression {index}: {n.human_expression()}"
            for index, n in enumerate(self.nodes, start=1)
        )

    def python_expression(self) -> str:
        return "".join(
            f"Expression {index}: {n.python_expression()}"
            for index, n in enumerate(self.nodes, start=1)
        )

    def subtree_nodes(self, only_active: bool = True) -> list[SingleNode]:
        """The nodes of every tree, tree after tree, each in pre-order."""
        return [node for tree in self.nodes for node in tree.subtree_nodes(only_active)]

    def append_tree(self, node: SingleNode) -> None:
        """Add ``node`` as the root of a further tree."""
        self.nodes.append(node)

    def count_non_arithmetic_composition(self, count: int = -1) -> int:
        """Sum over the trees of their deepest non-arithmetic nesting."""
        return sum(n.count_non_arithmetic_composition(count) for n in self.nodes)