"""Random generation of expression trees."""

from __future__ import annotations

import enum
from collections.abc import Sequence

import numpy as np

from gpgomea.multitree import Multitree
from gpgomea.node import Node, SingleNode
from gpgomea.operators import Operator


class TreeInitType(enum.Enum):
    """Half-and-half, or ramped half-and-half (random height per tree)."""

    HH = "hh"
    RHH = "rhh"


class TreeInitShape(enum.Enum):
    """Full trees, or trees grown with terminals drawn at any depth."""

    FULL = "full"
    GROW = "grow"


class TreeInitializer:
    """Builds random trees from given function and terminal operators."""

    def __init__(
        self,
        tree_init_type: TreeInitType = TreeInitType.RHH,
        rng: np.random.Generator | None = None,
    ) -> None:
        self.tree_init_type = tree_init_type
        self.rng = rng if rng is not None else np.random.default_rng()

    def _pick(self, operators: Sequence[Operator]) -> SingleNode:
        index = int(self.rng.random() * len(operators))
        return SingleNode(operators[index].clone())

    def initialize_random_tree(
        self,
        shape: TreeInitShape,
        max_height: int,
        functions: Sequence[Operator],
        terminals: Sequence[Operator],
        nr_trees: int = 1,
    ) -> Node:
        """A random tree, or a Multitree of ``nr_trees`` trees when more than one."""
        height = max_height
        if self.tree_init_type == TreeInitType.RHH:
            height = int(self.rng.random() * (max_height + 1 - 2) + 2)

        multitree = Multitree()
        for _ in range(nr_trees):
            if shape == TreeInitShape.FULL:
                tree = self.generate_full(height, functions, terminals)
            elif shape == TreeInitShape.GROW:
                tree = self.generate_grow(height, functions, terminals)
            else:
                raise ValueError(f"invalid tree initialization shape: {shape!r}")
            if nr_trees == 1:
                return tree
            multitree.append_tree(tree)
        return multitree

    def generate_full(
        self,
        height_left: int,
        functions: Sequence[Operator],
        terminals: Sequence[Operator],
    ) -> SingleNode:
        """A tree using functions above ``height_left`` levels and terminals at the bottom."""
        node = self._pick(functions if height_left > 0 else terminals)
        for _ in range(node.arity):
            node.append_child(self.generate_full(height_left - 1, functions, terminals))
        return node

    def generate_grow(
        self,
        height_left: int,
        functions: Sequence[Operator],
        terminals: Sequence[Operator],
    ) -> SingleNode:
        """A tree where each node above the height limit is a function or terminal with equal odds."""
        if height_left > 0 and self.rng.random() >= 0.5:
            node = self._pick(functions)
        else:
            node = self._pick(terminals)
        for _ in range(node.arity):
            node.append_child(self.generate_grow(height_left - 1, functions, terminals))
        return node