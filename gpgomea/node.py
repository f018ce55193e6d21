"""Tree nodes that make up the genotype of a solution."""

from __future__ import annotations

import abc
import enum
import math
from collections import deque
from collections.abc import Sequence

import numpy as np

from gpgomea.operators import Operator, OperatorType


class NodeType(enum.Enum):
    """Whether a node is a single tree node or a container of several trees."""

    SINGLE = "single"
    MULTI = "multi"


class SubtreeParseType(enum.Enum):
    """Order in which the nodes of a subtree are listed."""

    PREORDER = "preorder"
    POSTORDER = "postorder"
    LEVELORDER = "levelorder"


class Node(abc.ABC):
    """Common state and interface of every genotype node."""

    def __init__(self, node_type: NodeType) -> None:
        self.type = node_type
        self.cached_fitness: float = math.inf
        self.cached_output: np.ndarray | None = None
        self.cached_objectives: np.ndarray = np.empty(0)
        self.cached_objectives_test: np.ndarray = np.empty(0)
        self.crowding_distance: float = 0.0
        self.rank: int = 0
        self.nis: int = 0

    @abc.abstractmethod
    def output(self, x, use_caching: bool = False) -> np.ndarray:
        """Output of the subtree rooted here on the rows of ``x``."""

    @abc.abstractmethod
    def clear_cached_output(self, also_ancestors: bool = False) -> None:
        """Forget the cached output."""

    @abc.abstractmethod
    def clone_subtree(self) -> "Node":
        """A deep copy of the subtree rooted here."""

    @abc.abstractmethod
    def subtree_expression(self, only_active: bool = True) -> str:
        """The node values of the subtree concatenated in pre-order."""

    @abc.abstractmethod
    def human_expression(self) -> str:
        """A readable expression of the subtree."""

    @abc.abstractmethod
    def python_expression(self) -> str:
        """An expression of the subtree for external evaluation."""

    @abc.abstractmethod
    def subtree_nodes(self, only_active: bool = True) -> list["Node"]:
        """All nodes of the subtree."""

    @abc.abstractmethod
    def count_non_arithmetic_composition(self, count: int = -1) -> int:
        """Deepest nesting of non-arithmetic operators in the subtree."""

    def dominates(self, other: "Node") -> bool:
        """Pareto dominance on the cached objectives (all minimised)."""
        strictly_better = False
        for mine, theirs in zip(self.cached_objectives, other.cached_objectives):
            if mine < theirs:
                strictly_better = True
            elif mine > theirs:
                return False
        return strictly_better


class SingleNode(Node):
    """A node of a single expression tree, holding one operator."""

    def __init__(self, op: Operator) -> None:
        super().__init__(NodeType.SINGLE)
        self.op = op
        self.parent: SingleNode | None = None
        self.children: list[SingleNode] = []

    def __repr__(self) -> str:
        return f"SingleNode({self.op.name!r})"

    def _copy_node(self) -> "SingleNode":
        node = SingleNode(self.op.clone())
        node.cached_fitness = self.cached_fitness
        node.cached_objectives = np.array(self.cached_objectives, dtype=float)
        return node

    def _considered_children(self, only_active: bool) -> list["SingleNode"]:
        return self.children[: self.arity] if only_active else list(self.children)

    @property
    def arity(self) -> int:
        """Number of arguments the operator takes."""
        return self.op.arity

    @property
    def value(self) -> str:
        """Name of the operator."""
        return self.op.name

    @property
    def depth(self) -> int:
        """Number of ancestors of this node."""
        d = 0
        p = self.parent
        while p is not None:
            d += 1
            p = p.parent
        return d

    def output(self, x, use_caching: bool = False) -> np.ndarray:
        if use_caching and self.cached_output is not None:
            return self.cached_output
        if self.op.type == OperatorType.FUNCTION:
            args = np.column_stack(
                [np.asarray(c.output(x, use_caching), dtype=float) for c in self.children[: self.arity]]
            )
            out = np.asarray(self.op.compute_output(args), dtype=float)
        else:
            out = np.asarray(self.op.compute_output(x), dtype=float)
        if use_caching:
            self.cached_output = out
        return out

    def clear_cached_output(self, also_ancestors: bool = False) -> None:
        self.cached_output = None
        if also_ancestors and self.parent is not None:
            self.parent.clear_cached_output(also_ancestors)

    def append_child(self, child: "SingleNode") -> None:
        """Add ``child`` as the last child."""
        self.children.append(child)
        child.parent = self

    def detach_child(self, child: "SingleNode") -> int:
        """Remove ``child`` and return the position it held."""
        for index, c in enumerate(self.children):
            if c is child:
                del self.children[index]
                child.parent = None
                return index
        raise ValueError("node is not a child of this node")

    def detach_child_at(self, index: int) -> "SingleNode":
        """Remove and return the child at ``index``."""
        child = self.children.pop(index)
        child.parent = None
        return child

    def insert_child(self, child: "SingleNode", index: int) -> None:
        """Insert ``child`` at position ``index``."""
        self.children.insert(index, child)
        child.parent = self

    def height(self, only_active: bool = True) -> int:
        """Longest path from this node down to a leaf."""
        kids = self._considered_children(only_active)
        if not kids:
            return 0
        return 1 + max(c.height(only_active) for c in kids)

    def change_operator(self, op: Operator) -> Operator:
        """Use a copy of ``op`` from now on and return the old operator."""
        old = self.op
        self.op = op.clone()
        return old

    def subtree_nodes(
        self,
        only_active: bool = True,
        order: SubtreeParseType = SubtreeParseType.PREORDER,
    ) -> list["SingleNode"]:
        if order == SubtreeParseType.PREORDER:
            return list(self._preorder(only_active))
        if order == SubtreeParseType.POSTORDER:
            return list(self._postorder(only_active))
        if order == SubtreeParseType.LEVELORDER:
            return self._levelorder(only_active)
        raise ValueError(f"unrecognized subtree parse type: {order!r}")

    def _preorder(self, only_active: bool):
        yield self
        for c in self._considered_children(only_active):
            yield from c._preorder(only_active)

    def _postorder(self, only_active: bool):
        for c in self._considered_children(only_active):
            yield from c._postorder(only_active)
        yield self

    def _levelorder(self, only_active: bool) -> list["SingleNode"]:
        result = []
        queue = deque([self])
        while queue:
            node = queue.popleft()
            result.append(node)
            queue.extend(node._considered_children(only_active))
        return result

    def clone_subtree(self) -> "SingleNode":
        node = self._copy_node()
        for c in self.children:
            node.append_child(c.clone_subtree())
        return node

    def subtree_expression(self, only_active: bool = True) -> str:
        return "".join(n.value for n in self._preorder(only_active))

    def human_expression(self) -> str:
        args = [c.human_expression() for c in self.children[: self.arity]]
        return self.op.human_expression(args)

    def python_expression(self) -> str:
        args = [c.python_expression() for c in self.children[: self.arity]]
        return self.op.python_expression(args)

    def relative_index(self) -> int:
        """Position of this node among its parent's children (0 for a root)."""
        if self.parent is None:
            return 0
        for index, c in enumerate(self.parent.children):
            if c is self:
                return index
        raise RuntimeError("node is missing from its parent's children")

    def is_active(self) -> bool:
        """True if every ancestor uses the branch leading to this node."""
        node = self
        p = self.parent
        while p is not None:
            if node.relative_index() >= p.arity:
                return False
            node = p
            p = node.parent
        return True

    def desired_output(self, y: Sequence, x, use_caching: bool = False) -> list[np.ndarray]:
        """Invert the parent's operator to get the outputs wanted from this node.

        ``y`` holds, per row of ``x``, the candidate outputs wanted from the
        parent. An infinite first value means impossible, NaN means any value.
        A single-element result holding infinity marks an impossibility.
        """
        if self.parent is None:
            return list(y)

        idx = self.relative_index()
        parent = self.parent
        siblings = [c for k, c in enumerate(parent.children[: parent.arity]) if k != idx]
        sibling_outputs = (
            np.column_stack([np.asarray(s.output(x, use_caching), dtype=float) for s in siblings])
            if siblings
            else None
        )

        inversion: list[np.ndarray] = []
        for i, wanted in enumerate(y):
            wanted = np.atleast_1d(np.asarray(wanted, dtype=float))
            first = float(wanted[0])
            if math.isinf(first) or math.isnan(first):
                inversion.append(wanted)
                continue

            out_sib = np.empty(0)
            if sibling_outputs is not None:
                out_sib = sibling_outputs[i]
                if np.any(np.isnan(out_sib)):
                    return [np.array([math.inf])]

            r = np.atleast_1d(np.asarray(parent.op.invert_and_postproc(wanted, out_sib, idx), dtype=float))
            if math.isinf(float(r[0])):
                return [r]
            inversion.append(r)
        return inversion

    def count_non_arithmetic_composition(self, count: int = -1) -> int:
        if count == -1:
            count = 0
        if not self.op.is_arithmetic:
            count += 1
            count = max([c.count_non_arithmetic_composition(count) for c in self.children] + [0])
        elif self.op.type == OperatorType.FUNCTION:
            count = max([c.count_non_arithmetic_composition(count) for c in self.children] + [0])
        return count