"""Operator base class, the variable terminal and the Boolean functions."""

from __future__ import annotations

import copy
import enum

import numpy as np


class OperatorType(enum.Enum):
    """Kind of operator: a function or one of the terminal kinds."""

    FUNCTION = "function"
    TERM_VARIABLE = "variable"
    TERM_CONSTANT = "constant"


class Operator:
    """An operation a tree node applies to its children or to the input data."""

    arity: int = 0
    type: OperatorType = OperatorType.FUNCTION
    name: str = ""
    id: int = 0
    is_arithmetic: bool = True

    def clone(self) -> "Operator":
        """An independent copy of this operator."""
        return copy.copy(self)

    def compute_output(self, x) -> np.ndarray:
        """Output for each row of ``x`` (columns are the arguments or features)."""
        raise NotImplementedError(f"{type(self).__name__}.compute_output not implemented")

    def invert(self, desired, output_siblings, idx: int) -> np.ndarray:
        """Values for argument ``idx`` that give the ``desired`` outputs."""
        raise NotImplementedError(f"{type(self).__name__}.invert not implemented")

    def invert_and_postproc(self, desired, output_siblings, idx: int) -> np.ndarray:
        """Inversion followed by post-processing of its result."""
        return self.invert(desired, output_siblings, idx)

    def human_expression(self, args: list[str]) -> str:
        """Readable expression of this operator applied to ``args``."""
        raise NotImplementedError(f"{type(self).__name__}.human_expression not implemented")

    def python_expression(self, args: list[str]) -> str:
        """Expression of this operator applied to ``args`` for external evaluation."""
        return ""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"


def _column(x, col: int) -> np.ndarray:
    return np.asarray(x, dtype=float)[:, col]


def _truth(x, col: int) -> np.ndarray:
    return _column(x, col).astype(bool)


class OpVariable(Operator):
    """Terminal that reads one feature column of the input."""

    arity = 0
    type = OperatorType.TERM_VARIABLE

    def __init__(self, index: int) -> None:
        self.id = index
        self.name = f"x{index}"

    def compute_output(self, x) -> np.ndarray:
        return _column(x, self.id).copy()

    def human_expression(self, args: list[str]) -> str:
        return self.name

    def python_expression(self, args: list[str]) -> str:
        return self.name


class _BinaryInfix(Operator):
    arity = 2
    type = OperatorType.FUNCTION

    def human_expression(self, args: list[str]) -> str:
        return f"({args[0]}{self.name}{args[1]})"


class OpAnd(_BinaryInfix):
    """Logical conjunction."""

    name = "AND"

    def compute_output(self, x) -> np.ndarray:
        return (_truth(x, 0) & _truth(x, 1)).astype(float)

    def python_expression(self, args: list[str]) -> str:
        return f"({args[0]} AND {args[1]})"


class OpNand(_BinaryInfix):
    """Negated conjunction."""

    name = "NAND"

    def compute_output(self, x) -> np.ndarray:
        return (~(_truth(x, 0) & _truth(x, 1))).astype(float)

    def python_expression(self, args: list[str]) -> str:
        return f"({args[0]}NAND{args[1]})"


class OpNor(_BinaryInfix):
    """Negated disjunction."""

    name = "NOR"

    def compute_output(self, x) -> np.ndarray:
        return (~(_truth(x, 0) | _truth(x, 1))).astype(float)

    def python_expression(self, args: list[str]) -> str:
        return f"({args[0]}NOR{args[1]})"


class OpNot(Operator):
    """Logical negation."""

    arity = 1
    name = "NOT"
    type = OperatorType.FUNCTION

    def compute_output(self, x) -> np.ndarray:
        return (~_truth(x, 0)).astype(float)

    def human_expression(self, args: list[str]) -> str:
        return f"{self.name}({args[0]})"

    def python_expression(self, args: list[str]) -> str:
        return f"NOT ({args[0]})"


class OpOr(_BinaryInfix):
    """Logical disjunction."""

    name = "OR"

    def compute_output(self, x) -> np.ndarray:
        return (_truth(x, 0) | _truth(x, 1)).astype(float)

    def python_expression(self, args: list[str]) -> str:
        return f"({args[0]} OR {args[1]})"


class OpXor(_BinaryInfix):
    """Exclusive disjunction."""

    name = "XOR"

    def compute_output(self, x) -> np.ndarray:
        a = _truth(x, 0)
        b = _truth(x, 1)
        return ((a | b) & ~(a & b)).astype(float)

    def python_expression(self, args: list[str]) -> str:
        return f"({args[0]}XOR{args[1]})"