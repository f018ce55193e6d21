"""Arithmetic and transcendental operators for symbolic regression."""

from __future__ import annotations

import math

import numpy as np

from gpgomea.operators import (
    OpAnd,
    Operator,
    OperatorType,
    OpNand,
    OpNor,
    OpNot,
    OpOr,
    OpXor,
)

_INFEASIBLE = np.array([math.inf])

_default_rng = np.random.default_rng()


def _columns(x) -> np.ndarray:
    return np.asarray(x, dtype=float)


def _first(values) -> float:
    return float(np.atleast_1d(np.asarray(values, dtype=float))[0])


def _vector(values) -> np.ndarray:
    return np.atleast_1d(np.asarray(values, dtype=float))


def _or_infeasible(candidates: list[float]) -> np.ndarray:
    """The candidates as an array, or a single infinity if there are none."""
    if not candidates:
        return _INFEASIBLE.copy()
    return np.array(candidates, dtype=float)


class _Infix(Operator):
    arity = 2
    type = OperatorType.FUNCTION

    def human_expression(self, args: list[str]) -> str:
        return f"({args[0]}{self.name}{args[1]})"


class _Unary(Operator):
    arity = 1
    type = OperatorType.FUNCTION
    is_arithmetic = False

    def human_expression(self, args: list[str]) -> str:
        return f"{self.name}({args[0]})"


class OpPlus(_Infix):
    """Addition."""

    name = "+"
    is_arithmetic = True

    def compute_output(self, x) -> np.ndarray:
        m = _columns(x)
        return m[:, 0] + m[:, 1]

    def invert(self, desired, output_siblings, idx: int) -> np.ndarray:
        return _vector(desired) - _first(output_siblings)

    def python_expression(self, args: list[str]) -> str:
        return f"({args[0]}+{args[1]})"


class OpMinus(_Infix):
    """Subtraction."""

    name = "-"
    is_arithmetic = True

    def compute_output(self, x) -> np.ndarray:
        m = _columns(x)
        return m[:, 0] - m[:, 1]

    def invert(self, desired, output_siblings, idx: int) -> np.ndarray:
        sibling = _first(output_siblings)
        if idx == 0:
            return _vector(desired) - sibling
        return sibling - _vector(desired)

    def python_expression(self, args: list[str]) -> str:
        return f"({args[0]}-{args[1]})"


class OpTimes(_Infix):
    """Multiplication."""

    name = "*"
    is_arithmetic = True

    def compute_output(self, x) -> np.ndarray:
        m = _columns(x)
        return m[:, 0] * m[:, 1]

    def invert(self, desired, output_siblings, idx: int) -> np.ndarray:
        desired = _vector(desired)
        sibling = _first(output_siblings)
        if sibling == 0:
            # Any value works if zero is wanted (don't care); otherwise impossible.
            return np.array([math.nan if np.any(desired == 0) else math.inf])
        return desired / sibling

    def python_expression(self, args: list[str]) -> str:
        return f"({args[0]}*{args[1]})"


class OpAnalyticQuotient(_Infix):
    """Analytic quotient ``a / sqrt(1 + b**2)``."""

    name = "aq"
    is_arithmetic = False

    def compute_output(self, x) -> np.ndarray:
        m = _columns(x)
        return m[:, 0] / np.sqrt(1.0 + np.square(m[:, 1]))

    def invert(self, desired, output_siblings, idx: int) -> np.ndarray:
        desired = _vector(desired)
        sibling = _first(output_siblings)
        if idx == 0:
            return desired * math.sqrt(1.0 + sibling * sibling)
        oo = sibling * sibling
        candidates = []
        for v in desired:
            v = float(v)
            if v == 0:
                continue
            r = oo / (v * v) - 1.0
            if r < 0 or math.isinf(r):
                continue
            candidates.append(math.sqrt(r))
        return _or_infeasible(candidates)

    def python_expression(self, args: list[str]) -> str:
        return f"({args[0]}/ + sqrt(1 + pow({args[1]},2) ) )"


class OpNewProtectedDivision(_Infix):
    """Division protected by a small offset on the magnitude of the divisor."""

    name = "p/"
    is_arithmetic = True

    def compute_output(self, x) -> np.ndarray:
        m = _columns(x)
        b = m[:, 1]
        sign = np.where(b < 0, -1.0, 1.0)
        return sign * (m[:, 0] / (1e-6 + np.abs(b)))

    def python_expression(self, args: list[str]) -> str:
        return f"({args[0]}/ ({args[1]}+1e-6) )"


class OpExp(_Unary):
    """Exponential."""

    name = "exp"

    def compute_output(self, x) -> np.ndarray:
        with np.errstate(over="ignore"):
            return np.exp(_columns(x)[:, 0])

    def invert(self, desired, output_siblings, idx: int) -> np.ndarray:
        return _or_infeasible([math.log(float(v)) for v in _vector(desired) if v > 0])

    def human_expression(self, args: list[str]) -> str:
        return f"{self.name}({args[0]})"

    def python_expression(self, args: list[str]) -> str:
        return f"exp({args[0]})"


class OpLog(_Unary):
    """Protected logarithm of the absolute value; non-finite results become 0."""

    name = "plog"

    def compute_output(self, x) -> np.ndarray:
        with np.errstate(divide="ignore", invalid="ignore"):
            res = np.log(np.abs(_columns(x)[:, 0]))
        res[~np.isfinite(res)] = 0.0
        return res

    def invert(self, desired, output_siblings, idx: int) -> np.ndarray:
        candidates = []
        for v in _vector(desired):
            with np.errstate(over="ignore"):
                e = float(np.exp(v))
            for c in (e, -e):
                if math.isfinite(c):
                    candidates.append(c)
        return _or_infeasible(candidates)

    def human_expression(self, args: list[str]) -> str:
        return f"{self.name}({args[0]})"

    def python_expression(self, args: list[str]) -> str:
        return f"ln(abs({args[0]}))"


def _periodic_inverse(desired, inverse) -> np.ndarray:
    candidates = []
    for v in _vector(desired):
        if abs(v) <= 1.0:
            base = inverse(float(v))
            candidates.extend((base, base + 2 * math.pi, base - 2 * math.pi))
    return _or_infeasible(candidates)


class OpSin(_Unary):
    """Sine."""

    name = "sin"

    def compute_output(self, x) -> np.ndarray:
        return np.sin(_columns(x)[:, 0])

    def invert(self, desired, output_siblings, idx: int) -> np.ndarray:
        return _periodic_inverse(desired, math.asin)

    def human_expression(self, args: list[str]) -> str:
        return f"{self.name}({args[0]})"

    def python_expression(self, args: list[str]) -> str:
        return f"sin({args[0]})"


class OpCos(_Unary):
    """Cosine."""

    name = "cos"

    def compute_output(self, x) -> np.ndarray:
        return np.cos(_columns(x)[:, 0])

    def invert(self, desired, output_siblings, idx: int) -> np.ndarray:
        return _periodic_inverse(desired, math.acos)

    def human_expression(self, args: list[str]) -> str:
        return f"{self.name}({args[0]})"

    def python_expression(self, args: list[str]) -> str:
        return f"cos({args[0]})"


class OpSquare(_Unary):
    """Square."""

    name = "^2"

    def compute_output(self, x) -> np.ndarray:
        return np.square(_columns(x)[:, 0])

    def invert(self, desired, output_siblings, idx: int) -> np.ndarray:
        return _or_infeasible([math.sqrt(float(v)) for v in _vector(desired) if v >= 0])

    def human_expression(self, args: list[str]) -> str:
        return f"({args[0]}){self.name}"

    def python_expression(self, args: list[str]) -> str:
        return f"(({args[0]})**2)"


class OpSquareRoot(_Unary):
    """Square root of the absolute value."""

    name = "sqrt"

    def compute_output(self, x) -> np.ndarray:
        return np.sqrt(np.abs(_columns(x)[:, 0]))

    def invert(self, desired, output_siblings, idx: int) -> np.ndarray:
        sq = np.square(_vector(desired))
        return np.concatenate([sq, -sq])

    def human_expression(self, args: list[str]) -> str:
        return f"{self.name}({args[0]})"

    def python_expression(self, args: list[str]) -> str:
        return f"sqrt({args[0]})"


def _format_constant(value: float) -> str:
    if math.isnan(value):
        return "nan"
    return f"{value:f}"


class OpRegrConstant(Operator):
    """Constant terminal.

    Built from a value, or from bounds: then the value is drawn uniformly
    within them (rounded to three decimals) the first time output is computed.
    """

    arity = 0
    type = OperatorType.TERM_CONSTANT
    is_arithmetic = True

    def __init__(
        self,
        value: float | None = None,
        *,
        lower_b: float = math.nan,
        upper_b: float = math.nan,
        rng: np.random.Generator | None = None,
    ) -> None:
        self.lower_b = float(lower_b)
        self.upper_b = float(upper_b)
        self.rng = rng
        if value is None:
            self._constant = math.nan
        else:
            value = float(value)
            if math.isinf(value):
                raise ValueError("a constant cannot be initialized to INF")
            if math.isnan(value):
                raise ValueError("a constant cannot be initialized to NAN")
            self._constant = value
        self.name = _format_constant(self._constant)

    @property
    def constant(self) -> float:
        """The current value (NaN until drawn, for a bounded constant)."""
        return self._constant

    def set_constant(self, value: float) -> None:
        """Replace the value and the name shown for it."""
        self._constant = float(value)
        self.name = _format_constant(self._constant)

    def compute_output(self, x) -> np.ndarray:
        if math.isnan(self._constant):
            rng = self.rng if self.rng is not None else _default_rng
            drawn = rng.random() * (self.upper_b - self.lower_b) + self.lower_b
            self.set_constant(round(drawn * 1e3) / 1e3)
        rows = np.asarray(x).shape[0]
        return np.full(rows, self._constant, dtype=float)

    def human_expression(self, args: list[str]) -> str:
        return self.name

    def python_expression(self, args: list[str]) -> str:
        return self.name


def all_operators() -> list[Operator]:
    """A fresh instance of every available function operator."""
    return [
        OpPlus(),
        OpMinus(),
        OpTimes(),
        OpAnalyticQuotient(),
        OpNewProtectedDivision(),
        OpExp(),
        OpLog(),
        OpSin(),
        OpCos(),
        OpSquare(),
        OpSquareRoot(),
        OpAnd(),
        OpOr(),
        OpNand(),
        OpNor(),
        OpNot(),
        OpXor(),
    ]