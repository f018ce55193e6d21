"""Numeric and string helpers shared across the package."""

from __future__ import annotations

import math
from collections.abc import Sequence

import numpy as np


def replace_char(original: str, to_replace: str, replacing: str) -> str:
    """Return ``original`` with every ``to_replace`` character swapped for ``replacing``."""
    return original.replace(to_replace, replacing)


def split_string_by_char(original: str, splitc: str) -> list[str]:
    """Split on ``splitc`` (and on whitespace), dropping empty pieces."""
    if splitc != " ":
        original = replace_char(original, splitc, " ")
    return original.split()


def mean_std(x) -> tuple[float, float]:
    """Mean and population standard deviation of ``x``."""
    values = np.asarray(x, dtype=float)
    m = float(np.mean(values))
    sd = math.sqrt(float(np.sum(np.square(values - m))) / values.size)
    return m, sd


def normalize(x) -> np.ndarray:
    """Shift ``x`` to zero mean and scale it to unit population deviation."""
    values = np.asarray(x, dtype=float)
    m, sd = mean_std(values)
    return (values - m) / sd


def hash_vector(x) -> int:
    """Hash of the values of a vector; equal vectors hash equally."""
    return hash(tuple(float(v) for v in np.ravel(np.asarray(x, dtype=float))))


def is_number(s: str) -> bool:
    """True if ``s`` is an optional minus sign followed by digits and dots only."""
    body = s[1:] if s.startswith("-") else s
    return bool(body) and all(c in "0123456789." for c in body)


def linear_scaling_terms(
    p,
    y,
    mean_y=None,
    var_terms_y=None,
    mean_p=None,
    var_terms_p=None,
    denom_p=None,
) -> tuple[float, float]:
    """Intercept ``a`` and slope ``b`` that best fit ``y`` as ``a + b * p``.

    Precomputed statistics may be passed to skip their computation.
    """
    p = np.asarray(p, dtype=float)
    y = np.asarray(y, dtype=float)
    if mean_y is None:
        mean_y = float(np.mean(y))
    if var_terms_y is None:
        var_terms_y = y - mean_y
    if mean_p is None:
        mean_p = float(np.mean(p))
    if var_terms_p is None:
        var_terms_p = p - mean_p
    if denom_p is None:
        denom_p = float(np.sum(np.square(var_terms_p)))

    if denom_p != 0:
        b = float(np.sum(np.asarray(var_terms_y) * np.asarray(var_terms_p))) / denom_p
        a = mean_y - b * mean_p
    else:
        b = 0.0
        a = float(mean_y)
    return float(a), float(b)


def _closest(vals, target: float) -> tuple[float, float]:
    """Squared distance of the closest candidate to ``target`` and that candidate.

    A NaN candidate means "don't care": distance zero, candidate ``target``.
    """
    best_dist = math.inf
    chosen = math.inf
    for v in np.atleast_1d(np.asarray(vals, dtype=float)):
        v = float(v)
        if math.isnan(v):
            return 0.0, float(target)
        d = (v - target) * (v - target)
        if d <= best_dist:
            best_dist, chosen = d, v
    return best_dist, chosen


def _match_dont_cares(x: Sequence, y) -> tuple[float, np.ndarray]:
    targets = np.asarray(y, dtype=float)
    matches = [_closest(vals, float(t)) for vals, t in zip(x, targets)]
    dist = sum(d for d, _ in matches)
    query = np.array([c for _, c in matches], dtype=float)
    return float(dist), query


def distance_with_dont_cares(x: Sequence, y) -> float:
    """Sum of squared distances between each set of candidates in ``x`` and ``y``."""
    return _match_dont_cares(x, y)[0]


def dont_care_query(x: Sequence, y) -> np.ndarray:
    """The vector made of the candidates in ``x`` closest to ``y``, element by element."""
    return _match_dont_cares(x, y)[1]


def compute_distance(
    x,
    y,
    linear_scaling=False,
    mean_y=None,
    var_terms_y=None,
    mean_p=None,
    var_terms_p=None,
    denom_p=None,
) -> float:
    """Squared Euclidean distance, optionally after linearly scaling ``y`` onto ``x``."""
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    if linear_scaling:
        a, b = linear_scaling_terms(y, x, mean_y, var_terms_y, mean_p, var_terms_p, denom_p)
        return float(np.sum(np.square(x - (a + b * y))))
    return float(np.sum(np.square(x - y)))


def as_matrix(x) -> np.ndarray:
    """Copy a two-dimensional float64 array, rejecting any other input."""
    arr = np.asarray(x)
    if arr.dtype != np.float64:
        raise TypeError("predict error: wrong data type")
    if arr.ndim != 2:
        raise TypeError("predict error: wrong number of dimensions (2)")
    return np.array(arr, dtype=float)