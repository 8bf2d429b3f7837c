from __future__ import annotations

import math
from typing import Any, Iterable, Sequence

import numpy as np

from .errors import DimensionError


def as_vector(values: Any, length: int | None = None, name: str = "vector") -> np.ndarray:
    """Return `values` as a 1-D float array, checking its length if given."""
    vec = np.atleast_1d(np.asarray(values, dtype=float))
    if vec.ndim != 1:
        vec = vec.reshape(-1)
    if length is not None and vec.shape[0] != int(length):
        raise DimensionError(f"{name} has length {vec.shape[0]}, expected {int(length)}")
    return vec


def as_matrix(T: Any, rows: int | None = None, cols: int | None = None, name: str = "T") -> np.ndarray:
    """Return `T` as a 2-D float array; `None` means the identity.

    The identity needs `rows == cols` (either may be omitted).
    """
    if T is None:
        n = cols if cols is not None else rows
        if n is None:
            raise DimensionError(f"cannot infer the size of identity {name}")
        if rows is not None and cols is not None and rows != cols:
            raise DimensionError(f"identity {name} needs equal dimensions, got {rows}x{cols}")
        return np.eye(int(n))
    mat = np.atleast_2d(np.asarray(T, dtype=float))
    if mat.ndim != 2:
        raise DimensionError(f"{name} must be 2-D, got {mat.ndim}-D")
    if rows is not None and mat.shape[0] != int(rows):
        raise DimensionError(f"{name} has {mat.shape[0]} rows, expected {int(rows)}")
    if cols is not None and mat.shape[1] != int(cols):
        raise DimensionError(f"{name} has {mat.shape[1]} columns, expected {int(cols)}")
    return mat


def norm(v: Any) -> float:
    return float(np.linalg.norm(np.asarray(v, dtype=float)))


def weighted_sum(weights: Sequence[float], values: Iterable[Any]) -> Any:
    """Weighted sum of scalars or equal-length vectors.

    Each component is summed with `math.fsum`, which is correctly rounded, so
    the result does not depend on the order of the (weight, value) pairs.
    """
    vals = list(values)
    w = [float(x) for x in weights]
    if len(w) != len(vals):
        raise DimensionError(f"{len(w)} weights for {len(vals)} values")
    if not vals:
        return 0.0
    if np.ndim(vals[0]) == 0:
        return math.fsum(wi * float(v) for wi, v in zip(w, vals))
    stacked = np.vstack([as_vector(v) for v in vals])
    return np.array([math.fsum(wi * float(c) for wi, c in zip(w, col)) for col in stacked.T])


def isclose(a: float, b: float, tol: float) -> bool:
    return math.isclose(float(a), float(b), rel_tol=float(tol), abs_tol=float(tol))


__all__ = ["as_vector", "as_matrix", "norm", "weighted_sum", "isclose"]
