from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from ..types import SolveStatus


@dataclass(slots=True)
class CouplingTerm:
    """Coupling term added to a block objective during one ADMM step.

    The block residual is r(u) = matrix @ u + offset and the block minimizes

        own(u) - multiplier . r(u) + rho / 2 * ||r(u)||^2

    For the x-block `matrix = T, offset = -z`; for the z-block
    `matrix = -I, offset = T x`. Both are the augmented Lagrangian
    f(x) + g(z) + lam.(z - Tx) + rho/2 ||Tx - z||^2 seen from one side.
    """

    matrix: np.ndarray
    offset: np.ndarray
    multiplier: np.ndarray
    rho: float

    def residual(self, u: np.ndarray) -> np.ndarray:
        return self.matrix @ np.asarray(u, dtype=float) + self.offset

    def value(self, u: np.ndarray) -> float:
        r = self.residual(u)
        return float(-self.multiplier @ r + 0.5 * self.rho * (r @ r))


@dataclass(slots=True)
class BlockSolution:
    status: SolveStatus
    values: Optional[np.ndarray]
    # Own objective at `values` (without the coupling term), if known
    objective: Optional[float] = None


@dataclass(slots=True)
class ADMMState:
    x: np.ndarray
    z: np.ndarray
    multiplier: np.ndarray

    @classmethod
    def zeros(cls, n: int, m: int) -> "ADMMState":
        return cls(x=np.zeros(n), z=np.zeros(m), multiplier=np.zeros(m))


@dataclass(slots=True)
class ADMMIteration:
    iteration: int
    residual: float
    multiplier_norm: float
    elapsed_s: float


@dataclass(slots=True)
class ADMMResult:
    status: SolveStatus
    x: np.ndarray
    z: np.ndarray
    multiplier: np.ndarray
    iterations: int
    residual: Optional[float]
    trace: list[ADMMIteration] = field(default_factory=list)


__all__ = ["CouplingTerm", "BlockSolution", "ADMMState", "ADMMIteration", "ADMMResult"]
