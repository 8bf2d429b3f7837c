"""L1-regularized least squares split for ADMM.

    minimize ||A x - b||^2 + weight * ||z||_1   s.t.  z = x

Two backends are provided: closed-form NumPy blocks (a linear solve for the
least-squares step, soft thresholding for the L1 step) and Pyomo models
solved by an NLP solver.
"""

from __future__ import annotations

from functools import partial
from typing import Any

import numpy as np
import pyomo.environ as pyo

from ..admm.block import ADMMBlock
from ..admm.types import BlockSolution, CouplingTerm
from ..errors import DimensionError
from ..pyomo_backend.admm_block import PyomoADMMBlock
from ..types import SolveStatus


# Seed of the reference 3x10 instance; with rho = 1 it reaches ||x - z|| < 1e-6
# in under 100 iterations (many other seeds need a few more).
LASSO_SEED = 0


def make_lasso_data(rows: int = 3, cols: int = 10, seed: int = LASSO_SEED) -> tuple[np.ndarray, np.ndarray]:
    """Standard-normal A (rows x cols) and b (rows) from a seeded generator."""
    rng = np.random.default_rng(seed)
    A = rng.standard_normal((rows, cols))
    b = rng.standard_normal(rows)
    return A, b


def lasso_objective(A: np.ndarray, b: np.ndarray, x: np.ndarray, weight: float = 1.0) -> float:
    r = A @ x - b
    return float(r @ r + weight * np.abs(x).sum())


def soft_threshold(v: np.ndarray, kappa: float) -> np.ndarray:
    return np.sign(v) * np.maximum(np.abs(v) - kappa, 0.0)


class LeastSquaresBlock(ADMMBlock):
    """f(u) = ||A u - b||^2, minimized in closed form."""

    name = "least_squares"

    def __init__(self, A: Any, b: Any, params: dict[str, Any] | None = None):
        super().__init__(params)
        self.A = np.atleast_2d(np.asarray(A, dtype=float))
        self.b = np.asarray(b, dtype=float).reshape(-1)
        if self.A.shape[0] != self.b.shape[0]:
            raise DimensionError(f"A has {self.A.shape[0]} rows but b has length {self.b.shape[0]}")

    @property
    def dimension(self) -> int:
        return int(self.A.shape[1])

    def minimize(self, term: CouplingTerm) -> BlockSolution:
        A, b, M = self.A, self.b, term.matrix
        # Stationarity: (2 A'A + rho M'M) u = 2 A'b + M'lam - rho M'c
        lhs = 2.0 * A.T @ A + term.rho * M.T @ M
        rhs = 2.0 * A.T @ b + M.T @ term.multiplier - term.rho * M.T @ term.offset
        try:
            u = np.linalg.solve(lhs, rhs)
        except np.linalg.LinAlgError:
            return BlockSolution(status=SolveStatus.ERROR, values=None)
        r = A @ u - b
        return BlockSolution(status=SolveStatus.OPTIMAL, values=u, objective=float(r @ r))


class L1Block(ADMMBlock):
    """g(u) = weight * ||u||_1, minimized by soft thresholding.

    Only coupling matrices of the form s * I (s != 0) are supported, which
    covers the z-block of any splitting (s = -1).
    """

    name = "l1"

    def __init__(self, n: int, weight: float = 1.0, params: dict[str, Any] | None = None):
        super().__init__(params)
        self.n = int(n)
        self.weight = float(weight)

    @property
    def dimension(self) -> int:
        return self.n

    def minimize(self, term: CouplingTerm) -> BlockSolution:
        M = term.matrix
        s = float(M[0, 0]) if M.size else 0.0
        if M.shape != (self.n, self.n) or s == 0.0 or not np.allclose(M, s * np.eye(self.n)):
            raise ValueError("L1Block needs a coupling matrix equal to s * I with s != 0")
        rho = term.rho
        u = soft_threshold((term.multiplier - rho * term.offset) / (rho * s), self.weight / (rho * s * s))
        return BlockSolution(status=SolveStatus.OPTIMAL, values=u, objective=self.weight * float(np.abs(u).sum()))


def build_least_squares_model(A: Any, b: Any) -> pyo.ConcreteModel:
    A = np.atleast_2d(np.asarray(A, dtype=float))
    b = np.asarray(b, dtype=float).reshape(-1)
    m = pyo.ConcreteModel()
    m.I = pyo.RangeSet(0, A.shape[0] - 1)
    m.J = pyo.RangeSet(0, A.shape[1] - 1)
    m.x = pyo.Var(m.J, initialize=0.0)
    m.obj = pyo.Objective(
        expr=sum((sum(float(A[i, j]) * m.x[j] for j in m.J) - float(b[i])) ** 2 for i in m.I),
        sense=pyo.minimize,
    )
    return m


def build_l1_model(n: int, weight: float = 1.0) -> pyo.ConcreteModel:
    m = pyo.ConcreteModel()
    m.J = pyo.RangeSet(0, int(n) - 1)
    m.z = pyo.Var(m.J, initialize=0.0)
    # |z_j| <= t_j keeps the model smooth for NLP solvers
    m.t = pyo.Var(m.J, within=pyo.NonNegativeReals, initialize=0.0)
    m.abs_pos = pyo.Constraint(m.J, rule=lambda m, j: m.t[j] >= m.z[j])
    m.abs_neg = pyo.Constraint(m.J, rule=lambda m, j: m.t[j] >= -m.z[j])
    m.obj = pyo.Objective(expr=float(weight) * sum(m.t[j] for j in m.J), sense=pyo.minimize)
    return m


def make_blocks(A: Any, b: Any, weight: float = 1.0, backend: str = "numpy", solver: str = "ipopt", solver_options: dict | None = None) -> tuple[ADMMBlock, ADMMBlock]:
    """Return the (f, g) blocks of the lasso split for the chosen backend."""
    A = np.atleast_2d(np.asarray(A, dtype=float))
    backend = str(backend).lower()
    if backend == "numpy":
        return LeastSquaresBlock(A, b), L1Block(A.shape[1], weight=weight)
    if backend == "pyomo":
        f = PyomoADMMBlock(partial(build_least_squares_model, A, b), "x", solver=solver, solver_options=solver_options, name="least_squares")
        g = PyomoADMMBlock(partial(build_l1_model, A.shape[1], weight), "z", solver=solver, solver_options=solver_options, name="l1")
        return f, g
    raise ValueError(f"unknown lasso backend '{backend}', expected 'numpy' or 'pyomo'")


__all__ = [
    "LASSO_SEED",
    "make_lasso_data",
    "lasso_objective",
    "soft_threshold",
    "LeastSquaresBlock",
    "L1Block",
    "build_least_squares_model",
    "build_l1_model",
    "make_blocks",
]
