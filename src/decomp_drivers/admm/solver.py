from __future__ import annotations

import logging
import time
from typing import Any, Optional

import numpy as np

from ..config import ADMMConfig, DriverConfig, RunConfig
from ..errors import NonConvergence, SolverFailure
from ..numerics import as_matrix, as_vector, norm
from ..types import SolveStatus
from .block import ADMMBlock
from .types import ADMMIteration, ADMMResult, ADMMState, BlockSolution, CouplingTerm

log = logging.getLogger(__name__)


class ADMMSolver:
    """Alternating minimization with dual ascent for f(x) + g(z) s.t. z = T x.

    Each iteration re-optimizes the x-block with (z, lam) fixed, then the
    z-block with x fixed, and updates lam <- lam - rho * (T x - z). The run
    stops once ||T x - z|| < tolerance.
    """

    def __init__(self, f_block: ADMMBlock, g_block: ADMMBlock, cfg: DriverConfig, T: Any = None):
        self.f_block = f_block
        self.g_block = g_block
        self.cfg = cfg
        self.T = as_matrix(T, rows=g_block.dimension, cols=f_block.dimension)

    def _log_every(self) -> int:
        verbosity = int(self.cfg.admm.verbosity)
        if verbosity >= 2:
            return 1
        if verbosity == 1:
            return max(1, int(self.cfg.run.print_every))
        return 0

    def _solve_block(self, block: ADMMBlock, term: CouplingTerm, dim: int, it: int) -> np.ndarray:
        try:
            sol = block.minimize(term)
        except SolverFailure as exc:
            raise SolverFailure("ADMM block solve failed", status=exc.status, iteration=it, block=block.name) from exc
        return self._checked(sol, block, dim, it)

    def _checked(self, sol: BlockSolution, block: ADMMBlock, dim: int, it: int) -> np.ndarray:
        if sol.status != SolveStatus.OPTIMAL or sol.values is None:
            raise SolverFailure("ADMM block solve failed", status=sol.status, iteration=it, block=block.name)
        return as_vector(sol.values, length=dim, name=f"{block.name} solution")

    def run(self) -> ADMMResult:
        t0 = time.time()
        rho = float(self.cfg.admm.rho)
        if rho <= 0.0:
            raise ValueError(f"rho must be > 0, got {rho}")
        max_it = int(self.cfg.run.max_iterations)
        tol = float(self.cfg.run.tolerance)
        time_limit = self.cfg.run.time_limit_s
        every = self._log_every()

        T = self.T
        m, n = T.shape
        state = ADMMState.zeros(n, m)
        neg_eye = -np.eye(m)
        trace: list[ADMMIteration] = []
        residual: Optional[float] = None

        def _partial(status: SolveStatus, iterations: int) -> ADMMResult:
            return ADMMResult(
                status=status,
                x=state.x.copy(),
                z=state.z.copy(),
                multiplier=state.multiplier.copy(),
                iterations=iterations,
                residual=residual,
                trace=list(trace),
            )

        if max_it <= 0:
            raise NonConvergence("ADMM: max_iter is 0, no iteration performed", iterations=0, result=_partial(SolveStatus.UNKNOWN, 0))

        for it in range(1, max_it + 1):
            if time_limit is not None and time.time() - t0 > float(time_limit):
                log.warning("ADMM time limit reached after %d iterations", it - 1)
                return _partial(SolveStatus.TIME_LIMIT, it - 1)

            # x-step: residual T x - z_prev
            x_term = CouplingTerm(matrix=T, offset=-state.z, multiplier=state.multiplier, rho=rho)
            x = self._solve_block(self.f_block, x_term, n, it)

            # z-step: residual T x - z with x fixed
            tx = T @ x
            z_term = CouplingTerm(matrix=neg_eye, offset=tx, multiplier=state.multiplier, rho=rho)
            z = self._solve_block(self.g_block, z_term, m, it)

            err = tx - z
            state = ADMMState(x=x, z=z, multiplier=state.multiplier - rho * err)
            residual = norm(err)
            trace.append(
                ADMMIteration(
                    iteration=it,
                    residual=residual,
                    multiplier_norm=norm(state.multiplier),
                    elapsed_s=time.time() - t0,
                )
            )
            if every and it % every == 0:
                log.info("admm iter=%d residual=%.3e |lam|=%.6g", it, residual, trace[-1].multiplier_norm)
            else:
                log.debug("admm iter=%d residual=%.3e", it, residual)

            if residual < tol:
                log.info("ADMM converged after %d iterations (residual=%.3e)", it, residual)
                return _partial(SolveStatus.OPTIMAL, it)

        log.warning("ADMM max iterations reached: %d (residual=%s)", max_it, residual)
        raise NonConvergence(
            f"ADMM did not converge in {max_it} iterations (residual={residual:.3e}, tol={tol:.3e})",
            iterations=max_it,
            result=_partial(SolveStatus.UNKNOWN, max_it),
        )


def admm(
    f_block: ADMMBlock,
    g_block: ADMMBlock,
    T: Any = None,
    rho: float = 1.0,
    *,
    max_iter: int = 100,
    tol: float = 1e-6,
    verbosity: int = 0,
    time_limit_s: float | None = None,
    print_every: int = 10,
) -> ADMMResult:
    """Run ADMM on `f_block` (variable x) and `g_block` (variable z) with z = T x.

    `T` defaults to the identity. Raises `NonConvergence` when `max_iter`
    iterations do not bring ||T x - z|| below `tol`, and `SolverFailure` when a
    block solve fails.
    """
    cfg = DriverConfig(
        run=RunConfig(
            algorithm="admm",
            max_iterations=int(max_iter),
            tolerance=float(tol),
            time_limit_s=time_limit_s,
            print_every=int(print_every),
        ),
        admm=ADMMConfig(rho=float(rho), verbosity=int(verbosity)),
    )
    return ADMMSolver(f_block, g_block, cfg, T=T).run()


__all__ = ["ADMMSolver", "admm"]
