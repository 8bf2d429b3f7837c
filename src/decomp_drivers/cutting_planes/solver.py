from __future__ import annotations

import logging
import math
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Sequence

import numpy as np

from ..config import CuttingPlanesConfig, DriverConfig, RunConfig
from ..errors import DimensionError, InvalidBound, NonConvergence, SolverFailure
from ..numerics import as_vector, isclose, weighted_sum
from ..types import Sense, SolveStatus
from .master import FirstStage
from .subproblem import SecondStage
from .types import Cut, CuttingPlanesResult, IterationRecord, RecourseResult, Scenario

log = logging.getLogger(__name__)

# Tolerance on sum(weights) == 1 before a warning is logged
WEIGHT_SUM_TOL: float = 1e-6


def resolve_weights(scenarios: Sequence[Scenario], weights: Optional[Sequence[float]]) -> list[float]:
    """Return one weight per scenario, falling back to `Scenario.probability`.

    The weights are not normalized: summing to one is the caller's contract.
    """
    if weights is None:
        missing = [s.name for s in scenarios if s.probability is None]
        if missing:
            raise ValueError(f"no weight given and no probability set for scenario(s): {missing}")
        w = [float(s.probability) for s in scenarios]  # type: ignore[arg-type]
    else:
        w = [float(v) for v in weights]
    if len(w) != len(scenarios):
        raise DimensionError(f"{len(w)} weights for {len(scenarios)} scenarios")
    total = math.fsum(w)
    if abs(total - 1.0) > WEIGHT_SUM_TOL:
        log.warning("scenario weights sum to %.9g, not 1", total)
    return w


class CuttingPlanesSolver:
    """Kelley's cutting-plane loop for two-stage programs with finite scenarios.

    The first stage carries theta, a piecewise-linear outer approximation of
    the expected recourse value. Every iteration solves the first stage (outer
    bound), evaluates all scenarios at the trial point (inner bound) and, until
    the two bounds meet, adds the expected linearization as a new cut.
    """

    def __init__(
        self,
        first_stage: FirstStage,
        second_stage: SecondStage,
        scenarios: Sequence[Scenario],
        cfg: DriverConfig,
        weights: Optional[Sequence[float]] = None,
    ):
        if not scenarios:
            raise ValueError("at least one scenario is required")
        self.first_stage = first_stage
        self.second_stage = second_stage
        self.scenarios = list(scenarios)
        self.weights = resolve_weights(self.scenarios, weights)
        self.cfg = cfg
        self._pool: list[SecondStage] = [second_stage]

    def _ensure_pool(self, workers: int) -> None:
        while len(self._pool) < workers:
            self._pool.append(self.second_stage.spawn())

    def _evaluate_chunk(self, sp: SecondStage, x: np.ndarray, idxs: list[int], it: int) -> list[tuple[int, RecourseResult]]:
        out: list[tuple[int, RecourseResult]] = []
        for i in idxs:
            scen = self.scenarios[i]
            try:
                out.append((i, sp.evaluate(x.copy(), scen)))
            except SolverFailure as exc:
                raise SolverFailure(
                    "second-stage solve failed", status=exc.status, iteration=it, scenario=scen.name
                ) from exc
        return out

    def _evaluate_scenarios(self, x: np.ndarray, it: int, executor: ThreadPoolExecutor | None) -> list[RecourseResult]:
        n_scen = len(self.scenarios)
        results: list[Optional[RecourseResult]] = [None] * n_scen
        if executor is None:
            for i, res in self._evaluate_chunk(self._pool[0], x, list(range(n_scen)), it):
                results[i] = res
        else:
            workers = len(self._pool)
            futures = [
                executor.submit(self._evaluate_chunk, self._pool[k], x, list(range(k, n_scen, workers)), it)
                for k in range(workers)
            ]
            for fut in futures:
                for i, res in fut.result():
                    results[i] = res

        dim = x.shape[0]
        checked: list[RecourseResult] = []
        for scen, res in zip(self.scenarios, results):
            if res is None or res.status != SolveStatus.OPTIMAL or res.value is None or res.sensitivity is None:
                raise SolverFailure(
                    "second-stage solve failed",
                    status=getattr(res, "status", SolveStatus.UNKNOWN),
                    iteration=it,
                    scenario=scen.name,
                )
            sens = as_vector(res.sensitivity, length=dim, name=f"sensitivity of scenario {scen.name}")
            checked.append(RecourseResult(status=res.status, value=float(res.value), sensitivity=sens))
        return checked

    def _check_bound(self, sense: Sense, bound: float, value: float, it: int, tol: float) -> None:
        slack = tol * max(1.0, abs(bound))
        if sense == Sense.MAX and value > bound + slack:
            raise InvalidBound(
                f"expected recourse value {value:.6g} exceeds the initial upper bound {bound:.6g} on theta",
                bound=bound, value=value, iteration=it,
            )
        if sense == Sense.MIN and value < bound - slack:
            raise InvalidBound(
                f"expected recourse value {value:.6g} is below the initial lower bound {bound:.6g} on theta",
                bound=bound, value=value, iteration=it,
            )

    def run(self) -> CuttingPlanesResult:
        t0 = time.time()
        run_cfg = self.cfg.run
        max_it = int(run_cfg.max_iterations)
        tol = float(run_cfg.tolerance)
        time_limit = run_cfg.time_limit_s
        verbose = bool(run_cfg.verbose)
        bound = self.cfg.cutting_planes.initial_bound
        if bound is None:
            raise ValueError("an initial bound on the recourse value is required")
        bound = float(bound)
        sense = self.first_stage.sense

        trace: list[IterationRecord] = []
        cuts: list[Cut] = []
        inner: Optional[float] = None
        outer: Optional[float] = None
        x: Optional[np.ndarray] = None

        def _result(status: SolveStatus, iterations: int) -> CuttingPlanesResult:
            return CuttingPlanesResult(
                status=status,
                inner_bound=inner,
                outer_bound=outer,
                x=None if x is None else x.copy(),
                iterations=iterations,
                trace=list(trace),
                cuts=list(cuts),
                sense=sense,
            )

        if max_it <= 0:
            raise NonConvergence("cutting planes: max_iter is 0, no iteration performed", iterations=0, result=_result(SolveStatus.UNKNOWN, 0))

        self.first_stage.initialize(bound)
        log.info(
            "cutting planes: sense=%s scenarios=%d initial_bound=%.6g workers=%d",
            sense.value, len(self.scenarios), bound, run_cfg.workers,
        )
        workers = max(1, min(int(run_cfg.workers), len(self.scenarios)))
        if workers > 1 and not self.second_stage.thread_safe:
            log.warning(
                "%s is not thread-safe; evaluating %d scenarios sequentially instead of on %d workers",
                type(self.second_stage).__name__, len(self.scenarios), workers,
            )
            workers = 1
        self._ensure_pool(workers)
        executor = ThreadPoolExecutor(max_workers=workers) if workers > 1 else None
        try:
            for it in range(1, max_it + 1):
                if time_limit is not None and time.time() - t0 > float(time_limit):
                    log.warning("Time limit reached after %d iterations", it - 1)
                    return _result(SolveStatus.TIME_LIMIT, it - 1)

                try:
                    fres = self.first_stage.solve()
                except SolverFailure as exc:
                    raise SolverFailure("first-stage solve failed", status=exc.status, iteration=it) from exc
                if fres.status != SolveStatus.OPTIMAL or fres.x is None or fres.objective is None or fres.own_cost is None:
                    raise SolverFailure("first-stage solve failed", status=fres.status, iteration=it)
                x = as_vector(fres.x, length=self.first_stage.dimension, name="first-stage decision")
                outer = float(fres.objective)

                recourse = self._evaluate_scenarios(x, it, executor)
                value = float(weighted_sum(self.weights, [r.value for r in recourse]))
                slope = weighted_sum(self.weights, [r.sensitivity for r in recourse])
                inner = float(fres.own_cost) + value

                if self.cfg.cutting_planes.check_bound:
                    self._check_bound(sense, bound, value, it, tol)

                gap = abs(outer - inner)
                trace.append(
                    IterationRecord(
                        iteration=it,
                        x=x.copy(),
                        inner_bound=inner,
                        outer_bound=outer,
                        gap=gap,
                        value=value,
                        slope=np.array(slope, dtype=float),
                        elapsed_s=time.time() - t0,
                    )
                )
                log.log(
                    logging.INFO if verbose else logging.DEBUG,
                    "iter=%d outer=%.6g inner=%.6g gap=%.3g cuts=%d",
                    it, outer, inner, gap, self.first_stage.cuts_count(),
                )

                if isclose(inner, outer, tol):
                    log.info("Converged within tolerance after %d iterations (outer=%.6g inner=%.6g)", it, outer, inner)
                    return _result(SolveStatus.OPTIMAL, it)

                cut = Cut(iteration=it, value=value, slope=np.array(slope, dtype=float), reference=x.copy())
                self.first_stage.add_cut(cut)
                cuts.append(cut)
        finally:
            if executor is not None:
                executor.shutdown(wait=True)

        log.warning("Max iterations reached: %d", max_it)
        raise NonConvergence(
            f"cutting planes did not converge in {max_it} iterations (outer={outer}, inner={inner})",
            iterations=max_it,
            result=_result(SolveStatus.UNKNOWN, max_it),
        )


def cutting_planes(
    first_stage: FirstStage,
    second_stage: SecondStage,
    scenarios: Sequence[Scenario],
    weights: Optional[Sequence[float]] = None,
    initial_bound: float | None = None,
    *,
    max_iter: int = 100,
    tol: float = 1e-6,
    verbose: bool = False,
    workers: int = 1,
    time_limit_s: float | None = None,
    check_bound: bool = True,
) -> CuttingPlanesResult:
    """Solve a two-stage program by Kelley's cutting-plane method.

    `weights` default to the scenarios' probabilities. `initial_bound` must be
    a valid bound on the expected recourse value: an upper bound when the
    first stage maximizes, a lower bound when it minimizes. Raises
    `NonConvergence` when `max_iter` iterations do not close the gap and
    `SolverFailure` when any sub-solve fails.
    """
    cfg = DriverConfig(
        run=RunConfig(
            algorithm="cutting_planes",
            max_iterations=int(max_iter),
            tolerance=float(tol),
            time_limit_s=time_limit_s,
            workers=int(workers),
            verbose=bool(verbose),
        ),
        cutting_planes=CuttingPlanesConfig(initial_bound=initial_bound, check_bound=bool(check_bound)),
    )
    return CuttingPlanesSolver(first_stage, second_stage, scenarios, cfg, weights=weights).run()


__all__ = ["CuttingPlanesSolver", "cutting_planes", "resolve_weights"]
