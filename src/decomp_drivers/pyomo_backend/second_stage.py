from __future__ import annotations

import logging
from typing import Any, Callable, Mapping

import numpy as np
import pyomo.environ as pyo

from ..cutting_planes.subproblem import SecondStage
from ..cutting_planes.types import RecourseResult, Scenario
from ..types import Sense, SolveStatus
from .common import ModelBuilder, active_objective, check_length, find_var_data, make_solver, objective_sense, solve_model

log = logging.getLogger(__name__)

ScenarioSetter = Callable[[pyo.ConcreteModel, Scenario], None]


class PyomoSecondStage(SecondStage):
    """Recourse problem over a Pyomo model.

    The coupling Var `coupling` is pinned by an equality constraint to a
    mutable Param holding the first-stage decision, and the sensitivity is
    read from the duals of those equalities. `apply_scenario(model, scenario)`
    writes the scenario data into the model (typically mutable Params) before
    every solve.

    A maximizing recourse is solved as the minimization of its negation, so the
    duals always follow the minimization convention d(objective)/d(rhs), which
    LP interfaces agree on; value and sensitivity are negated back.
    """

    # Pyomo solver interfaces capture stdout and logging process-wide
    thread_safe = False

    def __init__(
        self,
        builder: ModelBuilder,
        coupling: str,
        apply_scenario: ScenarioSetter,
        solver: str = "glpk",
        solver_options: Mapping[str, Any] | None = None,
        executable: str | None = None,
        tee: bool = False,
        params: dict[str, Any] | None = None,
    ):
        super().__init__(params)
        self.builder = builder
        self.coupling = coupling
        self.apply_scenario = apply_scenario
        self._solver_args = dict(solver=solver, solver_options=solver_options, executable=executable, tee=tee)
        self._solver = make_solver(solver, executable=executable, options=solver_options)
        self._tee = bool(tee)

        m = builder()
        obj = active_objective(m)
        self._maximize = objective_sense(obj) == Sense.MAX
        if self._maximize:
            obj.deactivate()
            m.cp_objective = pyo.Objective(expr=-obj.expr, sense=pyo.minimize)
        self._vars = find_var_data(m, coupling)
        n = len(self._vars)
        m.cp_coupling_index = pyo.RangeSet(0, n - 1)
        m.cp_fixed_decision = pyo.Param(m.cp_coupling_index, mutable=True, initialize=0.0)
        cvars = self._vars
        m.cp_nonanticipativity = pyo.Constraint(
            m.cp_coupling_index, rule=lambda m, i: cvars[i] == m.cp_fixed_decision[i]
        )
        if not isinstance(getattr(m, "dual", None), pyo.Suffix):
            m.dual = pyo.Suffix(direction=pyo.Suffix.IMPORT)
        self.m = m

    @property
    def dimension(self) -> int:
        return len(self._vars)

    def evaluate(self, x: np.ndarray, scenario: Scenario) -> RecourseResult:
        m = self.m
        check_length(x, self.dimension, "first-stage decision")
        self.apply_scenario(m, scenario)
        m.cp_fixed_decision.store_values({i: float(x[i]) for i in range(self.dimension)})

        status, value = solve_model(m, self._solver, tee=self._tee)
        if status != SolveStatus.OPTIMAL:
            return RecourseResult(status=status, value=None, sensitivity=None)

        duals = [m.dual.get(m.cp_nonanticipativity[i]) for i in m.cp_coupling_index]
        if any(d is None for d in duals):
            log.error("solver returned no duals for scenario %s", scenario.name)
            return RecourseResult(status=SolveStatus.ERROR, value=None, sensitivity=None)
        sign = -1.0 if self._maximize else 1.0
        return RecourseResult(
            status=status,
            value=sign * float(value),
            sensitivity=np.array([sign * float(d) for d in duals]),
        )

    def spawn(self) -> "PyomoSecondStage":
        return PyomoSecondStage(
            self.builder,
            self.coupling,
            self.apply_scenario,
            params=dict(self.params),
            **self._solver_args,
        )


__all__ = ["PyomoSecondStage", "ScenarioSetter"]
