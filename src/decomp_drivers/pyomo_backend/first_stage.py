from __future__ import annotations

from typing import Any, Mapping

import numpy as np
import pyomo.environ as pyo

from ..cutting_planes.master import FirstStage
from ..cutting_planes.types import Cut, FirstStageSolution
from ..types import Sense, SolveStatus
from .common import ModelBuilder, active_objective, find_var_data, make_solver, objective_sense, read_values, solve_model


class PyomoFirstStage(FirstStage):
    """First stage built from a Pyomo model factory.

    The model returned by `builder()` declares the first-stage decision Var
    `decision` and a single active objective holding the own cost (objective
    without recourse). `initialize` builds a new model on every call and
    augments it with theta, the objective own_cost + theta and a
    ConstraintList for cuts; the base description is never mutated.
    """

    def __init__(
        self,
        builder: ModelBuilder,
        decision: str,
        solver: str = "glpk",
        solver_options: Mapping[str, Any] | None = None,
        executable: str | None = None,
        tee: bool = False,
        params: dict[str, Any] | None = None,
    ):
        super().__init__(params)
        self.builder = builder
        self.decision = decision
        # Build the base model once for its sense and decision size
        template = builder()
        self._sense = objective_sense(active_objective(template))
        self._dimension = len(find_var_data(template, decision))
        self._solver = make_solver(solver, executable=executable, options=solver_options)
        self._tee = bool(tee)
        self.m: pyo.ConcreteModel | None = None
        self._vars: list = []

    @property
    def sense(self) -> Sense:
        return self._sense

    @property
    def dimension(self) -> int:
        return self._dimension

    def initialize(self, initial_bound: float) -> None:
        m = self.builder()
        obj = active_objective(m)
        own = obj.expr
        obj.deactivate()
        bound = float(initial_bound)
        m.cp_own_cost = pyo.Expression(expr=own)
        if self._sense == Sense.MAX:
            m.cp_theta = pyo.Var(bounds=(None, bound))
            sense = pyo.maximize
        else:
            m.cp_theta = pyo.Var(bounds=(bound, None))
            sense = pyo.minimize
        m.cp_objective = pyo.Objective(expr=m.cp_own_cost + m.cp_theta, sense=sense)
        m.cp_cuts = pyo.ConstraintList()
        self.m = m
        self._vars = find_var_data(m, self.decision)

    def solve(self) -> FirstStageSolution:
        assert self.m is not None, "Call initialize() before solve()"
        status, objective = solve_model(self.m, self._solver, tee=self._tee)
        if status != SolveStatus.OPTIMAL:
            return FirstStageSolution(status=status, objective=None, x=None, own_cost=None)
        return FirstStageSolution(
            status=status,
            objective=objective,
            x=np.array(read_values(self._vars)),
            own_cost=float(pyo.value(self.m.cp_own_cost)),
        )

    def add_cut(self, cut: Cut) -> None:
        assert self.m is not None, "Call initialize() before add_cut()"
        m = self.m
        rhs = cut.constant + sum(c * v for c, v in zip(cut.coefficients(), self._vars))
        if self._sense == Sense.MAX:
            m.cp_cuts.add(m.cp_theta <= rhs)
        else:
            m.cp_cuts.add(m.cp_theta >= rhs)

    def cuts_count(self) -> int:
        return 0 if self.m is None else len(self.m.cp_cuts)


__all__ = ["PyomoFirstStage"]
