from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Optional

import pyomo.environ as pyo
from pyomo.common.errors import ApplicationError

from ..errors import DimensionError, SolverFailure
from ..types import Sense, SolveStatus

log = logging.getLogger(__name__)

ModelBuilder = Callable[[], pyo.ConcreteModel]


def status_from_results(res: Any) -> SolveStatus:
    term = getattr(res.solver, "termination_condition", None)
    if term in (pyo.TerminationCondition.optimal, pyo.TerminationCondition.locallyOptimal, pyo.TerminationCondition.globallyOptimal):
        return SolveStatus.OPTIMAL
    if term in (pyo.TerminationCondition.feasible, pyo.TerminationCondition.maxTimeLimit, pyo.TerminationCondition.maxIterations):
        return SolveStatus.FEASIBLE
    if term in (pyo.TerminationCondition.infeasible, pyo.TerminationCondition.infeasibleOrUnbounded):
        return SolveStatus.INFEASIBLE
    if term == pyo.TerminationCondition.unbounded:
        return SolveStatus.UNBOUNDED
    if term in (pyo.TerminationCondition.error, pyo.TerminationCondition.solverFailure, pyo.TerminationCondition.internalSolverError):
        return SolveStatus.ERROR
    return SolveStatus.UNKNOWN


def make_solver(solver_name: str, executable: str | None = None, options: Mapping[str, Any] | None = None):
    solver = pyo.SolverFactory(solver_name)
    if executable:
        solver.executable = executable  # type: ignore[attr-defined]
    if options:
        for k, v in options.items():
            solver.options[k] = v
    return solver


def solve_model(model: pyo.ConcreteModel, solver: Any, tee: bool = False) -> tuple[SolveStatus, Optional[float]]:
    """Solve `model` and return (status, objective value of the active objective).

    The objective is only read back for an optimal solve. An exception raised by
    the solver interface is logged and re-raised as `SolverFailure` chained to
    the original error; the drivers add the iteration and scenario or block.
    """
    try:
        res = solver.solve(model, tee=tee)
    except (ApplicationError, RuntimeError, ValueError) as exc:
        log.error("solver raised %s: %s", type(exc).__name__, exc)
        raise SolverFailure(f"solver raised {type(exc).__name__}: {exc}", status=SolveStatus.ERROR) from exc
    status = status_from_results(res)
    if status != SolveStatus.OPTIMAL:
        log.debug("solve ended with termination=%s", getattr(res.solver, "termination_condition", None))
        return status, None
    return status, float(pyo.value(active_objective(model)))


def active_objective(model: pyo.ConcreteModel) -> pyo.Objective:
    objs = list(model.component_data_objects(pyo.Objective, active=True))
    if len(objs) != 1:
        raise ValueError(f"model must have exactly one active objective, found {len(objs)}")
    return objs[0]


def objective_sense(obj: Any) -> Sense:
    return Sense.MAX if obj.sense == pyo.maximize else Sense.MIN


def find_var_data(model: pyo.ConcreteModel, name: str) -> list:
    """Return the VarData objects of the (scalar or indexed) Var called `name`.

    Indexed vars are flattened in the order of their index set.
    """
    var = model.find_component(name)
    if var is None or var.ctype is not pyo.Var:
        raise ValueError(f"model has no Var named '{name}'")
    if var.is_indexed():
        return [var[i] for i in var.index_set()]
    return [var]


def read_values(var_data: list) -> list[float]:
    return [float(pyo.value(v)) for v in var_data]


def check_length(values: Any, n: int, name: str) -> None:
    if len(values) != n:
        raise DimensionError(f"{name} has length {len(values)}, expected {n}")


__all__ = [
    "ModelBuilder",
    "status_from_results",
    "make_solver",
    "solve_model",
    "active_objective",
    "objective_sense",
    "find_var_data",
    "read_values",
    "check_length",
]
