"""Example problems and the registry used by the runner and CLI.

Config files select a problem through `problem.impl`; `problem.params` is
handed to the matching factory below.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Sequence

import numpy as np

from ..admm.block import ADMMBlock
from ..cutting_planes.master import FirstStage
from ..cutting_planes.subproblem import SecondStage
from ..cutting_planes.types import Scenario
from . import lasso, newsvendor


@dataclass(slots=True)
class ADMMProblem:
    f_block: ADMMBlock
    g_block: ADMMBlock
    T: Any = None


@dataclass(slots=True)
class CuttingPlanesProblem:
    first_stage: FirstStage
    second_stage: SecondStage
    scenarios: list[Scenario]
    weights: Optional[Sequence[float]]
    initial_bound: float


def _lasso(params: Mapping[str, Any], seed: int) -> ADMMProblem:
    if "A" in params and "b" in params:
        A = np.asarray(params["A"], dtype=float)
        b = np.asarray(params["b"], dtype=float)
    else:
        A, b = lasso.make_lasso_data(int(params.get("rows", 3)), int(params.get("cols", 10)), seed=int(params.get("seed", seed)))
    f, g = lasso.make_blocks(
        A,
        b,
        weight=float(params.get("weight", 1.0)),
        backend=str(params.get("backend", "numpy")),
        solver=str(params.get("solver", "ipopt")),
        solver_options=params.get("solver_options"),
    )
    return ADMMProblem(f_block=f, g_block=g, T=None)


def _newsvendor(params: Mapping[str, Any], seed: int) -> CuttingPlanesProblem:
    data = newsvendor.NewsvendorData.from_params(params)
    scenarios = newsvendor.scenarios_from_params(params)
    first, second = newsvendor.make_stages(
        data,
        solver=str(params.get("solver", "glpk")),
        solver_options=params.get("solver_options"),
        executable=params.get("solver_executable"),
    )
    return CuttingPlanesProblem(
        first_stage=first,
        second_stage=second,
        scenarios=scenarios,
        weights=None,
        initial_bound=newsvendor.recourse_bound(data, scenarios),
    )


ADMM_PROBLEMS: dict[str, Callable[[Mapping[str, Any], int], ADMMProblem]] = {
    "lasso": _lasso,
}

CUTTING_PLANES_PROBLEMS: dict[str, Callable[[Mapping[str, Any], int], CuttingPlanesProblem]] = {
    "newsvendor": _newsvendor,
}


def get_problem(algorithm: str, impl: str) -> Callable[[Mapping[str, Any], int], Any]:
    registry = ADMM_PROBLEMS if algorithm == "admm" else CUTTING_PLANES_PROBLEMS
    try:
        return registry[impl]
    except KeyError:
        raise KeyError(f"no {algorithm} problem named '{impl}'; available: {sorted(registry)}") from None


__all__ = [
    "ADMMProblem",
    "CuttingPlanesProblem",
    "ADMM_PROBLEMS",
    "CUTTING_PLANES_PROBLEMS",
    "get_problem",
]
