"""Two-stage newsvendor (order now, sell after demand is known).

First stage: order x units at unit cost c, 0 <= x <= max_order.
Second stage, per scenario (demand d, price p): sell y <= min(x, d) at
price p, salvage the rest w = x - y at unit value `salvage`.

In profit form (maximize=True) the first stage maximizes -c x + E[p y + s w];
in cost form it minimizes c x + E[-p y - s w]. Both forms have the same
optimal order; their objectives differ in sign.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from typing import Any, Mapping, Optional, Sequence

import numpy as np
import pyomo.environ as pyo

from ..cutting_planes.types import Scenario
from ..errors import DimensionError, SolverFailure
from ..pyomo_backend.common import make_solver, solve_model
from ..pyomo_backend.first_stage import PyomoFirstStage
from ..pyomo_backend.second_stage import PyomoSecondStage
from ..types import SolveStatus


@dataclass(slots=True)
class NewsvendorData:
    cost: float = 6.0
    salvage: float = 2.0
    max_order: float = 200.0
    maximize: bool = True

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> "NewsvendorData":
        return cls(
            cost=float(params.get("cost", 6.0)),
            salvage=float(params.get("salvage", 2.0)),
            max_order=float(params.get("max_order", 200.0)),
            maximize=bool(params.get("maximize", True)),
        )


def make_scenarios(
    demands: Sequence[float],
    prices: Sequence[float] | float,
    probabilities: Optional[Sequence[float]] = None,
) -> list[Scenario]:
    """Build scenarios from demand/price lists (uniform probabilities by default)."""
    n = len(demands)
    if isinstance(prices, (int, float)):
        prices = [float(prices)] * n
    if len(prices) != n:
        raise DimensionError(f"{len(prices)} prices for {n} demands")
    if probabilities is None:
        probabilities = [1.0 / n] * n
    if len(probabilities) != n:
        raise DimensionError(f"{len(probabilities)} probabilities for {n} demands")
    return [
        Scenario(name=f"s{k}", data={"demand": float(d), "price": float(p)}, probability=float(w))
        for k, (d, p, w) in enumerate(zip(demands, prices, probabilities))
    ]


def scenarios_from_params(params: Mapping[str, Any]) -> list[Scenario]:
    """Read scenarios from a `scenarios:` list of mappings in config params."""
    raw = list(params.get("scenarios") or [])
    if not raw:
        raise ValueError("newsvendor needs a non-empty 'scenarios' list")
    out: list[Scenario] = []
    for k, item in enumerate(raw):
        out.append(
            Scenario(
                name=str(item.get("name", f"s{k}")),
                data={"demand": float(item["demand"]), "price": float(item["price"])},
                probability=float(item.get("probability", 1.0 / len(raw))),
            )
        )
    return out


def recourse_bound(data: NewsvendorData, scenarios: Sequence[Scenario]) -> float:
    """Valid initial bound on the expected recourse value.

    Revenue per scenario never exceeds max(price, salvage) * max_order, so
    that is an upper bound in profit form; its negation bounds the cost form
    from below.
    """
    best = max(max(float(s.data["price"]), data.salvage) for s in scenarios) * data.max_order
    return best if data.maximize else -best


def build_first_stage_model(data: NewsvendorData) -> pyo.ConcreteModel:
    m = pyo.ConcreteModel()
    m.x = pyo.Var(bounds=(0.0, data.max_order))
    if data.maximize:
        m.obj = pyo.Objective(expr=-data.cost * m.x, sense=pyo.maximize)
    else:
        m.obj = pyo.Objective(expr=data.cost * m.x, sense=pyo.minimize)
    return m


def build_second_stage_model(data: NewsvendorData) -> pyo.ConcreteModel:
    m = pyo.ConcreteModel()
    m.demand = pyo.Param(mutable=True, initialize=0.0)
    m.price = pyo.Param(mutable=True, initialize=0.0)
    # Local copy of the first-stage order; pinned by the adapter
    m.x = pyo.Var()
    m.sell = pyo.Var(within=pyo.NonNegativeReals)
    m.scrap = pyo.Var(within=pyo.NonNegativeReals)
    m.balance = pyo.Constraint(expr=m.sell + m.scrap == m.x)
    m.market = pyo.Constraint(expr=m.sell <= m.demand)
    revenue = m.price * m.sell + data.salvage * m.scrap
    if data.maximize:
        m.obj = pyo.Objective(expr=revenue, sense=pyo.maximize)
    else:
        m.obj = pyo.Objective(expr=-revenue, sense=pyo.minimize)
    return m


def apply_demand_and_price(model: pyo.ConcreteModel, scenario: Scenario) -> None:
    model.demand.set_value(float(scenario.data["demand"]))
    model.price.set_value(float(scenario.data["price"]))


def make_stages(
    data: NewsvendorData,
    solver: str = "glpk",
    solver_options: Mapping[str, Any] | None = None,
    executable: str | None = None,
) -> tuple[PyomoFirstStage, PyomoSecondStage]:
    first = PyomoFirstStage(
        partial(build_first_stage_model, data), "x", solver=solver, solver_options=solver_options, executable=executable
    )
    second = PyomoSecondStage(
        partial(build_second_stage_model, data),
        "x",
        apply_demand_and_price,
        solver=solver,
        solver_options=solver_options,
        executable=executable,
    )
    return first, second


def build_extensive_form(
    data: NewsvendorData,
    scenarios: Sequence[Scenario],
    weights: Optional[Sequence[float]] = None,
) -> pyo.ConcreteModel:
    """Deterministic equivalent: one model with a recourse copy per scenario."""
    if weights is None:
        weights = [float(s.probability) for s in scenarios]  # type: ignore[arg-type]
    if len(weights) != len(scenarios):
        raise DimensionError(f"{len(weights)} weights for {len(scenarios)} scenarios")
    m = pyo.ConcreteModel()
    m.S = pyo.RangeSet(0, len(scenarios) - 1)
    m.x = pyo.Var(bounds=(0.0, data.max_order))
    m.sell = pyo.Var(m.S, within=pyo.NonNegativeReals)
    m.scrap = pyo.Var(m.S, within=pyo.NonNegativeReals)
    m.balance = pyo.Constraint(m.S, rule=lambda m, s: m.sell[s] + m.scrap[s] == m.x)
    m.market = pyo.Constraint(m.S, rule=lambda m, s: m.sell[s] <= float(scenarios[s].data["demand"]))
    revenue = sum(
        float(weights[s]) * (float(scenarios[s].data["price"]) * m.sell[s] + data.salvage * m.scrap[s])
        for s in m.S
    )
    if data.maximize:
        m.obj = pyo.Objective(expr=-data.cost * m.x + revenue, sense=pyo.maximize)
    else:
        m.obj = pyo.Objective(expr=data.cost * m.x - revenue, sense=pyo.minimize)
    return m


def solve_extensive_form(
    data: NewsvendorData,
    scenarios: Sequence[Scenario],
    weights: Optional[Sequence[float]] = None,
    solver: str = "glpk",
    solver_options: Mapping[str, Any] | None = None,
) -> tuple[float, np.ndarray]:
    """Solve the deterministic equivalent directly; return (objective, x)."""
    m = build_extensive_form(data, scenarios, weights)
    status, objective = solve_model(m, make_solver(solver, options=solver_options))
    if status != SolveStatus.OPTIMAL or objective is None:
        raise SolverFailure("extensive form solve failed", status=status)
    return objective, np.array([float(pyo.value(m.x))])


__all__ = [
    "NewsvendorData",
    "make_scenarios",
    "scenarios_from_params",
    "recourse_bound",
    "build_first_stage_model",
    "build_second_stage_model",
    "apply_demand_and_price",
    "make_stages",
    "build_extensive_form",
    "solve_extensive_form",
]
