from __future__ import annotations

import itertools
import time

import numpy as np
import pytest

from decomp_drivers.cutting_planes.master import FirstStage
from decomp_drivers.cutting_planes.subproblem import SecondStage
from decomp_drivers.cutting_planes.types import FirstStageSolution, RecourseResult, Scenario
from decomp_drivers.types import Sense, SolveStatus


class EnvelopeFirstStage(FirstStage):
    """One-dimensional first stage solved by enumerating breakpoints.

    own(x) = -cost * x (MAX) or cost * x (MIN) over 0 <= x <= upper, with theta
    limited by the initial bound and every cut. The optimum of a piecewise
    linear objective sits at 0, `upper` or an intersection of two lines.
    """

    def __init__(self, cost=6.0, upper=200.0, maximize=True, delay=0.0):
        super().__init__()
        self.cost = float(cost)
        self.upper = float(upper)
        self.maximize = bool(maximize)
        self.delay = float(delay)
        self.lines: list[tuple[float, float]] = []
        self.solves = 0
        self.initialized = 0

    @property
    def sense(self) -> Sense:
        return Sense.MAX if self.maximize else Sense.MIN

    @property
    def dimension(self) -> int:
        return 1

    def initialize(self, initial_bound: float) -> None:
        self.lines = [(float(initial_bound), 0.0)]
        self.initialized += 1

    def _own(self, x: float) -> float:
        return -self.cost * x if self.maximize else self.cost * x

    def _theta(self, x: float) -> float:
        vals = [a + b * x for a, b in self.lines]
        return min(vals) if self.maximize else max(vals)

    def solve(self) -> FirstStageSolution:
        self.solves += 1
        if self.delay:
            time.sleep(self.delay)
        cands = {0.0, self.upper}
        for (a1, b1), (a2, b2) in itertools.combinations(self.lines, 2):
            if b1 != b2:
                x = (a2 - a1) / (b1 - b2)
                if 0.0 <= x <= self.upper:
                    cands.add(x)
        sign = 1.0 if self.maximize else -1.0
        best = max(sorted(cands), key=lambda x: sign * (self._own(x) + self._theta(x)))
        return FirstStageSolution(
            status=SolveStatus.OPTIMAL,
            objective=self._own(best) + self._theta(best),
            x=np.array([best]),
            own_cost=self._own(best),
        )

    def add_cut(self, cut) -> None:
        self.lines.append((cut.constant, float(cut.slope[0])))

    def cuts_count(self) -> int:
        return len(self.lines) - 1


class NewsvendorRecourse(SecondStage):
    """Closed-form newsvendor recourse: sell min(x, d) at price, salvage the rest."""

    def __init__(self, salvage=2.0, maximize=True, offset=0.0, fail_on=None, registry=None):
        super().__init__()
        self.salvage = float(salvage)
        self.maximize = bool(maximize)
        self.offset = float(offset)
        self.fail_on = fail_on
        self.registry = registry if registry is not None else []
        self.registry.append(self)
        self.calls = 0

    def evaluate(self, x, scenario: Scenario) -> RecourseResult:
        self.calls += 1
        if scenario.name == self.fail_on:
            return RecourseResult(status=SolveStatus.INFEASIBLE, value=None, sensitivity=None)
        d = float(scenario.data["demand"])
        p = float(scenario.data.get("price", 10.0))
        xv = float(x[0])
        sold = min(xv, d)
        value = p * sold + self.salvage * (xv - sold) + self.offset
        slope = p if xv < d else self.salvage
        sign = 1.0 if self.maximize else -1.0
        return RecourseResult(status=SolveStatus.OPTIMAL, value=sign * value, sensitivity=np.array([sign * slope]))

    def spawn(self) -> "NewsvendorRecourse":
        return NewsvendorRecourse(self.salvage, self.maximize, self.offset, self.fail_on, self.registry)


def newsvendor_scenarios(demands=(50.0, 100.0, 150.0), price=10.0):
    w = 1.0 / len(demands)
    return [Scenario(name=f"s{k}", data={"demand": d, "price": price}, probability=w) for k, d in enumerate(demands)]


def solver_available(name: str) -> bool:
    import pyomo.environ as pyo

    try:
        return bool(pyo.SolverFactory(name).available(exception_flag=False))
    except Exception:
        return False


def first_lp_solver():
    for name in ("glpk", "appsi_highs"):
        if solver_available(name):
            return name
    return None


@pytest.fixture
def scenarios():
    return newsvendor_scenarios()


@pytest.fixture
def lp_solver():
    name = first_lp_solver()
    if name is None:
        pytest.skip("no LP solver (glpk or HiGHS) available")
    return name


@pytest.fixture(params=["glpk", "appsi_highs"])
def each_lp_solver(request):
    if not solver_available(request.param):
        pytest.skip(f"{request.param} not available")
    return request.param
