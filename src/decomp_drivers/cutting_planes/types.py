from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

import numpy as np

from ..types import Sense, SolveStatus


@dataclass(slots=True)
class Scenario:
    """Named realization of the uncertain second-stage parameters."""

    name: str
    data: Mapping[str, Any] = field(default_factory=dict)
    probability: Optional[float] = None


@dataclass(slots=True)
class Cut:
    """Supporting hyperplane of the recourse value function.

    Represents: theta <= value + slope . (x - reference)   (maximize)
                theta >= value + slope . (x - reference)   (minimize)
    """

    iteration: int
    value: float
    slope: np.ndarray
    reference: np.ndarray

    @property
    def constant(self) -> float:
        """Intercept of the hyperplane written as constant + slope . x."""
        return float(self.value - self.slope @ self.reference)

    def coefficients(self) -> list[float]:
        return [float(c) for c in self.slope]

    def evaluate(self, x: Any) -> float:
        d = np.asarray(x, dtype=float) - self.reference
        return float(self.value + self.slope @ d)


@dataclass(slots=True)
class FirstStageSolution:
    status: SolveStatus
    # Objective including theta (the outer bound)
    objective: Optional[float]
    x: Optional[np.ndarray]
    # Objective excluding theta, evaluated at x
    own_cost: Optional[float]


@dataclass(slots=True)
class RecourseResult:
    status: SolveStatus
    value: Optional[float]
    # Sensitivity of value w.r.t. the fixed first-stage decision
    sensitivity: Optional[np.ndarray]


@dataclass(slots=True)
class IterationRecord:
    iteration: int
    x: np.ndarray
    inner_bound: float
    outer_bound: float
    gap: float
    value: float
    slope: np.ndarray
    elapsed_s: float


@dataclass(slots=True)
class CuttingPlanesResult:
    status: SolveStatus
    inner_bound: Optional[float]
    outer_bound: Optional[float]
    x: Optional[np.ndarray]
    iterations: int = 0
    trace: list[IterationRecord] = field(default_factory=list)
    cuts: list[Cut] = field(default_factory=list)
    sense: Sense = Sense.MIN


__all__ = [
    "Sense",
    "SolveStatus",
    "Scenario",
    "Cut",
    "FirstStageSolution",
    "RecourseResult",
    "IterationRecord",
    "CuttingPlanesResult",
]
