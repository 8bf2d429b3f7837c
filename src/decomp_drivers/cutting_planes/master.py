from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from ..types import Sense
from .types import Cut, FirstStageSolution


class FirstStage(ABC):
    """Abstract interface for the first-stage (master) problem.

    Implementations hold a description of the base model and build a fresh
    augmented copy in `initialize`, so repeated driver runs do not see cuts or
    variables from earlier runs.
    """

    def __init__(self, params: dict[str, Any] | None = None):
        self.params = params or {}

    @property
    @abstractmethod
    def sense(self) -> Sense:
        """Objective sense of the first-stage problem."""

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Length of the first-stage decision vector."""

    @abstractmethod
    def initialize(self, initial_bound: float) -> None:
        """Build the augmented model with theta and objective own_cost(x) + theta.

        theta is bounded by `initial_bound` from above when maximizing and from
        below when minimizing.
        """

    @abstractmethod
    def solve(self) -> FirstStageSolution:
        """Solve the augmented model and return the trial point.

        `objective` includes theta; `own_cost` must exclude it.
        """

    @abstractmethod
    def add_cut(self, cut: Cut) -> None:
        """Integrate a cut on theta into the augmented model."""

    @abstractmethod
    def cuts_count(self) -> int:
        """Number of cuts currently in the augmented model."""


__all__ = ["FirstStage"]
