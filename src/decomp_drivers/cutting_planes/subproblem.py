from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import numpy as np

from .types import RecourseResult, Scenario


class SecondStage(ABC):
    """Abstract interface for the second-stage (recourse) evaluation.

    Given a first-stage decision and a scenario, solve the recourse problem
    and return its optimal value together with the sensitivity of that value
    w.r.t. the fixed decision.
    """

    # False when instances cannot be evaluated from several threads at once;
    # the cutting-plane driver then evaluates scenarios sequentially.
    thread_safe: bool = True

    def __init__(self, params: dict[str, Any] | None = None):
        self.params = params or {}

    @abstractmethod
    def evaluate(self, x: np.ndarray, scenario: Scenario) -> RecourseResult:
        """Evaluate the recourse problem of `scenario` at decision `x`."""

    @abstractmethod
    def spawn(self) -> "SecondStage":
        """Return an independent instance for use by another worker thread."""


__all__ = ["SecondStage"]
