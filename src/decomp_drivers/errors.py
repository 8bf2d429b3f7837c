"""Exceptions raised by the decomposition drivers.

Every failure is reported to the caller; drivers never retry a sub-solve and
never return a silently empty result.
"""

from __future__ import annotations

from typing import Any, Optional


class DecompositionError(Exception):
    """Base exception for all decomp_drivers errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NonConvergence(DecompositionError):
    """Raised when a driver exhausts its iteration budget without meeting tolerance.

    `result` holds the last state reached (an `ADMMResult` or a
    `CuttingPlanesResult`), so callers can still inspect the partial run.
    """

    def __init__(self, message: str, iterations: int = 0, result: Any = None) -> None:
        self.iterations = int(iterations)
        self.result = result
        super().__init__(message)


class SolverFailure(DecompositionError):
    """Raised when a sub-solve does not end with an optimal solution.

    Carries the iteration and, where relevant, the scenario name or ADMM block
    that failed.
    """

    def __init__(
        self,
        message: str,
        status: Any = None,
        iteration: Optional[int] = None,
        scenario: Optional[str] = None,
        block: Optional[str] = None,
    ) -> None:
        self.status = status
        self.iteration = iteration
        self.scenario = scenario
        self.block = block
        parts = [message]
        if status is not None:
            parts.append(f"status={getattr(status, 'value', status)}")
        if iteration is not None:
            parts.append(f"iteration={iteration}")
        if scenario is not None:
            parts.append(f"scenario={scenario}")
        if block is not None:
            parts.append(f"block={block}")
        super().__init__(" ".join(parts))


class InvalidBound(DecompositionError):
    """Raised when a recourse value falls outside the initial bound on theta.

    Only violations observed at trial points are detected; a bound that is
    wrong elsewhere still yields a wrong answer.
    """

    def __init__(self, message: str, bound: float, value: float, iteration: int) -> None:
        self.bound = float(bound)
        self.value = float(value)
        self.iteration = int(iteration)
        super().__init__(message)


class DimensionError(DecompositionError, ValueError):
    """Raised when vector or matrix dimensions are incompatible."""

    def __init__(self, message: str) -> None:
        super().__init__(f"Dimension mismatch: {message}")


class ConfigError(DecompositionError):
    """Raised when a configuration file cannot be used."""


__all__ = [
    "DecompositionError",
    "NonConvergence",
    "SolverFailure",
    "InvalidBound",
    "DimensionError",
    "ConfigError",
]
