from __future__ import annotations

from enum import Enum


class SolveStatus(str, Enum):
    OPTIMAL = "OPTIMAL"
    FEASIBLE = "FEASIBLE"
    INFEASIBLE = "INFEASIBLE"
    UNBOUNDED = "UNBOUNDED"
    ERROR = "ERROR"
    UNKNOWN = "UNKNOWN"
    # Driver-level outcome: wall-clock limit hit, partial result returned
    TIME_LIMIT = "TIME_LIMIT"


class Sense(str, Enum):
    MIN = "MIN"
    MAX = "MAX"


__all__ = ["SolveStatus", "Sense"]
