from .types import (
    Cut,
    CuttingPlanesResult,
    FirstStageSolution,
    IterationRecord,
    RecourseResult,
    Scenario,
    Sense,
    SolveStatus,
)
from .master import FirstStage
from .subproblem import SecondStage
from .solver import CuttingPlanesSolver, cutting_planes

__all__ = [
    "Cut",
    "CuttingPlanesResult",
    "FirstStageSolution",
    "IterationRecord",
    "RecourseResult",
    "Scenario",
    "Sense",
    "SolveStatus",
    "FirstStage",
    "SecondStage",
    "CuttingPlanesSolver",
    "cutting_planes",
]
