"""Pyomo implementations of the sub-solver interfaces.

Each adapter owns a private model built from a zero-argument factory, so the
driver never touches a caller-owned model.
"""

from .common import solve_model, status_from_results
from .admm_block import PyomoADMMBlock
from .first_stage import PyomoFirstStage
from .second_stage import PyomoSecondStage

__all__ = [
    "solve_model",
    "status_from_results",
    "PyomoADMMBlock",
    "PyomoFirstStage",
    "PyomoSecondStage",
]
