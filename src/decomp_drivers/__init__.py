"""decomp_drivers

Outer-loop drivers for decomposition methods in structured optimization:

- ADMM for composite objectives f(x) + g(z) subject to z = T x
- Kelley's cutting-plane method for two-stage stochastic programs

The drivers only talk to abstract sub-solver interfaces
(`admm.ADMMBlock`, `cutting_planes.FirstStage`, `cutting_planes.SecondStage`).
Pyomo-backed implementations live in `decomp_drivers.pyomo_backend`, and
worked examples in `decomp_drivers.problem`.
"""

from .admm import ADMMResult, admm
from .cutting_planes import CuttingPlanesResult, Scenario, cutting_planes
from .errors import InvalidBound, NonConvergence, SolverFailure
from .runner import run
from .types import Sense, SolveStatus

__all__ = [
    "__version__",
    "admm",
    "cutting_planes",
    "run",
    "ADMMResult",
    "CuttingPlanesResult",
    "Scenario",
    "Sense",
    "SolveStatus",
    "NonConvergence",
    "SolverFailure",
    "InvalidBound",
]

__version__ = "0.1.0"
