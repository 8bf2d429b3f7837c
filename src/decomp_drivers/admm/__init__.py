from .types import ADMMIteration, ADMMResult, ADMMState, BlockSolution, CouplingTerm
from .block import ADMMBlock
from .solver import ADMMSolver, admm

__all__ = [
    "ADMMIteration",
    "ADMMResult",
    "ADMMState",
    "BlockSolution",
    "CouplingTerm",
    "ADMMBlock",
    "ADMMSolver",
    "admm",
]
