from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from .types import BlockSolution, CouplingTerm


class ADMMBlock(ABC):
    """Abstract interface for one block of an ADMM splitting.

    Implementations own their model and re-optimize it under the augmented
    objective described by a `CouplingTerm`. The driver never inspects the
    model; it only reads the returned values and status.
    """

    name: str = "block"

    def __init__(self, params: dict[str, Any] | None = None):
        self.params = params or {}

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Length of the block variable."""

    @abstractmethod
    def minimize(self, term: CouplingTerm) -> BlockSolution:
        """Minimize own objective plus `term` and return the minimizer."""


__all__ = ["ADMMBlock"]
