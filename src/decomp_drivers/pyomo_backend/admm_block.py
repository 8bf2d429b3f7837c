from __future__ import annotations

from typing import Any, Mapping, Optional

import numpy as np
import pyomo.environ as pyo

from ..admm.block import ADMMBlock
from ..admm.types import BlockSolution, CouplingTerm
from ..errors import DimensionError
from ..types import Sense, SolveStatus
from .common import ModelBuilder, active_objective, find_var_data, make_solver, objective_sense, read_values, solve_model


class PyomoADMMBlock(ADMMBlock):
    """ADMM block over a private Pyomo model.

    `builder()` must return a model whose single active objective minimizes
    the block function and which holds the block variable `variable`. The
    coupling data (matrix, offset, multiplier, rho) live in mutable Params of
    an `admm_coupling` sub-block, so the augmented objective is built once and only
    its parameter values change between iterations.
    """

    def __init__(
        self,
        builder: ModelBuilder,
        variable: str,
        solver: str = "ipopt",
        solver_options: Mapping[str, Any] | None = None,
        name: str | None = None,
        tee: bool = False,
        params: dict[str, Any] | None = None,
    ):
        super().__init__(params)
        self.name = name or variable
        self.m = builder()
        self._vars = find_var_data(self.m, variable)
        obj = active_objective(self.m)
        if objective_sense(obj) != Sense.MIN:
            raise ValueError(f"ADMM block '{self.name}' must minimize its objective")
        self._own = obj.expr
        obj.deactivate()
        self._rows: Optional[int] = None
        self._solver = make_solver(solver, options=solver_options)
        self._tee = bool(tee)

    @property
    def dimension(self) -> int:
        return len(self._vars)

    def _build_coupling(self, rows: int) -> None:
        m = self.m
        n = self.dimension
        b = pyo.Block(concrete=True)
        m.add_component("admm_coupling", b)
        b.R = pyo.RangeSet(0, rows - 1)
        b.C = pyo.RangeSet(0, n - 1)
        b.matrix = pyo.Param(b.R, b.C, mutable=True, initialize=0.0)
        b.offset = pyo.Param(b.R, mutable=True, initialize=0.0)
        b.multiplier = pyo.Param(b.R, mutable=True, initialize=0.0)
        b.rho = pyo.Param(mutable=True, initialize=1.0)
        u = self._vars

        def residual(b, i):
            return sum(b.matrix[i, j] * u[j] for j in b.C) + b.offset[i]

        b.residual = pyo.Expression(b.R, rule=residual)
        b.objective = pyo.Objective(
            expr=self._own
            - sum(b.multiplier[i] * b.residual[i] for i in b.R)
            + 0.5 * b.rho * sum(b.residual[i] ** 2 for i in b.R),
            sense=pyo.minimize,
        )
        self._rows = rows

    def minimize(self, term: CouplingTerm) -> BlockSolution:
        rows, cols = term.matrix.shape
        if cols != self.dimension:
            raise DimensionError(f"coupling matrix has {cols} columns, block '{self.name}' has {self.dimension} variables")
        if self._rows is None:
            self._build_coupling(rows)
        elif rows != self._rows:
            raise DimensionError(f"coupling matrix has {rows} rows, expected {self._rows}")
        b = self.m.admm_coupling
        b.matrix.store_values({(i, j): float(term.matrix[i, j]) for i in range(rows) for j in range(cols)})
        b.offset.store_values({i: float(term.offset[i]) for i in range(rows)})
        b.multiplier.store_values({i: float(term.multiplier[i]) for i in range(rows)})
        b.rho.set_value(float(term.rho))

        status, _ = solve_model(self.m, self._solver, tee=self._tee)
        if status != SolveStatus.OPTIMAL:
            return BlockSolution(status=status, values=None)
        return BlockSolution(
            status=status,
            values=np.array(read_values(self._vars)),
            objective=float(pyo.value(self._own)),
        )


__all__ = ["PyomoADMMBlock"]
