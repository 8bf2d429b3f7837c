#!/usr/bin/env python3
"""Solve the newsvendor example twice: by cutting planes and as one extensive form."""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Ensure `src/` is on sys.path for direct script execution
SRC_ROOT = Path(__file__).resolve().parents[1] / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from decomp_drivers.cutting_planes.solver import cutting_planes
from decomp_drivers.logging_config import setup_logging
from decomp_drivers.problem.newsvendor import (
    NewsvendorData,
    make_scenarios,
    make_stages,
    recourse_bound,
    solve_extensive_form,
)


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser()
    p.add_argument("--solver", default="glpk")
    p.add_argument("--demands", default="50,100,150", help="Comma-separated scenario demands")
    p.add_argument("--price", type=float, default=10.0)
    p.add_argument("--cost", type=float, default=6.0)
    p.add_argument("--salvage", type=float, default=2.0)
    p.add_argument("--min", dest="minimize", action="store_true", help="Use the cost (minimize) form")
    p.add_argument("--workers", type=int, default=1)
    args = p.parse_args(argv)

    setup_logging("INFO")
    data = NewsvendorData(cost=args.cost, salvage=args.salvage, maximize=not args.minimize)
    demands = [float(d) for d in args.demands.split(",") if d.strip()]
    scenarios = make_scenarios(demands, args.price)
    first, second = make_stages(data, solver=args.solver)

    res = cutting_planes(
        first,
        second,
        scenarios,
        initial_bound=recourse_bound(data, scenarios),
        max_iter=100,
        verbose=True,
        workers=args.workers,
    )
    ef_obj, ef_x = solve_extensive_form(data, scenarios, solver=args.solver)
    print(f"cutting planes: iterations={res.iterations} x={res.x} outer={res.outer_bound:.6g} inner={res.inner_bound:.6g}")
    print(f"extensive form: x={ef_x} objective={ef_obj:.6g}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
