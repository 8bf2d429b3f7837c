#!/usr/bin/env python3
"""
Generate random newsvendor scenarios for the cutting-plane driver.

Inputs:
  - n: number of scenarios
  - demand range [dmin, dmax]
  - price range [pmin, pmax] (a single fixed price when pmin == pmax)

Scenarios get uniform probabilities. Output is a YAML file with a single key
that can be pasted under `problem.params` of a config:
  scenarios: [ {name: s0, demand: float, price: float, probability: float}, ... ]

Examples:
  python setups/gen_scenarios.py -n 20 --dmin 20 --dmax 180 -o setups/scenarios_20.yaml
  python setups/gen_scenarios.py -n 5 --pmin 8 --pmax 12 --seed 7
"""

from __future__ import annotations

import argparse
import random
from pathlib import Path
from typing import Any, Dict, List

import yaml


def build_scenarios(
    n: int,
    dmin: float,
    dmax: float,
    pmin: float,
    pmax: float,
    seed: int | None = None,
) -> List[Dict[str, Any]]:
    rng = random.Random(seed)
    w = 1.0 / n
    scens: List[Dict[str, Any]] = []
    for k in range(n):
        scens.append(
            {
                "name": f"s{k}",
                "demand": round(rng.uniform(dmin, dmax), 3),
                "price": round(rng.uniform(pmin, pmax), 3),
                "probability": w,
            }
        )
    return scens


def write_output(path: Path, data: Dict[str, Any]) -> None:
    path = path.with_suffix(".yaml")
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, sort_keys=False)
    print(f"Wrote scenarios to: {path}")


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Generate random newsvendor scenarios")
    p.add_argument("-n", "--count", type=int, required=True, help="Number of scenarios (n >= 1)")
    p.add_argument("--dmin", type=float, default=0.0, help="Smallest demand")
    p.add_argument("--dmax", type=float, default=200.0, help="Largest demand")
    p.add_argument("--pmin", type=float, default=10.0, help="Smallest selling price")
    p.add_argument("--pmax", type=float, default=10.0, help="Largest selling price")
    p.add_argument("--seed", type=int, default=None, help="Random seed for reproducibility")
    p.add_argument("-o", "--output", type=Path, default=None, help="Output file path. Default auto-named under setups/")
    return p.parse_args()


def main() -> int:
    args = parse_args()
    if args.count <= 0:
        raise SystemExit("n must be >= 1")
    if args.dmin < 0 or args.dmax < args.dmin:
        raise SystemExit("Invalid demand range: require 0 <= dmin <= dmax")
    if args.pmax < args.pmin:
        raise SystemExit("Invalid price range: require pmin <= pmax")

    scens = build_scenarios(args.count, args.dmin, args.dmax, args.pmin, args.pmax, seed=args.seed)
    out_path = args.output if args.output is not None else Path(f"setups/scenarios_n{args.count}.yaml")
    write_output(out_path, {"scenarios": scens})
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
