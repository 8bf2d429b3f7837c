from __future__ import annotations

import argparse
import sys
from pathlib import Path

import numpy as np

from .admm.types import ADMMResult
from .config import load_config
from .errors import ConfigError, DecompositionError, NonConvergence
from .logging_config import setup_logging
from .problem import get_problem
from .runner import RunResult, run_config


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="decomp-drivers",
        description="ADMM and cutting-plane decomposition drivers",
    )
    p.add_argument(
        "--config",
        type=Path,
        default=Path("configs/newsvendor.yaml"),
        help="Path to YAML config. Default: configs/newsvendor.yaml",
    )
    sub = p.add_subparsers(dest="cmd")
    sub.required = False

    run_p = sub.add_parser("run", help="Run the configured driver")
    run_p.add_argument("--max-iter", dest="max_iter", type=int, default=None, help="Override run.max_iterations")
    run_p.add_argument("--tol", dest="tol", type=float, default=None, help="Override run.tolerance")
    run_p.add_argument(
        "--workers",
        dest="workers",
        type=int,
        default=None,
        help="Threads for per-scenario solves (cutting planes only)",
    )
    run_p.add_argument("--verbose", dest="verbose", action="store_true", help="Log every iteration")
    sub.add_parser("validate", help="Validate config and problem selection")
    sub.add_parser("info", help="Show current configuration")
    return p


def _fmt_vec(v: np.ndarray | None) -> str:
    if v is None:
        return "-"
    return np.array2string(np.asarray(v), precision=6, suppress_small=True)


def _print_result(result: RunResult) -> None:
    if isinstance(result, ADMMResult):
        print(
            f"\nResult: status={result.status.value} iterations={result.iterations} "
            f"residual={result.residual if result.residual is not None else '-'}"
        )
        print(f"  x = {_fmt_vec(result.x)}")
        print(f"  z = {_fmt_vec(result.z)}")
        return
    print(
        f"\nResult: status={result.status.value} iterations={result.iterations} "
        f"outer={result.outer_bound} inner={result.inner_bound} cuts={len(result.cuts)}"
    )
    print(f"  x = {_fmt_vec(result.x)}")
    if result.trace:
        print("  iter       outer        inner          gap")
        for rec in result.trace:
            print(f"  {rec.iteration:>4d} {rec.outer_bound:>11.6g} {rec.inner_bound:>12.6g} {rec.gap:>12.3g}")


def cmd_run(args) -> int:
    cfg = load_config(args.config)
    if args.max_iter is not None:
        cfg.run.max_iterations = int(args.max_iter)
    if args.tol is not None:
        cfg.run.tolerance = float(args.tol)
    if args.workers is not None:
        cfg.run.workers = max(1, int(args.workers))
    if args.verbose:
        cfg.run.verbose = True
        cfg.admm.verbosity = max(cfg.admm.verbosity, 2)
    setup_logging(cfg.run.log_level)

    print(
        f"Run configuration: algorithm={cfg.run.algorithm} problem={cfg.problem.impl} "
        f"iterations={cfg.run.max_iterations} tol={cfg.run.tolerance} workers={cfg.run.workers}"
    )
    try:
        result = run_config(cfg)
    except NonConvergence as exc:
        print(f"\nNo convergence: {exc}")
        if exc.result is not None:
            _print_result(exc.result)
        return 1
    except DecompositionError as exc:
        print(f"\nFailed: {exc}")
        return 1
    _print_result(result)
    return 0


def cmd_validate(args) -> int:
    try:
        cfg = load_config(args.config)
    except ConfigError as exc:
        print(f"Config invalid: {exc}")
        return 1
    setup_logging(cfg.run.log_level)
    try:
        get_problem(cfg.run.algorithm, cfg.problem.impl)
    except KeyError as exc:
        print(f"Config OK. Problem missing: {exc}")
        return 1
    print(f"Config OK. Problem '{cfg.problem.impl}' found for {cfg.run.algorithm}.")
    return 0


def cmd_info(args) -> int:
    cfg = load_config(args.config)
    print(cfg)
    return 0


def main(argv: list[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.cmd is None:
        # Bare invocation behaves like `run` with no overrides
        args = parser.parse_args(argv + ["run"])
    if args.cmd == "run":
        return cmd_run(args)
    if args.cmd == "validate":
        return cmd_validate(args)
    if args.cmd == "info":
        return cmd_info(args)
    parser.print_help()
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
