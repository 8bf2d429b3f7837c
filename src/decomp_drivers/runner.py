from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Union

from .admm.solver import ADMMSolver
from .admm.types import ADMMResult
from .config import DriverConfig, load_config
from .cutting_planes.solver import CuttingPlanesSolver
from .cutting_planes.types import CuttingPlanesResult
from .logging_config import setup_logging
from .problem import get_problem

RunResult = Union[ADMMResult, CuttingPlanesResult]


def _default_config_path() -> Path:
    """Best-effort discovery of the default YAML config.

    Tries these, in order:
    1) CWD `configs/newsvendor.yaml`
    2) Repo root relative to this file
    Falls back to `configs/newsvendor.yaml` in CWD regardless.
    """
    cwd_path = Path("configs/newsvendor.yaml")
    if cwd_path.exists():
        return cwd_path
    # src/ -> repo root
    here = Path(__file__).resolve()
    repo_path = here.parents[2] / "configs" / "newsvendor.yaml"
    if repo_path.exists():
        return repo_path
    return cwd_path


def run_config(cfg: DriverConfig) -> RunResult:
    """Build the configured problem and run the configured driver."""
    factory = get_problem(cfg.run.algorithm, cfg.problem.impl)
    problem = factory(cfg.problem.params, cfg.run.seed)
    if cfg.run.algorithm == "admm":
        return ADMMSolver(problem.f_block, problem.g_block, cfg, T=problem.T).run()
    if cfg.cutting_planes.initial_bound is None:
        # Fill the bound on a copy; the caller's config stays untouched
        cfg = replace(cfg, cutting_planes=replace(cfg.cutting_planes, initial_bound=problem.initial_bound))
    solver = CuttingPlanesSolver(
        problem.first_stage,
        problem.second_stage,
        problem.scenarios,
        cfg,
        weights=problem.weights,
    )
    return solver.run()


def run(config_path: str | Path | None = None) -> RunResult:
    """Run the driver selected in the YAML config.

    `configs/newsvendor.yaml` is used by default. Raises the driver's
    `NonConvergence` / `SolverFailure` unchanged.
    """
    cfg_path = Path(config_path) if config_path is not None else _default_config_path()
    cfg = load_config(cfg_path)
    setup_logging(cfg.run.log_level)
    return run_config(cfg)


__all__ = ["run", "run_config", "RunResult"]
