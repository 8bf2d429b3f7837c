from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml

from .errors import ConfigError


ALGORITHMS = ("admm", "cutting_planes")


@dataclass(slots=True)
class RunConfig:
    algorithm: str = "cutting_planes"
    max_iterations: int = 100
    tolerance: float = 1e-6
    # Wall-clock limit; None disables it
    time_limit_s: float | None = None
    log_level: str = "INFO"
    seed: int = 42
    # Log iteration summary every N iters (1 = every iter)
    print_every: int = 10
    # Threads used for per-scenario solves (1 = sequential)
    workers: int = 1
    verbose: bool = False


@dataclass(slots=True)
class ADMMConfig:
    rho: float = 1.0
    # 0 = quiet, 1 = every print_every iterations, 2 = every iteration
    verbosity: int = 0


@dataclass(slots=True)
class CuttingPlanesConfig:
    # Bound on theta; None lets the problem factory supply one
    initial_bound: float | None = None
    check_bound: bool = True


@dataclass(slots=True)
class ComponentConfig:
    impl: str = "newsvendor"
    params: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class DriverConfig:
    run: RunConfig = field(default_factory=RunConfig)
    admm: ADMMConfig = field(default_factory=ADMMConfig)
    cutting_planes: CuttingPlanesConfig = field(default_factory=CuttingPlanesConfig)
    problem: ComponentConfig = field(default_factory=ComponentConfig)


def _as_dict(m: Mapping[str, Any] | None) -> dict[str, Any]:
    return dict(m) if m else {}


def _optional_float(v: Any) -> float | None:
    if v is None or (isinstance(v, str) and v.strip().lower() in ("", "none", "null")):
        return None
    return float(v)


def _load_yaml(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigError("Top-level YAML document must be a mapping")
    return data


def config_from_dict(raw: Mapping[str, Any]) -> DriverConfig:
    """Build a `DriverConfig` from a parsed mapping. Unknown keys are ignored."""
    run = _as_dict(raw.get("run"))
    admm = _as_dict(raw.get("admm"))
    cp = _as_dict(raw.get("cutting_planes"))
    problem = _as_dict(raw.get("problem"))

    try:
        run_cfg = RunConfig(
            algorithm=str(run.get("algorithm", "cutting_planes")).strip().lower(),
            max_iterations=int(run.get("max_iterations", 100)),
            tolerance=float(run.get("tolerance", 1e-6)),
            time_limit_s=_optional_float(run.get("time_limit_s")),
            log_level=str(run.get("log_level", "INFO")),
            seed=int(run.get("seed", 42)),
            print_every=int(run.get("print_every", 10) or 10),
            workers=int(run.get("workers", 1) or 1),
            verbose=bool(run.get("verbose", False)),
        )
        admm_cfg = ADMMConfig(
            rho=float(admm.get("rho", 1.0)),
            verbosity=int(admm.get("verbosity", 0) or 0),
        )
        cp_cfg = CuttingPlanesConfig(
            initial_bound=_optional_float(cp.get("initial_bound")),
            check_bound=bool(cp.get("check_bound", True)),
        )
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"invalid value in configuration: {exc}") from exc

    if run_cfg.algorithm not in ALGORITHMS:
        raise ConfigError(f"unknown algorithm '{run_cfg.algorithm}', expected one of {ALGORITHMS}")
    if run_cfg.max_iterations < 0:
        raise ConfigError("run.max_iterations must be >= 0")
    if run_cfg.workers < 1:
        raise ConfigError("run.workers must be >= 1")
    if admm_cfg.rho <= 0.0:
        raise ConfigError("admm.rho must be > 0")

    problem_cfg = ComponentConfig(
        impl=str(problem.get("impl", "newsvendor")),
        params=_as_dict(problem.get("params")),
    )
    return DriverConfig(run=run_cfg, admm=admm_cfg, cutting_planes=cp_cfg, problem=problem_cfg)


def load_config(path: str | Path | None) -> DriverConfig:
    """Load configuration from a YAML file or return defaults.

    The schema is minimal and forgiving; unknown keys are ignored. Only YAML is supported.
    """
    if path is None:
        return DriverConfig()
    p = Path(path)
    if not p.exists():
        # Return defaults but allow the CLI to keep going
        return DriverConfig()

    if p.suffix.lower() not in {".yaml", ".yml"}:
        raise ConfigError(f"Unsupported config format '{p.suffix}'. Please provide a YAML file.")
    return config_from_dict(_load_yaml(p))


__all__ = [
    "RunConfig",
    "ADMMConfig",
    "CuttingPlanesConfig",
    "ComponentConfig",
    "DriverConfig",
    "config_from_dict",
    "load_config",
]
