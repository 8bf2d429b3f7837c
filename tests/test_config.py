from pathlib import Path

import pytest
import yaml

REPO_ROOT = Path(__file__).resolve().parents[1]


def test_defaults_when_no_file(tmp_path):
    from decomp_drivers.config import load_config

    cfg = load_config(None)
    assert cfg.run.algorithm == "cutting_planes"
    assert cfg.run.max_iterations == 100
    assert cfg.run.workers == 1
    assert cfg.admm.rho == 1.0
    assert cfg.cutting_planes.initial_bound is None
    assert cfg.cutting_planes.check_bound is True
    # A missing file also falls back to defaults
    assert load_config(tmp_path / "missing.yaml") == cfg


def test_load_yaml(tmp_path):
    from decomp_drivers.config import load_config

    path = tmp_path / "cfg.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "run": {"algorithm": "ADMM", "max_iterations": 7, "tolerance": 1e-4, "time_limit_s": None},
                "admm": {"rho": 2.5, "verbosity": 2},
                "problem": {"impl": "lasso", "params": {"rows": 4}},
                "unknown": {"ignored": True},
            }
        ),
        encoding="utf-8",
    )
    cfg = load_config(path)
    assert cfg.run.algorithm == "admm"
    assert cfg.run.max_iterations == 7
    assert cfg.run.tolerance == pytest.approx(1e-4)
    assert cfg.run.time_limit_s is None
    assert cfg.admm.rho == pytest.approx(2.5)
    assert cfg.admm.verbosity == 2
    assert cfg.problem.impl == "lasso"
    assert cfg.problem.params == {"rows": 4}


def test_shipped_configs_load():
    from decomp_drivers.config import load_config

    nv = load_config(REPO_ROOT / "configs" / "newsvendor.yaml")
    assert nv.run.algorithm == "cutting_planes"
    assert nv.cutting_planes.initial_bound is None
    assert len(nv.problem.params["scenarios"]) == 3

    lasso = load_config(REPO_ROOT / "configs" / "lasso.yaml")
    assert lasso.run.algorithm == "admm"
    assert lasso.problem.params["backend"] == "numpy"


def test_non_yaml_rejected(tmp_path):
    from decomp_drivers.errors import ConfigError
    from decomp_drivers.config import load_config

    path = tmp_path / "cfg.json"
    path.write_text("{}", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(path)


@pytest.mark.parametrize(
    "raw",
    [
        {"run": {"algorithm": "simplex"}},
        {"run": {"max_iterations": -1}},
        {"run": {"workers": -2}},
        {"run": {"tolerance": "tight"}},
        {"admm": {"rho": 0}},
    ],
)
def test_invalid_values_rejected(raw):
    from decomp_drivers.config import config_from_dict
    from decomp_drivers.errors import ConfigError

    with pytest.raises(ConfigError):
        config_from_dict(raw)


def test_top_level_must_be_mapping(tmp_path):
    from decomp_drivers.config import load_config
    from decomp_drivers.errors import ConfigError

    path = tmp_path / "cfg.yml"
    path.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(path)


def test_problem_registry():
    from decomp_drivers.problem import get_problem

    assert callable(get_problem("admm", "lasso"))
    assert callable(get_problem("cutting_planes", "newsvendor"))
    with pytest.raises(KeyError):
        get_problem("admm", "newsvendor")
