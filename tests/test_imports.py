def test_imports():
    import decomp_drivers as m
    from decomp_drivers.admm.solver import ADMMSolver
    from decomp_drivers.admm.block import ADMMBlock
    from decomp_drivers.cutting_planes.solver import CuttingPlanesSolver
    from decomp_drivers.cutting_planes.master import FirstStage
    from decomp_drivers.cutting_planes.subproblem import SecondStage
    from decomp_drivers.config import load_config

    assert hasattr(m, "__version__")
    assert callable(load_config)
    assert callable(m.admm)
    assert callable(m.cutting_planes)
    # Abstract base classes import
    assert ADMMBlock
    assert FirstStage
    assert SecondStage
    assert ADMMSolver
    assert CuttingPlanesSolver
