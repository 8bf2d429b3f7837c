import math

import numpy as np
import pytest

from conftest import EnvelopeFirstStage, NewsvendorRecourse, newsvendor_scenarios


def test_newsvendor_profit_form_converges(scenarios):
    from decomp_drivers import SolveStatus, cutting_planes

    fs = EnvelopeFirstStage()
    res = cutting_planes(fs, NewsvendorRecourse(), scenarios, initial_bound=2000.0)

    assert res.status == SolveStatus.OPTIMAL
    assert res.x[0] == pytest.approx(100.0, abs=1e-6)
    assert res.outer_bound == pytest.approx(800.0 / 3.0, rel=1e-6)
    assert res.inner_bound == pytest.approx(800.0 / 3.0, rel=1e-6)
    assert res.iterations == 5
    assert len(res.trace) == res.iterations
    # One cut per non-final iteration
    assert len(res.cuts) == res.iterations - 1
    assert fs.cuts_count() == len(res.cuts)


def test_outer_bound_is_monotone_and_dominates_inner(scenarios):
    from decomp_drivers import cutting_planes

    res = cutting_planes(EnvelopeFirstStage(), NewsvendorRecourse(), scenarios, initial_bound=2000.0)

    outers = [r.outer_bound for r in res.trace]
    assert outers[0] == pytest.approx(2000.0)
    assert all(b <= a + 1e-9 for a, b in zip(outers, outers[1:]))
    assert all(r.inner_bound <= r.outer_bound + 1e-9 for r in res.trace)


def test_cost_form_mirrors_profit_form(scenarios):
    from decomp_drivers import Sense, SolveStatus, cutting_planes

    res = cutting_planes(
        EnvelopeFirstStage(maximize=False),
        NewsvendorRecourse(maximize=False),
        scenarios,
        initial_bound=-2000.0,
    )
    assert res.status == SolveStatus.OPTIMAL
    assert res.sense == Sense.MIN
    assert res.x[0] == pytest.approx(100.0, abs=1e-6)
    assert res.outer_bound == pytest.approx(-800.0 / 3.0, rel=1e-6)
    outers = [r.outer_bound for r in res.trace]
    assert all(b >= a - 1e-9 for a, b in zip(outers, outers[1:]))


def test_cuts_pass_through_their_reference_point(scenarios):
    from decomp_drivers import cutting_planes

    res = cutting_planes(EnvelopeFirstStage(), NewsvendorRecourse(), scenarios, initial_bound=2000.0)

    by_iter = {r.iteration: r for r in res.trace}
    for cut in res.cuts:
        rec = by_iter[cut.iteration]
        assert cut.evaluate(cut.reference) == pytest.approx(cut.value)
        assert cut.value == pytest.approx(rec.value)
        np.testing.assert_allclose(cut.reference, rec.x)
        np.testing.assert_allclose(cut.slope, rec.slope)


def test_first_cut_matches_expected_linearization(scenarios):
    from decomp_drivers import cutting_planes

    res = cutting_planes(EnvelopeFirstStage(), NewsvendorRecourse(), scenarios, initial_bound=2000.0)

    # At x = 0 nothing is sold and every scenario has marginal revenue = price
    first = res.cuts[0]
    assert first.reference[0] == pytest.approx(0.0)
    assert first.value == pytest.approx(0.0)
    assert first.slope[0] == pytest.approx(10.0)


def test_scenario_order_does_not_change_result():
    from decomp_drivers import cutting_planes

    scens = newsvendor_scenarios((30.0, 75.0, 110.0, 160.0, 45.0))
    a = cutting_planes(EnvelopeFirstStage(), NewsvendorRecourse(), scens, initial_bound=2000.0)
    b = cutting_planes(EnvelopeFirstStage(), NewsvendorRecourse(), list(reversed(scens)), initial_bound=2000.0)

    assert a.iterations == b.iterations
    assert math.isclose(a.outer_bound, b.outer_bound, abs_tol=1e-9)
    assert math.isclose(a.inner_bound, b.inner_bound, abs_tol=1e-9)
    np.testing.assert_allclose(a.x, b.x, atol=1e-9)


@pytest.mark.parametrize("workers", [2, 3, 8])
def test_parallel_evaluation_matches_sequential(scenarios, workers):
    from decomp_drivers import cutting_planes

    seq = cutting_planes(EnvelopeFirstStage(), NewsvendorRecourse(), scenarios, initial_bound=2000.0)
    registry = []
    par = cutting_planes(
        EnvelopeFirstStage(),
        NewsvendorRecourse(registry=registry),
        scenarios,
        initial_bound=2000.0,
        workers=workers,
    )

    assert par.iterations == seq.iterations
    assert par.outer_bound == seq.outer_bound
    assert par.inner_bound == seq.inner_bound
    np.testing.assert_array_equal(par.x, seq.x)
    # One second-stage instance per worker, never more than the scenarios
    assert len(registry) == min(workers, len(scenarios))
    assert sum(sp.calls for sp in registry) == par.iterations * len(scenarios)


def test_zero_iterations_raises_without_solving(scenarios):
    from decomp_drivers import NonConvergence, cutting_planes

    fs = EnvelopeFirstStage()
    sp = NewsvendorRecourse()
    with pytest.raises(NonConvergence) as ei:
        cutting_planes(fs, sp, scenarios, initial_bound=2000.0, max_iter=0)
    assert ei.value.iterations == 0
    assert fs.solves == 0
    assert fs.initialized == 0
    assert sp.calls == 0


def test_iteration_budget_exhausted_returns_partial_result(scenarios):
    from decomp_drivers import NonConvergence, cutting_planes

    with pytest.raises(NonConvergence) as ei:
        cutting_planes(EnvelopeFirstStage(), NewsvendorRecourse(), scenarios, initial_bound=2000.0, max_iter=2)
    partial = ei.value.result
    assert partial is not None
    assert partial.iterations == 2
    assert len(partial.trace) == 2
    assert len(partial.cuts) == 2
    assert partial.outer_bound == pytest.approx(800.0)
    assert partial.x[0] == pytest.approx(200.0)


def test_failed_scenario_raises_solver_failure(scenarios):
    from decomp_drivers import SolverFailure, SolveStatus, cutting_planes

    with pytest.raises(SolverFailure) as ei:
        cutting_planes(EnvelopeFirstStage(), NewsvendorRecourse(fail_on="s1"), scenarios, initial_bound=2000.0)
    assert ei.value.scenario == "s1"
    assert ei.value.iteration == 1
    assert ei.value.status == SolveStatus.INFEASIBLE
    assert "s1" in str(ei.value)


def test_recourse_above_initial_bound_is_reported(scenarios):
    from decomp_drivers import InvalidBound, cutting_planes

    # Recourse is >= 2500 everywhere, so an upper bound of 2000 on theta is wrong
    with pytest.raises(InvalidBound) as ei:
        cutting_planes(EnvelopeFirstStage(), NewsvendorRecourse(offset=2500.0), scenarios, initial_bound=2000.0)
    assert ei.value.iteration == 1
    assert ei.value.bound == pytest.approx(2000.0)
    assert ei.value.value == pytest.approx(2500.0)


def test_bound_check_can_be_disabled(scenarios):
    from decomp_drivers import NonConvergence, cutting_planes

    # theta stays pinned at the wrong bound, so the gap never closes
    with pytest.raises(NonConvergence) as ei:
        cutting_planes(
            EnvelopeFirstStage(),
            NewsvendorRecourse(offset=2500.0),
            scenarios,
            initial_bound=2000.0,
            max_iter=3,
            check_bound=False,
        )
    assert [r.inner_bound for r in ei.value.result.trace] == pytest.approx([2500.0] * 3)


def test_weights_length_mismatch(scenarios):
    from decomp_drivers import cutting_planes
    from decomp_drivers.errors import DimensionError

    with pytest.raises(DimensionError):
        cutting_planes(EnvelopeFirstStage(), NewsvendorRecourse(), scenarios, weights=[0.5, 0.5], initial_bound=2000.0)


def test_missing_probability_without_weights():
    from decomp_drivers import Scenario, cutting_planes

    scens = [Scenario("a", {"demand": 50.0}), Scenario("b", {"demand": 150.0})]
    with pytest.raises(ValueError):
        cutting_planes(EnvelopeFirstStage(), NewsvendorRecourse(), scens, initial_bound=2000.0)
    res = cutting_planes(EnvelopeFirstStage(), NewsvendorRecourse(), scens, weights=[0.5, 0.5], initial_bound=2000.0)
    # Critical ratio (p - c) / (p - s) = 0.5 puts any order in [50, 150] at the optimum
    assert 50.0 - 1e-6 <= res.x[0] <= 150.0 + 1e-6
    assert res.outer_bound == pytest.approx(200.0, rel=1e-6)


def test_empty_scenarios_rejected():
    from decomp_drivers import cutting_planes

    with pytest.raises(ValueError):
        cutting_planes(EnvelopeFirstStage(), NewsvendorRecourse(), [], initial_bound=2000.0)


def test_time_limit_returns_partial_result(scenarios):
    from decomp_drivers import SolveStatus, cutting_planes

    res = cutting_planes(
        EnvelopeFirstStage(delay=0.05),
        NewsvendorRecourse(),
        scenarios,
        initial_bound=2000.0,
        time_limit_s=0.01,
    )
    assert res.status == SolveStatus.TIME_LIMIT
    assert res.iterations <= 1
    assert len(res.trace) == res.iterations


def test_repeated_runs_start_from_a_fresh_first_stage(scenarios):
    from decomp_drivers import cutting_planes

    fs = EnvelopeFirstStage()
    a = cutting_planes(fs, NewsvendorRecourse(), scenarios, initial_bound=2000.0)
    b = cutting_planes(fs, NewsvendorRecourse(), scenarios, initial_bound=2000.0)
    assert fs.initialized == 2
    assert a.iterations == b.iterations
    assert a.outer_bound == b.outer_bound


class SerialRecourse(NewsvendorRecourse):
    thread_safe = False

    def spawn(self):
        return SerialRecourse(self.salvage, self.maximize, self.offset, self.fail_on, self.registry)


def test_thread_unsafe_second_stage_is_evaluated_sequentially(scenarios, caplog):
    from decomp_drivers import cutting_planes

    seq = cutting_planes(EnvelopeFirstStage(), NewsvendorRecourse(), scenarios, initial_bound=2000.0)
    registry = []
    with caplog.at_level("WARNING", logger="decomp_drivers.cutting_planes.solver"):
        res = cutting_planes(
            EnvelopeFirstStage(),
            SerialRecourse(registry=registry),
            scenarios,
            initial_bound=2000.0,
            workers=3,
        )

    # No copies spawned: the original instance answers every scenario
    assert len(registry) == 1
    assert registry[0].calls == res.iterations * len(scenarios)
    assert res.iterations == seq.iterations
    assert res.outer_bound == seq.outer_bound
    np.testing.assert_array_equal(res.x, seq.x)
    assert "not thread-safe" in caplog.text


def test_second_stage_exception_is_chained(scenarios):
    from decomp_drivers import SolverFailure, SolveStatus, cutting_planes

    class Raising(NewsvendorRecourse):
        def evaluate(self, x, scenario):
            if scenario.name == "s2":
                raise SolverFailure("solver raised ApplicationError: boom", status=SolveStatus.ERROR)
            return super().evaluate(x, scenario)

    with pytest.raises(SolverFailure) as ei:
        cutting_planes(EnvelopeFirstStage(), Raising(), scenarios, initial_bound=2000.0)
    assert ei.value.scenario == "s2"
    assert ei.value.iteration == 1
    assert ei.value.status == SolveStatus.ERROR
    assert isinstance(ei.value.__cause__, SolverFailure)
