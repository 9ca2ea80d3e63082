"""Tests for the simulation driver and progress output."""

import io

import numpy as np
import pytest

from spinchain.core.chain import tilted_chain, random_chain
from spinchain.core.parameters import SimulationParameters
from spinchain.dynamics.driver import SimulationDriver, ProgressReporter, simulate
from spinchain.dynamics.integrators import RK4Integrator
from spinchain.dynamics.stage_evaluator import ParallelStageEvaluator
from spinchain.utils.io import ArrayTimeSeriesSink, HDF5TimeSeriesSink

SINGLE = SimulationParameters.single_spin(dt=1e-12, n_steps=5)
CHAIN = SimulationParameters(lattice_spacing=5e-9, dt=1e-13, n_steps=100)


def test_run_writes_every_time_index():
    sink = ArrayTimeSeriesSink()
    initial = random_chain(16, seed=4)

    results = SimulationDriver(CHAIN, initial, sink=sink).run()

    assert sink.data.shape == (CHAIN.n_steps + 1, 1, 1, 16, 3)
    assert not np.any(np.isnan(sink.data))
    np.testing.assert_allclose(sink.trajectory[0], initial, atol=1e-15)
    np.testing.assert_array_equal(sink.trajectory[-1], results['final_chain'])
    assert results['steps'] == CHAIN.n_steps
    assert results['final_time'] == pytest.approx(CHAIN.total_time)


def test_run_matches_manual_steps():
    initial = random_chain(8, seed=1)
    parameters = CHAIN.replace(n_steps=10)

    results = SimulationDriver(parameters, initial).run()

    integrator = RK4Integrator(ParallelStageEvaluator(parameters))
    chain = SimulationDriver(parameters, initial).chain
    for _ in range(parameters.n_steps):
        chain = integrator.step(chain, parameters.dt)
    np.testing.assert_allclose(results['final_chain'], chain, rtol=1e-12, atol=1e-15)


def test_step_advances_state():
    driver = SimulationDriver(SINGLE, tilted_chain(1, 30.0))
    initial = driver.chain.copy()

    driver.step()
    driver.step()

    state = driver.state
    assert state.step == 2
    assert state.time == pytest.approx(2e-12)
    assert not np.array_equal(state.chain, initial)


def test_zero_steps_writes_initial_state_only():
    sink = ArrayTimeSeriesSink()
    SimulationDriver(SINGLE.replace(n_steps=0), tilted_chain(1, 30.0), sink=sink).run()
    assert sink.trajectory.shape == (1, 1, 3)


def test_sink_chain_length_mismatch():
    sink = ArrayTimeSeriesSink()
    sink.create_series(CHAIN.n_steps, 5)

    with pytest.raises(ValueError, match="chain length 5 does not match chain length 4"):
        SimulationDriver(CHAIN, tilted_chain(4, 10.0), sink=sink)


def test_sink_step_count_mismatch():
    sink = ArrayTimeSeriesSink()
    sink.create_series(7, 4)

    with pytest.raises(ValueError, match="step count 7 does not match run step count 100"):
        SimulationDriver(CHAIN, tilted_chain(4, 10.0), sink=sink)


def test_owned_evaluator_closed_when_series_creation_fails(tmp_path):
    sink = HDF5TimeSeriesSink(tmp_path / "missing" / "out.h5")
    driver = SimulationDriver(CHAIN, tilted_chain(4, 10.0), sink=sink)
    closed = []
    driver.integrator.stage_evaluator.close = lambda: closed.append(True)

    with pytest.raises(RuntimeError, match="Cannot create output"):
        driver.run()
    assert closed == [True]
    assert not sink.is_open


def test_uncoupled_run_requires_single_moment():
    with pytest.raises(ValueError, match="single moment"):
        SimulationDriver(SINGLE, tilted_chain(3, 10.0))


@pytest.mark.parametrize("initial", [
    np.array([[1.0, 1.0, 0.0]]),
    np.zeros((2, 3)),
    np.array([[np.nan, 0.0, 1.0]]),
    np.ones((2, 4)),
])
def test_invalid_initial_chain(initial):
    with pytest.raises(ValueError):
        SimulationDriver(CHAIN, initial)


def test_single_spin_progress_lines():
    stream = io.StringIO()
    reporter = ProgressReporter(stream=stream)

    SimulationDriver(SINGLE.replace(n_steps=3), tilted_chain(1, 30.0), reporter=reporter).run()

    lines = stream.getvalue().splitlines()
    assert len(lines) == 4
    assert lines[0] == "0.000e+00\t5.000000e-01\t0.000000e+00\t8.660254e-01"
    assert lines[3].startswith("3.000e-12\t")
    assert all(len(line.split("\t")) == 4 for line in lines)


def test_chain_progress_every_fifty_steps():
    stream = io.StringIO()
    reporter = ProgressReporter(stream=stream)

    SimulationDriver(CHAIN, tilted_chain(8, 10.0), reporter=reporter).run()

    lines = stream.getvalue().splitlines()
    assert [line.split("\t")[0] for line in lines] == ["0.000e+00", "5.000e-12", "1.000e-11"]
    assert lines[0] == f"0.000e+00\t{np.cos(np.radians(10.0)):.6e}"


def test_progress_bar_still_prints_lines():
    stream = io.StringIO()
    reporter = ProgressReporter(every=2, stream=stream, progress_bar=True)

    SimulationDriver(SINGLE, tilted_chain(1, 30.0), reporter=reporter).run()

    assert len(stream.getvalue().splitlines()) == 3


def test_invalid_reporter():
    with pytest.raises(ValueError):
        ProgressReporter(every=0)
    with pytest.raises(ValueError):
        ProgressReporter(mode="verbose")


def test_simulate_backends_agree():
    initial = random_chain(32, seed=6)
    parameters = CHAIN.replace(n_steps=20)

    fast = simulate(parameters, initial, backend="numba", n_workers=2)
    pooled = simulate(parameters, initial, backend="threads", n_workers=3)

    np.testing.assert_allclose(pooled['final_chain'], fast['final_chain'],
                               rtol=1e-12, atol=1e-15)


def test_simulate_verbose(capsys):
    simulate(SINGLE, tilted_chain(1, 30.0), verbose=True, report_every=5)
    out = capsys.readouterr().out.splitlines()
    assert len(out) == 2
