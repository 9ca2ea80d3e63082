"""
Time loop for LLG runs: stepping, persistence and progress output.
"""

import sys
import time
import numpy as np
from typing import Optional, Dict, Any, TextIO
from tqdm import tqdm

from ..core.parameters import SimulationParameters
from ..core.chain import SimulationState, as_chain
from ..core.fast_ops import calculate_magnetization
from ..utils.io import TimeSeriesSink
from .stage_evaluator import ParallelStageEvaluator
from .integrators import Integrator, RK4Integrator

# Default reporting cadence per configuration
SINGLE_SPIN_REPORT_EVERY = 1
CHAIN_REPORT_EVERY = 50


class ProgressReporter:
    """
    Prints one text line per reported step.

    Single moment: ``t  mx  my  mz``. Chain: ``t  <mz>``.
    """

    def __init__(
        self,
        every: Optional[int] = None,
        mode: str = "auto",
        stream: Optional[TextIO] = None,
        progress_bar: bool = False
    ):
        """
        Initialize progress reporter.

        Args:
            every: Steps between reports (None = 1 for a single moment, 50 for a chain)
            mode: "single", "chain" or "auto" (decided from the chain length)
            stream: Output stream (default: stdout)
            progress_bar: Show a tqdm bar and route lines through tqdm.write
        """
        if every is not None and every < 1:
            raise ValueError(f"Reporting interval must be at least 1, got {every}")
        if mode not in ("auto", "single", "chain"):
            raise ValueError(f"Unknown progress mode: {mode}")

        self.every = every
        self.mode = mode
        self.stream = stream
        self.progress_bar = progress_bar
        self._pbar = None

    def _resolve(self, n_sites: int):
        mode = self.mode
        if mode == "auto":
            mode = "single" if n_sites == 1 else "chain"
        every = self.every
        if every is None:
            every = SINGLE_SPIN_REPORT_EVERY if mode == "single" else CHAIN_REPORT_EVERY
        return mode, every

    def start(self, total_steps: int):
        if self.progress_bar:
            self._pbar = tqdm(total=total_steps, desc="LLG Steps", file=sys.stderr)

    def format_line(self, state: SimulationState) -> str:
        mode, _ = self._resolve(state.chain.shape[0])
        if mode == "single":
            mx, my, mz = state.chain[0]
            return f"{state.time:.3e}\t{mx:.6e}\t{my:.6e}\t{mz:.6e}"
        mean_mz = calculate_magnetization(state.chain)[2]
        return f"{state.time:.3e}\t{mean_mz:.6e}"

    def report(self, state: SimulationState):
        """Emit a line if this step falls on the reporting cadence."""
        _, every = self._resolve(state.chain.shape[0])
        if state.step % every != 0:
            return

        line = self.format_line(state)
        if self._pbar is not None:
            tqdm.write(line, file=self.stream)
        else:
            print(line, file=self.stream)

    def advance(self):
        if self._pbar is not None:
            self._pbar.update(1)

    def finish(self):
        if self._pbar is not None:
            self._pbar.close()
            self._pbar = None


class SimulationDriver:
    """
    Owns the time loop of one LLG run.

    Each iteration reports progress, hands the current chain to the sink at
    its absolute time index and advances one RK4 step. A run writes
    ``n_steps + 1`` slices (t = 0 .. n_steps).
    """

    def __init__(
        self,
        parameters: SimulationParameters,
        initial_chain: np.ndarray,
        sink: Optional[TimeSeriesSink] = None,
        reporter: Optional[ProgressReporter] = None,
        stage_evaluator: Optional[ParallelStageEvaluator] = None,
        integrator: Optional[Integrator] = None
    ):
        """
        Initialize simulation driver.

        Args:
            parameters: Simulation parameters
            initial_chain: (n_sites, 3) unit moments at t = 0
            sink: Optional time-series sink
            reporter: Optional progress reporter
            stage_evaluator: Evaluator to use (default: Numba backend)
            integrator: Integrator to use (default: RK4)
        """
        self.parameters = parameters
        chain = as_chain(initial_chain)

        if not parameters.exchange and chain.shape[0] != 1:
            raise ValueError(f"Uncoupled run expects a single moment, "
                             f"got chain of length {chain.shape[0]}")

        self.sink = sink
        self.reporter = reporter

        self._owns_evaluator = stage_evaluator is None and integrator is None
        if integrator is None:
            if stage_evaluator is None:
                stage_evaluator = ParallelStageEvaluator(parameters)
            integrator = RK4Integrator(stage_evaluator)
        self.integrator = integrator

        self._chain = chain
        self.step_count = 0
        self.timing_info = {}

        self._check_sink()

    @property
    def n_sites(self) -> int:
        return self._chain.shape[0]

    @property
    def chain(self) -> np.ndarray:
        return self._chain

    @property
    def time(self) -> float:
        return self.step_count * self.parameters.dt

    @property
    def state(self) -> SimulationState:
        return SimulationState(self.step_count, self.time, self._chain)

    def _check_sink(self):
        """Reject a sink whose declared dimensions do not match this run."""
        if self.sink is None or not self.sink.is_open:
            return
        if self.sink.chain_length != self.n_sites:
            raise ValueError(f"Sink chain length {self.sink.chain_length} does not "
                             f"match chain length {self.n_sites}")
        if self.sink.total_steps != self.parameters.n_steps:
            raise ValueError(f"Sink step count {self.sink.total_steps} does not "
                             f"match run step count {self.parameters.n_steps}")

    def step(self) -> np.ndarray:
        """Advance one RK4 step and return the new chain."""
        self._chain = self.integrator.step(self._chain, self.parameters.dt)
        self.step_count += 1
        return self._chain

    def run(self) -> Dict[str, Any]:
        """
        Run the full time loop.

        Returns:
            Dictionary with the final chain, time, step count and timing
        """
        n_steps = self.parameters.n_steps
        created_series = False

        start_time = time.time()

        try:
            if self.sink is not None and not self.sink.is_open:
                self.sink.create_series(n_steps, self.n_sites)
                created_series = True
            if self.reporter is not None:
                self.reporter.start(n_steps)

            while True:
                state = self.state
                if self.reporter is not None:
                    self.reporter.report(state)
                if self.sink is not None:
                    self.sink.write_slice(state.step, state.chain.reshape(-1))

                if self.step_count >= n_steps:
                    break

                self.step()
                if self.reporter is not None:
                    self.reporter.advance()
        finally:
            if self.reporter is not None:
                self.reporter.finish()
            if created_series:
                self.sink.close()
            if self._owns_evaluator:
                self.integrator.stage_evaluator.close()

        total_run_time = time.time() - start_time
        self.timing_info = {
            'total_time': total_run_time,
            'time_per_step': total_run_time / n_steps if n_steps > 0 else 0.0,
            'simulated_time': self.time
        }

        return {
            'final_chain': self._chain.copy(),
            'final_time': self.time,
            'steps': self.step_count,
            'final_magnetization': calculate_magnetization(self._chain),
            'timing': self.timing_info
        }

    def __repr__(self) -> str:
        return (f"SimulationDriver(n_sites={self.n_sites}, "
                f"dt={self.parameters.dt:.2e}, steps={self.step_count})")


def simulate(
    parameters: SimulationParameters,
    initial_chain: np.ndarray,
    sink: Optional[TimeSeriesSink] = None,
    report_every: Optional[int] = None,
    verbose: bool = False,
    n_workers: Optional[int] = None,
    backend: str = "numba"
) -> Dict[str, Any]:
    """
    Integrate an initial chain for ``parameters.n_steps`` steps.

    Args:
        parameters: Simulation parameters
        initial_chain: (n_sites, 3) unit moments
        sink: Optional time-series sink
        report_every: Reporting cadence (None = configuration default)
        verbose: Print progress lines
        n_workers: Worker threads per stage
        backend: Stage evaluator backend

    Returns:
        Results dictionary from ``SimulationDriver.run``
    """
    reporter = ProgressReporter(every=report_every) if verbose else None
    with ParallelStageEvaluator(parameters, n_workers=n_workers, backend=backend) as evaluator:
        driver = SimulationDriver(parameters, initial_chain, sink=sink,
                                  reporter=reporter, stage_evaluator=evaluator)
        return driver.run()
