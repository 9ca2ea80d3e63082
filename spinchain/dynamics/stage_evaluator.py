"""
Data-parallel evaluation of the LLG right-hand side over a chain.
"""

import numpy as np
from typing import Optional, List, Tuple
from concurrent.futures import ThreadPoolExecutor
import multiprocessing as mp

import numba

from ..core.parameters import SimulationParameters
from ..core.fast_ops import stage_rhs, stage_rhs_block, max_threads


class ParallelStageEvaluator:
    """
    Computes the LLG right-hand side at every site of a chain snapshot.

    Each site depends only on the read-only snapshot (itself and its two
    neighbours) and writes its own output row, so sites are evaluated
    concurrently and the result is independent of the worker count.
    ``evaluate`` returns only after every site is done, which is the
    barrier between RK4 stages.

    Two backends are available:

    - ``"numba"``: one ``prange`` kernel run on ``n_workers`` Numba threads.
    - ``"threads"``: a thread pool; one future per contiguous block of
      sites, each running a GIL-free Numba kernel, joined before returning.
    """

    BACKENDS = ("numba", "threads")

    def __init__(
        self,
        parameters: SimulationParameters,
        n_workers: Optional[int] = None,
        backend: str = "numba"
    ):
        """
        Initialize stage evaluator.

        Args:
            parameters: Simulation parameters (field, exchange, γ, α)
            n_workers: Number of worker threads (None = all available)
            backend: "numba" or "threads"
        """
        if backend not in self.BACKENDS:
            raise ValueError(f"Unknown backend: {backend}. Must be one of {self.BACKENDS}")
        if n_workers is not None and n_workers < 1:
            raise ValueError(f"Number of workers must be at least 1, got {n_workers}")

        self.parameters = parameters
        self.backend = backend

        if backend == "numba":
            limit = max_threads()
        else:
            limit = mp.cpu_count()
        self.n_workers = limit if n_workers is None else min(n_workers, limit)

        self._executor = None
        if backend == "threads":
            self._executor = ThreadPoolExecutor(max_workers=self.n_workers)

    def evaluate(self, chain: np.ndarray) -> np.ndarray:
        """
        LLG right-hand side at every site.

        Args:
            chain: (n_sites, 3) moment snapshot

        Returns:
            (n_sites, 3) derivatives dm/dt in site order
        """
        if chain.ndim != 2 or chain.shape[1] != 3:
            raise ValueError(f"Chain must have shape (n_sites, 3), got {chain.shape}")

        chain = np.ascontiguousarray(chain, dtype=np.float64)

        if self.backend == "numba":
            return self._evaluate_numba(chain)
        return self._evaluate_threads(chain)

    __call__ = evaluate

    def _evaluate_numba(self, chain: np.ndarray) -> np.ndarray:
        p = self.parameters
        previous = numba.get_num_threads()
        numba.set_num_threads(self.n_workers)
        try:
            return stage_rhs(chain, p.h_ext, p.exchange_coefficient, p.exchange,
                             p.gamma, p.alpha)
        finally:
            numba.set_num_threads(previous)

    def _evaluate_threads(self, chain: np.ndarray) -> np.ndarray:
        if self._executor is None:
            raise RuntimeError("Stage evaluator has been closed")

        p = self.parameters
        derivatives = np.zeros_like(chain)

        futures = [
            self._executor.submit(
                stage_rhs_block, chain, start, stop, p.h_ext,
                p.exchange_coefficient, p.exchange, p.gamma, p.alpha, derivatives
            )
            for start, stop in self._blocks(chain.shape[0])
        ]

        # Join every block before the next stage may read the result
        for future in futures:
            future.result()

        return derivatives

    def _blocks(self, n_sites: int) -> List[Tuple[int, int]]:
        """Split [0, n_sites) into at most n_workers contiguous blocks."""
        n_blocks = min(self.n_workers, n_sites)
        edges = np.linspace(0, n_sites, n_blocks + 1).astype(int)
        return [(int(edges[b]), int(edges[b + 1])) for b in range(n_blocks)]

    def close(self):
        """Shut down the worker pool, if any."""
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def __repr__(self) -> str:
        return (f"ParallelStageEvaluator(backend={self.backend!r}, "
                f"n_workers={self.n_workers})")
