#!/usr/bin/env python3
"""
Benchmark RK4 step throughput of SpinChain for different worker counts.
"""

import time
import numpy as np

from spinchain import SimulationParameters, ParallelStageEvaluator, RK4Integrator, random_chain


def benchmark_steps(parameters, chain, n_workers, backend, n_steps=200):
    """Time n_steps RK4 steps; returns seconds per step."""
    with ParallelStageEvaluator(parameters, n_workers=n_workers, backend=backend) as evaluator:
        integrator = RK4Integrator(evaluator)

        # Warm-up compiles the kernels
        integrator.step(chain, parameters.dt)

        start_time = time.time()
        state = chain
        for _ in range(n_steps):
            state = integrator.step(state, parameters.dt)
        total_time = time.time() - start_time

    return total_time / n_steps, state


def main():
    print("🚀 SpinChain RK4 benchmark")
    print("=" * 50)

    parameters = SimulationParameters(lattice_spacing=5e-9, dt=1e-13)

    for n_sites in (1_000, 100_000):
        chain = random_chain(n_sites, seed=0)
        print(f"\nChain length: {n_sites:,} sites")

        reference = None
        for backend in ("numba", "threads"):
            for n_workers in (1, 2, 4, 8):
                seconds, final = benchmark_steps(parameters, chain, n_workers, backend)
                if reference is None:
                    reference = final
                drift = np.max(np.abs(final - reference))
                print(f"  {backend:>7} x{n_workers}: {seconds * 1e3:8.3f} ms/step "
                      f"({n_sites / seconds:,.0f} sites/s, max diff {drift:.1e})")


if __name__ == "__main__":
    main()
