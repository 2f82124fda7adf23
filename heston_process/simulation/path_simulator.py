"""heston_process/simulation/path_simulator.py

PathSimulator: drive a HestonProcess across a caller-supplied time grid for
many independent paths. Adds logging and progress bars.

The caller owns both the time grid and the random shocks; this module only
applies the process's step scheme to every path at every step. Closed-form
schemes run through the numba batch kernel, the exact-variance scheme is
evaluated path by path.
"""
from __future__ import annotations

import logging
from typing import Sequence, Tuple

import numpy as np
from tqdm.auto import tqdm

from ..models.discretization import _evolve_batch, exact_variance_step, step_rate_spread
from ..models.heston_process import HestonProcess
from ..models.types import Discretization, State

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


class PathSimulator:
    """Batch evolution of Heston paths.

    Parameters
    ----------
    process : HestonProcess
        Process whose initial state, parameters, curves and discretization
        are used for every path.
    progress : bool, default True
        Show a tqdm progress bar over time steps.

    Notes
    -----
    Shocks are never drawn here. ``simulate`` expects an array of
    independent standard-normal pairs of shape (n_paths, n_steps, 2),
    typically produced by the caller's own generator.
    """

    def __init__(self, process: HestonProcess, progress: bool = True) -> None:
        self.process = process
        self.progress = bool(progress)

    def simulate(self, time_grid: Sequence[float], shocks: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """Simulate price and variance paths on ``time_grid``.

        Parameters
        ----------
        time_grid : sequence of float
            Non-decreasing times t_0 < ... < t_n (years), length n_steps + 1.
        shocks : np.ndarray, shape (n_paths, n_steps, 2)
            Independent N(0, 1) pairs; ``shocks[i, k]`` drives path i over
            [t_k, t_{k+1}].

        Returns
        -------
        S_paths : np.ndarray, shape (n_paths, n_steps + 1)
        v_paths : np.ndarray, shape (n_paths, n_steps + 1)
        """
        times = np.asarray(time_grid, dtype=float)
        dw = np.asarray(shocks, dtype=float)

        if times.ndim != 1 or times.size < 2:
            raise ValueError("time_grid must be a 1D array with at least two points")
        if np.any(np.diff(times) < 0.0):
            raise ValueError("time_grid must be non-decreasing")
        n_steps = times.size - 1
        if dw.ndim != 3 or dw.shape[1] != n_steps or dw.shape[2] != 2:
            raise ValueError(f"shocks must have shape (n_paths, {n_steps}, 2), got {dw.shape}")
        n_paths = dw.shape[0]
        if n_paths <= 0:
            raise ValueError("shocks must contain at least one path")

        process = self.process
        params = process.parameters
        scheme = process.discretization

        logger.info(
            "Starting Heston simulation: n_paths=%d, n_steps=%d, discretization=%s", n_paths, n_steps, scheme.name
        )

        S_paths = np.empty((n_paths, n_steps + 1), dtype=np.float64)
        v_paths = np.empty((n_paths, n_steps + 1), dtype=np.float64)
        x0 = process.initial_values()
        S_paths[:, 0] = x0.price
        v_paths[:, 0] = x0.variance

        out_prices = np.empty(n_paths, dtype=np.float64)
        out_variances = np.empty(n_paths, dtype=np.float64)

        for k in tqdm(range(n_steps), desc="Evolving Heston paths", unit="step", disable=not self.progress):
            t0 = float(times[k])
            dt = float(times[k + 1] - times[k])
            rate_spread = step_rate_spread(scheme, process.risk_free_rate, process.dividend_yield, t0, dt)

            if scheme is Discretization.EXACT_VARIANCE:
                for i in range(n_paths):
                    nxt = exact_variance_step(State(S_paths[i, k], v_paths[i, k]), dt, dw[i, k], params, rate_spread)
                    S_paths[i, k + 1] = nxt.price
                    v_paths[i, k + 1] = nxt.variance
            else:
                _evolve_batch(
                    np.ascontiguousarray(S_paths[:, k]),
                    np.ascontiguousarray(v_paths[:, k]),
                    np.ascontiguousarray(dw[:, k, 0]),
                    np.ascontiguousarray(dw[:, k, 1]),
                    scheme.value,
                    rate_spread,
                    dt,
                    params.kappa,
                    params.theta,
                    params.sigma,
                    params.rho,
                    out_prices,
                    out_variances,
                )
                S_paths[:, k + 1] = out_prices
                v_paths[:, k + 1] = out_variances

        logger.info("Completed Heston simulation")
        return S_paths, v_paths
