"""heston_process/models/dynamics.py

Drift, diffusion and log-price map of the Heston SDE

    dS = (r - q) S dt + sqrt(v) S dW_S
    dv = kappa (theta - v) dt + sigma sqrt(v) dW_v,    dW_S dW_v = rho dt

written for the state (S, v) with the price factor expressed in log space:
the first drift component is the log-price drift and ``log_price_map``
turns a (log-price, variance) increment back into an absolute state.

All functions are stateless; the rate spread r - q is passed in explicitly
so they can be evaluated without any curve objects.
"""
from __future__ import annotations

import math
from typing import Sequence

import numpy as np

from .parameters import ModelParameters
from .types import Discretization, State

# Diffusion uses this instead of a zero volatility so the correlation
# structure of the matrix survives at the boundary.
VOLATILITY_FLOOR = 1.0e-8


def _volatility(variance: float, discretization: Discretization, floor: float) -> float:
    if variance > 0.0:
        return math.sqrt(variance)
    if discretization is Discretization.REFLECTION:
        return -math.sqrt(-variance)
    return floor


def drift_vector(
    rate_spread: float,
    x: Sequence[float],
    params: ModelParameters,
    discretization: Discretization = Discretization.EULER,
) -> np.ndarray:
    """Instantaneous drift of (log S, v).

    Parameters
    ----------
    rate_spread : float
        Instantaneous risk-free forward minus dividend forward, r(t) - q(t).
    x : sequence of float
        Current state (price, variance).
    params : ModelParameters
    discretization : Discretization
        Under REFLECTION a negative variance gives a negative volatility;
        under PARTIAL_TRUNCATION the mean-reversion term uses the raw
        variance instead of vol^2.

    Returns
    -------
    drift : np.ndarray, shape (2,)
    """
    variance = float(x[1])
    vol = _volatility(variance, discretization, 0.0)
    mean_reverting = variance if discretization is Discretization.PARTIAL_TRUNCATION else vol * vol
    return np.array(
        [
            rate_spread - 0.5 * vol * vol,
            params.kappa * (params.theta - mean_reverting),
        ],
        dtype=float,
    )


def diffusion_matrix(
    x: Sequence[float],
    params: ModelParameters,
    discretization: Discretization = Discretization.EULER,
) -> np.ndarray:
    """Diffusion matrix of (log S, v) with respect to two independent shocks.

    The square root of the correlation matrix is scaled row-wise by the
    factor volatilities (vol for log S, sigma * vol for v):

        | vol                  0                            |
        | rho * sigma * vol    sqrt(1 - rho^2) * sigma * vol |

    Returns
    -------
    diffusion : np.ndarray, shape (2, 2)
    """
    vol = _volatility(float(x[1]), discretization, VOLATILITY_FLOOR)
    rho, sqrhov = params.correlation_sqrt
    sigma2 = params.sigma * vol
    return np.array(
        [
            [vol, 0.0],
            [rho * sigma2, sqrhov * sigma2],
        ],
        dtype=float,
    )


def log_price_map(x0: Sequence[float], dx: Sequence[float]) -> State:
    """Apply a (log-price, variance) increment to a state.

    The price is multiplied by exp(dx[0]) and therefore stays strictly
    positive for any finite increment; the variance is shifted additively.
    """
    return State(float(x0[0]) * math.exp(float(dx[0])), float(x0[1]) + float(dx[1]))
