"""heston_process/models/discretization.py

Step-evolution schemes for the Heston process.

Each scheme is a free function with the signature

    step(x0, dt, dw, params, rate_spread) -> State

where ``rate_spread`` is the continuously-compounded risk-free forward
minus the dividend forward over the step (the instantaneous spread at t0
for EULER). ``evolve_state`` reads that spread from the curves and
dispatches on the ``Discretization`` selector.

The closed-form schemes (Euler, partial/full truncation, reflection) are
numba-jitted scalar kernels; ``_evolve_batch`` runs them over many paths
in parallel. The exact-variance scheme needs the non-central chi-squared
quantile from scipy and stays in Python.

References
----------
Lord, R., Koekkoek, R. and van Dijk, D. (2006). A comparison of biased
simulation schemes for stochastic volatility models. Tinbergen Institute
Working Paper.
"""
from __future__ import annotations

import logging
import math
from typing import Callable, Dict, Sequence

import numba as nb
import numpy as np

from ..market.term_structures import Compounding, YieldTermStructure
from ..utils.distributions import InverseNonCentralChiSquare, cumulative_normal
from .dynamics import diffusion_matrix, drift_vector, log_price_map
from .parameters import ModelParameters
from .types import Discretization, State

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

# Iteration budget handed to the quantile inversion of the exact scheme.
QUANTILE_MAX_ITERATIONS = 100

_EPSILON = float(np.finfo(float).eps)


@nb.njit
def _euler_kernel(price, variance, rate_spread, dt, dw0, dw1, kappa, theta, sigma, rho):
    """Generic Euler step: x0 mapped by drift * dt + diffusion @ dw * sqrt(dt)."""
    sdt = math.sqrt(dt)
    sqrhov = math.sqrt(1.0 - rho * rho)
    vol = math.sqrt(variance) if variance > 0.0 else 0.0
    # diffusion keeps a tiny volatility at the boundary
    dvol = vol if variance > 0.0 else 1.0e-8

    log_drift = rate_spread - 0.5 * vol * vol
    var_drift = kappa * (theta - vol * vol)

    next_price = price * math.exp(log_drift * dt + dvol * dw0 * sdt)
    next_variance = variance + var_drift * dt + sigma * dvol * sdt * (rho * dw0 + sqrhov * dw1)
    return next_price, next_variance


@nb.njit
def _truncation_kernel(price, variance, rate_spread, dt, dw0, dw1, kappa, theta, sigma, rho, partial):
    """Partial (``partial=True``) or full truncation step.

    Both floor the volatility at zero; they differ only in the
    mean-reversion term, kappa * (theta - v) versus kappa * (theta - vol^2).
    """
    sdt = math.sqrt(dt)
    sqrhov = math.sqrt(1.0 - rho * rho)
    vol = math.sqrt(variance) if variance > 0.0 else 0.0
    vol2 = sigma * vol

    mu = rate_spread - 0.5 * vol * vol
    if partial:
        nu = kappa * (theta - variance)
    else:
        nu = kappa * (theta - vol * vol)

    next_price = price * math.exp(mu * dt + vol * dw0 * sdt)
    next_variance = variance + nu * dt + vol2 * sdt * (rho * dw0 + sqrhov * dw1)
    return next_price, next_variance


@nb.njit
def _reflection_kernel(price, variance, rate_spread, dt, dw0, dw1, kappa, theta, sigma, rho):
    """Reflection step: the update starts from |v| rather than v."""
    sdt = math.sqrt(dt)
    sqrhov = math.sqrt(1.0 - rho * rho)
    vol = math.sqrt(abs(variance))
    vol2 = sigma * vol

    mu = rate_spread - 0.5 * vol * vol
    nu = kappa * (theta - vol * vol)

    next_price = price * math.exp(mu * dt + vol * dw0 * sdt)
    next_variance = vol * vol + nu * dt + vol2 * sdt * (rho * dw0 + sqrhov * dw1)
    return next_price, next_variance


@nb.njit(parallel=True)
def _evolve_batch(
    prices,
    variances,
    dw0,
    dw1,
    code,
    rate_spread,
    dt,
    kappa,
    theta,
    sigma,
    rho,
    out_prices,
    out_variances,
):
    """Advance a batch of independent paths by one step.

    ``code`` is the integer value of a closed-form ``Discretization``
    member (EULER, PARTIAL_TRUNCATION, FULL_TRUNCATION or REFLECTION).
    """
    n_paths = prices.shape[0]
    for i in nb.prange(n_paths):
        if code == 0:
            p, v = _euler_kernel(prices[i], variances[i], rate_spread, dt, dw0[i], dw1[i], kappa, theta, sigma, rho)
        elif code == 1:
            p, v = _truncation_kernel(
                prices[i], variances[i], rate_spread, dt, dw0[i], dw1[i], kappa, theta, sigma, rho, True
            )
        elif code == 2:
            p, v = _truncation_kernel(
                prices[i], variances[i], rate_spread, dt, dw0[i], dw1[i], kappa, theta, sigma, rho, False
            )
        else:
            p, v = _reflection_kernel(prices[i], variances[i], rate_spread, dt, dw0[i], dw1[i], kappa, theta, sigma, rho)
        out_prices[i] = p
        out_variances[i] = v


def euler_step(x0: State, dt: float, dw: Sequence[float], params: ModelParameters, rate_spread: float) -> State:
    """First-order scheme driven by the generic drift and diffusion."""
    shocks = np.asarray(dw, dtype=float)
    dx = drift_vector(rate_spread, x0, params) * dt + diffusion_matrix(x0, params).dot(shocks) * math.sqrt(dt)
    return log_price_map(x0, dx)


def partial_truncation_step(x0: State, dt: float, dw: Sequence[float], params: ModelParameters, rate_spread: float) -> State:
    return State(
        *_truncation_kernel(
            float(x0[0]), float(x0[1]), float(rate_spread), float(dt), float(dw[0]), float(dw[1]),
            params.kappa, params.theta, params.sigma, params.rho, True,
        )
    )


def full_truncation_step(x0: State, dt: float, dw: Sequence[float], params: ModelParameters, rate_spread: float) -> State:
    return State(
        *_truncation_kernel(
            float(x0[0]), float(x0[1]), float(rate_spread), float(dt), float(dw[0]), float(dw[1]),
            params.kappa, params.theta, params.sigma, params.rho, False,
        )
    )


def reflection_step(x0: State, dt: float, dw: Sequence[float], params: ModelParameters, rate_spread: float) -> State:
    return State(
        *_reflection_kernel(
            float(x0[0]), float(x0[1]), float(rate_spread), float(dt), float(dw[0]), float(dw[1]),
            params.kappa, params.theta, params.sigma, params.rho,
        )
    )


def exact_variance_step(
    x0: State,
    dt: float,
    dw: Sequence[float],
    params: ModelParameters,
    rate_spread: float,
    max_iterations: int = QUANTILE_MAX_ITERATIONS,
) -> State:
    """Exact variance sampling with a decorrelated log-price update.

    With y = log S - (rho / sigma) v the shocks driving y and v are
    independent. v is drawn from its scaled non-central chi-squared
    transition law by inverting the quantile at Phi(dw[1]); y then moves
    by its conditional Gaussian increment driven by dw[0] and the price
    is recovered from y and the new variance.
    """
    price, variance = float(x0[0]), float(x0[1])
    if dt == 0.0:
        # the transition law is a point mass at the current state
        return State(price, variance)

    kappa, theta, sigma, rho = params.kappa, params.theta, params.sigma, params.rho
    sdt = math.sqrt(dt)
    sqrhov = math.sqrt(1.0 - rho * rho)
    decay = math.exp(-kappa * dt)

    df = 4.0 * theta * kappa / (sigma * sigma)
    ncp = 4.0 * kappa * decay / (sigma * sigma * (1.0 - decay)) * variance

    p = cumulative_normal(dw[1])
    if p < 0.0:
        p = 0.0
    elif p >= 1.0:
        p = 1.0 - _EPSILON

    quantile = InverseNonCentralChiSquare(df, ncp, max_iterations=max_iterations)
    next_variance = sigma * sigma * (1.0 - decay) / (4.0 * kappa) * quantile(p)

    vol = math.sqrt(variance) if variance > 0.0 else 0.0
    mu = rate_spread - 0.5 * vol * vol
    dy = (mu - rho / sigma * kappa * (theta - vol * vol)) * dt + vol * sqrhov * float(dw[0]) * sdt

    next_price = price * math.exp(dy + rho / sigma * (next_variance - variance))
    return State(next_price, next_variance)


StepFunction = Callable[[State, float, Sequence[float], ModelParameters, float], State]

STEP_FUNCTIONS: Dict[Discretization, StepFunction] = {
    Discretization.EULER: euler_step,
    Discretization.PARTIAL_TRUNCATION: partial_truncation_step,
    Discretization.FULL_TRUNCATION: full_truncation_step,
    Discretization.REFLECTION: reflection_step,
    Discretization.EXACT_VARIANCE: exact_variance_step,
}


def forward_rate_spread(
    risk_free_rate: YieldTermStructure,
    dividend_yield: YieldTermStructure,
    t1: float,
    t2: float,
) -> float:
    """Continuously-compounded r(t1, t2) - q(t1, t2)."""
    return risk_free_rate.forward_rate(t1, t2, Compounding.CONTINUOUS) - dividend_yield.forward_rate(
        t1, t2, Compounding.CONTINUOUS
    )


def step_rate_spread(
    discretization: Discretization,
    risk_free_rate: YieldTermStructure,
    dividend_yield: YieldTermStructure,
    t0: float,
    dt: float,
) -> float:
    """Rate spread a scheme consumes for the step [t0, t0 + dt].

    The Euler scheme evaluates the instantaneous drift at t0; every other
    scheme uses the forward over the whole step.
    """
    if discretization is Discretization.EULER:
        return forward_rate_spread(risk_free_rate, dividend_yield, t0, t0)
    return forward_rate_spread(risk_free_rate, dividend_yield, t0, t0 + dt)


def evolve_state(
    discretization: "Discretization | int | str",
    t0: float,
    x0: Sequence[float],
    dt: float,
    dw: Sequence[float],
    params: ModelParameters,
    risk_free_rate: YieldTermStructure,
    dividend_yield: YieldTermStructure,
) -> State:
    """Advance ``x0`` from t0 to t0 + dt with the selected scheme.

    Raises
    ------
    UnsupportedDiscretizationError
        If ``discretization`` is not one of the five schemes.
    """
    scheme = Discretization.coerce(discretization)
    step = STEP_FUNCTIONS[scheme]
    rate_spread = step_rate_spread(scheme, risk_free_rate, dividend_yield, t0, dt)
    return step(State(float(x0[0]), float(x0[1])), dt, dw, params, rate_spread)
