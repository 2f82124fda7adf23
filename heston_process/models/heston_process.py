"""heston_process/models/heston_process.py

HestonProcess: public surface of the Heston state-evolution engine.

The process bundles the model parameters, the discretization selector and
read-only references to the market collaborators (risk-free curve,
dividend curve, spot quote). It exposes the generic drift/diffusion pair
for callers running their own first-order scheme and a dedicated
``evolve`` that dispatches to the selected step scheme.

Market data is re-read on every call; nothing is cached, so updating the
spot quote or swapping curve contents is visible on the next call.
"""
from __future__ import annotations

import datetime
import logging
import math
from typing import Sequence

import numpy as np

from ..market.quotes import SimpleQuote
from ..market.term_structures import YieldTermStructure
from .discretization import evolve_state, forward_rate_spread
from .dynamics import diffusion_matrix, drift_vector, log_price_map
from .parameters import ModelParameters
from .types import Discretization, State

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


class HestonProcess:
    """Two-factor Heston process for the state (S, v).

    Parameters
    ----------
    risk_free_rate : YieldTermStructure
        Curve supplying the risk-free forward rate.
    dividend_yield : YieldTermStructure
        Curve supplying the dividend forward rate.
    s0 : SimpleQuote
        Quote supplying the current spot level.
    v0 : float
        Initial variance.
    kappa : float
        Mean-reversion speed of the variance.
    theta : float
        Long-run variance.
    sigma : float
        Volatility of variance.
    rho : float
        Correlation between the price and variance shocks.
    discretization : Discretization, int or str, default Discretization.EULER
        Scheme used by ``evolve``. Anything other than the five schemes
        raises UnsupportedDiscretizationError here, before any evolution.
    """

    def __init__(
        self,
        risk_free_rate: YieldTermStructure,
        dividend_yield: YieldTermStructure,
        s0: SimpleQuote,
        v0: float,
        kappa: float,
        theta: float,
        sigma: float,
        rho: float,
        discretization: "Discretization | int | str" = Discretization.EULER,
    ) -> None:
        self._risk_free_rate = risk_free_rate
        self._dividend_yield = dividend_yield
        self._s0 = s0
        self._parameters = ModelParameters(v0=v0, kappa=kappa, theta=theta, sigma=sigma, rho=rho)
        self._discretization = Discretization.coerce(discretization)

        logger.debug(
            "HestonProcess created: %s, discretization=%s, feller=%s",
            self._parameters,
            self._discretization.name,
            self._parameters.feller_satisfied,
        )

    # -- accessors -----------------------------------------------------

    @property
    def s0(self) -> SimpleQuote:
        return self._s0

    @property
    def risk_free_rate(self) -> YieldTermStructure:
        return self._risk_free_rate

    @property
    def dividend_yield(self) -> YieldTermStructure:
        return self._dividend_yield

    @property
    def parameters(self) -> ModelParameters:
        return self._parameters

    @property
    def discretization(self) -> Discretization:
        return self._discretization

    @property
    def v0(self) -> float:
        return self._parameters.v0

    @property
    def kappa(self) -> float:
        return self._parameters.kappa

    @property
    def theta(self) -> float:
        return self._parameters.theta

    @property
    def sigma(self) -> float:
        return self._parameters.sigma

    @property
    def rho(self) -> float:
        return self._parameters.rho

    def size(self) -> int:
        """Dimension of the state."""
        return 2

    def factors(self) -> int:
        """Number of independent shocks consumed per step."""
        return 2

    def time(self, date: datetime.date) -> float:
        """Year fraction from the risk-free curve's reference date to ``date``."""
        return self._risk_free_rate.day_counter.year_fraction(self._risk_free_rate.reference_date, date)

    # -- generic drift / diffusion ---------------------------------------

    def initial_values(self) -> State:
        return State(self._s0.value(), self._parameters.v0)

    def drift(self, t: float, x: Sequence[float]) -> np.ndarray:
        """Instantaneous drift of (log S, v) at time t."""
        rate_spread = forward_rate_spread(self._risk_free_rate, self._dividend_yield, t, t)
        return drift_vector(rate_spread, x, self._parameters, self._discretization)

    def diffusion(self, t: float, x: Sequence[float]) -> np.ndarray:
        """Diffusion matrix of (log S, v); independent of t."""
        return diffusion_matrix(x, self._parameters, self._discretization)

    def apply(self, x0: Sequence[float], dx: Sequence[float]) -> State:
        """Add a (log-price, variance) increment to ``x0``."""
        return log_price_map(x0, dx)

    def expectation(self, t0: float, x0: Sequence[float], dt: float) -> State:
        """Euler estimate of the state at t0 + dt with zero shocks."""
        return self.apply(x0, self.drift(t0, x0) * dt)

    def std_deviation(self, t0: float, x0: Sequence[float], dt: float) -> np.ndarray:
        """Euler standard-deviation matrix over [t0, t0 + dt]."""
        return self.diffusion(t0, x0) * math.sqrt(dt)

    def covariance(self, t0: float, x0: Sequence[float], dt: float) -> np.ndarray:
        """Euler covariance of the (log S, v) increment over [t0, t0 + dt]."""
        sigma = self.diffusion(t0, x0)
        return sigma.dot(sigma.T) * dt

    # -- evolution -----------------------------------------------------

    def evolve(self, t0: float, x0: Sequence[float], dt: float, dw: Sequence[float]) -> State:
        """State at t0 + dt given the state ``x0`` at t0 and two independent N(0,1) shocks.

        Parameters
        ----------
        t0 : float
            Start of the step (years from the curves' reference date).
        x0 : sequence of float
            Current (price, variance).
        dt : float
            Step length, >= 0.
        dw : sequence of float
            Two independent standard-normal draws for this step.

        Returns
        -------
        State
        """
        if self._discretization is Discretization.EULER:
            return self.apply(self.expectation(t0, x0, dt), self.std_deviation(t0, x0, dt).dot(np.asarray(dw, dtype=float)))
        return evolve_state(
            self._discretization,
            t0,
            x0,
            dt,
            dw,
            self._parameters,
            self._risk_free_rate,
            self._dividend_yield,
        )

    def __repr__(self) -> str:
        p = self._parameters
        return (
            f"HestonProcess(v0={p.v0}, kappa={p.kappa}, theta={p.theta}, sigma={p.sigma}, "
            f"rho={p.rho}, discretization={self._discretization.name})"
        )
