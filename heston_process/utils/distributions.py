"""heston_process/utils/distributions.py

Distribution helpers used by the exact-variance Heston step.

Provides:
- cumulative_normal(x): standard normal CDF.
- InverseNonCentralChiSquare: quantile of the non-central chi-squared law
  obtained by bracketing and Brent root finding with a bounded number of
  iterations.

This module uses scipy.stats for the distributions and scipy.optimize for
the root finder.
"""
from __future__ import annotations

import logging

from scipy.optimize import brentq
from scipy.stats import ncx2, norm

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


def cumulative_normal(x: float) -> float:
    """Standard normal cumulative distribution function Phi(x)."""
    return float(norm.cdf(x))


class InverseNonCentralChiSquare:
    """Quantile function of a non-central chi-squared distribution.

    Parameters
    ----------
    df : float
        Degrees of freedom (> 0).
    ncp : float
        Non-centrality parameter (>= 0).
    max_iterations : int, default 100
        Budget shared by the bracketing search and the Brent solver.
    accuracy : float, default 1e-8
        Absolute tolerance on the returned quantile.

    Notes
    -----
    The upper bound starts at the distribution mean ``df + ncp`` and is
    doubled until ``cdf(upper) >= p``; Brent's method then solves on
    ``[0, upper]`` (or ``[upper / 2, upper]`` after doubling) with whatever
    is left of the budget. When the budget runs out a ``RuntimeError`` is
    raised; no retries are attempted.
    """

    def __init__(self, df: float, ncp: float, max_iterations: int = 100, accuracy: float = 1.0e-8) -> None:
        if max_iterations <= 0:
            raise ValueError("max_iterations must be a positive integer")
        self.df = float(df)
        self.ncp = float(ncp)
        self.max_iterations = int(max_iterations)
        self.accuracy = float(accuracy)

    def cdf(self, x: float) -> float:
        return float(ncx2.cdf(x, self.df, self.ncp))

    def __call__(self, p: float) -> float:
        """Return x such that cdf(x) == p.

        Parameters
        ----------
        p : float
            Probability in [0, 1). Non-positive probabilities map to the
            lower end of the support, 0.
        """
        p = float(p)
        if p <= 0.0:
            return 0.0
        if p >= 1.0:
            raise ValueError(f"probability must be below 1, got {p}")

        upper = self.df + self.ncp
        if upper <= 0.0:
            upper = 1.0

        budget = self.max_iterations
        while self.cdf(upper) < p:
            upper *= 2.0
            budget -= 1
            if budget <= 0:
                raise RuntimeError("unable to bracket the non-central chi-squared quantile")
        # cdf(0) == 0 < p, so [0, upper] always brackets when upper was not moved
        lower = 0.0 if budget == self.max_iterations else 0.5 * upper

        logger.debug("Inverting ncx2(df=%g, ncp=%g) at p=%g on [%g, %g]", self.df, self.ncp, p, lower, upper)
        # brentq raises RuntimeError itself once maxiter is exceeded
        return float(
            brentq(
                lambda x: self.cdf(x) - p,
                lower,
                upper,
                xtol=self.accuracy,
                maxiter=budget,
            )
        )
