"""heston_process/models/parameters.py

Heston model parameters and the square root of the 2x2 correlation matrix.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class ModelParameters:
    """Immutable Heston parameter set.

    Parameters
    ----------
    v0 : float
        Initial variance.
    kappa : float
        Mean-reversion speed of the variance process.
    theta : float
        Long-run variance level.
    sigma : float
        Volatility of variance (vol-of-vol).
    rho : float
        Correlation between the price and variance shocks.

    Notes
    -----
    No stability conditions are enforced here; callers are expected to
    supply a sensible parameter set. ``feller_satisfied`` is informational.
    """

    v0: float
    kappa: float
    theta: float
    sigma: float
    rho: float

    def __post_init__(self) -> None:
        for name in ("v0", "kappa", "theta", "sigma", "rho"):
            object.__setattr__(self, name, float(getattr(self, name)))

    @property
    def feller_satisfied(self) -> bool:
        """True when 2 * kappa * theta > sigma^2 (variance stays away from zero)."""
        return 2.0 * self.kappa * self.theta > self.sigma * self.sigma

    @property
    def correlation_sqrt(self) -> Tuple[float, float]:
        return correlation_sqrt(self.rho)


def correlation_sqrt(rho: float) -> Tuple[float, float]:
    """Lower row of the square root of the correlation matrix.

    The correlation matrix

        | 1    rho |
        | rho  1   |

    has the (Cholesky) square root

        | 1    0               |
        | rho  sqrt(1 - rho^2) |

    so a pair of independent shocks (z0, z1) becomes correlated as
    (z0, rho * z0 + sqrt(1 - rho^2) * z1).

    Returns
    -------
    (rho, sqrt(1 - rho^2)) : tuple of float
        NaN in the second slot when |rho| > 1.
    """
    rho = float(rho)
    one_minus_rho2 = 1.0 - rho * rho
    if one_minus_rho2 < 0.0:
        return rho, math.nan
    return rho, math.sqrt(one_minus_rho2)
