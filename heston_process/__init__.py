"""Heston stochastic-volatility process: drift, diffusion and step evolution
under Euler, partial/full truncation, reflection and exact-variance schemes."""
from .market import Actual360, Actual365Fixed, Compounding, FlatForward, SimpleQuote, ZeroCurve
from .models import (
    Discretization,
    HestonProcess,
    ModelParameters,
    State,
    UnsupportedDiscretizationError,
)
from .simulation import PathSimulator

__version__ = "0.1.0"

__all__ = [
    "Actual360",
    "Actual365Fixed",
    "Compounding",
    "FlatForward",
    "SimpleQuote",
    "ZeroCurve",
    "Discretization",
    "HestonProcess",
    "ModelParameters",
    "State",
    "UnsupportedDiscretizationError",
    "PathSimulator",
]
