# heston_process.models package initialization
from .discretization import evolve_state
from .dynamics import diffusion_matrix, drift_vector, log_price_map
from .heston_process import HestonProcess
from .parameters import ModelParameters, correlation_sqrt
from .types import Discretization, State, UnsupportedDiscretizationError

__all__ = [
    "HestonProcess",
    "ModelParameters",
    "Discretization",
    "State",
    "UnsupportedDiscretizationError",
    "correlation_sqrt",
    "drift_vector",
    "diffusion_matrix",
    "log_price_map",
    "evolve_state",
]
