# heston_process.utils package initialization
from .distributions import InverseNonCentralChiSquare, cumulative_normal

__all__ = ["InverseNonCentralChiSquare", "cumulative_normal"]
