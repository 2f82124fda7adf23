# heston_process.simulation package initialization
from .path_simulator import PathSimulator

__all__ = ["PathSimulator"]
