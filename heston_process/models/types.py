"""heston_process/models/types.py

Value types shared by the Heston process modules: the two-factor state, the
discretization selector and the error raised for an unknown selector.
"""
from __future__ import annotations

from enum import Enum
from typing import NamedTuple


class State(NamedTuple):
    """Immutable Heston state: asset price and instantaneous variance."""

    price: float
    variance: float


class UnsupportedDiscretizationError(ValueError):
    """Raised when a discretization selector is not one of the five schemes."""


class Discretization(Enum):
    """Step-evolution scheme used by ``HestonProcess.evolve``.

    EULER
        Generic first-order scheme built from ``drift`` and ``diffusion``.
    PARTIAL_TRUNCATION, FULL_TRUNCATION, REFLECTION
        Biased Euler variants from Lord, Koekkoek and van Dijk (2006),
        differing in how a negative variance enters the update.
    EXACT_VARIANCE
        Variance sampled from its non-central chi-squared transition law,
        log-price from its conditional Gaussian law.
    """

    EULER = 0
    PARTIAL_TRUNCATION = 1
    FULL_TRUNCATION = 2
    REFLECTION = 3
    EXACT_VARIANCE = 4

    @classmethod
    def coerce(cls, value: "Discretization | int | str") -> "Discretization":
        """Resolve an enum member, its integer value or its (case-insensitive) name."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().upper().replace("-", "_").replace(" ", "_")
            if key in cls.__members__:
                return cls.__members__[key]
        elif isinstance(value, int) and not isinstance(value, bool):
            try:
                return cls(value)
            except ValueError:
                pass
        raise UnsupportedDiscretizationError(f"unsupported discretization scheme: {value!r}")
