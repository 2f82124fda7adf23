"""heston_process/market/term_structures.py

Yield term structures and day-count conventions.

The Heston process only needs two things from a curve: the forward rate
between two times and a way to turn a calendar date into a time
coordinate. This module provides a small base class exposing exactly
that, plus two concrete curves:

- FlatForward: a single continuously-compounded rate.
- ZeroCurve: zero rates linearly interpolated in time (numpy.interp),
  flat beyond the last pillar.

Times are year fractions measured from the curve's reference date.
"""
from __future__ import annotations

import datetime
import math
from enum import Enum
from typing import Sequence

import numpy as np


class Compounding(Enum):
    """Interest compounding convention used when quoting a forward rate."""

    SIMPLE = "simple"
    COMPOUNDED = "compounded"
    CONTINUOUS = "continuous"


class DayCounter:
    """Actual/N day counter. Subclasses fix the denominator."""

    days_in_year: float = 365.0
    name: str = "Actual/365 (Fixed)"

    def day_count(self, d1: datetime.date, d2: datetime.date) -> int:
        return (d2 - d1).days

    def year_fraction(self, d1: datetime.date, d2: datetime.date) -> float:
        return self.day_count(d1, d2) / self.days_in_year

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class Actual365Fixed(DayCounter):
    days_in_year = 365.0
    name = "Actual/365 (Fixed)"


class Actual360(DayCounter):
    days_in_year = 360.0
    name = "Actual/360"


class YieldTermStructure:
    """Base class for discount curves.

    Parameters
    ----------
    reference_date : datetime.date
        Date corresponding to t = 0.
    day_counter : DayCounter, optional
        Convention used to convert dates to times. Defaults to Actual/365.

    Notes
    -----
    Subclasses implement ``discount(t)``; forward rates are derived from
    discount factors so every curve quotes forwards consistently.
    """

    # bump used to turn a zero-length interval into an instantaneous forward
    _FORWARD_BUMP = 1.0e-4

    def __init__(self, reference_date: datetime.date, day_counter: DayCounter | None = None) -> None:
        self.reference_date = reference_date
        self.day_counter = day_counter or Actual365Fixed()

    def discount(self, t: float) -> float:
        raise NotImplementedError

    def time_from_reference(self, date: datetime.date) -> float:
        return self.day_counter.year_fraction(self.reference_date, date)

    def forward_rate(
        self,
        t1: float,
        t2: float,
        compounding: Compounding = Compounding.CONTINUOUS,
        frequency: int = 1,
    ) -> float:
        """Forward rate between times t1 and t2.

        Parameters
        ----------
        t1, t2 : float
            Interval bounds in years. When ``t1 == t2`` the instantaneous
            forward at t1 is returned (computed over a small bump).
        compounding : Compounding
            Convention the returned rate is quoted in.
        frequency : int
            Compounding periods per year, only used with COMPOUNDED.

        Returns
        -------
        rate : float
        """
        if t2 < t1:
            raise ValueError(f"forward interval is reversed: t1={t1} > t2={t2}")
        if t2 == t1:
            t1 = max(t1 - self._FORWARD_BUMP / 2.0, 0.0)
            t2 = t1 + self._FORWARD_BUMP
        compound = self.discount(t1) / self.discount(t2)
        dt = t2 - t1

        if compounding is Compounding.CONTINUOUS:
            return math.log(compound) / dt
        if compounding is Compounding.SIMPLE:
            return (compound - 1.0) / dt
        if compounding is Compounding.COMPOUNDED:
            if frequency <= 0:
                raise ValueError("frequency must be a positive integer")
            return (compound ** (1.0 / (frequency * dt)) - 1.0) * frequency
        raise ValueError(f"unknown compounding convention: {compounding!r}")


class FlatForward(YieldTermStructure):
    """Curve with a single continuously-compounded rate at every maturity."""

    def __init__(
        self,
        reference_date: datetime.date,
        rate: float,
        day_counter: DayCounter | None = None,
    ) -> None:
        super().__init__(reference_date, day_counter)
        self.rate = float(rate)

    def discount(self, t: float) -> float:
        return math.exp(-self.rate * t)

    def __repr__(self) -> str:
        return f"FlatForward({self.reference_date.isoformat()}, rate={self.rate})"


class ZeroCurve(YieldTermStructure):
    """Continuously-compounded zero curve, linear in the zero rate.

    Parameters
    ----------
    reference_date : datetime.date
    times : sequence of float
        Strictly increasing pillar times (years), first pillar >= 0.
    zero_rates : sequence of float
        Zero rate at each pillar.
    day_counter : DayCounter, optional
    """

    def __init__(
        self,
        reference_date: datetime.date,
        times: Sequence[float],
        zero_rates: Sequence[float],
        day_counter: DayCounter | None = None,
    ) -> None:
        super().__init__(reference_date, day_counter)
        self.times = np.asarray(times, dtype=float)
        self.zero_rates = np.asarray(zero_rates, dtype=float)

        if self.times.ndim != 1 or self.times.shape != self.zero_rates.shape:
            raise ValueError("times and zero_rates must be 1D arrays of equal length")
        if self.times.size == 0:
            raise ValueError("ZeroCurve needs at least one pillar")
        if self.times[0] < 0.0 or np.any(np.diff(self.times) <= 0.0):
            raise ValueError("pillar times must be non-negative and strictly increasing")

    def zero_rate(self, t: float) -> float:
        # np.interp holds the end values constant outside the pillars
        return float(np.interp(t, self.times, self.zero_rates))

    def discount(self, t: float) -> float:
        return math.exp(-self.zero_rate(t) * t)
