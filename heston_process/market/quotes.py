"""heston_process/market/quotes.py

Minimal market quote holding the current spot level.
"""
from __future__ import annotations


class SimpleQuote:
    """Mutable scalar quote.

    Processes keep a reference to the quote and read ``value()`` whenever
    they need it, so ``set_value`` is seen on the next call without any
    notification machinery.
    """

    def __init__(self, value: float) -> None:
        self._value = float(value)

    def value(self) -> float:
        return self._value

    def set_value(self, value: float) -> float:
        """Replace the quoted level and return the change."""
        value = float(value)
        diff = value - self._value
        self._value = value
        return diff

    def __repr__(self) -> str:
        return f"SimpleQuote({self._value})"
