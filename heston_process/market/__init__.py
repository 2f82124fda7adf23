# heston_process.market package initialization
from .quotes import SimpleQuote
from .term_structures import (
    Actual360,
    Actual365Fixed,
    Compounding,
    DayCounter,
    FlatForward,
    YieldTermStructure,
    ZeroCurve,
)

__all__ = [
    "SimpleQuote",
    "Actual360",
    "Actual365Fixed",
    "Compounding",
    "DayCounter",
    "FlatForward",
    "YieldTermStructure",
    "ZeroCurve",
]
