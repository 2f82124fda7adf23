"""
tests/test_discretization_schemes.py

Tests for the five step schemes of HestonProcess.evolve:
- a zero-length step leaves the state unchanged,
- prices stay strictly positive for finite shocks,
- reflection rebuilds the variance from |v|,
- partial and full truncation agree whenever v >= 0,
- the daily-step scenario with zero shocks and flat zero curves,
- unknown selectors are rejected with UnsupportedDiscretizationError.
"""
from __future__ import annotations

import datetime
import math
import os
import sys

import numpy as np
import pytest

# Ensure repository root on sys.path
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

try:
    from heston_process.market import FlatForward, SimpleQuote
    from heston_process.models import (
        Discretization,
        HestonProcess,
        ModelParameters,
        State,
        UnsupportedDiscretizationError,
        evolve_state,
    )
    from heston_process.models.discretization import (
        euler_step,
        full_truncation_step,
        partial_truncation_step,
        reflection_step,
    )
except Exception as exc:  # pragma: no cover
    raise ImportError("Failed to import heston_process.models.discretization") from exc


REFERENCE_DATE = datetime.date(2025, 1, 2)
CLOSED_FORM = [
    Discretization.EULER,
    Discretization.PARTIAL_TRUNCATION,
    Discretization.FULL_TRUNCATION,
    Discretization.REFLECTION,
]
ALL_SCHEMES = CLOSED_FORM + [Discretization.EXACT_VARIANCE]


def make_process(discretization, r=0.0, q=0.0, s0=100.0, v0=0.04, kappa=1.0, theta=0.04, sigma=0.2, rho=-0.5):
    return HestonProcess(
        risk_free_rate=FlatForward(REFERENCE_DATE, r),
        dividend_yield=FlatForward(REFERENCE_DATE, q),
        s0=SimpleQuote(s0),
        v0=v0,
        kappa=kappa,
        theta=theta,
        sigma=sigma,
        rho=rho,
        discretization=discretization,
    )


@pytest.mark.parametrize(
    "scheme",
    [Discretization.PARTIAL_TRUNCATION, Discretization.FULL_TRUNCATION, Discretization.REFLECTION, Discretization.EXACT_VARIANCE],
)
@pytest.mark.parametrize("variance", [0.0625, 0.04, 0.2])
def test_zero_step_leaves_state_unchanged(scheme, variance):
    process = make_process(scheme, r=0.03, q=0.01)
    x0 = State(97.5, variance)
    nxt = process.evolve(0.5, x0, 0.0, (1.3, -0.7))
    assert nxt.price == pytest.approx(x0.price, rel=1e-15)
    assert nxt.variance == pytest.approx(x0.variance, rel=1e-15)


@pytest.mark.parametrize("scheme", ALL_SCHEMES)
def test_price_stays_positive(scheme):
    process = make_process(scheme, r=0.05, q=0.02, sigma=0.9, kappa=0.5)
    rng = np.random.default_rng(2024)
    for _ in range(50):
        variance = float(rng.uniform(-0.05, 0.5)) if scheme is not Discretization.EXACT_VARIANCE else float(rng.uniform(0.0, 0.5))
        dt = float(rng.uniform(0.0, 1.0))
        dw = rng.uniform(-8.0, 8.0, size=2)
        nxt = process.evolve(0.0, (50.0, variance), dt, dw)
        assert np.isfinite(nxt.price)
        assert nxt.price > 0.0


@pytest.mark.parametrize("variance", [-0.09, -1e-6, 0.0, 0.09])
def test_reflection_rebuilds_from_absolute_variance(variance):
    process = make_process(Discretization.REFLECTION)
    # with dt = 0 only the reflected base term survives
    nxt = process.evolve(0.0, (100.0, variance), 0.0, (0.4, -2.0))
    assert nxt.variance >= 0.0
    assert nxt.variance == pytest.approx(abs(variance), rel=1e-14, abs=1e-18)


def test_reflection_step_formula():
    params = ModelParameters(v0=0.04, kappa=1.0, theta=0.04, sigma=0.2, rho=-0.5)
    x0 = State(100.0, -0.01)
    dt, dw, spread = 0.1, (0.5, -1.0), 0.02
    nxt = reflection_step(x0, dt, dw, params, spread)

    vol = 0.1
    sqrhov = math.sqrt(1.0 - 0.25)
    expected_price = 100.0 * math.exp((spread - 0.5 * vol ** 2) * dt + vol * dw[0] * math.sqrt(dt))
    expected_variance = (
        vol ** 2
        + 1.0 * (0.04 - vol ** 2) * dt
        + 0.2 * vol * math.sqrt(dt) * (-0.5 * dw[0] + sqrhov * dw[1])
    )
    assert nxt.price == pytest.approx(expected_price, rel=1e-13)
    assert nxt.variance == pytest.approx(expected_variance, rel=1e-13)


@pytest.mark.parametrize("variance", [0.0, 0.01, 0.04, 0.3])
def test_partial_and_full_truncation_agree_for_non_negative_variance(variance):
    params = ModelParameters(v0=0.04, kappa=2.0, theta=0.05, sigma=0.4, rho=-0.6)
    x0 = State(100.0, variance)
    a = partial_truncation_step(x0, 0.02, (0.8, -0.3), params, 0.01)
    b = full_truncation_step(x0, 0.02, (0.8, -0.3), params, 0.01)
    assert a.price == pytest.approx(b.price, rel=1e-15)
    assert a.variance == pytest.approx(b.variance, rel=1e-14)


def test_partial_and_full_truncation_diverge_for_negative_variance():
    params = ModelParameters(v0=0.04, kappa=2.0, theta=0.05, sigma=0.4, rho=-0.6)
    x0 = State(100.0, -0.02)
    dt = 0.1
    a = partial_truncation_step(x0, dt, (0.8, -0.3), params, 0.01)
    b = full_truncation_step(x0, dt, (0.8, -0.3), params, 0.01)

    # vol is floored at zero in both: no diffusion, identical price update
    assert a.price == pytest.approx(b.price)
    assert a.variance == pytest.approx(-0.02 + 2.0 * (0.05 + 0.02) * dt)
    assert b.variance == pytest.approx(-0.02 + 2.0 * 0.05 * dt)


def test_daily_step_scenario_partial_truncation():
    process = make_process(Discretization.PARTIAL_TRUNCATION)
    x0 = process.initial_values()
    nxt = process.evolve(0.0, x0, 1.0 / 252.0, (0.0, 0.0))

    assert nxt.price == pytest.approx(100.0 * math.exp(-0.5 * 0.04 / 252.0), rel=1e-14)
    assert nxt.price == pytest.approx(99.992064, abs=1e-6)
    assert nxt.variance == pytest.approx(0.04, abs=1e-17)


@pytest.mark.parametrize("selector", [5, 99, -1, "milstein", "", True])
def test_unknown_scheme_rejected_at_construction(selector):
    with pytest.raises(UnsupportedDiscretizationError, match="unsupported discretization scheme"):
        make_process(selector)


def test_unknown_scheme_rejected_by_dispatcher():
    params = ModelParameters(v0=0.04, kappa=1.0, theta=0.04, sigma=0.2, rho=-0.5)
    curve = FlatForward(REFERENCE_DATE, 0.0)
    with pytest.raises(UnsupportedDiscretizationError, match="unsupported discretization scheme"):
        evolve_state(5, 0.0, (100.0, 0.04), 1.0 / 252.0, (0.0, 0.0), params, curve, curve)


def test_unsupported_error_is_a_value_error():
    assert issubclass(UnsupportedDiscretizationError, ValueError)


@pytest.mark.parametrize(
    "selector, expected",
    [
        (Discretization.REFLECTION, Discretization.REFLECTION),
        (1, Discretization.PARTIAL_TRUNCATION),
        ("full_truncation", Discretization.FULL_TRUNCATION),
        ("Exact-Variance", Discretization.EXACT_VARIANCE),
        ("EULER", Discretization.EULER),
    ],
)
def test_scheme_selectors_resolve(selector, expected):
    assert make_process(selector).discretization is expected


def test_euler_mode_matches_generic_scheme():
    process = make_process(Discretization.EULER, r=0.04, q=0.01, sigma=0.5)
    x0 = State(100.0, 0.09)
    dt, dw = 0.05, np.array([0.7, -1.1])

    nxt = process.evolve(0.2, x0, dt, dw)
    dx = process.drift(0.2, x0) * dt + process.diffusion(0.2, x0).dot(dw) * math.sqrt(dt)
    expected = process.apply(x0, dx)
    assert nxt.price == pytest.approx(expected.price, rel=1e-13)
    assert nxt.variance == pytest.approx(expected.variance, rel=1e-13)

    spread = 0.04 - 0.01
    direct = euler_step(x0, dt, dw, process.parameters, spread)
    assert direct.price == pytest.approx(nxt.price, rel=1e-9)
    assert direct.variance == pytest.approx(nxt.variance, rel=1e-9)


def test_truncation_uses_interval_forward_rate():
    # forward over the step, not the instantaneous rate at t0
    process = make_process(Discretization.FULL_TRUNCATION, r=0.05, q=0.01)
    x0 = State(100.0, 0.04)
    dt = 0.5
    nxt = process.evolve(0.25, x0, dt, (0.0, 0.0))
    assert nxt.price == pytest.approx(100.0 * math.exp((0.04 - 0.02) * dt), rel=1e-12)


def test_spot_quote_changes_are_seen_immediately():
    quote = SimpleQuote(100.0)
    process = HestonProcess(
        FlatForward(REFERENCE_DATE, 0.0),
        FlatForward(REFERENCE_DATE, 0.0),
        quote,
        v0=0.04,
        kappa=1.0,
        theta=0.04,
        sigma=0.2,
        rho=-0.5,
        discretization=Discretization.FULL_TRUNCATION,
    )
    assert process.initial_values().price == 100.0
    assert quote.set_value(110.0) == pytest.approx(10.0)
    assert process.initial_values() == (110.0, 0.04)
    # the fixed parameters are untouched by market-data updates
    assert process.v0 == 0.04
