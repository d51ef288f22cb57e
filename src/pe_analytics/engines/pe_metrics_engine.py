"""
PE Metrics Computation Engine.

This module provides pure Python implementations of the private markets
multiples (TVPI, DPI, RVPI) and of the annualized IRR for irregular, dated
cash flows.

All calculations are deterministic, testable, and independent of database logic.
None of the functions here raise for degenerate input: ratios fall back to 0
and an undeterminable IRR is reported as None.
"""

from typing import List, Optional, Sequence, Tuple
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
import logging
import math

from ..config import (
    DAYS_PER_YEAR,
    IRR_DERIVATIVE_FLOOR,
    IRR_INITIAL_GUESS,
    IRR_MAX_ITERATIONS,
    IRR_MAX_RATE,
    IRR_MIN_RATE,
    IRR_TOLERANCE,
    METRIC_DECIMALS,
)
from .cash_flow_engine import SignedFlow

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400.0


# ==============================================================================
# ROUNDING
# ==============================================================================

def round_metric(value: float, decimals: int = METRIC_DECIMALS) -> float:
    """
    Round half-up to a fixed number of decimals.

    The float is read through its shortest repr so that values such as 1.005
    round to 1.01 instead of drifting to 1.0.
    """
    if not math.isfinite(value):
        return value
    quantum = Decimal(1).scaleb(-decimals)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


# ==============================================================================
# BASIC PE METRICS
# ==============================================================================

def calculate_tvpi(distributions: float, current_value: float, paid_in: float) -> float:
    """
    Calculate Total Value to Paid-In (TVPI) multiple.

    TVPI = (Distributions + Current Value) / Paid-In Capital

    Returns:
        TVPI multiple, or 0 if paid_in is not positive
    """
    if paid_in <= 0:
        return 0.0
    return (distributions + current_value) / paid_in


def calculate_dpi(distributions: float, paid_in: float) -> float:
    """
    Calculate Distributions to Paid-In (DPI) multiple.

    DPI = Total Distributions / Paid-In Capital
    """
    if paid_in <= 0:
        return 0.0
    return distributions / paid_in


def calculate_rvpi(current_value: float, paid_in: float) -> float:
    """
    Calculate Residual Value to Paid-In (RVPI) multiple.

    RVPI = Current Value / Paid-In Capital
    """
    if paid_in <= 0:
        return 0.0
    return current_value / paid_in


@dataclass(frozen=True)
class Multiples:
    """TVPI, DPI and RVPI rounded for reporting."""
    tvpi: float
    dpi: float
    rvpi: float


def calculate_multiples(contributed: float, distributed: float, current_value: float) -> Multiples:
    """
    Calculate the three paid-in multiples for one position.

    Args:
        contributed: Total capital called (fees excluded)
        distributed: Net distributions (recallable amounts already deducted)
        current_value: Current valuation of the position

    Returns:
        Multiples rounded to two decimals; all zero when nothing was contributed

    Example:
        >>> calculate_multiples(100000, 0, 150000)
        Multiples(tvpi=1.5, dpi=0.0, rvpi=1.5)
    """
    if contributed <= 0:
        logger.debug("No contributed capital, multiples reported as 0")

    return Multiples(
        tvpi=round_metric(calculate_tvpi(distributed, current_value, contributed)),
        dpi=round_metric(calculate_dpi(distributed, contributed)),
        rvpi=round_metric(calculate_rvpi(current_value, contributed)),
    )


# ==============================================================================
# IRR CALCULATION (XIRR for irregular cash flows)
# ==============================================================================

def _year_fractions(signed_series: Sequence[SignedFlow]) -> List[Tuple[float, float]]:
    """Sort by date and express each flow as (years since first flow, amount)."""
    ordered = sorted(signed_series, key=lambda cf: cf.date)
    start_date = ordered[0].date
    return [
        ((cf.date - start_date).total_seconds() / SECONDS_PER_DAY / DAYS_PER_YEAR, cf.amount)
        for cf in ordered
    ]


def _npv_and_derivative(yearly: Sequence[Tuple[float, float]], rate: float) -> Tuple[float, float]:
    npv = 0.0
    dnpv = 0.0
    for years, amount in yearly:
        discount_factor = (1 + rate) ** (-years)
        npv += amount * discount_factor
        dnpv -= years * amount * discount_factor / (1 + rate)
    return npv, dnpv


def calculate_xnpv(signed_series: Sequence[SignedFlow], rate: float) -> float:
    """
    Net present value of a dated series at an annual rate, discounted to its first date.

    Args:
        signed_series: Signed, dated cash flows
        rate: Annual rate as a decimal (e.g. 0.15 for 15%)
    """
    if not signed_series:
        return 0.0
    npv, _ = _npv_and_derivative(_year_fractions(signed_series), rate)
    return npv


def _has_both_signs(signed_series: Sequence[SignedFlow]) -> bool:
    has_positive = any(cf.amount > 0 for cf in signed_series)
    has_negative = any(cf.amount < 0 for cf in signed_series)
    return has_positive and has_negative


def _newton_raphson(
    yearly: Sequence[Tuple[float, float]],
    initial_guess: float = IRR_INITIAL_GUESS,
    max_iterations: int = IRR_MAX_ITERATIONS,
    tolerance: float = IRR_TOLERANCE
) -> Optional[float]:
    """Newton-Raphson on the NPV; returns the rate as a decimal, or None if it fails."""
    rate = initial_guess

    for iteration in range(max_iterations):
        try:
            npv, dnpv = _npv_and_derivative(yearly, rate)
        except OverflowError as e:
            logger.warning(f"Overflow in IRR calculation at rate={rate}: {e}")
            return None

        if abs(dnpv) < IRR_DERIVATIVE_FLOOR:
            logger.warning("Derivative too small, IRR calculation may be unstable")
            return None

        new_rate = rate - npv / dnpv
        if not math.isfinite(new_rate):
            logger.warning("IRR iteration produced a non-finite rate")
            return None

        if abs(new_rate - rate) < tolerance:
            logger.debug(f"IRR converged in {iteration + 1} iterations: {new_rate:.6f}")
            return new_rate

        rate = new_rate

        # Prevent extreme values
        if rate < IRR_MIN_RATE or rate > IRR_MAX_RATE:
            logger.warning(f"IRR calculation diverging (rate={rate})")
            return None

    logger.warning(f"IRR did not converge after {max_iterations} iterations")
    return None


def _simple_annualized_return(yearly: Sequence[Tuple[float, float]]) -> Optional[float]:
    """
    Fallback IRR: total return annualized over the years of the latest flow.

    Returns:
        Annualized return as a decimal, or None if nothing was invested
    """
    total_invested = sum(abs(amount) for _, amount in yearly if amount < 0)
    total_returned = sum(amount for _, amount in yearly if amount > 0)

    if total_invested == 0:
        return None

    simple_return = total_returned / total_invested - 1
    horizon = yearly[-1][0] or 1

    try:
        return (1 + simple_return) ** (1 / horizon) - 1
    except OverflowError:
        logger.warning(f"Fallback IRR overflowed (simple return {simple_return:.4f} over {horizon:.4f} years)")
        return None


def find_irr_root(signed_series: Sequence[SignedFlow]) -> Optional[float]:
    """
    Run only the Newton-Raphson stage of the IRR solver.

    Returns:
        The unrounded root as a decimal rate, or None when the series is
        unsolvable or Newton-Raphson stalls or diverges
    """
    if len(signed_series) < 2 or not _has_both_signs(signed_series):
        return None
    return _newton_raphson(_year_fractions(signed_series))


def solve_irr(signed_series: Sequence[SignedFlow]) -> Optional[float]:
    """
    Calculate the annualized Internal Rate of Return for irregular cash flows.

    Newton-Raphson from a 10% guess; when it stalls, diverges or runs out of
    iterations the simple total return annualized over the years of the latest
    flow is used instead.

    The caller appends the terminal valuation (a positive flow dated at the
    valuation date) before calling.

    Args:
        signed_series: Signed, dated cash flows (negative for investments,
            positive for returns), in any order

    Returns:
        IRR as a percentage rounded to 2 decimals (e.g., 15.5 for 15.5%),
        or None if it cannot be determined

    Example:
        >>> series = [SignedFlow(date(2020, 1, 1), -50000),
        ...           SignedFlow(date(2021, 12, 31), 80000)]
        >>> solve_irr(series)  # ~26.5
    """
    if len(signed_series) < 2:
        logger.debug("Insufficient cash flows for IRR calculation")
        return None

    if not _has_both_signs(signed_series):
        logger.debug("IRR requires both negative and positive cash flows")
        return None

    yearly = _year_fractions(signed_series)

    rate = _newton_raphson(yearly)
    if rate is None:
        rate = _simple_annualized_return(yearly)
        if rate is None:
            return None
        logger.info(f"IRR resolved by simple annualized return fallback: {rate:.6f}")

    return round_metric(rate * 100)
