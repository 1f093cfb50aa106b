"""
Statistics Engine

Descriptive statistics over price per m²:
- Mean
- Median (average of the two central values for even counts)
- Percentiles by linear interpolation at rank (n - 1) * p
- Four estimates: p10, mean, median, p90 times the subject living area
"""

import math
from typing import Iterable, List, Optional

from .models import Comparable, EstimateResult


# Market range band
LOW_PERCENTILE = 0.10
HIGH_PERCENTILE = 0.90


def mean(values: List[float]) -> float:
    """Arithmetic mean. Raises ValueError on empty input."""
    if not values:
        raise ValueError("mean of empty sequence")
    return sum(values) / len(values)


def median(values: List[float]) -> float:
    """
    Median of the values.

    Raises ValueError on empty input.
    """
    if not values:
        raise ValueError("median of empty sequence")

    ordered = sorted(values)
    n = len(ordered)
    mid = n // 2

    if n % 2 == 1:
        # Odd number: middle element
        return float(ordered[mid])
    # Even number: average of two middle elements
    return (ordered[mid - 1] + ordered[mid]) / 2


def percentile(values: List[float], p: float) -> float:
    """
    Percentile with linear interpolation between closest ranks.

    Args:
        values: Sample (any order)
        p: Fraction between 0 and 1

    Returns:
        Interpolated value at rank (n - 1) * p
    """
    if not values:
        raise ValueError("percentile of empty sequence")
    if not 0 <= p <= 1:
        raise ValueError(f"percentile fraction out of range: {p}")

    ordered = sorted(values)
    rank = (len(ordered) - 1) * p
    lo = math.floor(rank)
    hi = math.ceil(rank)

    if lo == hi:
        return float(ordered[lo])
    return ordered[lo] + (ordered[hi] - ordered[lo]) * (rank - lo)


def price_per_area_values(comps: Iterable[Comparable]) -> List[float]:
    """Finite price-per-m² values of the comparables."""
    values = []
    for comp in comps:
        value = comp.price_per_area
        if value is not None and math.isfinite(value):
            values.append(value)
    return values


def compute_estimate(
    comps: List[Comparable],
    living_area: float,
) -> Optional[EstimateResult]:
    """
    Compute price-per-m² statistics and the derived estimates.

    Args:
        comps: Cleaned comparables (full set, not the display subset)
        living_area: Subject living area in m²

    Returns:
        EstimateResult, or None when there is no usable comparable
    """
    values = price_per_area_values(comps)
    if not values:
        return None

    return EstimateResult(
        count=len(values),
        mean_price_per_area=mean(values),
        median_price_per_area=median(values),
        p10_price_per_area=percentile(values, LOW_PERCENTILE),
        p90_price_per_area=percentile(values, HIGH_PERCENTILE),
        living_area=living_area,
    )
