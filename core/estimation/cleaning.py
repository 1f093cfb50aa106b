"""
Quality controls for selected comparables.

- Duplicate removal (same date, address, rounded price and area)
- Anti-outlier cleaning (type price ceiling, price-per-m² band)
"""

from typing import List, Tuple

from .config import EstimationConfig
from .filters import round_half_up
from .models import Comparable


# Plausible price per m² band (EUR), rejects data-entry errors and
# non-market transactions
PRICE_PER_AREA_MIN = 800
PRICE_PER_AREA_MAX = 12000


def dedup_key(comp: Comparable) -> Tuple[str, str, int, int]:
    """Composite key identifying the same sale recorded twice."""
    record = comp.record
    return (
        record.raw_date or "",
        record.address or "",
        round_half_up(record.price or 0),
        round_half_up(record.living_area or 0),
    )


def deduplicate(comps: List[Comparable]) -> List[Comparable]:
    """
    Collapse duplicate sales to their first occurrence.

    Order of the remaining comparables is preserved.
    """
    seen = set()
    result = []

    for comp in comps:
        key = dedup_key(comp)
        if key in seen:
            continue
        seen.add(key)
        result.append(comp)

    return result


def is_plausible(
    comp: Comparable,
    property_type: str,
    config: EstimationConfig = None,
) -> bool:
    """Whether a comparable passes the anti-outlier rules."""
    config = config or EstimationConfig()

    if comp.price is None or comp.living_area is None:
        return False

    if comp.price > config.price_ceiling(property_type):
        return False

    price_per_area = comp.price_per_area
    if price_per_area is None:
        return False

    return PRICE_PER_AREA_MIN <= price_per_area <= PRICE_PER_AREA_MAX


def clean(
    comps: List[Comparable],
    property_type: str,
    config: EstimationConfig = None,
) -> List[Comparable]:
    """
    Remove implausible comparables.

    Args:
        comps: Deduplicated comparables
        property_type: Subject type, selects the price ceiling
        config: Price ceilings (default: EstimationConfig())

    Returns:
        Comparables within the ceiling and the price-per-m² band
    """
    return [c for c in comps if is_plausible(c, property_type, config)]
