"""
Estimation configuration.

Tolerances, price ceilings and the recency cutoff used by the filter and
cleaning stages. One instance is injected into each stage.
"""

from dataclasses import dataclass
from datetime import date


# =============================================================================
# Configuration Constants
# =============================================================================

# Living-area band around the subject (±15%)
SURFACE_TOLERANCE = 0.15

# Land-area band around the subject, houses only (±25%)
LAND_TOLERANCE = 0.25

# Transactions before this date are stale market data
RECENCY_CUTOFF = date(2023, 1, 1)

# Price ceilings per type (EUR)
APARTMENT_PRICE_CEILING = 2_000_000
HOUSE_PRICE_CEILING = 5_000_000

# Dataset type labels
HOUSE_TYPE = "Maison"
APARTMENT_TYPE = "Appartement"
COMMERCIAL_PREFIX = "Local"

# Ranked comparables surfaced for display
TOP_N = 20


@dataclass(frozen=True)
class EstimationConfig:
    """Configuration for comparable selection and cleaning."""
    surface_tolerance: float = SURFACE_TOLERANCE
    land_tolerance: float = LAND_TOLERANCE
    recency_cutoff: date = RECENCY_CUTOFF

    apartment_price_ceiling: float = APARTMENT_PRICE_CEILING
    house_price_ceiling: float = HOUSE_PRICE_CEILING

    house_type: str = HOUSE_TYPE
    apartment_type: str = APARTMENT_TYPE
    commercial_prefix: str = COMMERCIAL_PREFIX

    top_n: int = TOP_N

    def is_house(self, property_type: str) -> bool:
        return property_type == self.house_type

    def is_apartment(self, property_type: str) -> bool:
        return property_type == self.apartment_type

    def is_commercial(self, property_type: str) -> bool:
        """Commercial premises label, e.g. "Local industriel. commercial ou assimilé"."""
        return bool(self.commercial_prefix) and property_type.startswith(
            self.commercial_prefix
        )

    def price_ceiling(self, property_type: str) -> float:
        """Maximum plausible price for the given type."""
        if self.is_apartment(property_type):
            return self.apartment_price_ceiling
        return self.house_price_ceiling
