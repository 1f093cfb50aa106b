"""
Estimation Engine

Comparable sales selection and price-per-m² valuation over historical
transaction records (DVF-style exports).
"""

from .models import (
    ROOMS_SIX_OR_MORE,
    TransactionRecord,
    SubjectProperty,
    Comparable,
    SearchBands,
    EstimateResult,
    EstimationReport,
)
from .config import EstimationConfig
from .filters import ComparableFilter, haversine_km
from .valuation import ValuationEngine

__all__ = [
    # Models
    "ROOMS_SIX_OR_MORE",
    "TransactionRecord",
    "SubjectProperty",
    "Comparable",
    "SearchBands",
    "EstimateResult",
    "EstimationReport",
    # Engine
    "EstimationConfig",
    "ComparableFilter",
    "haversine_km",
    "ValuationEngine",
]
