"""
EstimImmo - Core Business Logic

Comparable-sales estimation of residential property values:
1. Ingestion (DVF-style exports -> TransactionRecord)
2. Comparable selection (type, surface, land, rooms, recency, radius)
3. Quality control (deduplication, anti-outlier cleaning)
4. Statistics (mean, median, p10/p90 price per m²)
5. Similarity ranking for display
"""

from .errors import (
    EstimatorError,
    DataFormatError,
    SchemaError,
    DatasetNotReady,
    ValidationError,
    AddressNotFound,
    NoComparablesFound,
)

# Estimation Engine
from .estimation import (
    ROOMS_SIX_OR_MORE,
    TransactionRecord,
    SubjectProperty,
    Comparable,
    SearchBands,
    EstimateResult,
    EstimationReport,
    EstimationConfig,
    ComparableFilter,
    ValuationEngine,
    haversine_km,
)

# Ingestion Layer
from .ingestion import (
    DatasetStore,
    LoadState,
    ParsedDataset,
    get_dataset_store,
    parse_transactions,
)

# Geocoding Service
from .geocoding import AddressGeocoder, Coordinates, get_geocoder

# Request Pipeline
from .estimator import EstimationRequest, EstimationService, validate_request

__all__ = [
    # Errors
    "EstimatorError",
    "DataFormatError",
    "SchemaError",
    "DatasetNotReady",
    "ValidationError",
    "AddressNotFound",
    "NoComparablesFound",
    # Estimation Engine
    "ROOMS_SIX_OR_MORE",
    "TransactionRecord",
    "SubjectProperty",
    "Comparable",
    "SearchBands",
    "EstimateResult",
    "EstimationReport",
    "EstimationConfig",
    "ComparableFilter",
    "ValuationEngine",
    "haversine_km",
    # Ingestion Layer
    "DatasetStore",
    "LoadState",
    "ParsedDataset",
    "get_dataset_store",
    "parse_transactions",
    # Geocoding Service
    "AddressGeocoder",
    "Coordinates",
    "get_geocoder",
    # Request Pipeline
    "EstimationRequest",
    "EstimationService",
    "validate_request",
]
