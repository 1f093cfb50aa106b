"""
Estimator Exceptions

Error taxonomy shared by ingestion, estimation and the web layer.

Fatal to the session:
- DataFormatError / SchemaError: the dataset could not be loaded

Recoverable, per request:
- DatasetNotReady: request arrived before the dataset finished loading
- ValidationError: invalid form inputs, checked before any computation
- AddressNotFound: geocoder returned nothing for the address
- NoComparablesFound: expected outcome, no estimate can be given
"""

from __future__ import annotations

from typing import Any, Optional


class EstimatorError(Exception):
    """Base class for all estimator errors."""

    pass


# =============================================================================
# Dataset Errors
# =============================================================================


class DataFormatError(EstimatorError):
    """Raised when the transaction dataset is empty or malformed."""

    pass


class SchemaError(DataFormatError):
    """Raised when required dataset columns cannot be resolved."""

    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(
            f"Required columns not found: {', '.join(missing)}"
        )


class DatasetNotReady(EstimatorError):
    """Raised when an estimate is requested before the dataset is loaded."""

    pass


# =============================================================================
# Request Errors
# =============================================================================


class ValidationError(EstimatorError, ValueError):
    """Raised when estimation inputs are missing or invalid."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(f"Invalid request: {'; '.join(errors)}")


class AddressNotFound(EstimatorError):
    """Raised when the geocoder cannot resolve the subject address."""

    def __init__(self, query: str):
        self.query = query
        super().__init__(f"Address not found: {query}")


class NoComparablesFound(EstimatorError):
    """Raised when no transaction survives filtering and cleaning."""

    def __init__(self, criteria: Optional[dict[str, Any]] = None):
        self.criteria = criteria or {}
        super().__init__("No comparable sales found")
