"""
Estimation Service - Request Pipeline

Turns a user's estimation request into an EstimationReport:
1. VALIDATE - Check form inputs before any computation
2. CHECK DATA - Decline if the dataset is not loaded
3. GEOCODE - Resolve the address to coordinates
4. ESTIMATE - Run the valuation engine over the shared dataset
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, List, Optional, Protocol

from .errors import AddressNotFound, NoComparablesFound, ValidationError
from .estimation import (
    EstimationConfig,
    EstimationReport,
    ROOMS_SIX_OR_MORE,
    SubjectProperty,
    ValuationEngine,
)
from .geocoding import Coordinates, build_query, get_geocoder
from .ingestion import DatasetStore, get_dataset_store


logger = logging.getLogger(__name__)


# Room checkboxes offered by the form: 1..5 and "6+"
ROOM_CHOICES = frozenset(range(1, ROOMS_SIX_OR_MORE + 1))


class Geocoder(Protocol):
    def resolve(self, query: str) -> Optional[Coordinates]:
        ...


@dataclass
class EstimationRequest:
    """
    Raw estimation inputs as entered by the user.
    """
    address: str
    postal_code: str
    city: str
    property_type: str
    living_area: Optional[float]
    radius_km: Optional[float]

    rooms: List[int] = field(default_factory=list)  # Empty = any
    land_area: Optional[float] = None

    @property
    def query(self) -> str:
        return build_query(self.address, self.postal_code, self.city)


def _is_positive(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
        and value > 0
    )


def validate_request(request: EstimationRequest) -> None:
    """
    Validate estimation inputs.

    Raises:
        ValidationError: listing every invalid field
    """
    errors: list[str] = []

    # === Required text fields ===
    if not (request.address or "").strip():
        errors.append("address is required")
    if not (request.postal_code or "").strip():
        errors.append("postal_code is required")
    if not (request.city or "").strip():
        errors.append("city is required")
    if not (request.property_type or "").strip():
        errors.append("property_type is required")

    # === Numeric fields ===
    if not _is_positive(request.living_area):
        errors.append("living_area must be a positive number")
    if not _is_positive(request.radius_km):
        errors.append("radius_km must be a positive number")

    land = request.land_area
    if land is not None and not (
        isinstance(land, (int, float)) and math.isfinite(land) and land >= 0
    ):
        errors.append("land_area must be zero or a positive number")

    invalid_rooms = [r for r in request.rooms if r not in ROOM_CHOICES]
    if invalid_rooms:
        errors.append(
            f"rooms must be between 1 and {ROOMS_SIX_OR_MORE} (got {invalid_rooms})"
        )

    if errors:
        raise ValidationError(errors)


class EstimationService:
    """
    Entry point used by the web layer.

    Shares one read-only dataset across requests; holds no per-request state.
    """

    def __init__(
        self,
        store: DatasetStore = None,
        geocoder: Geocoder = None,
        config: EstimationConfig = None,
    ):
        """
        Initialize the estimation service.

        Args:
            store: Dataset store (default: process-wide singleton)
            geocoder: Address resolver (default: BAN geocoder singleton)
            config: Estimation configuration (default: EstimationConfig())
        """
        self._store = store or get_dataset_store()
        self._geocoder = geocoder or get_geocoder()
        self._engine = ValuationEngine(config)

    @property
    def store(self) -> DatasetStore:
        return self._store

    @property
    def config(self) -> EstimationConfig:
        return self._engine.config

    def estimate(self, subject: SubjectProperty) -> EstimationReport:
        """
        Estimate a subject property with known coordinates.

        Returns:
            EstimationReport; `is_empty` when no comparable was found

        Raises:
            DatasetNotReady: If the dataset is not loaded
        """
        return self._engine.valuate(subject, self._store.records)

    def estimate_request(self, request: EstimationRequest) -> EstimationReport:
        """
        Full request pipeline: validate, geocode, estimate.

        Raises:
            ValidationError: Invalid inputs
            DatasetNotReady: Dataset not loaded yet (or failed)
            AddressNotFound: Geocoder returned no match
            NoComparablesFound: Nothing survived filtering and cleaning
        """
        validate_request(request)

        # Fail fast before calling the geocoder
        self._store.require_ready()

        coordinates = self._geocoder.resolve(request.query)
        if coordinates is None:
            raise AddressNotFound(request.query)

        subject = SubjectProperty(
            property_type=request.property_type.strip(),
            living_area=float(request.living_area),
            latitude=coordinates.latitude,
            longitude=coordinates.longitude,
            radius_km=float(request.radius_km),
            desired_rooms=frozenset(request.rooms),
            land_area=float(request.land_area) if request.land_area else None,
            address=coordinates.label or request.query,
        )

        report = self.estimate(subject)
        if report.is_empty:
            logger.info("No comparables for %r", request.query)
            raise NoComparablesFound(report.bands.to_dict())

        return report
