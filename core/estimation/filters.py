"""
Comparable Filters

Implements hard filters for comparable sale selection:
- Property type (exact match, commercial premises by category prefix)
- Known price, living area and coordinates
- Sale date (on or after the recency cutoff)
- Living area (±15% band)
- Land area (houses with a known plot only)
- Room count (optional, "6 or more" sentinel)
- Geographic radius (haversine, km)
"""

import math
from typing import FrozenSet, Iterable, List, Optional

from .config import EstimationConfig
from .models import (
    Comparable,
    ROOMS_SIX_OR_MORE,
    SearchBands,
    SubjectProperty,
    TransactionRecord,
)


# Mean Earth radius in km
EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Great-circle distance between two points in km.

    Args:
        lat1, lon1: First point coordinates (degrees)
        lat2, lon2: Second point coordinates (degrees)

    Returns:
        Distance in km
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)

    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(dlon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def rooms_match(room_count: float, desired_rooms: Iterable[int]) -> bool:
    """
    Check a record's room count against the requested set.

    Exact match on the rounded count, plus any count >= 6 when the
    "6 or more" sentinel is requested.
    """
    desired = set(desired_rooms)
    if ROOMS_SIX_OR_MORE in desired and room_count >= ROOMS_SIX_OR_MORE:
        return True
    return round_half_up(room_count) in desired


def active_rooms(
    subject: SubjectProperty,
    config: EstimationConfig = None,
) -> FrozenSet[int]:
    """Room set actually filtered on; commercial premises ignore rooms."""
    config = config or EstimationConfig()
    if config.is_commercial(subject.property_type):
        return frozenset()
    return frozenset(subject.desired_rooms)


def round_half_up(value: float) -> int:
    """Round halves towards +infinity (2.5 -> 3, -2.5 -> -2)."""
    return int(math.floor(value + 0.5))


class ComparableFilter:
    """
    Applies hard filters to select comparable sales.

    A transaction must pass ALL filters to qualify as a comparable.
    """

    def __init__(self, config: EstimationConfig = None):
        """
        Initialize filter with configuration.

        Args:
            config: Tolerances and cutoff (default: EstimationConfig())
        """
        self._config = config or EstimationConfig()

    @property
    def config(self) -> EstimationConfig:
        return self._config

    def bands_for(self, subject: SubjectProperty) -> SearchBands:
        """Effective search bands for a subject."""
        tol = self._config.surface_tolerance
        land_min: Optional[float] = None
        land_max: Optional[float] = None

        if self._filters_land(subject):
            land_tol = self._config.land_tolerance
            land_min = subject.land_area * (1 - land_tol)
            land_max = subject.land_area * (1 + land_tol)

        return SearchBands(
            surface_min=subject.living_area * (1 - tol),
            surface_max=subject.living_area * (1 + tol),
            land_min=land_min,
            land_max=land_max,
            rooms=active_rooms(subject, self._config),
            radius_km=subject.radius_km,
            recency_cutoff=self._config.recency_cutoff,
        )

    def select(
        self,
        subject: SubjectProperty,
        records: Iterable[TransactionRecord],
    ) -> List[Comparable]:
        """
        Select records matching the subject.

        Applies filters in order, distance last:
        1. Property type
        2. Known price, area, coordinates
        3. Sale date >= recency cutoff
        4. Living area band
        5. Land area band (houses with a plot)
        6. Room count set
        7. Radius

        Args:
            subject: The subject property being estimated
            records: All transactions in the dataset

        Returns:
            Matching records with their distance to the subject
        """
        bands = self.bands_for(subject)
        result = []

        for record in records:
            if not self.type_matches(subject.property_type, record.property_type):
                continue

            if not record.is_usable:
                continue

            if not self._is_recent(record):
                continue

            if not (bands.surface_min <= record.living_area <= bands.surface_max):
                continue

            if bands.filters_land:
                if record.land_area is None:
                    continue
                if not (bands.land_min <= record.land_area <= bands.land_max):
                    continue

            if bands.rooms:
                if record.room_count is None:
                    continue
                if not rooms_match(record.room_count, bands.rooms):
                    continue

            distance = haversine_km(
                subject.latitude, subject.longitude,
                record.latitude, record.longitude,
            )
            if distance <= subject.radius_km:
                result.append(Comparable(record=record, distance_km=distance))

        return result

    def type_matches(self, subject_type: str, record_type: str) -> bool:
        """Exact type match, or same category for commercial premises."""
        if self._config.is_commercial(subject_type):
            return record_type.startswith(self._config.commercial_prefix)
        return record_type == subject_type

    def _is_recent(self, record: TransactionRecord) -> bool:
        return (
            record.parsed_date is not None
            and record.parsed_date >= self._config.recency_cutoff
        )

    def _filters_land(self, subject: SubjectProperty) -> bool:
        land = subject.land_area
        return (
            self._config.is_house(subject.property_type)
            and land is not None
            and math.isfinite(land)
            and land > 0
        )
