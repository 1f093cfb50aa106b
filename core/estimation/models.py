"""
Data models for the estimation pipeline.

Defines transaction records parsed from the dataset, the subject property
being estimated, and the estimate outputs.
"""

from dataclasses import dataclass, field, replace
from datetime import date
from typing import FrozenSet, List, Optional


# "6 or more" rooms sentinel used in room-count filters
ROOMS_SIX_OR_MORE = 6


@dataclass(frozen=True)
class TransactionRecord:
    """
    A historical sale parsed from the transaction dataset.

    Unknown numeric values are None. Records with an unknown price, area or
    location stay in the dataset and are excluded by the filter stage.
    """
    price: Optional[float]  # Sale price in EUR
    property_type: str  # Dataset label, e.g. "Maison", "Appartement"
    living_area: Optional[float]  # m²

    room_count: Optional[float] = None
    land_area: Optional[float] = None  # m²

    latitude: Optional[float] = None
    longitude: Optional[float] = None

    address: str = "-"
    raw_date: str = ""
    parsed_date: Optional[date] = None

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @property
    def is_usable(self) -> bool:
        """Whether price, area and location are all known."""
        return (
            self.price is not None
            and self.living_area is not None
            and self.has_location
        )

    @property
    def price_per_area(self) -> Optional[float]:
        """Price per m², None when unknown or area is zero."""
        if self.price is None or not self.living_area:
            return None
        return self.price / self.living_area


@dataclass
class SubjectProperty:
    """
    The property being estimated.

    Coordinates come from the geocoder; everything else from the request.
    """
    property_type: str
    living_area: float
    latitude: float
    longitude: float
    radius_km: float

    # Empty set means no room filter
    desired_rooms: FrozenSet[int] = frozenset()
    land_area: Optional[float] = None

    address: str = ""


@dataclass(frozen=True)
class Comparable:
    """
    A transaction selected as comparable, with request-specific metrics.
    """
    record: TransactionRecord
    distance_km: float
    similarity_score: float = 0.0

    # Shortcuts used throughout cleaning, scoring and reporting
    @property
    def price(self) -> Optional[float]:
        return self.record.price

    @property
    def living_area(self) -> Optional[float]:
        return self.record.living_area

    @property
    def room_count(self) -> Optional[float]:
        return self.record.room_count

    @property
    def price_per_area(self) -> Optional[float]:
        return self.record.price_per_area

    def with_score(self, score: float) -> "Comparable":
        return replace(self, similarity_score=score)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON output."""
        record = self.record
        return {
            "date": record.raw_date,
            "address": record.address,
            "property_type": record.property_type,
            "price": record.price,
            "living_area": record.living_area,
            "land_area": record.land_area,
            "room_count": record.room_count,
            "price_per_area": record.price_per_area,
            "latitude": record.latitude,
            "longitude": record.longitude,
            "distance_m": round(self.distance_km * 1000),
            "similarity_score": round(self.similarity_score, 6),
        }


@dataclass(frozen=True)
class SearchBands:
    """Effective search bands applied for a subject."""
    surface_min: float
    surface_max: float
    land_min: Optional[float] = None
    land_max: Optional[float] = None
    rooms: FrozenSet[int] = frozenset()
    radius_km: float = 0.0
    recency_cutoff: Optional[date] = None

    @property
    def filters_land(self) -> bool:
        return self.land_min is not None

    def to_dict(self) -> dict:
        return {
            "surface_min": self.surface_min,
            "surface_max": self.surface_max,
            "land_min": self.land_min,
            "land_max": self.land_max,
            "rooms": sorted(self.rooms),
            "radius_km": self.radius_km,
            "recency_cutoff": (
                self.recency_cutoff.isoformat() if self.recency_cutoff else None
            ),
        }


@dataclass(frozen=True)
class EstimateResult:
    """
    Price-per-area statistics and the four derived estimates.
    """
    count: int
    mean_price_per_area: float
    median_price_per_area: float
    p10_price_per_area: float
    p90_price_per_area: float

    living_area: float

    @property
    def low_estimate(self) -> float:
        return self.p10_price_per_area * self.living_area

    @property
    def mean_estimate(self) -> float:
        return self.mean_price_per_area * self.living_area

    @property
    def median_estimate(self) -> float:
        return self.median_price_per_area * self.living_area

    @property
    def high_estimate(self) -> float:
        return self.p90_price_per_area * self.living_area

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON output."""
        return {
            "count": self.count,
            "mean_price_per_area": self.mean_price_per_area,
            "median_price_per_area": self.median_price_per_area,
            "p10_price_per_area": self.p10_price_per_area,
            "p90_price_per_area": self.p90_price_per_area,
            "low_estimate": self.low_estimate,
            "mean_estimate": self.mean_estimate,
            "median_estimate": self.median_estimate,
            "high_estimate": self.high_estimate,
        }


@dataclass
class EstimationReport:
    """
    Complete output of one estimation request.

    `result` is None when no comparable survived filtering and cleaning.
    `comparables` is the ranked display list; statistics were computed on
    `ranked` (the full cleaned set) before truncation.
    """
    subject: SubjectProperty
    bands: SearchBands
    result: Optional[EstimateResult]

    comparables: List[Comparable] = field(default_factory=list)
    ranked: List[Comparable] = field(default_factory=list)

    # Selection metadata
    candidate_count: int = 0  # Before dedup and cleaning
    duplicates_removed: int = 0
    outliers_removed: int = 0

    @property
    def is_empty(self) -> bool:
        return self.result is None

    def map_points(self, limit: int = 120) -> List[dict]:
        """Subject marker followed by up to `limit` comparable markers."""
        points = [{
            "kind": "subject",
            "latitude": self.subject.latitude,
            "longitude": self.subject.longitude,
            "address": self.subject.address,
        }]
        for comp in self.ranked[:limit]:
            points.append({
                "kind": "comparable",
                "latitude": comp.record.latitude,
                "longitude": comp.record.longitude,
                "address": comp.record.address,
                "date": comp.record.raw_date,
                "price": comp.price,
                "price_per_area": comp.price_per_area,
                "land_area": comp.record.land_area,
                "distance_m": round(comp.distance_km * 1000),
            })
        return points

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON output."""
        return {
            "status": "no_comparables" if self.is_empty else "ok",
            "result": self.result.to_dict() if self.result else None,
            "criteria": self.bands.to_dict(),
            "candidate_count": self.candidate_count,
            "duplicates_removed": self.duplicates_removed,
            "outliers_removed": self.outliers_removed,
            "comparables": [c.to_dict() for c in self.comparables],
        }
