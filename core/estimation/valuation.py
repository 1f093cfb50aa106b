"""
Valuation Engine

Pipeline:
1. FILTER - Select comparables matching the subject
2. QUALITY CONTROL - Remove duplicates and implausible prices
3. VALUATE - Price-per-m² statistics over the full cleaned set
4. RANK - Order comparables by similarity for display
"""

import logging
from typing import Iterable

from .cleaning import clean, deduplicate
from .config import EstimationConfig
from .filters import ComparableFilter
from .models import EstimationReport, SubjectProperty, TransactionRecord
from .scoring import rank
from .statistics import compute_estimate


logger = logging.getLogger(__name__)


class ValuationEngine:
    """
    Complete estimation pipeline for one subject property.

    Holds no per-request state; one instance can serve concurrent requests.
    """

    def __init__(self, config: EstimationConfig = None):
        """
        Initialize valuation engine.

        Args:
            config: Estimation configuration (default: EstimationConfig())
        """
        self._config = config or EstimationConfig()
        self._filter = ComparableFilter(self._config)

    @property
    def config(self) -> EstimationConfig:
        return self._config

    def valuate(
        self,
        subject: SubjectProperty,
        records: Iterable[TransactionRecord],
    ) -> EstimationReport:
        """
        Perform complete estimation for a subject property.

        Args:
            subject: The property being estimated
            records: All transactions in the dataset (never modified)

        Returns:
            EstimationReport; its result is None when no comparable survives
        """
        bands = self._filter.bands_for(subject)

        # Step 1: Filter to matching comparables
        candidates = self._filter.select(subject, records)

        # Step 2: Quality controls
        unique = deduplicate(candidates)
        cleaned = clean(unique, subject.property_type, self._config)

        # Step 3: Statistics on the full cleaned set
        result = compute_estimate(cleaned, subject.living_area)

        # Step 4: Display ordering
        ranked = rank(cleaned, subject, config=self._config)

        logger.info(
            "Estimated %s %.0fm² within %.1fkm: %d candidates, %d duplicates, "
            "%d outliers, %d comparables",
            subject.property_type,
            subject.living_area,
            subject.radius_km,
            len(candidates),
            len(candidates) - len(unique),
            len(unique) - len(cleaned),
            len(cleaned),
        )

        return EstimationReport(
            subject=subject,
            bands=bands,
            result=result,
            comparables=ranked[:self._config.top_n],
            ranked=ranked,
            candidate_count=len(candidates),
            duplicates_removed=len(candidates) - len(unique),
            outliers_removed=len(unique) - len(cleaned),
        )
