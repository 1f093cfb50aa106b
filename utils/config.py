"""
Configuration management.
"""

import os
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from core.estimation.config import (
    LAND_TOLERANCE,
    RECENCY_CUTOFF,
    TOP_N,
    EstimationConfig,
)


@dataclass
class Config:
    """
    Application configuration.

    Loads from environment variables with sensible defaults.
    """

    # Server
    host: str = field(default_factory=lambda: os.getenv("HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "8000")))
    debug: bool = field(default_factory=lambda: os.getenv("DEBUG", "false").lower() == "true")
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())

    # Data
    dataset_path: str = field(default_factory=lambda: os.getenv("DATASET_PATH", "./data/dvf_light.csv"))
    dataset_url: Optional[str] = field(default_factory=lambda: os.getenv("DATASET_URL") or None)

    # Geocoding
    geocoder_url: str = field(
        default_factory=lambda: os.getenv("GEOCODER_URL", "https://api-adresse.data.gouv.fr/search/")
    )
    request_timeout: int = field(default_factory=lambda: int(os.getenv("REQUEST_TIMEOUT", "10")))

    # Estimation
    recency_cutoff: str = field(
        default_factory=lambda: os.getenv("RECENCY_CUTOFF", RECENCY_CUTOFF.isoformat())
    )
    land_tolerance: float = field(
        default_factory=lambda: float(os.getenv("LAND_TOLERANCE", str(LAND_TOLERANCE)))
    )
    top_n: int = field(default_factory=lambda: int(os.getenv("TOP_N", str(TOP_N))))

    @classmethod
    def load(cls) -> "Config":
        """Load configuration from environment."""
        return cls()

    @property
    def dataset_source(self) -> str:
        """URL when configured, otherwise the local path."""
        return self.dataset_url or self.dataset_path

    def estimation_config(self) -> EstimationConfig:
        """Build the estimation configuration."""
        return EstimationConfig(
            land_tolerance=self.land_tolerance,
            recency_cutoff=date.fromisoformat(self.recency_cutoff),
            top_n=self.top_n,
        )

    def to_dict(self) -> dict:
        """Convert config to dictionary."""
        return {
            "host": self.host,
            "port": self.port,
            "debug": self.debug,
            "log_level": self.log_level,
            "dataset_path": self.dataset_path,
            "dataset_url": self.dataset_url,
            "geocoder_url": self.geocoder_url,
            "request_timeout": self.request_timeout,
            "recency_cutoff": self.recency_cutoff,
            "land_tolerance": self.land_tolerance,
            "top_n": self.top_n,
        }
