"""
Address Geocoding Service

Resolves a free-text French address to coordinates using the national
address API (Base Adresse Nationale, api-adresse.data.gouv.fr).

The estimation pipeline only consumes a (latitude, longitude) pair. Any
failure (no match, network error, unexpected payload) is a normal
"address not found" outcome, never an exception.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import requests


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration
# =============================================================================

BAN_SEARCH_URL = "https://api-adresse.data.gouv.fr/search/"
USER_AGENT = "EstimImmo/1.0"
REQUEST_TIMEOUT_SECONDS = 10


@dataclass(frozen=True)
class Coordinates:
    """A resolved point."""
    latitude: float
    longitude: float
    label: str = ""


def build_query(address: str, postal_code: str = "", city: str = "") -> str:
    """Single-line geocoder query from form fields."""
    return " ".join(p.strip() for p in (address, postal_code, city) if p and p.strip())


class AddressGeocoder:
    """
    Geocoder backed by the BAN search API.

    Features:
    - One result per query (limit=1)
    - Custom User-Agent
    - No retries
    """

    def __init__(
        self,
        base_url: str = BAN_SEARCH_URL,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
    ):
        self._base_url = base_url
        self._timeout = timeout
        self._session = requests.Session()
        self._session.headers.update({
            "User-Agent": USER_AGENT,
            "Accept": "application/json",
        })

    def resolve(self, query: str) -> Optional[Coordinates]:
        """
        Resolve an address.

        Args:
            query: Free-text address, e.g. "12 rue des Lilas 75011 Paris"

        Returns:
            Coordinates of the best match, or None if not found.
        """
        if not query or not query.strip():
            return None

        try:
            response = self._session.get(
                self._base_url,
                params={"q": query, "limit": 1},
                timeout=self._timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning("Geocoding failed for %r: %s", query, e)
            return None

        return self._parse_feature(payload, query)

    @staticmethod
    def _parse_feature(payload: dict, query: str) -> Optional[Coordinates]:
        """Extract the first GeoJSON feature; coordinates are [lon, lat]."""
        features = payload.get("features") if isinstance(payload, dict) else None
        if not features:
            logger.info("No geocoding match for %r", query)
            return None

        feature = features[0]
        try:
            lon, lat = feature["geometry"]["coordinates"][:2]
            coordinates = Coordinates(
                latitude=float(lat),
                longitude=float(lon),
                label=feature.get("properties", {}).get("label", ""),
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Malformed geocoding feature for %r: %s", query, e)
            return None

        return coordinates

    def close(self) -> None:
        """Close the session."""
        self._session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


# Singleton instance for the application
_geocoder: Optional[AddressGeocoder] = None


def get_geocoder() -> AddressGeocoder:
    """Get the geocoder singleton."""
    global _geocoder
    if _geocoder is None:
        _geocoder = AddressGeocoder()
    return _geocoder
