"""
Dataset Schema - Column Aliases for Transaction Exports

Maps each canonical transaction field to the header spellings accepted in
DVF-style exports. Headers are normalised (case-folded, diacritics removed,
whitespace collapsed) before matching, so "Valeur Foncière" and
"valeur fonciere" resolve identically.
"""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass, field
from typing import Final, Optional, Sequence

from core.errors import SchemaError


# =============================================================================
# Canonical Fields
# =============================================================================

PRICE: Final = "price"
PROPERTY_TYPE: Final = "property_type"
LIVING_AREA: Final = "living_area"
ROOM_COUNT: Final = "room_count"
LAND_AREA: Final = "land_area"
LATITUDE: Final = "latitude"
LONGITUDE: Final = "longitude"
STREET_NUMBER: Final = "street_number"
STREET_NAME: Final = "street_name"
POSTAL_CODE: Final = "postal_code"
CITY: Final = "city"
DATE: Final = "date"

# Canonical field -> accepted headers, in order of preference
COLUMN_ALIASES: Final[dict[str, tuple[str, ...]]] = {
    PRICE: ("valeur fonciere", "valeur_fonciere", "prix"),
    PROPERTY_TYPE: ("type local", "type_local", "type"),
    LIVING_AREA: (
        "surface reelle bati",
        "surface_reelle_bati",
        "surface habitable",
        "surface_habitable",
    ),
    ROOM_COUNT: (
        "nombre pieces principales",
        "nombre_pieces_principales",
        "pieces",
        "nb pieces principales",
    ),
    LAND_AREA: ("surface terrain", "surface_terrain"),
    LATITUDE: ("latitude", "lat"),
    LONGITUDE: ("longitude", "lon", "lng"),
    STREET_NUMBER: ("adresse numero", "adresse_numero", "numero"),
    STREET_NAME: ("adresse nom de voie", "adresse_nom_de_voie", "voie"),
    POSTAL_CODE: ("code postal", "code_postal", "cp"),
    CITY: ("nom commune", "nom_commune", "commune", "ville"),
    DATE: ("date mutation", "date_mutation", "date"),
}

REQUIRED_COLUMNS: Final[tuple[str, ...]] = (
    PRICE,
    PROPERTY_TYPE,
    LIVING_AREA,
    LATITUDE,
    LONGITUDE,
)

_WHITESPACE_RE: Final = re.compile(r"\s+")


def normalize_header(value: Optional[str]) -> str:
    """
    Normalise a header for alias matching.

    Trims, lowercases, strips diacritics and collapses whitespace.
    """
    text = (value or "").strip().lower()
    decomposed = unicodedata.normalize("NFD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _WHITESPACE_RE.sub(" ", stripped)


@dataclass(frozen=True)
class ColumnMap:
    """Header indices resolved once per dataset load."""

    indices: dict[str, int] = field(default_factory=dict)

    def index(self, name: str) -> Optional[int]:
        return self.indices.get(name)

    def has(self, name: str) -> bool:
        return name in self.indices

    @property
    def optional_present(self) -> list[str]:
        return [
            name for name in COLUMN_ALIASES
            if name in self.indices and name not in REQUIRED_COLUMNS
        ]


def resolve_columns(headers: Sequence[str]) -> ColumnMap:
    """
    Resolve canonical fields to header indices.

    Args:
        headers: Raw header cells of the dataset

    Returns:
        ColumnMap with one index per resolved field

    Raises:
        SchemaError: If any required column is missing
    """
    normalised = [normalize_header(h) for h in headers]
    indices: dict[str, int] = {}

    for name, aliases in COLUMN_ALIASES.items():
        for alias in aliases:
            target = normalize_header(alias)
            if target in normalised:
                indices[name] = normalised.index(target)
                break

    missing = [name for name in REQUIRED_COLUMNS if name not in indices]
    if missing:
        raise SchemaError(missing)

    return ColumnMap(indices=indices)
