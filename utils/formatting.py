"""
Formatting utilities.

French display conventions: space thousands separator, "€" suffix.
"""

import math
from typing import Iterable, Optional

from core.estimation.filters import round_half_up
from core.estimation.models import ROOMS_SIX_OR_MORE, EstimationReport


MISSING = "-"


def _is_displayable(value: Optional[float]) -> bool:
    return value is not None and math.isfinite(value)


def format_int(value: Optional[float]) -> str:
    """
    Format a number rounded to an integer with French grouping.

    Args:
        value: The number (None or non-finite renders as "-").

    Returns:
        Formatted string, e.g. "1 234 567".
    """
    if not _is_displayable(value):
        return MISSING
    return f"{round_half_up(value):,}".replace(",", " ")


def format_euro(amount: Optional[float]) -> str:
    """Format an amount in euros, e.g. "300 000 €"."""
    if not _is_displayable(amount):
        return MISSING
    return f"{format_int(amount)} €"


def format_price_per_m2(value: Optional[float]) -> str:
    """Format a price per m², e.g. "3 000 €/m²"."""
    if not _is_displayable(value):
        return MISSING
    return f"{format_int(value)} €/m²"


def format_rooms(rooms: Iterable[int]) -> str:
    """Room filter label; the 6 sentinel renders as "6+"."""
    labels = [
        f"{r}+" if r == ROOMS_SIX_OR_MORE else str(r)
        for r in sorted(rooms)
    ]
    return ", ".join(labels) if labels else "peu importe"


def format_date(value) -> str:
    """Format a date as DD/MM/YYYY."""
    if value is None:
        return MISSING
    return value.strftime("%d/%m/%Y")


def describe_criteria(report: EstimationReport) -> str:
    """
    One-line summary of the search criteria.

    Example: "Maison • Rayon 5 km • Surface 85–115 m² • Pièces peu importe
    • Après 01/01/2023"
    """
    bands = report.bands
    radius = f"{bands.radius_km:g}"
    parts = [
        report.subject.property_type,
        f"Rayon {radius} km",
        f"Surface {format_int(bands.surface_min)}–{format_int(bands.surface_max)} m²",
        f"Pièces {format_rooms(bands.rooms)}",
    ]
    if bands.filters_land:
        parts.append(f"Terrain {format_int(bands.land_min)}–{format_int(bands.land_max)} m²")
    parts.append(f"Après {format_date(bands.recency_cutoff)}")
    return " • ".join(parts)
