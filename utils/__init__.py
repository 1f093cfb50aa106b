"""
Utility modules for the estimator.
"""

from .formatting import (
    describe_criteria,
    format_euro,
    format_int,
    format_price_per_m2,
    format_rooms,
)
from .config import Config

__all__ = [
    "describe_criteria",
    "format_euro",
    "format_int",
    "format_price_per_m2",
    "format_rooms",
    "Config",
]
