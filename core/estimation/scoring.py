"""
Similarity ranking of comparables for display.

Lower score = more similar. Surface proximity dominates; room count and
distance only break near-ties. Ranking never affects the statistics, which
run over the full cleaned set.
"""

from typing import List

from .config import EstimationConfig
from .filters import active_rooms
from .models import Comparable, ROOMS_SIX_OR_MORE, SubjectProperty


# Penalty weights
ROOM_PENALTY_PER_ROOM = 0.02
ROOM_PENALTY_MAX_ROOMS = 4
DISTANCE_PENALTY_MAX = 0.02
MIN_RADIUS_KM = 0.1


def room_penalty(
    comp: Comparable,
    subject: SubjectProperty,
    config: EstimationConfig = None,
) -> float:
    """Zero unless the room filter applies to this subject."""
    rooms = comp.room_count
    desired = active_rooms(subject, config)
    if not desired or rooms is None:
        return 0.0

    if ROOMS_SIX_OR_MORE in desired and rooms >= ROOMS_SIX_OR_MORE:
        return 0.0

    min_diff = min(abs(rooms - r) for r in desired)
    return ROOM_PENALTY_PER_ROOM * min(min_diff, ROOM_PENALTY_MAX_ROOMS)


def distance_penalty(comp: Comparable, subject: SubjectProperty) -> float:
    ratio = comp.distance_km / max(subject.radius_km, MIN_RADIUS_KM)
    return min(ratio, 1.0) * DISTANCE_PENALTY_MAX


def similarity_score(
    comp: Comparable,
    subject: SubjectProperty,
    config: EstimationConfig = None,
) -> float:
    """
    Score a comparable against the subject.

    score = |area - subject area| / subject area + room penalty + distance penalty
    """
    surface_diff = abs(comp.living_area - subject.living_area) / subject.living_area
    return (
        surface_diff
        + room_penalty(comp, subject, config)
        + distance_penalty(comp, subject)
    )


def rank(
    comps: List[Comparable],
    subject: SubjectProperty,
    limit: int = None,
    config: EstimationConfig = None,
) -> List[Comparable]:
    """
    Sort comparables by similarity, ties broken by distance.

    Args:
        comps: Cleaned comparables
        subject: The subject property
        limit: Keep only the first `limit` (default: all)
        config: Decides whether rooms count for this type (default: EstimationConfig())

    Returns:
        New Comparable objects with similarity_score set
    """
    scored = [c.with_score(similarity_score(c, subject, config)) for c in comps]
    scored.sort(key=lambda c: (c.similarity_score, c.distance_km))

    if limit is not None:
        return scored[:limit]
    return scored
