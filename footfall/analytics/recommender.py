"""Low-crowd and high-crowd recommendation lists."""

from dataclasses import replace
from typing import Iterable, List, Union

from footfall.analytics.classifier import classify_crowd, is_high_crowd, is_low_crowd
from footfall.domain.models import Direction, MergedPlaceEstimate

DEFAULT_LIMIT = 6


def recommend(
    estimates: Iterable[MergedPlaceEstimate],
    direction: Union[Direction, str],
    limit: int = DEFAULT_LIMIT,
) -> List[MergedPlaceEstimate]:
    """
    Filter and rank merged place estimates.

    Low: crowd count at most 15000, quietest first.
    High: crowd count at least 8000, busiest first, crowd level attached.
    Ties keep arrival order.
    """
    direction = Direction(direction)
    if limit < 1:
        return []

    if direction is Direction.LOW:
        candidates = [e for e in estimates if is_low_crowd(e.crowd_count)]
        ranked = sorted(candidates, key=lambda e: e.crowd_count)
        return ranked[:limit]

    candidates = [e for e in estimates if is_high_crowd(e.crowd_count)]
    ranked = sorted(candidates, key=lambda e: e.crowd_count, reverse=True)
    return [replace(e, crowd_level=classify_crowd(e.crowd_count)) for e in ranked[:limit]]
