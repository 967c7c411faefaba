"""Confidence filtering for telecom aggregates."""

from typing import Iterable, List

import structlog

from footfall.domain.models import TelecomAggregate

logger = structlog.get_logger(__name__)

DEFAULT_MIN_CONFIDENCE = 0.5


def filter_by_confidence(
    aggregates: Iterable[TelecomAggregate],
    threshold: float = DEFAULT_MIN_CONFIDENCE,
) -> List[TelecomAggregate]:
    """
    Keep aggregates whose confidence score reaches the threshold.

    Order is preserved. Records below the threshold are dropped without
    being reported as errors; ticket data never passes through here.
    """
    aggregates = list(aggregates)
    kept = [a for a in aggregates if a.confidence_score >= threshold]

    dropped = len(aggregates) - len(kept)
    if dropped:
        logger.debug("Dropped low-confidence aggregates", dropped=dropped, threshold=threshold)

    return kept
