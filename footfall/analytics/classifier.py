"""
Crowd Classification

Fixed thresholds. The high-crowd bands and the low-crowd ceiling are
independent and overlap between 12000 and 15000.
"""

from footfall.domain.models import CrowdLevel

MODERATE_THRESHOLD = 8000
HIGH_THRESHOLD = 12000
CRITICAL_THRESHOLD = 20000

LOW_CROWD_CEILING = 15000


def classify_crowd(count: float) -> CrowdLevel:
    """Map a numeric crowd estimate to its categorical level."""
    if count >= CRITICAL_THRESHOLD:
        return CrowdLevel.CRITICAL
    if count >= HIGH_THRESHOLD:
        return CrowdLevel.HIGH
    if count >= MODERATE_THRESHOLD:
        return CrowdLevel.MODERATE
    return CrowdLevel.LOW


def is_high_crowd(count: float) -> bool:
    """Whether a place belongs in high-crowd lists at all."""
    return count >= MODERATE_THRESHOLD


def is_low_crowd(count: float) -> bool:
    """Whether a place qualifies for low-crowd recommendations."""
    return count <= LOW_CROWD_CEILING
