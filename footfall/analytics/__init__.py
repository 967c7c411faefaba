"""
Footfall Analytics Module
"""
from .bucketing import bucket_start, same_bucket
from .classifier import classify_crowd, is_high_crowd, is_low_crowd
from .confidence import filter_by_confidence
from .counter import PlaceCrowdCounter
from .matching import PlaceKey, normalize_name, place_key
from .merger import FootfallMerger, MergeWeights, summarize_telecom
from .recommender import recommend

__all__ = [
    "bucket_start",
    "same_bucket",
    "classify_crowd",
    "is_high_crowd",
    "is_low_crowd",
    "filter_by_confidence",
    "PlaceCrowdCounter",
    "PlaceKey",
    "normalize_name",
    "place_key",
    "FootfallMerger",
    "MergeWeights",
    "summarize_telecom",
    "recommend",
]
