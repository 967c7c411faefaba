"""
Time Window Bucketing

Aligns timestamps from different sources onto a common grid so that
telecom windows and ticket bookings can be compared bucket by bucket.
"""

from datetime import datetime
from typing import Union

from footfall.domain.models import Interval


def bucket_start(ts: datetime, interval: Union[Interval, str] = Interval.HOUR) -> datetime:
    """
    Truncate a timestamp down to the start of its bucket.

    Seconds and sub-second components are always dropped. The timezone of
    ``ts`` is left untouched.

    Args:
        ts: Timestamp to bucket
        interval: ``hour`` or ``15-minute``

    Returns:
        Start instant of the bucket containing ``ts``
    """
    interval = Interval(interval)
    if interval is Interval.HOUR:
        return ts.replace(minute=0, second=0, microsecond=0)
    return ts.replace(minute=ts.minute - ts.minute % 15, second=0, microsecond=0)


def same_bucket(a: datetime, b: datetime, interval: Union[Interval, str] = Interval.HOUR) -> bool:
    """Two timestamps share a bucket iff their truncated values are equal."""
    return bucket_start(a, interval) == bucket_start(b, interval)
