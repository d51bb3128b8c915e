"""Event histogram for the "Events" chart."""

from collections import Counter
from typing import Iterable

from logexplorer.models import LogEvent

MICROS_PER_SECOND = 1_000_000


def build_event_chart(events: Iterable[LogEvent], bucket_seconds: int = 60) -> list[dict]:
    """Count chronological events per fixed-width bucket, oldest bucket first.

    Buckets with no events inside the covered span are included with a zero
    count so the series has no holes.
    """
    width = max(bucket_seconds, 1) * MICROS_PER_SECOND
    counts = Counter(
        (event.timestamp // width) * width
        for event in events
        if event.timestamp is not None
    )
    if not counts:
        return []

    first, last = min(counts), max(counts)
    return [
        {"timestamp": bucket, "count": counts.get(bucket, 0)}
        for bucket in range(first, last + width, width)
    ]
