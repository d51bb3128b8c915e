"""Time range selection and resolution into absolute microsecond bounds."""

import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Union

MICROS_PER_SECOND = 1_000_000
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def now_micros() -> int:
    """Current wall-clock instant in microseconds since epoch."""
    return time.time_ns() // 1000


@dataclass(frozen=True)
class LiveRange:
    """Rolling window ending at "now"."""

    @property
    def is_live(self) -> bool:
        return True


@dataclass(frozen=True)
class BoundedRange:
    """Explicit start/end instants. A missing end means open (live edge)."""

    start: Optional[int] = None
    end: Optional[int] = None

    def __post_init__(self):
        if self.start is not None and self.end is not None and self.start > self.end:
            raise ValueError(f"time range start {self.start} is after end {self.end}")

    @property
    def is_live(self) -> bool:
        return False


TimeRange = Union[LiveRange, BoundedRange]


@dataclass(frozen=True)
class ResolvedRange:
    start: int
    end: int


class TimeRangeResolver:
    """Turns a TimeRange into concrete bounds for the current instant."""

    def __init__(self, window_micros: int, clock: Callable[[], int] = now_micros):
        self.window_micros = window_micros
        self._clock = clock

    def now(self) -> int:
        return self._clock()

    def resolve(self, time_range: TimeRange) -> ResolvedRange:
        now = self._clock()
        if isinstance(time_range, LiveRange):
            return ResolvedRange(start=now - self.window_micros, end=now)

        end = now if time_range.end is None else min(time_range.end, now)
        if time_range.start is None:
            start = end - self.window_micros
        else:
            start = min(time_range.start, end)
        return ResolvedRange(start=start, end=end)

    def freeze(self, time_range: TimeRange) -> BoundedRange:
        """Pin a live range to the current instant so it stops moving."""
        if isinstance(time_range, BoundedRange):
            return time_range
        resolved = self.resolve(time_range)
        return BoundedRange(start=resolved.start, end=resolved.end)


def micros_to_iso(micros: int) -> str:
    """Render a microsecond instant as ``YYYY-MM-DDTHH:MM:SS.mmmZ`` (UTC)."""
    dt = EPOCH + timedelta(microseconds=micros)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def iso_to_micros(value: str) -> int:
    """Parse an ISO-8601 instant (``Z`` suffix allowed) into microseconds."""
    dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    delta = dt - EPOCH
    return (delta.days * 86400 + delta.seconds) * MICROS_PER_SECOND + delta.microseconds
