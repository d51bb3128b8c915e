"""Log event, page and result-set models."""

from dataclasses import dataclass, field
from typing import Iterator, Optional

# Fields that every chronological log row carries; anything else is "extra".
CORE_FIELDS = ("event_message", "timestamp", "metadata")

EventKey = tuple[Optional[int], str]


@dataclass(frozen=True)
class LogEvent:
    event_message: str = ""
    timestamp: Optional[int] = None  # microseconds since epoch
    metadata: dict = field(default_factory=dict)
    extra: dict = field(default_factory=dict)
    position: int = 0  # insertion order within the fetched batch

    @property
    def key(self) -> EventKey:
        """Identity used for focus lookup: timestamp + message content."""
        return (self.timestamp, self.event_message)

    @property
    def is_chronological(self) -> bool:
        return self.timestamp is not None

    def to_dict(self) -> dict:
        row = dict(self.extra)
        if self.timestamp is not None:
            row["timestamp"] = self.timestamp
        if self.event_message:
            row["event_message"] = self.event_message
        if self.metadata:
            row["metadata"] = self.metadata
        return row


def _coerce_timestamp(value) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def event_from_row(row: dict, position: int = 0, chronological: bool = True) -> LogEvent:
    """Build a LogEvent from one API row. Unknown columns land in ``extra``.

    Rows of a non-chronological (custom query) result are kept whole in
    ``extra``, whatever their column names and value types.
    """
    if not chronological:
        return LogEvent(extra=dict(row), position=position)
    metadata = row.get("metadata")
    return LogEvent(
        event_message=str(row.get("event_message") or ""),
        timestamp=_coerce_timestamp(row.get("timestamp")),
        metadata=metadata if isinstance(metadata, dict) else {},
        extra={k: v for k, v in row.items() if k not in CORE_FIELDS},
        position=position,
    )


@dataclass(frozen=True)
class Page:
    """One fetched batch. Chronological pages are sorted newest-first."""

    events: tuple[LogEvent, ...] = ()
    upper_bound: Optional[int] = None  # exclusive timestamp_end the page was fetched with

    @classmethod
    def from_rows(
        cls,
        rows: list[dict],
        upper_bound: Optional[int] = None,
        chronological: bool = True,
    ) -> "Page":
        events = [event_from_row(row, i, chronological) for i, row in enumerate(rows)]
        if chronological:
            events = [e for e in events if e.is_chronological]
            if upper_bound is not None:
                events = [e for e in events if e.timestamp < upper_bound]
            events.sort(key=lambda e: (-e.timestamp, e.position))
        return cls(events=tuple(events), upper_bound=upper_bound)

    @property
    def is_empty(self) -> bool:
        return not self.events

    @property
    def min_timestamp(self) -> Optional[int]:
        stamps = [e.timestamp for e in self.events if e.timestamp is not None]
        return min(stamps) if stamps else None

    @property
    def max_timestamp(self) -> Optional[int]:
        stamps = [e.timestamp for e in self.events if e.timestamp is not None]
        return max(stamps) if stamps else None

    def __len__(self) -> int:
        return len(self.events)


@dataclass
class ResultSet:
    """Ordered pages, newest page first and oldest page last."""

    pages: list[Page] = field(default_factory=list)
    chronological: bool = True

    def append(self, page: Page) -> None:
        self.pages.append(page)

    @property
    def events(self) -> list[LogEvent]:
        return [event for page in self.pages for event in page.events]

    def __iter__(self) -> Iterator[LogEvent]:
        for page in self.pages:
            yield from page.events

    def __len__(self) -> int:
        return sum(len(page) for page in self.pages)

    def keys(self) -> set[EventKey]:
        return {event.key for event in self}

    def find(self, key: EventKey) -> Optional[LogEvent]:
        for event in self:
            if event.key == key:
                return event
        return None

    @property
    def oldest_timestamp(self) -> Optional[int]:
        for page in reversed(self.pages):
            ts = page.min_timestamp
            if ts is not None:
                return ts
        return None

    @property
    def newest_timestamp(self) -> Optional[int]:
        for page in self.pages:
            ts = page.max_timestamp
            if ts is not None:
                return ts
        return None
