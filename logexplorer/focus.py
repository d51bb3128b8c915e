"""Single focused row for detail inspection, held by identity key only."""

import logging
from typing import Optional

from logexplorer.models import EventKey, LogEvent, ResultSet

logger = logging.getLogger(__name__)


class FocusTracker:
    def __init__(self):
        self.key: Optional[EventKey] = None

    def select(self, event: LogEvent, result_set: ResultSet) -> bool:
        """Focus a row. No-op for non-chronological (custom query) results."""
        if not result_set.chronological or not event.is_chronological:
            return False
        if event.key not in result_set.keys():
            return False
        self.key = event.key
        return True

    def clear(self) -> None:
        self.key = None

    def reconcile(self, result_set: ResultSet) -> bool:
        """Drop the focus if its event is gone. Returns True if it was cleared."""
        if self.key is None:
            return False
        if result_set.chronological and self.key in result_set.keys():
            return False
        logger.debug("Focused event %s no longer present, closing detail", self.key)
        self.key = None
        return True

    def focused(self, result_set: ResultSet) -> Optional[LogEvent]:
        if self.key is None or not result_set.chronological:
            return None
        return result_set.find(self.key)
