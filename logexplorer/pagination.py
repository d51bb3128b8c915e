"""Cursor-based backward pagination with epoch-tagged requests."""

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from logexplorer.errors import LogExplorerError, MalformedQuery, StaleResponse
from logexplorer.models import Page, ResultSet
from logexplorer.query_builder import build_query_params
from logexplorer.query_mode import CustomQuery, QueryMode
from logexplorer.time_range import ResolvedRange

logger = logging.getLogger(__name__)

FetchRows = Callable[[dict[str, str]], Awaitable[list[dict]]]


@dataclass(frozen=True)
class PageQuery:
    """The defining inputs of one query epoch."""

    mode: QueryMode
    time_range: ResolvedRange

    @property
    def chronological(self) -> bool:
        return not isinstance(self.mode, CustomQuery)


class PaginationManager:
    """Owns the ResultSet and the "load older" cursor.

    Every request is tagged with the epoch it was issued in. A reset starts a
    new epoch; responses that come back for an older epoch are dropped. The
    displayed ResultSet is only replaced once the new first page arrives, so
    a failed reset leaves the previous pages in place.
    """

    def __init__(self, fetch_rows: FetchRows):
        self._fetch_rows = fetch_rows
        self.epoch = 0
        self._committed_epoch = 0
        self.query: Optional[PageQuery] = None
        self.result_set = ResultSet()
        self.next_cursor: Optional[int] = None
        self._older_in_flight = False

    @property
    def is_resetting(self) -> bool:
        return self._committed_epoch != self.epoch

    @property
    def is_loading_older(self) -> bool:
        return self._older_in_flight

    @property
    def can_load_older(self) -> bool:
        return self.query is not None and self.query.chronological

    def _check_current(self, epoch: int) -> None:
        if epoch != self.epoch:
            raise StaleResponse(epoch, self.epoch)

    async def reset(self, query: PageQuery) -> bool:
        """Start a new epoch and fetch its first page.

        Returns False when the response was superseded by a newer reset.
        Raises MalformedQuery without sending anything if the query cannot be
        built, and re-raises fetch errors for the current epoch. Either way the
        new epoch is started, so earlier in-flight requests are dropped.
        """
        self.epoch += 1
        epoch = self.epoch
        self._older_in_flight = False
        try:
            params = build_query_params(query.mode, query.time_range)
        except MalformedQuery:
            self._committed_epoch = epoch
            raise
        logger.debug("Epoch %d: fetching first page %s", epoch, params)

        try:
            rows = await self._fetch_rows(params)
            self._check_current(epoch)
        except StaleResponse as e:
            logger.debug("Dropping first page: %s", e)
            return False
        except LogExplorerError:
            if epoch != self.epoch:
                logger.debug("Dropping failed first page for stale epoch %d", epoch)
                return False
            # previous pages stay visible and usable
            self._committed_epoch = epoch
            raise

        page = Page.from_rows(rows, chronological=query.chronological)
        self.query = query
        self.result_set = ResultSet(pages=[page], chronological=query.chronological)
        if query.chronological:
            self.next_cursor = page.min_timestamp if not page.is_empty else query.time_range.end
        else:
            self.next_cursor = None
        self._committed_epoch = epoch
        logger.debug("Epoch %d: first page has %d row(s)", epoch, len(page))
        return True

    async def load_older(self) -> bool:
        """Fetch the page before ``next_cursor`` and append it.

        An empty page is appended as a normal outcome and leaves the cursor
        unchanged, so repeated calls on an exhausted range are no-ops.
        Returns False when nothing was appended.
        """
        if not self.can_load_older or self.is_resetting or self._older_in_flight:
            return False

        epoch = self.epoch
        cursor = self.next_cursor
        params = build_query_params(self.query.mode, self.query.time_range, cursor=cursor)
        self._older_in_flight = True
        logger.debug("Epoch %d: loading older page before %s", epoch, cursor)

        try:
            rows = await self._fetch_rows(params)
            self._check_current(epoch)
        except StaleResponse as e:
            logger.debug("Dropping older page: %s", e)
            return False
        except LogExplorerError:
            if epoch != self.epoch:
                logger.debug("Dropping failed older page for stale epoch %d", epoch)
                return False
            raise
        finally:
            if epoch == self.epoch:
                self._older_in_flight = False

        page = Page.from_rows(rows, upper_bound=cursor)
        self.result_set.append(page)
        if not page.is_empty:
            self.next_cursor = page.min_timestamp
        logger.debug("Epoch %d: appended page %d with %d row(s)",
                     epoch, len(self.result_set.pages), len(page))
        return True
