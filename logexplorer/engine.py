"""Log explorer engine — single owner of query, pagination, polling and focus state.

Rendering code reads ``snapshot()`` and calls the action coroutines; it never
mutates engine state directly. All actions run on one event loop; network
calls are the only suspension points.
"""

import logging
from dataclasses import dataclass
from typing import Awaitable, Mapping, Optional, Protocol

from logexplorer.chart import build_event_chart
from logexplorer.config import ExplorerConfig
from logexplorer.errors import MalformedQuery, TransportError
from logexplorer.focus import FocusTracker
from logexplorer.models import LogEvent, ResultSet
from logexplorer.pagination import PageQuery, PaginationManager
from logexplorer.poller import PollController
from logexplorer.preferences import Preferences
from logexplorer.query_builder import build_count_params
from logexplorer.query_mode import QueryModeKind
from logexplorer.time_range import (
    BoundedRange,
    LiveRange,
    TimeRange,
    TimeRangeResolver,
    micros_to_iso,
    now_micros,
)
from logexplorer.url_sync import UrlSynchronizer, UrlWriter

logger = logging.getLogger(__name__)


class LogApi(Protocol):
    def fetch_rows(self, params: dict[str, str]) -> Awaitable[list[dict]]: ...

    def fetch_count(self, params: dict[str, str]) -> Awaitable[Optional[int]]: ...


@dataclass(frozen=True)
class EngineState:
    events: list[LogEvent]
    pending_count: int
    focused: Optional[LogEvent]
    is_loading: bool
    is_loading_older: bool
    error: Optional[str]
    query_error: Optional[str]
    mode: QueryModeKind
    search_text: str
    where_clause: str
    sql: str
    time_range: TimeRange
    time_range_end_display: Optional[str]
    can_load_older: bool
    can_focus: bool
    show_chart: bool
    chart: list[dict]
    notice: Optional[str]


class LogExplorerEngine:
    def __init__(
        self,
        api: LogApi,
        config: ExplorerConfig,
        url_params: Optional[Mapping[str, object]] = None,
        url_writer: Optional[UrlWriter] = None,
        clock=now_micros,
        preferences: Optional[Preferences] = None,
    ):
        self.config = config
        self._api = api
        self.resolver = TimeRangeResolver(config.live_window_micros, clock)
        self.url = UrlSynchronizer(url_params or {}, url_writer)
        seed = self.url.seed(config.custom_query_template)
        self.mode = seed.mode
        self.time_range: TimeRange = seed.time_range
        self.pagination = PaginationManager(api.fetch_rows)
        self.poller = PollController(self._fetch_pending_count, config.poll_interval)
        self.focus = FocusTracker()
        self.preferences = preferences or Preferences(None)
        self.error: Optional[str] = None
        self.query_error: Optional[str] = None
        self._live_edge: Optional[int] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def mount(self) -> bool:
        """Issue the first query and start polling. Call from a running loop."""
        if self.config.poll_enabled:
            self.poller.start(suspended=not self.mode.is_chronological)
        logger.info(
            "Mounted log explorer: mode=%s, range=%s",
            self.mode.active_kind.value,
            "live" if self.time_range.is_live else "bounded",
        )
        return await self._reset()

    def close(self) -> None:
        self.poller.stop()

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def result_set(self) -> ResultSet:
        return self.pagination.result_set

    @property
    def events(self) -> list[LogEvent]:
        return self.result_set.events

    @property
    def pending_count(self) -> int:
        return self.poller.pending_count

    @property
    def focused_event(self) -> Optional[LogEvent]:
        return self.focus.focused(self.result_set)

    @property
    def is_chronological(self) -> bool:
        return self.mode.is_chronological and self.result_set.chronological

    @property
    def can_load_older(self) -> bool:
        return self.mode.is_chronological and self.pagination.can_load_older

    @property
    def notice(self) -> Optional[str]:
        if self.mode.active_kind is QueryModeKind.CUSTOM_QUERY:
            return (
                f"Custom queries are restricted to a {self.config.sandbox_window_days} "
                f"day querying window."
            )
        return None

    @property
    def time_range_end_display(self) -> Optional[str]:
        if isinstance(self.time_range, BoundedRange) and self.time_range.end is not None:
            return micros_to_iso(self.time_range.end)
        return None

    def snapshot(self) -> EngineState:
        chronological = self.is_chronological
        return EngineState(
            events=self.events,
            pending_count=self.pending_count,
            focused=self.focused_event,
            is_loading=self.pagination.is_resetting,
            is_loading_older=self.pagination.is_loading_older,
            error=self.error,
            query_error=self.query_error,
            mode=self.mode.active_kind,
            search_text=self.mode.search_text,
            where_clause=self.mode.where_clause,
            sql=self.mode.sql,
            time_range=self.time_range,
            time_range_end_display=self.time_range_end_display,
            can_load_older=self.can_load_older,
            can_focus=chronological,
            show_chart=self.preferences.show_chart,
            chart=(
                build_event_chart(self.events, self.config.chart_bucket_seconds)
                if chronological else []
            ),
            notice=self.notice,
        )

    # ------------------------------------------------------------------
    # Defining changes
    # ------------------------------------------------------------------

    async def set_search(self, text: str) -> bool:
        """Submit search bar text. Only the draft is kept while another mode is active."""
        self.mode.set_draft(QueryModeKind.SEARCH_BAR, text)
        if self.mode.active_kind is not QueryModeKind.SEARCH_BAR:
            return False
        return await self._defining_change()

    async def set_filter(self, where_clause: str) -> bool:
        self.mode.set_draft(QueryModeKind.ADVANCED_FILTER, where_clause)
        if self.mode.active_kind is not QueryModeKind.ADVANCED_FILTER:
            return False
        return await self._defining_change()

    async def set_custom_query(self, sql: str) -> bool:
        self.mode.set_draft(QueryModeKind.CUSTOM_QUERY, sql)
        if self.mode.active_kind is not QueryModeKind.CUSTOM_QUERY:
            return False
        return await self._defining_change()

    async def switch_mode(self, kind: QueryModeKind) -> bool:
        if not self.mode.switch(kind):
            return False
        logger.info("Switched query mode to %s", kind.value)
        return await self._defining_change()

    async def set_time_range(self, time_range: TimeRange) -> bool:
        self.time_range = time_range
        return await self._defining_change()

    async def freeze_time_range(self) -> bool:
        """Switch a live range to bounded, pinned at the current instant."""
        if not isinstance(self.time_range, LiveRange):
            return False
        return await self.set_time_range(self.resolver.freeze(self.time_range))

    async def run_query(self) -> bool:
        """Re-issue the active query as typed (the "Run" / retry action)."""
        return await self._defining_change()

    async def _defining_change(self) -> bool:
        self.url.mirror(self.mode, self.time_range)
        return await self._reset()

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    async def refresh(self) -> bool:
        """Fold pending events in: zero the count and reload the first page."""
        logger.info("Refreshing (pending_count=%d)", self.pending_count)
        return await self._reset()

    async def load_older(self) -> bool:
        if not self.can_load_older:
            return False
        try:
            return await self.pagination.load_older()
        except MalformedQuery as e:
            self.query_error = str(e)
            logger.warning("Older page rejected: %s", e)
        except TransportError as e:
            self.error = str(e)
            logger.error("Loading older logs failed: %s", e)
        return False

    def select_row(self, event: LogEvent) -> bool:
        if not self.mode.is_chronological:
            return False
        return self.focus.select(event, self.result_set)

    def clear_focus(self) -> None:
        self.focus.clear()

    def dismiss_error(self) -> None:
        self.error = None

    def toggle_chart(self) -> bool:
        self.preferences.show_chart = not self.preferences.show_chart
        return self.preferences.show_chart

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _sync_poll_state(self) -> None:
        if self.mode.is_chronological:
            self.poller.resume()
        else:
            self.poller.suspend()

    async def _reset(self) -> bool:
        self.poller.reset_count()
        self._sync_poll_state()
        query = PageQuery(self.mode.active, self.resolver.resolve(self.time_range))
        self.query_error = None
        try:
            applied = await self.pagination.reset(query)
        except MalformedQuery as e:
            self.query_error = str(e)
            logger.warning("Query rejected: %s", e)
            return False
        except TransportError as e:
            self.error = str(e)
            logger.error("Loading logs failed: %s", e)
            return False

        if not applied:
            return False

        self.error = None
        # ticks issued against the previous live edge no longer apply
        self.poller.reset_count()
        self._live_edge = self.result_set.newest_timestamp or query.time_range.end
        self.focus.reconcile(self.result_set)
        return True

    async def _fetch_pending_count(self) -> Optional[int]:
        query = self.pagination.query
        if query is None or not query.chronological or self.pagination.is_resetting:
            return None
        since = (self._live_edge if self._live_edge is not None else query.time_range.end) + 1
        return await self._api.fetch_count(build_count_params(query.mode, since))
