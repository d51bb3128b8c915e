"""Seed engine state from URL query parameters and mirror it back.

Recognized parameters:
    s   search bar text
    q   advanced filter (where clause); wins over ``s`` when both are set
    te  time-range end, microseconds since epoch

Any other parameter (route params, etc.) is passed through untouched.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Mapping, Optional
from urllib.parse import parse_qsl, urlencode

from logexplorer.query_mode import QueryModeKind, QueryModeState
from logexplorer.time_range import BoundedRange, LiveRange, TimeRange

logger = logging.getLogger(__name__)

SEARCH_PARAM = "s"
FILTER_PARAM = "q"
END_PARAM = "te"
RECOGNIZED = (SEARCH_PARAM, FILTER_PARAM, END_PARAM)

UrlWriter = Callable[[dict[str, str]], None]


@dataclass
class UrlSeed:
    mode: QueryModeState = field(default_factory=QueryModeState)
    time_range: TimeRange = field(default_factory=LiveRange)


def parse_query_string(query: str) -> dict[str, str]:
    return dict(parse_qsl(query.lstrip("?"), keep_blank_values=True))


def _parse_end(raw) -> Optional[int]:
    try:
        return int(raw)
    except (TypeError, ValueError):
        logger.warning("Ignoring non-integer te=%r", raw)
        return None


def seed_from_params(params: Mapping[str, object], custom_template: str = "") -> UrlSeed:
    """Build initial mode and time range from URL parameters."""
    mode = QueryModeState()
    mode.set_draft(QueryModeKind.CUSTOM_QUERY, custom_template)

    where = params.get(FILTER_PARAM)
    search = params.get(SEARCH_PARAM)
    if where:
        mode.set_draft(QueryModeKind.ADVANCED_FILTER, str(where))
        mode.switch(QueryModeKind.ADVANCED_FILTER)
    elif search:
        mode.set_draft(QueryModeKind.SEARCH_BAR, str(search))

    time_range: TimeRange = LiveRange()
    raw_end = params.get(END_PARAM)
    if raw_end not in (None, ""):
        end = _parse_end(raw_end)
        if end is not None:
            time_range = BoundedRange(end=end)

    return UrlSeed(mode=mode, time_range=time_range)


def params_from_state(mode: QueryModeState, time_range: TimeRange) -> dict[str, str]:
    """The recognized parameters that describe the current state."""
    params: dict[str, str] = {}
    if mode.active_kind is QueryModeKind.SEARCH_BAR and mode.search_text:
        params[SEARCH_PARAM] = mode.search_text
    elif mode.active_kind is QueryModeKind.ADVANCED_FILTER and mode.where_clause:
        params[FILTER_PARAM] = mode.where_clause
    if isinstance(time_range, BoundedRange) and time_range.end is not None:
        params[END_PARAM] = str(time_range.end)
    return params


class UrlSynchronizer:
    """One-shot seed on mount, then a one-way mirror of every defining change.

    The mirror uses replace semantics: recognized keys are rewritten, other
    keys are kept, and nothing is written when the result would not change.
    """

    def __init__(self, initial: Mapping[str, object], writer: Optional[UrlWriter] = None):
        self._base = {k: str(v) for k, v in initial.items() if k not in RECOGNIZED}
        self._initial = dict(initial)
        self._writer = writer
        self.current = {k: str(v) for k, v in initial.items()}

    def seed(self, custom_template: str = "") -> UrlSeed:
        return seed_from_params(self._initial, custom_template)

    def mirror(self, mode: QueryModeState, time_range: TimeRange) -> bool:
        params = dict(self._base)
        params.update(params_from_state(mode, time_range))
        if params == self.current:
            return False
        self.current = params
        logger.debug("URL replace: ?%s", urlencode(params))
        if self._writer is not None:
            self._writer(dict(params))
        return True

    @property
    def query_string(self) -> str:
        return urlencode(self.current)
