"""Pure mapping from engine state to log query API parameters. No I/O."""

from typing import Optional

from logexplorer.errors import MalformedQuery
from logexplorer.query_mode import AdvancedFilter, CustomQuery, QueryMode, SearchBar
from logexplorer.time_range import ResolvedRange


def build_query_params(
    mode: QueryMode,
    time_range: ResolvedRange,
    cursor: Optional[int] = None,
) -> dict[str, str]:
    """Return the parameter set for one page request.

    - SearchBar: ``search_query`` when the text is non-empty, match-all otherwise.
    - AdvancedFilter: ``where`` taken verbatim from the clause; search text ignored.
    - CustomQuery: ``sql`` only. The raw query owns its own bounds.

    ``timestamp_start``/``timestamp_end`` are attached to every non-custom query.
    ``cursor`` overrides ``timestamp_end`` when paging backward; the end bound is
    exclusive.

    Raises MalformedQuery for a blank custom query.
    """
    if isinstance(mode, CustomQuery):
        if not mode.sql.strip():
            raise MalformedQuery("custom query is empty")
        return {"sql": mode.sql}

    params = _filter_params(mode)
    params["timestamp_start"] = str(time_range.start)
    params["timestamp_end"] = str(cursor if cursor is not None else time_range.end)
    return params


def build_count_params(mode: QueryMode, since: int) -> dict[str, str]:
    """Parameters for the "new events since" count query at the live edge.

    Uses the same filter as the page query, with an open upper bound.
    """
    if isinstance(mode, CustomQuery):
        raise MalformedQuery("count is not available for custom queries")
    params = _filter_params(mode)
    params["timestamp_start"] = str(since)
    return params


def _filter_params(mode: QueryMode) -> dict[str, str]:
    if isinstance(mode, SearchBar) and mode.text.strip():
        return {"search_query": mode.text}
    if isinstance(mode, AdvancedFilter) and mode.where_clause.strip():
        return {"where": mode.where_clause}
    return {}
