"""Tests for logexplorer/query_mode.py"""

from logexplorer.query_mode import (
    AdvancedFilter,
    CustomQuery,
    QueryModeKind,
    QueryModeState,
    SearchBar,
)


class TestQueryModeState:
    def test_defaults_to_search_bar(self):
        state = QueryModeState()
        assert state.active == SearchBar("")
        assert state.is_chronological

    def test_drafts_survive_mode_switches(self):
        state = QueryModeState()
        state.set_draft(QueryModeKind.SEARCH_BAR, "needle")
        state.switch(QueryModeKind.ADVANCED_FILTER)
        state.set_draft(QueryModeKind.ADVANCED_FILTER, "metadata.level = 'error'")

        assert state.active == AdvancedFilter("metadata.level = 'error'")
        state.switch(QueryModeKind.SEARCH_BAR)
        assert state.active == SearchBar("needle")
        assert state.where_clause == "metadata.level = 'error'"

    def test_set_draft_reports_active_change_only(self):
        state = QueryModeState()
        assert state.set_draft(QueryModeKind.SEARCH_BAR, "a") is True
        assert state.set_draft(QueryModeKind.SEARCH_BAR, "a") is False
        assert state.set_draft(QueryModeKind.CUSTOM_QUERY, "select 1") is False

    def test_switch_to_same_mode_is_noop(self):
        state = QueryModeState()
        assert state.switch(QueryModeKind.SEARCH_BAR) is False
        assert state.switch(QueryModeKind.CUSTOM_QUERY) is True

    def test_custom_query_is_not_chronological(self):
        state = QueryModeState()
        state.set_draft(QueryModeKind.CUSTOM_QUERY, "select 1")
        state.switch(QueryModeKind.CUSTOM_QUERY)
        assert state.active == CustomQuery("select 1")
        assert not state.is_chronological
