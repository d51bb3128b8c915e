"""Mutually exclusive query input modes with independently kept drafts."""

from dataclasses import dataclass, field
from enum import Enum


class QueryModeKind(Enum):
    SEARCH_BAR = "search"
    ADVANCED_FILTER = "filter"
    CUSTOM_QUERY = "custom"


@dataclass(frozen=True)
class SearchBar:
    text: str = ""

    kind = QueryModeKind.SEARCH_BAR


@dataclass(frozen=True)
class AdvancedFilter:
    where_clause: str = ""

    kind = QueryModeKind.ADVANCED_FILTER


@dataclass(frozen=True)
class CustomQuery:
    sql: str = ""

    kind = QueryModeKind.CUSTOM_QUERY


QueryMode = SearchBar | AdvancedFilter | CustomQuery

_VARIANTS = {
    QueryModeKind.SEARCH_BAR: SearchBar,
    QueryModeKind.ADVANCED_FILTER: AdvancedFilter,
    QueryModeKind.CUSTOM_QUERY: CustomQuery,
}


@dataclass
class QueryModeState:
    """One active mode plus the last-known draft text of every mode.

    Switching modes never discards another mode's draft, so toggling back
    restores it.
    """

    active_kind: QueryModeKind = QueryModeKind.SEARCH_BAR
    drafts: dict[QueryModeKind, str] = field(
        default_factory=lambda: {kind: "" for kind in QueryModeKind}
    )

    @property
    def active(self) -> QueryMode:
        return _VARIANTS[self.active_kind](self.drafts[self.active_kind])

    @property
    def is_chronological(self) -> bool:
        return self.active_kind is not QueryModeKind.CUSTOM_QUERY

    def draft(self, kind: QueryModeKind) -> str:
        return self.drafts[kind]

    def set_draft(self, kind: QueryModeKind, text: str) -> bool:
        """Store a draft. Returns True when it changed the active query."""
        changed = self.drafts[kind] != text
        self.drafts[kind] = text
        return changed and kind is self.active_kind

    def switch(self, kind: QueryModeKind) -> bool:
        """Activate another mode. Returns True when the mode actually changed."""
        if kind is self.active_kind:
            return False
        self.active_kind = kind
        return True

    @property
    def search_text(self) -> str:
        return self.drafts[QueryModeKind.SEARCH_BAR]

    @property
    def where_clause(self) -> str:
        return self.drafts[QueryModeKind.ADVANCED_FILTER]

    @property
    def sql(self) -> str:
        return self.drafts[QueryModeKind.CUSTOM_QUERY]
