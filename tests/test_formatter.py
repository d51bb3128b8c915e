"""Tests for logexplorer/formatter.py"""

import json

from logexplorer.formatter import (
    format_chart,
    format_detail,
    format_json,
    format_text,
    get_formatter,
)
from logexplorer.models import Page, event_from_row

from tests.fakes import NOW, log_row


class TestFormatters:
    def test_text(self):
        event = event_from_row(log_row("boot complete", timestamp=NOW))
        assert format_text(event) == "[2023-11-14T22:13:20.000Z] boot complete"

    def test_text_aggregate_row(self):
        assert format_text(event_from_row({"my_count": 12345})) == "my_count=12345"

    def test_custom_row_with_log_column_names(self):
        row = {"timestamp": "2023-11-14 22:13:19", "event_message": "x", "metadata": [{"k": 1}]}
        [event] = Page.from_rows([row], chronological=False).events
        assert format_text(event) == 'timestamp=2023-11-14 22:13:19  event_message=x  metadata=[{"k": 1}]'
        assert json.loads(format_json(event)) == row

    def test_detail_includes_metadata(self):
        event = event_from_row(log_row("x", timestamp=NOW, metadata={"my_key": "something_value"}))
        detail = format_detail(event)
        assert "Metadata:" in detail
        assert '"my_key": "something_value"' in detail

    def test_json_roundtrips_row(self):
        row = log_row("x", timestamp=NOW)
        assert json.loads(format_json(event_from_row(row))) == row

    def test_get_formatter(self):
        assert get_formatter("json") is format_json
        assert get_formatter("detail") is format_detail
        assert get_formatter("text") is format_text


def test_format_chart():
    chart = [{"timestamp": NOW, "count": 4}, {"timestamp": NOW + 60_000_000, "count": 0}]
    lines = format_chart(chart, width=4).splitlines()
    assert lines[0] == "Events"
    assert lines[1].endswith(" ####")
    assert lines[2].endswith("0 ")


def test_format_chart_empty():
    assert format_chart([]) == ""
