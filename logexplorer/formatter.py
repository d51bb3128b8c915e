"""Output formatters for log rows: text, detail and JSON (NDJSON)."""

import json
from typing import Callable

from logexplorer.models import LogEvent
from logexplorer.time_range import micros_to_iso


def _column_value(value) -> str:
    if isinstance(value, (dict, list)):
        return json.dumps(value, sort_keys=True, default=str)
    return str(value)


def format_text(event: LogEvent) -> str:
    """``[timestamp] message`` for log rows; ``key=value`` pairs for aggregate rows."""
    if event.timestamp is None:
        return "  ".join(f"{k}={_column_value(v)}" for k, v in event.extra.items())
    return f"[{micros_to_iso(event.timestamp)}] {event.event_message}"


def format_detail(event: LogEvent) -> str:
    """Multi-line view of a focused row, metadata included."""
    lines = [format_text(event)]
    if event.metadata:
        lines.append("Metadata:")
        lines.append(json.dumps(event.metadata, indent=2, sort_keys=True, default=str))
    return "\n".join(lines)


def format_json(event: LogEvent) -> str:
    """One JSON object per line, compatible with jq."""
    return json.dumps(event.to_dict(), default=str)


def format_chart(chart: list[dict], width: int = 40) -> str:
    """Render histogram buckets as a text bar chart."""
    if not chart:
        return ""
    peak = max(bucket["count"] for bucket in chart) or 1
    lines = ["Events"]
    for bucket in chart:
        bar = "#" * max(1 if bucket["count"] else 0, bucket["count"] * width // peak)
        lines.append(f"{micros_to_iso(bucket['timestamp'])} {bucket['count']:>6} {bar}")
    return "\n".join(lines)


def get_formatter(output_format: str = "text") -> Callable[[LogEvent], str]:
    if output_format == "json":
        return format_json
    if output_format == "detail":
        return format_detail
    return format_text
