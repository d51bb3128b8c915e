"""log-explorer — search, filter, page through and live-tail logs from the log query API."""

import asyncio
import logging
import sys
from argparse import ArgumentParser, ArgumentTypeError

from logexplorer.client import LogApiClient
from logexplorer.config import load_config
from logexplorer.engine import LogExplorerEngine
from logexplorer.formatter import format_chart, get_formatter
from logexplorer.preferences import Preferences
from logexplorer.query_mode import QueryModeKind
from logexplorer.time_range import iso_to_micros
from logexplorer.url_sync import parse_query_string

logger = logging.getLogger(__name__)


def parse_end(value: str) -> int:
    """Accept ``--te`` as integer microseconds or an ISO-8601 instant."""
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return iso_to_micros(value)
    except ValueError:
        raise ArgumentTypeError(f"invalid time range end: {value!r}")


def build_parser() -> ArgumentParser:
    """Build the CLI argument parser."""
    parser = ArgumentParser(
        prog="log-explorer",
        description="Search, filter, page through and live-tail logs.",
    )
    parser.add_argument("--config", help="Path to the YAML config (default: config.yml)")
    parser.add_argument("-s", "--search", help="Free-text search")
    parser.add_argument("-q", "--query", help="Advanced filter (SQL where clause)")
    parser.add_argument("--sql", help="Raw custom SQL query")
    parser.add_argument(
        "--te",
        type=parse_end,
        help="Time range end: microseconds since epoch or an ISO-8601 instant",
    )
    parser.add_argument(
        "--params",
        default="",
        help='Seed state from a URL query string, e.g. "s=error&te=1700000000000000"',
    )
    parser.add_argument("--older", type=int, default=0, help="Load N older pages")
    parser.add_argument(
        "--follow",
        action="store_true",
        help="Keep polling for new events and refresh when they arrive",
    )
    parser.add_argument(
        "--output",
        choices=["text", "detail", "json"],
        default="text",
        help="Output format (default: text)",
    )
    parser.add_argument(
        "--no-chart", action="store_true", help="Hide the event chart for this run only"
    )
    parser.add_argument(
        "--toggle-chart",
        action="store_true",
        help="Flip the saved event chart preference and keep it for later runs",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def seed_params(args) -> dict[str, str]:
    """Merge --params with the explicit flags (flags win)."""
    params = parse_query_string(args.params)
    if args.search:
        params["s"] = args.search
    if args.query:
        params["q"] = args.query
    if args.te is not None:
        params["te"] = str(args.te)
    return params


def apply_chart_flag(engine: LogExplorerEngine, args) -> None:
    if args.toggle_chart:
        shown = engine.toggle_chart()
        logger.info("Event chart preference saved: %s", "shown" if shown else "hidden")


def render(engine: LogExplorerEngine, formatter, show_chart: bool) -> None:
    state = engine.snapshot()
    if state.notice:
        print(state.notice, file=sys.stderr)
    if state.query_error:
        print(f"Query error: {state.query_error}", file=sys.stderr)
    if state.error:
        print(f"Error: {state.error}", file=sys.stderr)
    if show_chart and state.show_chart and state.chart:
        print(format_chart(state.chart), file=sys.stderr)
    for event in state.events:
        print(formatter(event))


async def run(args) -> int:
    config = load_config(args.config)
    client = LogApiClient(config.api_url, config.project, config.source, config.request_timeout)
    engine = LogExplorerEngine(
        client,
        config,
        url_params=seed_params(args),
        url_writer=lambda params: logger.info("URL params: %s", params),
        preferences=Preferences(config.preferences_path),
    )
    formatter = get_formatter(args.output)
    apply_chart_flag(engine, args)

    try:
        if args.sql:
            # seeded before mount so the first request is the custom query
            engine.mode.set_draft(QueryModeKind.CUSTOM_QUERY, args.sql)
            engine.mode.switch(QueryModeKind.CUSTOM_QUERY)
        await engine.mount()

        for _ in range(args.older):
            if not await engine.load_older():
                break
        render(engine, formatter, not args.no_chart)

        if args.follow:
            if not engine.is_chronological:
                print("Error: --follow is not available for custom queries", file=sys.stderr)
                return 1
            while True:
                await asyncio.sleep(config.poll_interval)
                if engine.pending_count:
                    logger.info("%d new event(s)", engine.pending_count)
                    seen = engine.result_set.keys()
                    await engine.refresh()
                    for event in reversed(engine.events):
                        if event.key not in seen:
                            print(formatter(event))

        state = engine.snapshot()
        return 1 if state.error or state.query_error else 0
    finally:
        engine.close()
        client.close()


def main():
    args = build_parser().parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
        stream=sys.stderr,
    )
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        sys.exit(0)
    except BrokenPipeError:
        sys.exit(0)
