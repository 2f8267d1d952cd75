"""Command line search over a company register dataset."""

from __future__ import annotations

import argparse
import asyncio
from collections.abc import Sequence
import sys
from typing import TextIO

import orjson
from pydantic import ValidationError

from register_search.acquisition.loader import DataSource
from register_search.config import Settings
from register_search.exceptions import DataAcquisitionError
from register_search.observability.logging import configure_logging
from register_search.observability.metrics import get_metrics
from register_search.observability.tracing import init_tracing
from register_search.search.engine import RegisterSearch, SearchResponse
from register_search.search.models import Record


QUIT_COMMANDS = frozenset({":q", ":quit"})


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="register-search",
        description="Load a company register dataset and search it by name, city or type",
    )
    parser.add_argument(
        "query",
        nargs="*",
        help="Query words; all must match. Omit to start an interactive prompt",
    )
    parser.add_argument(
        "--source",
        help="Dataset URL or path (defaults to REGISTER_DATA_URL)",
    )
    parser.add_argument(
        "--gzip",
        action="store_true",
        default=None,
        help="Dataset is gzip-compressed",
    )
    parser.add_argument(
        "--jsonl",
        action="store_true",
        default=None,
        help="Dataset is JSON Lines",
    )
    parser.add_argument(
        "--limit",
        type=int,
        help="Maximum matches shown for a non-empty query (default: REGISTER_MAX_RESULTS)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print matches as JSON lines instead of cards",
    )
    parser.add_argument(
        "--metrics",
        action="store_true",
        help="Write Prometheus metrics for the session to stderr before exiting",
    )
    return parser


def _resolve_source(args: argparse.Namespace, settings: Settings) -> DataSource:
    url = args.source or settings.data_url
    if not url:
        raise ValueError("No dataset given; pass --source or set REGISTER_DATA_URL")
    return DataSource(
        url=url,
        gzipped=settings.data_gzipped if args.gzip is None else args.gzip,
        jsonl=settings.data_jsonl if args.jsonl is None else args.jsonl,
    )


def format_card(record: Record) -> str:
    lines = [record.name]
    subtitle = record.city or "—"
    if record.type:
        subtitle = f"{subtitle} • {record.type}"
    lines.append(f"  {subtitle}")
    if record.address:
        lines.append(f"  {record.address}")
    return "\n".join(lines)


def render(response: SearchResponse, loaded: int, *, as_json: bool, out: TextIO) -> None:
    if as_json:
        for record in response.records:
            out.write(orjson.dumps(record.to_dict()).decode("utf-8") + "\n")
        return

    out.write(f"Loaded: {loaded}  Matches: {response.stats.returned}\n")
    if not response.records:
        out.write("No matches. Try another query.\n")
        return
    for record in response.records:
        out.write(format_card(record) + "\n")
    if response.stats.truncated:
        out.write(f"(showing first {response.stats.returned} of {response.stats.total_matches})\n")


def _interactive(engine: RegisterSearch, *, as_json: bool, stdin: TextIO, out: TextIO) -> None:
    loaded = len(engine.snapshot)
    while True:
        out.write("search> ")
        out.flush()
        line = stdin.readline()
        if not line or line.strip() in QUIT_COMMANDS:
            break
        render(engine.search(line), loaded, as_json=as_json, out=out)


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_argument_parser()
    args = parser.parse_args(argv)

    try:
        settings = Settings()  # type: ignore[call-arg]
    except ValidationError as exc:
        sys.stderr.write(f"Invalid configuration: {exc}\n")
        return 1

    configure_logging(settings.log_level, settings.log_json)
    init_tracing()

    if args.limit is not None and args.limit < 1:
        parser.error("--limit must be >= 1")

    try:
        source = _resolve_source(args, settings)
    except ValueError as exc:
        sys.stderr.write(f"{exc}\n")
        return 1

    engine = RegisterSearch(settings, max_results=args.limit)
    try:
        asyncio.run(engine.load(source))
    except DataAcquisitionError as exc:
        sys.stderr.write(f"{exc}\n")
        return 1

    if args.query:
        render(engine.search(" ".join(args.query)), len(engine.snapshot), as_json=args.json, out=sys.stdout)
    else:
        _interactive(engine, as_json=args.json, stdin=sys.stdin, out=sys.stdout)

    if args.metrics:
        sys.stderr.write(get_metrics().decode("utf-8"))
    return 0


if __name__ == "__main__":
    sys.exit(main())
