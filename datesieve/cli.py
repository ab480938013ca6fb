#!/usr/bin/env python3
"""
Command line entry point: filter a file of search results by publication date.
"""

import argparse
import asyncio
import json
import logging
import os
import sys
from dataclasses import replace

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Import after loading env vars so DateFilterConfig sees them
from .utils import load_result_rows, setup_logging
from .web.batch import coerce_items, filter_by_range
from .web.config import DateFilterConfig
from .web.content_filter import drop_non_content
from .web.models import BatchPolicy, DateRange
from .web.trace import DateTrace


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="datesieve",
        description="Keep only search results published inside a date range",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --input serper.json --start 2025-01-01 --end 2025-06-30
  cat results.json | %(prog)s --start 2025-01-01 --end 2025-06-30 --strict
  %(prog)s --input tavily.json --start 2025-01-01 --end 2025-12-31 --trace --concurrency 8
        """
    )
    parser.add_argument('--input', '-i',
                        default='-',
                        help="JSON file with results (array, or object with 'results'/'organic'); '-' reads stdin")
    parser.add_argument('--start', required=True, help='Range start, YYYY-MM-DD (inclusive)')
    parser.add_argument('--end', required=True, help='Range end, YYYY-MM-DD (inclusive)')
    parser.add_argument('--strict',
                        action='store_true',
                        default=None,
                        help='Drop results whose date cannot be determined (default: keep them)')
    parser.add_argument('--concurrency', type=int, help='Fetches per wave (default: DATE_FILTER_CONCURRENCY or 5)')
    parser.add_argument('--deadline', type=float, help='Overall time budget in seconds (default: 25)')
    parser.add_argument('--timeout', type=float, help='Per-request timeout in seconds (default: 8)')
    parser.add_argument('--drop-non-content',
                        action='store_true',
                        help='Drop cookie/privacy/about/contact pages before date filtering')
    parser.add_argument('--trace',
                        action='store_true',
                        help='Include the decision trace in the output')
    parser.add_argument('--log-level',
                        default=os.getenv('LOG_LEVEL', 'WARNING'),
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Set logging level')
    parser.add_argument('--version', action='version', version='%(prog)s 1.0.0')
    return parser


def _config_from_args(args: argparse.Namespace) -> DateFilterConfig:
    cfg = DateFilterConfig()
    overrides = {}
    if args.concurrency is not None:
        overrides['concurrency'] = max(1, args.concurrency)
    if args.deadline is not None:
        overrides['overall_deadline_s'] = args.deadline
    if args.timeout is not None:
        overrides['request_timeout_s'] = args.timeout
    if args.strict is not None:
        overrides['strict_mode'] = args.strict
    return replace(cfg, **overrides) if overrides else cfg


def main(argv=None) -> int:
    """Main entry point for the datesieve CLI."""
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)
    logger = logging.getLogger(__name__)

    try:
        if args.input == '-':
            raw = sys.stdin.read()
        else:
            with open(args.input, 'r', encoding='utf-8') as f:
                raw = f.read()
        rows = load_result_rows(raw)
        date_range = DateRange.parse(args.start, args.end)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    cfg = _config_from_args(args)
    items = coerce_items(rows)
    if args.drop_non_content:
        items = drop_non_content(items)
    trace = DateTrace()
    kept = asyncio.run(filter_by_range(items, date_range, BatchPolicy.from_config(cfg), cfg=cfg, trace=trace))
    logger.info("kept %d of %d results", len(kept), len(rows))

    out = {"results": [it.model_dump(mode="json") for it in kept]}
    if args.trace:
        out["trace"] = trace.to_list()
    json.dump(out, sys.stdout, ensure_ascii=False, indent=2)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
