#!/usr/bin/env python3
"""CLI interface for the flow log decorator.

This script provides command-line access to the decoration pipeline for
testing, debugging, and replaying Firehose transformation events.
"""

import argparse
import asyncio
import base64
import json
import sys
from pathlib import Path
from typing import Any, Dict, List

from firehose_decorator.handler import create_pipeline, setup_logging
from flowlog.config import load_config
from flowlog.schemas import RawRecord, RecordResult


def main(argv: List[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Decorate VPC Flow Log records with ENI and geolocation data",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Replay a Firehose transformation event
  python -m firehose_decorator.cli --input event.json

  # Skip geolocation and show decoded documents
  python -m firehose_decorator.cli --input event.json --no-geolocation --decode --output results.json
        """
    )

    parser.add_argument(
        "--input", "-i",
        type=Path,
        required=True,
        help="JSON file with a Firehose event ({'records': [...]}) or a list of records"
    )

    parser.add_argument(
        "--output", "-o",
        type=Path,
        help="Output JSON file for transformation results (default: stdout)"
    )

    parser.add_argument(
        "--env", "-e",
        default=None,
        help="Configuration environment (default: $ENVIRONMENT or dev)"
    )

    parser.add_argument(
        "--no-geolocation",
        action="store_true",
        help="Disable source address geolocation"
    )

    parser.add_argument(
        "--decode",
        action="store_true",
        help="Include decoded JSON documents for successful records"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging"
    )

    args = parser.parse_args(argv)

    if not args.input.exists():
        print(f"Error: input file not found: {args.input}", file=sys.stderr)
        return 1

    config = load_config(args.env)
    if args.no_geolocation:
        config.geolocation.enabled = False
    setup_logging("DEBUG" if args.verbose else config.logging.level)

    with open(args.input, 'r') as f:
        data = json.load(f)
    raw = data.get("records", []) if isinstance(data, dict) else data

    records = [RawRecord(**record) for record in raw]
    pipeline = create_pipeline(config)
    outcomes, summary = asyncio.run(pipeline.decorate(records))

    results = [_render(outcome.to_firehose(), args.decode) for outcome in outcomes]
    output_data = {
        "total_records": summary.total,
        "ok": summary.ok,
        "dropped": summary.dropped,
        "failed": summary.failed,
        "records": results,
    }

    if args.output:
        with open(args.output, 'w') as f:
            json.dump(output_data, f, indent=2)
        print(f"Results written to {args.output}")
    else:
        print(json.dumps(output_data, indent=2))

    return 0


def _render(record: Dict[str, Any], decode: bool) -> Dict[str, Any]:
    if decode and record["result"] == RecordResult.OK.value:
        record = dict(record)
        record["document"] = json.loads(base64.b64decode(record["data"]))
    return record


if __name__ == "__main__":
    sys.exit(main())
