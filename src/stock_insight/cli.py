"""Command-line entry point: ``stock-insight``.

Analyzes a saved JSON payload (``--payload``) or fetches one from the
configured backend (``--symbol``) and prints the result as JSON on stdout.
Logs go to stderr.  Exit code 1 means nothing could be read or fetched.
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any, List, Optional

from .analyzer import analyze_payload
from .client import AnalysisClient
from .config import DISTRIBUTION_MODES, get_settings
from .logging_utils import get_logger, setup_logging

log = get_logger("cli")


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="stock-insight",
        description="Extract quote figures and news sentiment from an analysis payload",
    )
    src = p.add_mutually_exclusive_group(required=True)
    src.add_argument("--payload", help="Path to a JSON analysis payload")
    src.add_argument("--symbol", help="Fetch the payload for this ticker from the API")
    p.add_argument("--context", default="", help="Path to a JSON stock snapshot")
    p.add_argument(
        "--mode",
        choices=DISTRIBUTION_MODES,
        default=None,
        help="News sentiment distribution mode (default: from settings)",
    )
    p.add_argument("--indent", type=int, default=2, help="JSON output indent")
    return p.parse_args(argv)


def _read_json(path: str) -> Optional[Any]:
    try:
        with open(path, "r", encoding="utf-8") as fh:
            return json.load(fh)
    except (OSError, ValueError) as e:
        log.error("read_json_failed path=%s err=%s", path, e.__class__.__name__)
        return None


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    setup_logging(get_settings().log_level)

    context = _read_json(args.context) if args.context else None

    if args.payload:
        raw = _read_json(args.payload)
        if raw is None:
            return 1
        result = analyze_payload(raw, context=context, mode=args.mode)
    else:
        client = AnalysisClient()
        raw = client.fetch_analysis(args.symbol)
        if raw is None:
            print("No analysis available", file=sys.stderr)
            return 1
        result = analyze_payload(raw, context=context, symbol=args.symbol, mode=args.mode)

    print(json.dumps(result.to_dict(), indent=args.indent or None))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
