"""Command-line entry point: look up addresses and print the JSON result."""

from __future__ import annotations

import argparse
import json
from pathlib import Path
import sys
from typing import Any, Sequence

from ipscope.errors import IPScopeError
from ipscope.export import export_requests_to_csv
from ipscope.logging_config import setup_logging
from ipscope.service import IPScopeService, build_service, error_payload

VIEWS = ("enhanced", "geolocation", "security", "network")


def _load_edge_metadata(path: str | None) -> dict[str, Any] | None:
    if not path:
        return None
    with Path(path).open("r", encoding="utf-8") as handle:
        data = json.load(handle)
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a JSON object")
    return data


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ipscope", description=__doc__)
    parser.add_argument("ips", nargs="+", help="IPv4 or IPv6 addresses to describe")
    parser.add_argument("--view", choices=VIEWS, default="enhanced")
    parser.add_argument("--edge-json", help="JSON file holding edge request metadata")
    parser.add_argument("--export-csv", help="write the request log to this CSV file afterwards")
    parser.add_argument("--log-level", default="WARNING")
    return parser


def run(argv: Sequence[str] | None = None, *, service: IPScopeService | None = None) -> int:
    """Process each address and return the process exit code."""
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)
    service = service or build_service()
    edge_raw = _load_edge_metadata(args.edge_json)
    handler = getattr(service, args.view)

    exit_code = 0
    for ip in args.ips:
        try:
            result = handler(ip, edge_raw)
        except IPScopeError as exc:
            result = error_payload(exc)
            exit_code = 1
        print(json.dumps(result, indent=2, ensure_ascii=False))

    if args.export_csv:
        export_requests_to_csv(service.request_log.snapshot(), args.export_csv)
    return exit_code


def main() -> None:
    """Application entrypoint."""
    sys.exit(run())


if __name__ == "__main__":
    main()
