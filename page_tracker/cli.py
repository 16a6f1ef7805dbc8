"""Command line interface for the page tracker.

A CLI to manage a simple Cloudflare KV page tracker.

The KV namespace can be found in the dashboard under
https://dash.cloudflare.com/$PT_ACCOUNT_ID/workers/kv/namespaces/$PT_KV_ID
and the API token needs the ``Account.Workers KV Storage`` permission
(https://dash.cloudflare.com/profile/api-tokens).

Usage:
    page-tracker download --output-dir exports/
"""

import argparse
import asyncio
import logging
import os
import sys
from datetime import datetime, timezone
from typing import List, Optional

from ._version import __version__
from .client import KvClient
from .config import Config, ENV_ACCOUNT_ID, ENV_NAMESPACE_ID, ENV_TOKEN
from .exceptions import ConfigError, PageTrackerException
from .exporter import ParsePolicy, export_namespace
from .writer import DEFAULT_OUTPUT_FORMAT, build_output_path

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG = 2
EXIT_INTERRUPTED = 130

log = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="page-tracker",
        description="Page Tracker commands for a Cloudflare KV page view counter.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    download = subparsers.add_parser(
        "download", help="Download the page tracker KV data into a CSV file"
    )
    download.add_argument("--jwt", help=f"Cloudflare API token (default: ${ENV_TOKEN})")
    download.add_argument("--account-id", help=f"Owner account id of the KV (default: ${ENV_ACCOUNT_ID})")
    download.add_argument("--kv-id", help=f"KV namespace id (default: ${ENV_NAMESPACE_ID})")

    target = download.add_mutually_exclusive_group(required=True)
    target.add_argument("--output-dir", help="Folder to write a timestamped CSV file into")
    target.add_argument("--output", help="File to write the CSV output to")
    download.add_argument(
        "--output-format", default=DEFAULT_OUTPUT_FORMAT,
        help="With --output-dir, the strftime format of the file name (default: %(default)s)",
    )
    download.add_argument(
        "--on-invalid", choices=[p.value for p in ParsePolicy], default=ParsePolicy.FAIL.value,
        help="What to do with a value that is not a view count (default: %(default)s)",
    )
    download.add_argument("--api-url", help="Base URL of the KV REST API")
    download.add_argument("--timeout", type=float, help="Per-request timeout in seconds")
    download.add_argument("--page-size", type=int, help="Keys requested per list page")
    download.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    download.set_defaults(handler=download_command)
    return parser


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )


async def download_command(args: argparse.Namespace) -> int:
    """Resolve configuration, export the namespace and print the file path."""
    config = Config.resolve(
        args.jwt, args.account_id, args.kv_id,
        api_url=args.api_url, request_timeout=args.timeout, page_size=args.page_size,
    )
    if args.output_dir and os.path.exists(args.output_dir) and not os.path.isdir(args.output_dir):
        raise ConfigError(f"Output directory {args.output_dir} exists and is not a directory")
    if args.output_dir:
        build_output_path(args.output_dir, datetime.now(timezone.utc), args.output_format)
    async with KvClient(config) as client:
        result = await export_namespace(
            client,
            args.output_dir,
            output=args.output,
            output_format=args.output_format,
            policy=ParsePolicy(args.on_invalid),
        )
    if result.skipped:
        log.warning(f"{len(result.skipped)} keys were left out of the export")
    print(result.output_path)
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    try:
        return asyncio.run(args.handler(args))
    except ConfigError as e:
        log.error(f"Configuration error: {e}")
        return EXIT_CONFIG
    except PageTrackerException as e:
        log.error(f"Export failed: {e}")
        return EXIT_FAILURE
    except KeyboardInterrupt:
        log.error("Interrupted")
        return EXIT_INTERRUPTED


if __name__ == "__main__":
    sys.exit(main())
