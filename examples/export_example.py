#!/usr/bin/env python3
"""
Example: Using the page_tracker pipeline and KvClient APIs

This example demonstrates both the high-level export and the low-level
KvClient API for reading a page tracker KV namespace.

Usage:
    PT_JWT=... PT_ACCOUNT_ID=... PT_KV_ID=... python export_example.py --output-dir exports
"""

import asyncio
import argparse
import logging

from page_tracker import Config, KvClient, ParsePolicy, export_namespace
from page_tracker.exceptions import PageTrackerException, ParseError
from page_tracker.helpers import parse_view_count


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
log = logging.getLogger(__name__)


async def high_level_example(config: Config, output_dir: str):
    """
    Demonstrates the one-call export (recommended for most use cases).
    """
    log.info("=== High-level export example ===")
    async with KvClient(config) as client:
        result = await export_namespace(client, output_dir, policy=ParsePolicy.SKIP)
    log.info(f"Wrote {result.row_count} rows to {result.output_path}")
    if result.skipped:
        log.info(f"Skipped keys: {', '.join(result.skipped)}")


async def low_level_example(config: Config, limit: int):
    """
    Demonstrates direct KvClient access, e.g. to find the most viewed pages.
    """
    log.info("=== Low-level KvClient example ===")
    counts = {}
    async with KvClient(config) as client:
        async for key in client.iter_keys():
            if len(counts) >= limit:
                break
            raw = await client.get_value(key)
            try:
                counts[key] = parse_view_count(key, raw)
            except ParseError as e:
                log.warning(f"   {e}")

    for key, views in sorted(counts.items(), key=lambda item: item[1], reverse=True):
        log.info(f"   {views:>8}  {key}")


async def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="page_tracker examples")
    parser.add_argument('--output-dir', default='exports', help='Directory for the CSV export')
    parser.add_argument('--limit', type=int, default=10, help='Keys to read in the low-level example')
    parser.add_argument(
        '--api',
        choices=['high', 'low', 'both'],
        default='both',
        help='Which API to demonstrate (default: both)'
    )
    args = parser.parse_args()

    try:
        config = Config.resolve()
        if args.api in ['high', 'both']:
            await high_level_example(config, args.output_dir)
        if args.api in ['low', 'both']:
            await low_level_example(config, args.limit)
    except PageTrackerException as e:
        log.error(f"Error: {e}")
        return 1
    return 0


if __name__ == '__main__':
    exit_code = asyncio.run(main())
    exit(exit_code)
