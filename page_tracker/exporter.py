"""Export pipeline: list keys, fetch each value, and write the CSV.

Values are fetched one at a time in list order. How malformed values are
treated is controlled by a single ParsePolicy switch:

- ``ParsePolicy.FAIL`` (default): the first malformed value aborts the run
  and no file is written.
- ``ParsePolicy.SKIP``: malformed values are logged and left out.

Keys that disappear between listing and fetching are always skipped.
"""
from __future__ import annotations

import enum
import logging
from datetime import datetime
from typing import Optional

from .client import KvClient
from .exceptions import ConfigError, NotFoundError, ParseError
from .helpers import parse_view_count
from .types import ExportBatch, ExportResult, KeyRecord
from .writer import DEFAULT_OUTPUT_FORMAT, PathLike, write_batch

log = logging.getLogger(__name__)


class ParsePolicy(str, enum.Enum):
    """What to do with a value that is not a non-negative integer."""
    FAIL = "fail"
    SKIP = "skip"


async def collect_batch(client: KvClient, policy: ParsePolicy = ParsePolicy.FAIL) -> ExportBatch:
    """Fetch every key and its view count from the namespace.

    Args:
        client: KV client (or any object with ``list_keys`` and ``get_value``)
        policy: Handling of malformed values

    Returns:
        Batch in list order, without duplicates

    Raises:
        ParseError: On a malformed value with ``ParsePolicy.FAIL``
        AuthError, NotFoundError, TransportError: From the listing, or from a
            value fetch other than a missing key
    """
    policy = ParsePolicy(policy)

    log.info("Fetching KV keys")
    keys = await client.list_keys()
    log.info(f"Found {len(keys)} keys")

    batch = ExportBatch()
    seen = set()
    log.info("Fetching KV values")
    for key in keys:
        if key in seen:
            log.warning(f"Key {key!r} listed more than once, ignoring repeat")
            continue
        seen.add(key)

        try:
            raw = await client.get_value(key)
        except NotFoundError:
            log.warning(f"Key {key!r} was deleted before its value could be read, skipping")
            batch.skipped.append(key)
            continue

        try:
            views = parse_view_count(key, raw)
        except ParseError as e:
            if policy is ParsePolicy.FAIL:
                log.error(f"Aborting export: {e}")
                raise
            log.warning(f"Skipping key: {e}")
            batch.skipped.append(key)
            continue

        batch.add(KeyRecord(key, views))
        log.info(f"Fetched {key} -> {views}")

    log.info("Done fetching all values")
    return batch


async def export_namespace(client: KvClient, output_dir: Optional[PathLike] = None, *,
                           output: Optional[PathLike] = None,
                           output_format: str = DEFAULT_OUTPUT_FORMAT,
                           policy: ParsePolicy = ParsePolicy.FAIL,
                           now: Optional[datetime] = None) -> ExportResult:
    """Export the whole namespace to one CSV file.

    The batch is complete before anything is written, so a failed run leaves
    no output file behind.
    """
    if (output_dir is None) == (output is None):
        raise ConfigError("Exactly one of output_dir or output must be given")
    batch = await collect_batch(client, policy)
    return write_batch(batch, output_dir, output=output, output_format=output_format, now=now)
