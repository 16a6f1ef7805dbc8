"""Page Tracker package.

This package exports page view counters stored in a Cloudflare Workers KV
namespace to timestamped CSV files. It includes a low-level client
(KvClient), the export pipeline (collect_batch, export_namespace) and the
``page-tracker`` command line tool.

Example Usage:
    from page_tracker import Config, KvClient, export_namespace

    config = Config.resolve()  # reads PT_JWT, PT_ACCOUNT_ID, PT_KV_ID

    async with KvClient(config) as client:
        result = await export_namespace(client, "exports/")
    print(f"Wrote {result.row_count} rows to {result.output_path}")

    # Lower level access
    async with KvClient(config) as client:
        keys = await client.list_keys()
        views = await client.get_value(keys[0])
"""

from ._version import __version__, __version_info__
from .exceptions import (
    PageTrackerException,
    ConfigError,
    AuthError,
    NotFoundError,
    TransportError,
    ParseError,
    OutputError,
)
from .types import (
    KeyRecord,
    ExportBatch,
    ExportResult,
)
from .config import Config
from .client import KvClient
from .exporter import ParsePolicy, collect_batch, export_namespace
from .writer import render_csv, write_batch

__all__ = [
    # Version
    '__version__',
    '__version_info__',

    # Main classes
    'Config',
    'KvClient',

    # Pipeline
    'ParsePolicy',
    'collect_batch',
    'export_namespace',
    'render_csv',
    'write_batch',

    # Exceptions
    'PageTrackerException',
    'ConfigError',
    'AuthError',
    'NotFoundError',
    'TransportError',
    'ParseError',
    'OutputError',

    # Types
    'KeyRecord',
    'ExportBatch',
    'ExportResult',
]
