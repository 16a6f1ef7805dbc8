"""CSV serialization of export batches.

The writer renders a batch as ``key,value`` rows and moves the finished file
into place in one step, so a reader never sees a partially written export.
"""
from __future__ import annotations

import csv
import io
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

from .exceptions import ConfigError, OutputError
from .types import ExportBatch, ExportResult

HEADER = ("key", "value")
# UTC with microseconds so successive runs get distinct, time-sorted names
DEFAULT_OUTPUT_FORMAT = "%Y-%m-%dT%H%M%S.%fZ.csv"

log = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]


def render_csv(batch: ExportBatch) -> str:
    """Render a batch as CSV text with a header row."""
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(HEADER)
    for record in batch:
        writer.writerow((record.key, record.value))
    return buf.getvalue()


def build_output_path(output_dir: PathLike, now: datetime,
                      output_format: str = DEFAULT_OUTPUT_FORMAT) -> Path:
    """Return the timestamped file path for a run started at ``now``.

    Raises:
        ConfigError: If the format does not produce a plain file name
    """
    name = now.strftime(output_format)
    if not name or name in (".", "..") or os.sep in name or (os.altsep and os.altsep in name):
        raise ConfigError(f"Output format {output_format!r} must produce a file name, got {name!r}")
    return Path(output_dir) / name


def write_batch(batch: ExportBatch, output_dir: Optional[PathLike] = None, *,
                output: Optional[PathLike] = None,
                output_format: str = DEFAULT_OUTPUT_FORMAT,
                now: Optional[datetime] = None) -> ExportResult:
    """Write a batch to disk atomically.

    With ``output_dir`` the file name comes from ``output_format`` applied to
    the UTC time the write begins, and an existing file is never replaced
    (the finished file is hard-linked into place, which fails if it exists).
    With ``output`` the given path is written, replacing any previous file.

    Args:
        batch: Records to write
        output_dir: Directory receiving a timestamped file (created if missing)
        output: Explicit file path, exclusive with ``output_dir``
        output_format: strftime pattern for the file name in ``output_dir`` mode
        now: Override for the write timestamp

    Returns:
        ExportResult describing the written file

    Raises:
        ConfigError: If neither or both of output_dir/output are given
        OutputError: If the file cannot be written
    """
    if (output_dir is None) == (output is None):
        raise ConfigError("Exactly one of output_dir or output must be given")

    generated_at = now or datetime.now(timezone.utc)
    if output_dir is not None:
        target = build_output_path(output_dir, generated_at, output_format)
        overwrite = False
    else:
        target = Path(output)
        overwrite = True

    directory = target.parent
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise OutputError(f"Cannot create output directory {directory}: {e}") from e
    if not overwrite and target.exists():
        raise OutputError(f"Refusing to overwrite existing export {target}")

    log.info(f"Opening and writing data to {target}")
    text = render_csv(batch)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=directory)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        if overwrite:
            os.replace(tmp_name, target)
        else:
            # link fails if the target appeared since the check above
            os.link(tmp_name, target)
            _discard(tmp_name)
    except FileExistsError as e:
        _discard(tmp_name)
        raise OutputError(f"Refusing to overwrite existing export {target}") from e
    except OSError as e:
        _discard(tmp_name)
        raise OutputError(f"Failed to write {target}: {e}") from e
    except BaseException:
        _discard(tmp_name)
        raise

    log.info(f"Done writing data: {len(batch)} rows")
    return ExportResult(
        output_path=target,
        row_count=len(batch),
        generated_at=generated_at,
        skipped=tuple(batch.skipped),
    )


def _discard(path: str) -> None:
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        log.warning(f"Could not remove temporary file {path}: {e}")
