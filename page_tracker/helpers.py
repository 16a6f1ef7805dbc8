"""Helper functions for the page_tracker package.

This module contains small utilities used across the package: view count
parsing, KV key encoding for URL paths and environment lookups.
"""

import os
import re
from typing import Mapping, Optional, Union
from urllib.parse import quote

from .exceptions import ParseError

_DIGITS = re.compile(r"[0-9]+")


def parse_view_count(key: str, raw: Union[str, bytes]) -> int:
    """Parse a stored KV value as a non-negative base-10 integer.

    Byte bodies must be valid UTF-8. Surrounding whitespace is ignored.
    Signs, underscores, decimal points and non-ASCII digits are rejected
    rather than coerced.

    Args:
        key: KV key the value belongs to (used in the error)
        raw: Raw value body returned by the API, as bytes or text

    Returns:
        The view count

    Raises:
        ParseError: If the value is not UTF-8 or not a plain run of ASCII digits

    Example:
        >>> parse_view_count("/a", "10\\n")
        10
    """
    if isinstance(raw, bytes):
        try:
            text = raw.decode("utf-8").strip()
        except UnicodeDecodeError as e:
            raise ParseError(key, raw) from e
    else:
        text = raw.strip()
    if not _DIGITS.fullmatch(text):
        raise ParseError(key, raw)
    return int(text, 10)


def encode_key(key: str) -> str:
    """Percent-encode a KV key for use as a single URL path segment.

    Every reserved character is encoded, including ``/``. Dots are encoded
    too, otherwise the keys ``.`` and ``..`` would be read as dot segments.

    Example:
        >>> encode_key("/blog/post.html")
        '%2Fblog%2Fpost%2Ehtml'
    """
    return quote(key, safe="").replace(".", "%2E")


def env_value(name: str, environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """Return a stripped environment value, treating empty strings as unset."""
    environ = os.environ if environ is None else environ
    value = environ.get(name)
    if value is None:
        return None
    value = value.strip()
    return value or None
