"""Workers KV API client implementation.

This module provides the KvClient class that handles authentication headers
and communication with the Cloudflare Workers KV REST API:
 - iter_keys / list_keys (cursor-paginated key listing)
 - get_value (raw value read for one key)
 - _make_api_request (aiohttp wrapper mapping HTTP failures to exceptions)
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, AsyncIterator, Dict, List, Optional

import aiohttp
from yarl import URL

from .config import Config
from .exceptions import AuthError, NotFoundError, TransportError
from .helpers import encode_key
from .types import ListKeysPayload

log = logging.getLogger(__name__)


class KvClient:
    """Client for one Workers KV namespace.

    The client keeps a single aiohttp session for its lifetime and holds no
    other state between calls.

    Example:
        async with KvClient(config) as client:
            keys = await client.list_keys()
            value = await client.get_value(keys[0])
    """

    def __init__(self, config: Config):
        """Initialize the client.

        Args:
            config: Resolved configuration holding credentials and settings

        Raises:
            ValueError: If the API URL is not HTTPS
        """
        if not config.api_url.lower().startswith("https://"):
            raise ValueError(f"HTTPS is required for the KV API, got {config.api_url!r}")
        self.config = config
        self.base_url = config.api_url.rstrip('/')
        self._headers = {"Authorization": f"Bearer {config.api_token}"}
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def namespace_url(self) -> str:
        return (
            f"{self.base_url}/accounts/{self.config.account_id}"
            f"/storage/kv/namespaces/{self.config.namespace_id}"
        )

    async def _ensure_session(self) -> None:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.config.request_timeout),
            )

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> "KvClient":
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # -------------------------
    # HTTP helper
    # -------------------------
    async def _make_api_request(self, endpoint: str, params: Optional[Dict[str, Any]] = None,
                                expect_json: bool = True) -> Any:
        """Make a GET request against the namespace and return the body.

        Args:
            endpoint: Path below the namespace URL
            params: Query parameters
            expect_json: If True, parse the body as JSON, otherwise return the raw bytes

        Returns:
            Parsed JSON envelope or response body

        Raises:
            AuthError: On 401/403
            NotFoundError: On 404
            TransportError: On any other HTTP or network failure
        """
        # Already percent-encoded; stop yarl from decoding and collapsing dot segments
        url = URL(self.namespace_url + endpoint, encoded=True)
        await self._ensure_session()
        try:
            async with self._session.get(url, params=params, headers=self._headers) as resp:
                log.debug(f"{endpoint} response - status: {resp.status}, content-type: {resp.content_type}")
                if resp.status >= 400:
                    detail = await self._error_detail(resp)
                    if resp.status in (401, 403):
                        raise AuthError(f"KV API rejected the credentials ({resp.status}): {detail}")
                    if resp.status == 404:
                        raise NotFoundError(f"Not found: {endpoint} ({detail})")
                    raise TransportError(f"KV API request failed for {endpoint} ({resp.status}): {detail}")

                if expect_json:
                    return await resp.json(content_type=None)
                return await resp.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            log.error(f"API request failed for {endpoint}: {e!r}")
            raise TransportError(f"API request failed for {endpoint}: {e!r}") from e
        except ValueError as e:
            log.error(f"Failed to parse server response for {endpoint}: {e}")
            raise TransportError(f"Failed to parse server response for {endpoint}: {e}") from e

    @staticmethod
    async def _error_detail(resp: aiohttp.ClientResponse) -> str:
        """Extract error messages from a failed response, falling back to its reason."""
        try:
            payload = await resp.json(content_type=None)
        except ValueError:
            return resp.reason or "no details"
        errors = payload.get("errors") if isinstance(payload, dict) else None
        if errors:
            return "; ".join(f"[{err.get('code')}] {err.get('message')}" for err in errors)
        return resp.reason or "no details"

    # -------------------------
    # Keys
    # -------------------------
    async def iter_keys(self) -> AsyncIterator[str]:
        """Yield every key name in the namespace, following list cursors.

        Each call starts a fresh listing from the first page.

        Raises:
            AuthError, NotFoundError, TransportError
        """
        cursor: Optional[str] = None
        seen_cursors = set()
        page = 0
        while True:
            params: Dict[str, Any] = {"limit": self.config.page_size}
            if cursor:
                params["cursor"] = cursor
            payload: ListKeysPayload = await self._make_api_request("/keys", params)
            page += 1

            if not isinstance(payload, dict) or not payload.get("success", False):
                raise TransportError(f"List keys request reported failure: {payload!r}")
            try:
                names = [entry["name"] for entry in payload.get("result") or []]
            except (KeyError, TypeError) as e:
                raise TransportError(f"Malformed key entry in list response: {e!r}") from e
            log.debug(f"Key page {page}: {len(names)} keys")
            for name in names:
                yield name

            cursor = (payload.get("result_info") or {}).get("cursor")
            if not cursor:
                break
            if cursor in seen_cursors:
                raise TransportError(f"List keys cursor {cursor!r} repeated after page {page}")
            seen_cursors.add(cursor)

    async def list_keys(self) -> List[str]:
        """Return every key name in the namespace, in the order listed."""
        return [name async for name in self.iter_keys()]

    async def get_value(self, key: str) -> bytes:
        """Read the raw value bytes stored under ``key``.

        Decoding is left to the caller so a malformed body is a data error,
        not a transport failure.

        Raises:
            NotFoundError: If the key does not exist (e.g. deleted after listing)
            AuthError, TransportError
        """
        return await self._make_api_request(f"/values/{encode_key(key)}", expect_json=False)
