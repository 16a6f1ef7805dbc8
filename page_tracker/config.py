"""Runtime configuration for page_tracker.

The configuration is resolved once at startup, from explicit values with an
environment variable fallback, and then passed to the client and pipeline.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Mapping, Optional

from .exceptions import ConfigError
from .helpers import env_value

DEFAULT_API_URL = "https://api.cloudflare.com/client/v4"
DEFAULT_TIMEOUT = 30.0
DEFAULT_PAGE_SIZE = 1000
# The list keys endpoint accepts between 10 and 1000 keys per page
MIN_PAGE_SIZE = 10
MAX_PAGE_SIZE = 1000

ENV_TOKEN = "PT_JWT"
ENV_ACCOUNT_ID = "PT_ACCOUNT_ID"
ENV_NAMESPACE_ID = "PT_KV_ID"

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Config:
    """Credentials and connection settings for one KV namespace.

    Attributes:
        api_token: API token with the ``Account.Workers KV Storage`` permission
        account_id: Owner account id of the namespace
        namespace_id: KV namespace id
        api_url: Base URL of the KV REST API
        request_timeout: Total timeout per request, in seconds
        page_size: Number of keys requested per list page
    """
    api_token: str = field(repr=False)
    account_id: str
    namespace_id: str
    api_url: str = DEFAULT_API_URL
    request_timeout: float = DEFAULT_TIMEOUT
    page_size: int = DEFAULT_PAGE_SIZE

    def __post_init__(self) -> None:
        missing = [
            name for name, value in (
                ("api_token", self.api_token),
                ("account_id", self.account_id),
                ("namespace_id", self.namespace_id),
            )
            if not value or not value.strip()
        ]
        if missing:
            raise ConfigError(f"Missing required configuration: {', '.join(missing)}")
        if not self.api_url.lower().startswith("https://"):
            raise ConfigError(f"HTTPS is required for the KV API, got {self.api_url!r}")
        if self.request_timeout <= 0:
            raise ConfigError(f"Request timeout must be positive, got {self.request_timeout}")
        if not MIN_PAGE_SIZE <= self.page_size <= MAX_PAGE_SIZE:
            raise ConfigError(
                f"Page size must be between {MIN_PAGE_SIZE} and {MAX_PAGE_SIZE}, got {self.page_size}"
            )

    @classmethod
    def resolve(
        cls,
        api_token: Optional[str] = None,
        account_id: Optional[str] = None,
        namespace_id: Optional[str] = None,
        *,
        environ: Optional[Mapping[str, str]] = None,
        **settings,
    ) -> "Config":
        """Build a Config, falling back to the environment for credentials.

        Explicit non-empty values win over ``PT_JWT``, ``PT_ACCOUNT_ID`` and
        ``PT_KV_ID``.

        Args:
            api_token: API token, or None to read ``PT_JWT``
            account_id: Account id, or None to read ``PT_ACCOUNT_ID``
            namespace_id: Namespace id, or None to read ``PT_KV_ID``
            environ: Mapping to read instead of ``os.environ``
            **settings: Remaining Config fields (api_url, request_timeout, page_size)

        Returns:
            Validated Config

        Raises:
            ConfigError: If a credential is missing or a setting is invalid
        """
        resolved = {
            "api_token": (api_token or "").strip() or env_value(ENV_TOKEN, environ),
            "account_id": (account_id or "").strip() or env_value(ENV_ACCOUNT_ID, environ),
            "namespace_id": (namespace_id or "").strip() or env_value(ENV_NAMESPACE_ID, environ),
        }
        env_names = {"api_token": ENV_TOKEN, "account_id": ENV_ACCOUNT_ID, "namespace_id": ENV_NAMESPACE_ID}
        missing = [env_names[name] for name, value in resolved.items() if not value]
        if missing:
            raise ConfigError(f"Missing required credentials: set {', '.join(missing)}")

        settings = {name: value for name, value in settings.items() if value is not None}
        config = cls(**resolved, **settings)
        log.debug(f"Resolved configuration for account {config.account_id}, namespace {config.namespace_id}")
        return config
