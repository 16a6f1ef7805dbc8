"""Credentials for the functional scripts.

Values come from tests/utils/credentials.txt (KEY=VALUE lines) when present,
otherwise from the PT_* environment variables.
"""

from pathlib import Path
from typing import Dict

from page_tracker.config import ENV_ACCOUNT_ID, ENV_NAMESPACE_ID, ENV_TOKEN
from page_tracker.helpers import env_value

CREDENTIAL_KEYS = (ENV_TOKEN, ENV_ACCOUNT_ID, ENV_NAMESPACE_ID)
CREDENTIALS_FILE = Path(__file__).parent / "credentials.txt"


def read_credentials() -> Dict[str, str]:
    file_values = {}
    if CREDENTIALS_FILE.exists():
        for line in CREDENTIALS_FILE.read_text().splitlines():
            name, sep, value = line.partition("=")
            if sep and not name.lstrip().startswith("#"):
                file_values[name.strip()] = value
    creds = {}
    for name in CREDENTIAL_KEYS:
        value = env_value(name, file_values) or env_value(name)
        if value:
            creds[name] = value
    return creds
