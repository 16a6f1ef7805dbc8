import pytest

from page_tracker.config import DEFAULT_API_URL, DEFAULT_PAGE_SIZE, Config
from page_tracker.exceptions import ConfigError

ENV = {"PT_JWT": "env-token", "PT_ACCOUNT_ID": "env-account", "PT_KV_ID": "env-kv"}


def test_resolve_from_environment():
    config = Config.resolve(environ=ENV)
    assert config.api_token == "env-token"
    assert config.account_id == "env-account"
    assert config.namespace_id == "env-kv"
    assert config.api_url == DEFAULT_API_URL
    assert config.page_size == DEFAULT_PAGE_SIZE


def test_explicit_values_override_environment():
    config = Config.resolve("cli-token", "cli-account", None, environ=ENV)
    assert config.api_token == "cli-token"
    assert config.account_id == "cli-account"
    assert config.namespace_id == "env-kv"


def test_unset_settings_keep_defaults():
    config = Config.resolve(environ=ENV, api_url=None, request_timeout=None, page_size=50)
    assert config.api_url == DEFAULT_API_URL
    assert config.page_size == 50


@pytest.mark.parametrize("missing", ["PT_JWT", "PT_ACCOUNT_ID", "PT_KV_ID"])
def test_missing_credential_names_variable(missing):
    env = {k: v for k, v in ENV.items() if k != missing}
    with pytest.raises(ConfigError, match=missing):
        Config.resolve(environ=env)


def test_blank_credential_is_missing():
    env = dict(ENV, PT_JWT="  ")
    with pytest.raises(ConfigError, match="PT_JWT"):
        Config.resolve(environ=env)


def test_token_hidden_from_repr():
    config = Config.resolve(environ=ENV)
    assert "env-token" not in repr(config)


@pytest.mark.parametrize("settings", [
    {"api_url": "http://insecure.example.com"},
    {"request_timeout": 0},
    {"page_size": 5},
    {"page_size": 5000},
])
def test_invalid_settings(settings):
    with pytest.raises(ConfigError):
        Config.resolve(environ=ENV, **settings)


def test_direct_construction_validates():
    with pytest.raises(ConfigError, match="namespace_id"):
        Config("token", "account", "")
