"""
Tests for YAML configuration loading with environment substitution.
"""

import textwrap

import pytest

from cex_rest.config import (
    ExchangeConfig,
    load_exchange_config,
    load_exchange_configs,
    parse_exchange_config,
    substitute_env_vars,
)
from cex_rest.exceptions import ConfigurationError
from cex_rest.networking.http import RequestContext, ResilienceRegistries

CONFIG_YAML = textwrap.dedent("""
    exchanges:
      binance:
        base_url: https://api.binance.com
        credentials:
          api_key: ${TEST_BINANCE_API_KEY}
          secret_key: ${TEST_BINANCE_SECRET:fallback-secret}
        network:
          request_timeout: 5
        proxy:
          host: proxy.local
          port: 3128
        rate_limits:
          requestWeight: {capacity: 6000, refill_period: 60}
        retries:
          requestWeight: {max_attempts: 3, initial_delay: 0.05, multiplier: 4}
        resilience:
          rate_limiter_enabled: false
      public:
        base_url: https://example.com
""")


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG_YAML)
    return path


@pytest.fixture
def env_file(tmp_path):
    return tmp_path / ".env"


class TestSubstitution:

    def test_set_variable(self, monkeypatch):
        monkeypatch.setenv("TEST_VALUE", "abc")
        assert substitute_env_vars("key: ${TEST_VALUE}") == "key: abc"

    def test_default_value(self, monkeypatch):
        monkeypatch.delenv("TEST_MISSING", raising=False)
        assert substitute_env_vars("${TEST_MISSING:dflt}") == "dflt"

    def test_unset_without_default_is_empty(self, monkeypatch):
        monkeypatch.delenv("TEST_MISSING", raising=False)
        assert substitute_env_vars("[${TEST_MISSING}]") == "[]"


class TestLoader:

    def test_load_all(self, config_file, env_file, monkeypatch):
        monkeypatch.setenv("TEST_BINANCE_API_KEY", "key-123")
        monkeypatch.delenv("TEST_BINANCE_SECRET", raising=False)

        configs = load_exchange_configs(config_file, env_file)

        assert set(configs) == {"binance", "public"}
        binance = configs["binance"]
        assert isinstance(binance, ExchangeConfig)
        assert binance.name == "binance"
        assert binance.credentials.api_key == "key-123"
        assert binance.credentials.secret_key == "fallback-secret"
        assert binance.network.request_timeout == 5
        assert binance.network.connect_timeout == 2.0
        assert binance.proxy.url == "http://proxy.local:3128"
        assert binance.rate_limits["requestWeight"].capacity == 6000
        assert binance.retries["requestWeight"].multiplier == 4
        assert binance.resilience.rate_limiter_enabled is False
        assert binance.resilience.retry_enabled is True

        public = configs["public"]
        assert public.credentials is None
        assert public.rate_limits == {}

    def test_env_file_is_loaded(self, config_file, env_file, monkeypatch):
        # setenv first so teardown removes the value dotenv injects
        monkeypatch.setenv("TEST_BINANCE_API_KEY", "")
        monkeypatch.delenv("TEST_BINANCE_API_KEY")
        env_file.write_text("TEST_BINANCE_API_KEY=from-dotenv\n")

        config = load_exchange_config(config_file, "binance", env_file)
        assert config.credentials.api_key == "from-dotenv"

    def test_config_feeds_runtime_objects(self, config_file, env_file, monkeypatch):
        monkeypatch.setenv("TEST_BINANCE_API_KEY", "key")
        config = load_exchange_config(config_file, "binance", env_file)

        context = RequestContext.from_config(config)
        assert context.base_url == "https://api.binance.com"
        assert context.timeout == 5
        assert context.proxy == "http://proxy.local:3128"

        registries = ResilienceRegistries.from_config(config)
        assert registries.rate_limiter("requestWeight").capacity == 6000

    def test_unknown_exchange(self, config_file, env_file):
        with pytest.raises(ConfigurationError):
            load_exchange_config(config_file, "kraken", env_file)

    def test_missing_file(self, tmp_path, env_file):
        with pytest.raises(ConfigurationError):
            load_exchange_configs(tmp_path / "nope.yaml", env_file)

    def test_missing_exchanges_section(self, tmp_path, env_file):
        path = tmp_path / "config.yaml"
        path.write_text("logging: {}\n")
        with pytest.raises(ConfigurationError) as exc_info:
            load_exchange_configs(path, env_file)
        assert exc_info.value.setting_name == "exchanges"

    def test_malformed_yaml(self, tmp_path, env_file):
        path = tmp_path / "config.yaml"
        path.write_text("exchanges: [unclosed\n")
        with pytest.raises(ConfigurationError):
            load_exchange_configs(path, env_file)


class TestValidation:

    def test_invalid_base_url(self):
        with pytest.raises(ConfigurationError):
            parse_exchange_config("x", {"base_url": "ftp://example.com"})

    def test_half_credentials(self):
        with pytest.raises(ConfigurationError):
            parse_exchange_config("x", {"base_url": "https://x", "credentials": {"api_key": "k"}})

    def test_invalid_rate_limit(self):
        with pytest.raises(ConfigurationError):
            parse_exchange_config("x", {
                "base_url": "https://x",
                "rate_limits": {"requestWeight": {"capacity": 0, "refill_period": 1}},
            })

    def test_wrong_type(self):
        with pytest.raises(ConfigurationError):
            parse_exchange_config("x", {"base_url": "https://x", "network": {"max_concurrent": "many"}})

    def test_invalid_secret_encoding(self):
        with pytest.raises(ConfigurationError):
            parse_exchange_config("x", {
                "base_url": "https://x",
                "credentials": {"api_key": "k", "secret_key": "s", "secret_encoding": "hex"},
            })
