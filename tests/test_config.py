"""
Tests for rich_text_extraction/config.py configuration management.

Tests the hierarchical configuration system: defaults, TOML files,
environment variables and command-line overrides.
"""
import pytest
import tomli
from pathlib import Path

from rich_text_extraction.config import RteConfig, get_config, init_config
from rich_text_extraction.metadata import DEFAULT_USER_AGENT, MetadataFetcher
from rich_text_extraction.models import FetchOptions


class TestRteConfigDefaults:
    """Test default configuration values."""

    def test_network_defaults(self):
        config = RteConfig()
        assert config.timeout == 15
        assert config.user_agent == DEFAULT_USER_AGENT
        assert config.max_redirects == 3
        assert config.verify_ssl is True

    def test_cache_defaults(self):
        config = RteConfig()
        assert config.cache_key_prefix == ""
        assert config.cache_ttl == 3600
        assert config.negative_cache_ttl == 0

    def test_display_defaults(self):
        config = RteConfig()
        assert config.output_format == "table"
        assert config.excerpt_length == 300
        assert config.log_level == "WARNING"


class TestRteConfigLoad:
    """Test configuration file loading."""

    def test_load_without_files(self):
        assert RteConfig.load() == RteConfig()

    def test_user_config(self, isolated_config):
        path = isolated_config / ".config" / "rte" / "config.toml"
        path.parent.mkdir(parents=True)
        path.write_text('timeout = 20\nuser_agent = "UserAgent/2.0"\n')

        config = RteConfig.load()
        assert config.timeout == 20
        assert config.user_agent == "UserAgent/2.0"

    def test_local_config_overrides_user_config(self, isolated_config):
        user = isolated_config / ".config" / "rte" / "config.toml"
        user.parent.mkdir(parents=True)
        user.write_text("timeout = 20\nmax_workers = 2\n")
        (isolated_config / "rte.toml").write_text("timeout = 30\n")

        config = RteConfig.load()
        assert config.timeout == 30
        assert config.max_workers == 2

    def test_rterc_is_read(self, isolated_config):
        (isolated_config / ".rterc").write_text('output_format = "json"\n')
        assert RteConfig.load().output_format == "json"

    def test_explicit_config_file(self, tmp_path):
        path = tmp_path / "custom.toml"
        path.write_text('cache_key_prefix = "app"\n')
        assert RteConfig.load(path).cache_key_prefix == "app"

    def test_unknown_keys_ignored(self, isolated_config):
        (isolated_config / "rte.toml").write_text('nonsense = "x"\n')
        config = RteConfig.load()
        assert not hasattr(config, "nonsense")


class TestEnvironmentVariables:
    """Test RTE_* environment variables."""

    def test_int_conversion(self, monkeypatch):
        monkeypatch.setenv("RTE_TIMEOUT", "45")
        assert RteConfig.load().timeout == 45

    @pytest.mark.parametrize("value,expected", [("false", False), ("0", False), ("yes", True)])
    def test_bool_conversion(self, monkeypatch, value, expected):
        monkeypatch.setenv("RTE_VERIFY_SSL", value)
        assert RteConfig.load().verify_ssl is expected

    def test_string_value(self, monkeypatch):
        monkeypatch.setenv("RTE_USER_AGENT", "EnvAgent/1.0")
        assert RteConfig.load().user_agent == "EnvAgent/1.0"

    def test_env_overrides_files(self, isolated_config, monkeypatch):
        (isolated_config / "rte.toml").write_text("timeout = 30\n")
        monkeypatch.setenv("RTE_TIMEOUT", "50")
        assert RteConfig.load().timeout == 50

    def test_malformed_int_keeps_default(self, monkeypatch, caplog):
        monkeypatch.setenv("RTE_TIMEOUT", "abc")
        with caplog.at_level("WARNING", logger="rich_text_extraction.config"):
            config = RteConfig.load()
        assert config.timeout == 15
        assert "RTE_TIMEOUT" in caplog.text

    def test_malformed_int_keeps_file_value(self, isolated_config, monkeypatch):
        (isolated_config / "rte.toml").write_text("max_workers = 4\n")
        monkeypatch.setenv("RTE_MAX_WORKERS", "many")
        assert RteConfig.load().max_workers == 4


class TestSave:
    """Test writing configuration."""

    def test_save_to_path(self, tmp_path):
        config = RteConfig(timeout=25, cache_key_prefix="app")
        path = tmp_path / "out" / "config.toml"
        config.save(path)

        with open(path, "rb") as f:
            data = tomli.load(f)
        assert data["timeout"] == 25
        assert data["cache_key_prefix"] == "app"
        assert RteConfig.load(path) == config

    def test_save_defaults_to_user_config(self, isolated_config):
        RteConfig().save()
        assert (isolated_config / ".config" / "rte" / "config.toml").exists()


class TestHelpers:
    """Test conversion into explicit fetcher and options."""

    def test_make_fetcher(self):
        config = RteConfig(timeout=7, user_agent="Custom/1.0", max_redirects=1, verify_ssl=False)
        fetcher = config.make_fetcher()
        assert isinstance(fetcher, MetadataFetcher)
        assert fetcher.timeout == 7
        assert fetcher.user_agent == "Custom/1.0"
        assert fetcher.session.max_redirects == 1
        assert fetcher.verify_ssl is False

    def test_fetch_options_defaults(self):
        assert RteConfig().fetch_options() == FetchOptions(expires_in=3600)

    def test_fetch_options_custom(self):
        config = RteConfig(cache_key_prefix="app", cache_ttl=0, negative_cache_ttl=60)
        assert config.fetch_options() == FetchOptions(key_prefix="app", negative_ttl=60)

    def test_deadline(self):
        assert RteConfig().deadline() is None
        assert RteConfig(enrichment_deadline=10).deadline() == 10


class TestGlobalConfig:
    """Test get_config() and init_config()."""

    def test_get_config_is_cached(self):
        assert get_config() is get_config()

    def test_reload(self, isolated_config):
        first = get_config()
        (isolated_config / "rte.toml").write_text("timeout = 99\n")
        assert get_config().timeout == first.timeout
        assert get_config(reload=True).timeout == 99

    def test_init_config_overrides(self):
        config = init_config(timeout=3, output_format=None)
        assert config.timeout == 3
        assert config.output_format == "table"

    def test_init_config_with_file(self, tmp_path):
        path = tmp_path / "custom.toml"
        path.write_text("max_workers = 4\n")
        assert init_config(config_file=Path(path)).max_workers == 4
