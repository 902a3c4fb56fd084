"""
Unit tests for configuration models and the loader.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from nflfetch.core.config import (
    AppConfig,
    ConfigError,
    RateLimitConfig,
    RetryConfig,
    load_app_config,
    load_config_from_env,
)


class TestModels:
    """Tests for model defaults and validation."""

    def test_defaults(self):
        config = AppConfig()

        assert config.client.http.timeout_ms == 30_000
        assert config.client.retry.limit == 3
        assert config.client.cache.enabled is True
        assert config.client.cache.ttl_ms == 3_600_000
        assert config.client.cache.max_size == 1000
        assert config.client.rate_limit is None
        assert config.logging.level == "WARNING"

    def test_refill_rate(self):
        assert RateLimitConfig(max_requests=100, interval_ms=60_000).refill_rate_per_ms == pytest.approx(
            100 / 60_000
        )

    def test_retry_methods_are_upper_cased(self):
        assert RetryConfig(methods=["get", "head"]).methods == ["GET", "HEAD"]

    def test_rejects_zero_cache_size(self):
        with pytest.raises(ValidationError):
            AppConfig.model_validate({"client": {"cache": {"max_size": 0}}})

    def test_logging_level_is_normalized(self):
        config = AppConfig.model_validate({"logging": {"level": "debug"}})

        assert config.logging.level == "DEBUG"


class TestEnvOverrides:
    """Tests for NFLFETCH_* environment variables."""

    def test_collects_known_variables(self):
        overrides = load_config_from_env(
            {
                "NFLFETCH_HTTP_TIMEOUT": "5000",
                "NFLFETCH_HTTP_RETRIES": "1",
                "NFLFETCH_CACHE_ENABLED": "false",
                "NFLFETCH_LOGGING_LEVEL": "info",
                "UNRELATED": "x",
            }
        )

        assert overrides == {
            "client": {
                "http": {"timeout_ms": 5000},
                "retry": {"limit": 1},
                "cache": {"enabled": False},
            },
            "logging": {"level": "INFO"},
        }

    def test_unparseable_values_are_ignored(self):
        overrides = load_config_from_env(
            {
                "NFLFETCH_HTTP_TIMEOUT": "soon",
                "NFLFETCH_HTTP_RETRIES": "inf",
                "NFLFETCH_CACHE_TTL": "1e400",
                "NFLFETCH_RATE_LIMIT_INTERVAL": "nan",
                "NFLFETCH_CACHE_ENABLED": "maybe",
            }
        )

        assert overrides == {}

    def test_env_enables_rate_limit(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        config = load_app_config(environ={"NFLFETCH_RATE_LIMIT_MAX_REQUESTS": "10"})

        assert config.client.rate_limit is not None
        assert config.client.rate_limit.max_requests == 10
        assert config.client.rate_limit.interval_ms == 60_000


class TestLoadAppConfig:
    """Tests for load_app_config()."""

    def test_yaml_file(self, tmp_path: Path):
        path = tmp_path / "nflfetch.yaml"
        path.write_text(
            "client:\n"
            "  http:\n"
            "    base_url: https://github.com/nflverse/nflverse-data/releases/download\n"
            "  cache:\n"
            "    ttl_ms: 60000\n"
            "  rate_limit:\n"
            "    max_requests: 5\n"
            "    interval_ms: 1000\n",
            encoding="utf-8",
        )

        config = load_app_config(path, environ={})

        assert config.client.http.base_url.endswith("/releases/download")
        assert config.client.cache.ttl_ms == 60_000
        assert config.client.rate_limit.max_requests == 5

    def test_env_overrides_yaml(self, tmp_path: Path):
        path = tmp_path / "nflfetch.yaml"
        path.write_text("client:\n  http:\n    timeout_ms: 1000\n", encoding="utf-8")

        config = load_app_config(path, environ={"NFLFETCH_HTTP_TIMEOUT": "2500"})

        assert config.client.http.timeout_ms == 2500

    def test_expands_variable_references(self, tmp_path: Path):
        path = tmp_path / "nflfetch.yaml"
        path.write_text(
            "client:\n"
            "  http:\n"
            "    headers:\n"
            "      Authorization: Bearer ${GITHUB_TOKEN}\n"
            "    user_agent: ${AGENT:-nflfetch-tests}\n",
            encoding="utf-8",
        )

        config = load_app_config(path, environ={"GITHUB_TOKEN": "abc"})

        assert config.client.http.headers == {"Authorization": "Bearer abc"}
        assert config.client.http.user_agent == "nflfetch-tests"

    def test_expansion_can_be_disabled(self, tmp_path: Path):
        path = tmp_path / "nflfetch.yaml"
        path.write_text("client:\n  http:\n    user_agent: ${AGENT}\n", encoding="utf-8")

        config = load_app_config(path, expand_env=False, environ={"AGENT": "x"})

        assert config.client.http.user_agent == "${AGENT}"

    def test_empty_file_gives_defaults(self, tmp_path: Path):
        path = tmp_path / "nflfetch.yaml"
        path.write_text("", encoding="utf-8")

        assert load_app_config(path, environ={}) == AppConfig()

    def test_missing_explicit_path(self, tmp_path: Path):
        with pytest.raises(ConfigError) as exc_info:
            load_app_config(tmp_path / "nope.yaml", environ={})

        assert "not found" in exc_info.value.message

    def test_invalid_yaml(self, tmp_path: Path):
        path = tmp_path / "bad.yaml"
        path.write_text("client: [unclosed\n", encoding="utf-8")

        with pytest.raises(ConfigError) as exc_info:
            load_app_config(path, environ={})

        assert exc_info.value.details

    def test_non_mapping_top_level(self, tmp_path: Path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")

        with pytest.raises(ConfigError):
            load_app_config(path, environ={})

    def test_validation_error_becomes_config_error(self, tmp_path: Path):
        path = tmp_path / "nflfetch.yaml"
        path.write_text("client:\n  retry:\n    limit: -1\n", encoding="utf-8")

        with pytest.raises(ConfigError) as exc_info:
            load_app_config(path, environ={})

        assert "limit" in exc_info.value.details
        assert isinstance(exc_info.value.__cause__, ValidationError)

    def test_default_path_in_working_directory(self, tmp_path: Path, monkeypatch):
        (tmp_path / "nflfetch.yaml").write_text("client:\n  debug: true\n", encoding="utf-8")
        monkeypatch.chdir(tmp_path)

        assert load_app_config(environ={}).client.debug is True

    def test_no_default_file_gives_defaults(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        assert load_app_config(environ={}) == AppConfig()
