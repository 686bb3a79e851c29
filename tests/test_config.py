"""Tests for octx.config: configuration validation."""

import pytest

from octx.config import OctxConfig, get_config
from octx.exceptions import ConfigurationError
from octx.models import ErrorPolicy


def _cfg(**overrides):
    """Create an OctxConfig without reading a .env file."""
    defaults = {"github_api_token": "token"}
    return OctxConfig(**{**defaults, **overrides}, _env_file=None)


class TestDefaults:
    def test_defaults(self):
        cfg = _cfg()
        assert cfg.github_api_url == "https://api.github.com/"
        assert cfg.api_page_size == 100
        assert cfg.api_timeout_seconds is None
        assert cfg.on_row_error is ErrorPolicy.ABORT
        assert cfg.log_level == "INFO"


class TestApiUrlValidation:
    def test_trailing_slash_added(self):
        cfg = _cfg(github_api_url="https://ghe.example.com/api/v3")
        assert cfg.github_api_url == "https://ghe.example.com/api/v3/"

    def test_http_allowed(self):
        cfg = _cfg(github_api_url="http://localhost:8080/")
        assert cfg.github_api_url == "http://localhost:8080/"

    def test_invalid_url_rejected(self):
        with pytest.raises(Exception, match="must start with http"):
            _cfg(github_api_url="ftp://api.github.com")


class TestTokenValidation:
    def test_token_stripped(self):
        assert _cfg(github_api_token="  abc \n").github_api_token == "abc"

    def test_blank_token_rejected(self):
        with pytest.raises(Exception, match="GITHUB_API_TOKEN cannot be empty"):
            _cfg(github_api_token="   ")


class TestPageSizeValidation:
    @pytest.mark.parametrize("size", [1, 50, 100])
    def test_valid(self, size):
        assert _cfg(api_page_size=size).api_page_size == size

    @pytest.mark.parametrize("size", [0, 101])
    def test_out_of_range(self, size):
        with pytest.raises(Exception):
            _cfg(api_page_size=size)


class TestOtherSettings:
    def test_timeout_must_be_positive(self):
        with pytest.raises(Exception):
            _cfg(api_timeout_seconds=0)

    def test_row_error_policy(self):
        assert _cfg(on_row_error="skip").on_row_error is ErrorPolicy.SKIP

    def test_invalid_row_error_policy(self):
        with pytest.raises(Exception):
            _cfg(on_row_error="ignore")

    def test_log_level_uppercased(self):
        assert _cfg(log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level_rejected(self):
        with pytest.raises(Exception, match="LOG_LEVEL"):
            _cfg(log_level="TRACE")


class TestGetConfig:
    def test_reads_environment(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("GITHUB_API_TOKEN", "env-token")
        monkeypatch.setenv("API_PAGE_SIZE", "30")
        monkeypatch.setenv("ON_ROW_ERROR", "skip")

        cfg = get_config()

        assert cfg.github_api_token == "env-token"
        assert cfg.api_page_size == 30
        assert cfg.on_row_error is ErrorPolicy.SKIP

    def test_missing_token_is_configuration_error(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("GITHUB_API_TOKEN", raising=False)

        with pytest.raises(ConfigurationError, match="Failed to load configuration"):
            get_config()
