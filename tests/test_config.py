"""Tests for configuration."""

import pytest

from awaithttp.config import Config
from awaithttp.exceptions import ConfigurationError


class TestConfig:
    """Test Config defaults and validation."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("HTTPS_PROXY", raising=False)
        monkeypatch.delenv("HTTP_PROXY", raising=False)
        config = Config()
        assert config.cookie_file is None
        assert config.timeout == 30.0
        assert config.chunk_size == 8192
        assert config.proxy is None
        assert config.record_stack is False
        assert "Mozilla/5.0" in config.user_agent

    @pytest.mark.parametrize("field", ["chunk_size", "max_workers", "timeout"])
    def test_non_positive_values_rejected(self, field):
        with pytest.raises(ConfigurationError, match=field):
            Config(**{field: 0})

    def test_proxy_from_environment(self, monkeypatch):
        monkeypatch.delenv("HTTPS_PROXY", raising=False)
        monkeypatch.setenv("HTTP_PROXY", "http://proxy.local:3128")
        assert Config().proxy == "http://proxy.local:3128"

    def test_explicit_proxy_wins(self, monkeypatch):
        monkeypatch.setenv("HTTPS_PROXY", "http://env-proxy:3128")
        assert Config(proxy="http://mine:8080").proxy == "http://mine:8080"

    def test_default_cookie_file_lives_in_home_dir(self, monkeypatch, tmp_path):
        monkeypatch.setenv("HOME", str(tmp_path))
        path = Config.default_cookie_file()
        assert path == tmp_path / ".awaithttp" / "cookies.json"
        assert path.parent.is_dir()
