"""
Unit tests for ServerConfig.
"""

import pytest

from toolkitapi.config import ServerConfig


class TestDefaults:
    def test_loopback_fixed_port(self):
        config = ServerConfig()

        assert config.host == "127.0.0.1"
        assert config.port == 54321
        assert config.max_request_size == 10 * 1024 * 1024
        assert config.default_language == "zh-Hans"
        assert config.server_name == "mac-toolkit-api/1.0.0"

    def test_defaults_validate(self):
        ServerConfig().validate()


class TestFromEnv:
    def test_reads_variables(self, monkeypatch):
        monkeypatch.setenv("TOOLKIT_HOST", "127.0.0.2")
        monkeypatch.setenv("TOOLKIT_PORT", "60000")
        monkeypatch.setenv("TOOLKIT_TIMEOUT", "2.5")
        monkeypatch.setenv("TOOLKIT_LANGUAGE", "en-US")
        monkeypatch.setenv("TOOLKIT_LOG_FORMAT", "json")

        config = ServerConfig.from_env()

        assert config.host == "127.0.0.2"
        assert config.port == 60000
        assert config.timeout == 2.5
        assert config.default_language == "en-US"
        assert config.log_format == "json"

    def test_unset_uses_defaults(self, monkeypatch):
        for name in ("TOOLKIT_HOST", "TOOLKIT_PORT", "TOOLKIT_TIMEOUT", "TOOLKIT_LANGUAGE"):
            monkeypatch.delenv(name, raising=False)

        config = ServerConfig.from_env()

        assert config.port == 54321
        assert config.timeout is None


class TestValidate:
    @pytest.mark.parametrize("overrides", [
        {"port": -1},
        {"port": 65536},
        {"buffer_size": 100},
        {"timeout": 0},
        {"max_request_size": 0},
        {"log_format": "xml"},
        {"default_language": ""},
    ])
    def test_rejects(self, overrides):
        with pytest.raises(ValueError):
            ServerConfig(**overrides).validate()

    def test_port_zero_allowed(self):
        ServerConfig(port=0).validate()
