"""Tests for configuration management."""

import sys
import tempfile
from pathlib import Path

import pytest

from fredquery.validation.config import Config, ConfigError, FredQueryConfig


class TestConfig:
    """Tests for Config class."""

    @pytest.fixture
    def temp_config_dir(self):
        """Create a temporary config directory."""
        with tempfile.TemporaryDirectory() as tmpdir:
            yield Path(tmpdir)

    def test_deep_merge(self):
        """Test deep merging of dictionaries."""
        config = Config()

        base = {
            "a": 1,
            "b": {"c": 2, "d": 3},
            "e": [1, 2, 3],
        }

        override = {
            "b": {"c": 10, "f": 5},
            "g": "new",
        }

        result = config._deep_merge(base, override)

        assert result["a"] == 1
        assert result["b"]["c"] == 10
        assert result["b"]["d"] == 3
        assert result["b"]["f"] == 5
        assert result["e"] == [1, 2, 3]
        assert result["g"] == "new"

    def test_get_merged_config(self):
        """Test that local settings override global ones."""
        global_config = {
            "mcp": {"request_timeout": 30, "startup_grace": 1},
            "agent": {"model": "openai/gpt-4"},
        }

        local_config = {
            "mcp": {"request_timeout": 5},
        }

        config = Config(global_config=global_config, local_config=local_config)
        merged = config.get_merged_config()

        # Local should override global
        assert merged["mcp"]["request_timeout"] == 5
        # Global should be preserved
        assert merged["mcp"]["startup_grace"] == 1
        assert config.merged.agent.model == "openai/gpt-4"

    def test_fred_api_key_from_config(self, monkeypatch):
        """Test that the FRED key in config wins over the environment."""
        monkeypatch.setenv("FRED_API_KEY", "env-key")
        config = Config(global_config={"fred": {"api_key": "cfg-key"}})

        assert config.get_api_key("fred") == "cfg-key"

    def test_fred_api_key_from_env(self, monkeypatch):
        """Test falling back to FRED_API_KEY."""
        monkeypatch.setenv("FRED_API_KEY", "env-key")

        assert Config().get_api_key("fred") == "env-key"

    def test_empty_env_key_is_missing(self, monkeypatch):
        """Test that an empty variable counts as unset."""
        monkeypatch.setenv("FRED_API_KEY", "")

        assert Config().get_api_key("fred") is None

    def test_provider_api_key(self, monkeypatch):
        """Test provider keys from config and environment."""
        monkeypatch.setenv("GROQ_API_KEY", "groq-env")
        config = Config(global_config={"providers": {"openai": {"api_key": "sk-test"}}})

        assert config.get_api_key("openai") == "sk-test"
        assert config.get_api_key("groq") == "groq-env"
        assert config.get_api_key("unknown") is None

    def test_child_env(self, monkeypatch):
        """Test that the MCP server environment carries the FRED key."""
        monkeypatch.delenv("FRED_API_KEY", raising=False)
        config = Config(global_config={
            "fred": {"api_key": "cfg-key"},
            "mcp": {"env": {"EXTRA": "1"}},
        })

        assert config.child_env() == {"EXTRA": "1", "FRED_API_KEY": "cfg-key"}

    def test_load_yaml(self, temp_config_dir):
        """Test loading a YAML file."""
        path = temp_config_dir / "config.yaml"
        path.write_text("http:\n  port: 8080\n")

        assert Config._load_yaml(path) == {"http": {"port": 8080}}
        assert Config._load_yaml(temp_config_dir / "missing.yaml") == {}

    def test_load_invalid_yaml(self, temp_config_dir):
        """Test that unreadable YAML raises ConfigError."""
        path = temp_config_dir / "config.yaml"
        path.write_text("http: [unclosed\n")

        with pytest.raises(ConfigError):
            Config._load_yaml(path)

    def test_invalid_schema(self):
        """Test that values of the wrong type raise ConfigError."""
        config = Config(global_config={"http": {"port": "not-a-port"}})

        with pytest.raises(ConfigError):
            config.merged

    def test_find_local_config(self, temp_config_dir, monkeypatch):
        """Test finding .fredquery/config.yaml in a parent directory."""
        config_dir = temp_config_dir / ".fredquery"
        config_dir.mkdir()
        (config_dir / "config.yaml").write_text("agent:\n  fetch_limit: 10\n")
        nested = temp_config_dir / "a" / "b"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)

        assert Config._find_local_config().resolve() == (config_dir / "config.yaml").resolve()


class TestFredQueryConfig:
    """Tests for FredQueryConfig schema."""

    def test_default_config(self):
        """Test creating default configuration."""
        config = FredQueryConfig()

        assert config.agent.max_tokens == 2048
        assert config.agent.temperature == 0.1
        assert config.agent.fetch_limit == 50
        assert config.agent.search_fanout == 5
        assert config.fred.base_url == "https://api.stlouisfed.org/fred"
        assert config.mcp.request_timeout == 15.0
        assert config.mcp.startup_grace == 2.0
        assert config.mcp.command == sys.executable
        assert config.mcp.args == ["-m", "fredquery.fred.server"]
        assert config.http.port == 3000
        assert len(config.providers) == 0

    def test_config_with_providers(self):
        """Test configuration with providers."""
        config = FredQueryConfig(
            providers={
                "openai": {
                    "api_key": "test",
                    "models": ["gpt-4"],
                    "enabled": True,
                }
            }
        )

        assert "openai" in config.providers
        assert config.providers["openai"].enabled is True
