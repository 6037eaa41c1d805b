"""
FredQuery Configuration - Configuration loading and validation.

This module provides the Config class for managing FredQuery configuration
from both global (~/.fredquery/config.yaml) and local (.fredquery/config.yaml)
sources.
"""

import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError


class ConfigError(Exception):
    """Raised when there's a configuration error."""

    pass


class ProviderConfig(BaseModel):
    """Configuration for an LLM provider."""

    api_key: Optional[str] = None
    api_base: Optional[str] = None
    models: List[str] = Field(default_factory=list)
    default_model: Optional[str] = None
    enabled: bool = True


class AgentConfig(BaseModel):
    """Configuration for the query agent."""

    model: Optional[str] = "openai/gpt-4"
    max_tokens: int = 2048
    temperature: float = 0.1
    timeout: int = 120
    fetch_limit: int = 50
    search_fanout: int = 5


class FredConfig(BaseModel):
    """Configuration for the upstream FRED API."""

    api_key: Optional[str] = None
    base_url: str = "https://api.stlouisfed.org/fred"
    timeout: float = 10.0


class MCPServerConfig(BaseModel):
    """How to spawn and talk to the FRED MCP server."""

    command: str = Field(default_factory=lambda: sys.executable)
    args: List[str] = Field(default_factory=lambda: ["-m", "fredquery.fred.server"])
    env: Dict[str, str] = Field(default_factory=dict)
    request_timeout: float = 15.0
    startup_grace: float = 2.0
    stderr_banner: str = "FRED MCP Server"


class HTTPConfig(BaseModel):
    """Configuration for the HTTP proxy endpoints."""

    host: str = "127.0.0.1"
    port: int = 3000


class FredQueryConfig(BaseModel):
    """Complete FredQuery configuration schema."""

    providers: Dict[str, ProviderConfig] = Field(default_factory=dict)
    agent: AgentConfig = Field(default_factory=AgentConfig)
    fred: FredConfig = Field(default_factory=FredConfig)
    mcp: MCPServerConfig = Field(default_factory=MCPServerConfig)
    http: HTTPConfig = Field(default_factory=HTTPConfig)


class Config:
    """
    FredQuery configuration manager.

    Handles loading, merging, and validating configuration from:
    - Global: ~/.fredquery/config.yaml
    - Local: .fredquery/config.yaml (project-specific)

    Local configuration overrides global configuration. API keys may also
    come from the environment.

    Example:
        >>> config = Config.load()
        >>> config.merged.mcp.request_timeout
        15.0
        >>> config.get_api_key("fred")
    """

    GLOBAL_CONFIG_DIR = Path.home() / ".fredquery"
    LOCAL_CONFIG_DIR = Path(".fredquery")

    ENV_KEYS = {
        "fred": "FRED_API_KEY",
        "openai": "OPENAI_API_KEY",
        "anthropic": "ANTHROPIC_API_KEY",
        "openrouter": "OPENROUTER_API_KEY",
        "groq": "GROQ_API_KEY",
    }

    def __init__(
        self,
        global_config: Optional[Dict[str, Any]] = None,
        local_config: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize Config.

        Args:
            global_config: Global configuration dictionary.
            local_config: Local (project) configuration dictionary.
        """
        self._global_config = global_config or {}
        self._local_config = local_config or {}
        self._merged: Optional[FredQueryConfig] = None

    @classmethod
    def load(cls) -> "Config":
        """
        Load configuration from default locations.

        Returns:
            Config instance with loaded configuration.
        """
        global_config = cls._load_yaml(cls.GLOBAL_CONFIG_DIR / "config.yaml")
        local_config = cls._load_yaml(cls._find_local_config())

        return cls(global_config=global_config, local_config=local_config)

    @classmethod
    def _load_yaml(cls, path: Optional[Path]) -> Dict[str, Any]:
        """Load YAML file if it exists."""
        if path is None or not path.exists():
            return {}

        try:
            with open(path) as f:
                data = yaml.safe_load(f)
                return data if data else {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to load config from {path}: {e}")

    @classmethod
    def _find_local_config(cls) -> Optional[Path]:
        """Find the local config file by walking up the directory tree."""
        current = Path.cwd()
        while current != current.parent:
            config_path = current / cls.LOCAL_CONFIG_DIR / "config.yaml"
            if config_path.exists():
                return config_path
            current = current.parent
        return None

    def get_merged_config(self) -> Dict[str, Any]:
        """Get the merged configuration as a dictionary."""
        return self._deep_merge(self._global_config.copy(), self._local_config)

    @property
    def merged(self) -> FredQueryConfig:
        """Get the validated merged configuration."""
        if self._merged is None:
            try:
                self._merged = FredQueryConfig(**self.get_merged_config())
            except ValidationError as e:
                raise ConfigError(f"Invalid configuration: {e}")
        return self._merged

    def get_provider_config(self, provider_name: str) -> Optional[ProviderConfig]:
        """Get configuration for a specific provider."""
        return self.merged.providers.get(provider_name)

    def get_api_key(self, name: str) -> Optional[str]:
        """
        Get API key for a provider or for the FRED API (``name="fred"``).

        Checks config first, then environment variables.
        """
        if name == "fred":
            if self.merged.fred.api_key:
                return self.merged.fred.api_key
        else:
            provider = self.get_provider_config(name)
            if provider and provider.api_key:
                return provider.api_key

        env_var = self.ENV_KEYS.get(name)
        if env_var:
            return os.environ.get(env_var) or None

        return None

    def child_env(self) -> Dict[str, str]:
        """Environment overrides for the MCP server process."""
        env = dict(self.merged.mcp.env)
        api_key = self.get_api_key("fred")
        if api_key:
            env["FRED_API_KEY"] = api_key
        return env

    def _deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two dictionaries, with override taking precedence."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result
