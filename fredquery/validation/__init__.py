"""
FredQuery validation module.

This module provides configuration validation and schema enforcement.
"""

from fredquery.validation.config import Config, ConfigError, FredQueryConfig

__all__ = ["Config", "ConfigError", "FredQueryConfig"]
