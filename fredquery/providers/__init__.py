"""
FredQuery providers module.

This module provides abstractions for the LLM providers the query agent uses.
"""

from fredquery.providers.base import Provider, ProviderFactory, ProviderResponse

__all__ = ["Provider", "ProviderFactory", "ProviderResponse"]
