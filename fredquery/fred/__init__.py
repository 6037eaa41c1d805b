"""
FredQuery FRED module.

The FRED API client, the series registry, and the MCP tools and stdio
server built on top of them.
"""

from fredquery.fred.registry import DEDICATED_SERIES, EMPLOYMENT_SECTORS, SERIES_REGISTRY, SeriesMetadata
from fredquery.fred.request import FredAPIError, FredClient
from fredquery.fred.schema import BrowseArgs, RegisteredSeriesArgs, SearchArgs, SeriesArgs
from fredquery.fred.tools import FredTool, FredToolbox, ToolError

__all__ = [
    "BrowseArgs",
    "DEDICATED_SERIES",
    "EMPLOYMENT_SECTORS",
    "FredAPIError",
    "FredClient",
    "FredTool",
    "FredToolbox",
    "RegisteredSeriesArgs",
    "SERIES_REGISTRY",
    "SearchArgs",
    "SeriesArgs",
    "SeriesMetadata",
    "ToolError",
]
