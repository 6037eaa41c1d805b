"""FRED tool definitions served over MCP."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import partial
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Type

from pydantic import ValidationError

from fredquery.fred.browse import browse
from fredquery.fred.registry import DEDICATED_SERIES, SERIES_REGISTRY, SeriesMetadata
from fredquery.fred.request import FredAPIError, FredClient
from fredquery.fred.schema import BrowseArgs, RegisteredSeriesArgs, SearchArgs, SeriesArgs, ToolArgs
from fredquery.fred.search import search_series
from fredquery.fred.series import fetch_registered_series, get_series_data
from fredquery.validation.config import ConfigError

logger = logging.getLogger(__name__)

Handler = Callable[[FredClient, Any], Awaitable[Dict[str, Any]]]


class ToolError(Exception):
    """A tool call that failed; reported to the client as an error result."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


@dataclass
class FredTool:
    """One MCP tool: its name, description, argument model and handler."""

    name: str
    description: str
    args_model: Type[ToolArgs]
    handler: Handler

    def definition(self) -> Dict[str, Any]:
        """Entry for a ``tools/list`` response."""
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.args_model.model_json_schema(),
        }


def build_tools(registry: Mapping[str, SeriesMetadata] = SERIES_REGISTRY) -> List[FredTool]:
    tools = [
        FredTool(
            name="fred_browse",
            description=(
                "Browse FRED's complete catalog through categories, releases, or sources. "
                "Use browse_type='categories' to explore the category tree, 'releases' for data "
                "releases, 'sources' for data sources, 'category_series' to get all series in a "
                "category, or 'release_series' to get all series in a release."
            ),
            args_model=BrowseArgs,
            handler=browse,
        ),
        FredTool(
            name="fred_search",
            description=(
                "Search for FRED economic data series by keywords, tags, or filters. Returns "
                "matching series with their IDs, titles, and metadata."
            ),
            args_model=SearchArgs,
            handler=search_series,
        ),
        FredTool(
            name="fred_get_series",
            description=(
                "Retrieve data for any FRED series by its ID. Supports data transformations, "
                "frequency changes, and date ranges."
            ),
            args_model=SeriesArgs,
            handler=get_series_data,
        ),
    ]

    for series_id in DEDICATED_SERIES:
        metadata = registry.get(series_id)
        if metadata is None:
            continue
        tools.append(FredTool(
            name=series_id,
            description=f"Retrieve data for {metadata.title} ({series_id}) from FRED",
            args_model=RegisteredSeriesArgs,
            handler=partial(_call_registered, series_id=series_id, registry=registry),
        ))
    return tools


async def _call_registered(
    client: FredClient,
    args: RegisteredSeriesArgs,
    series_id: str,
    registry: Mapping[str, SeriesMetadata],
) -> Dict[str, Any]:
    return await fetch_registered_series(client, series_id, args, registry)


class FredToolbox:
    """
    The FRED tool surface: lists tools and runs tool calls.

    Arguments are validated against the tool's model before anything is sent
    upstream. Failures come out as ``ToolError``.
    """

    def __init__(self, client: FredClient, registry: Mapping[str, SeriesMetadata] = SERIES_REGISTRY):
        self.client = client
        self._tools: Dict[str, FredTool] = {tool.name: tool for tool in build_tools(registry)}

    def list_tools(self) -> List[Dict[str, Any]]:
        return [tool.definition() for tool in self._tools.values()]

    def get_tool(self, name: str) -> Optional[FredTool]:
        return self._tools.get(name)

    async def run(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Validate ``arguments`` and return the tool's payload (unwrapped)."""
        tool = self._tools.get(name)
        if tool is None:
            raise ToolError(f"Unknown tool: {name}")

        try:
            args = tool.args_model.model_validate(arguments or {})
        except ValidationError as exc:
            raise ToolError(f"Invalid arguments for {name}: {exc}")

        logger.info("%s called with params: %s", name, args.arguments())
        try:
            payload = await tool.handler(self.client, args)
        except (FredAPIError, ConfigError) as exc:
            logger.error("%s failed: %s", name, exc)
            raise ToolError(str(exc))
        logger.info("%s complete", name)
        return payload

