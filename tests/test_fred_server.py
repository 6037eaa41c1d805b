"""Tests for the FRED MCP server."""

import json

import httpx
import pytest
from mcp import types

from fredquery.fred.request import FredClient
from fredquery.fred.server import SERVER_NAME, create_server
from fredquery.fred.tools import FredToolbox


def observations(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json={"count": 1, "observations": [{"date": "2024-01-01", "value": "1.5"}]})


class BrokenToolbox(FredToolbox):
    async def run(self, name, arguments=None):
        raise KeyError("boom")


def make_server(api_key="test-key", toolbox_class=FredToolbox):
    client = FredClient(api_key=api_key, transport=httpx.MockTransport(observations))
    return create_server(toolbox_class(client))


async def list_tools(server):
    result = await server.request_handlers[types.ListToolsRequest](
        types.ListToolsRequest(method="tools/list")
    )
    return result.root.tools


async def call_tool(server, name, arguments=None):
    result = await server.request_handlers[types.CallToolRequest](
        types.CallToolRequest(
            method="tools/call",
            params=types.CallToolRequestParams(name=name, arguments=arguments),
        )
    )
    return result.root


class TestCreateServer:
    """Tests for the MCP server built from a FredToolbox."""

    def test_initialization_options(self):
        """Test that the server advertises its name and the tools capability."""
        options = make_server().create_initialization_options()

        assert options.server_name == SERVER_NAME
        assert options.capabilities.tools is not None

    @pytest.mark.asyncio
    async def test_list_tools(self):
        """Test that every toolbox tool is listed with its input schema."""
        tools = await list_tools(make_server())

        assert len(tools) == 5
        by_name = {tool.name: tool for tool in tools}
        assert "series_id" in by_name["fred_get_series"].inputSchema["properties"]

    @pytest.mark.asyncio
    async def test_call_tool(self):
        """Test that a tool payload comes back as one JSON text item."""
        result = await call_tool(make_server(), "RRPONTSYD", {"limit": 1})

        assert not result.isError
        assert len(result.content) == 1
        payload = json.loads(result.content[0].text)
        assert payload["series_id"] == "RRPONTSYD"
        assert payload["data"][0]["value"] == 1.5

    @pytest.mark.asyncio
    async def test_missing_key_is_error_result(self):
        """Test that a missing API key is reported as an error result."""
        result = await call_tool(make_server(api_key=None), "fred_get_series", {"series_id": "GDP"})

        assert result.isError
        assert "FRED API key is required" in result.content[0].text

    @pytest.mark.asyncio
    async def test_invalid_arguments_are_error_result(self):
        """Test that pydantic validation failures are error results."""
        result = await call_tool(make_server(), "fred_get_series", {})

        assert result.isError
        assert "Invalid arguments for fred_get_series" in result.content[0].text

    @pytest.mark.asyncio
    async def test_unknown_tool_is_error_result(self):
        """Test that an unknown tool name is an error result."""
        result = await call_tool(make_server(), "fred_magic", {})

        assert result.isError
        assert "Unknown tool: fred_magic" in result.content[0].text

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_error_result(self):
        """Test that a bug inside a tool still produces a response."""
        result = await call_tool(make_server(toolbox_class=BrokenToolbox), "fred_browse", {})

        assert result.isError
        assert "boom" in result.content[0].text
