"""Tests for the FRED MCP tools."""

import httpx
import pytest

from fredquery.fred.request import FredClient
from fredquery.fred.schema import BrowseArgs, SeriesArgs
from fredquery.fred.tools import FredToolbox, ToolError

OBSERVATIONS = {
    "observation_start": "2023-01-01",
    "observation_end": "2024-06-01",
    "count": 3,
    "offset": 0,
    "limit": 100000,
    "observations": [
        {"date": "2023-06-01", "value": "100.0"},
        {"date": "2024-05-01", "value": "."},
        {"date": "2024-06-01", "value": "105.0"},
    ],
}

SERIES_INFO = {
    "seriess": [{
        "id": "UNRATE",
        "title": "Unemployment Rate",
        "units": "Percent",
        "frequency": "Monthly",
        "seasonal_adjustment": "Seasonally Adjusted",
        "observation_start": "1948-01-01",
        "observation_end": "2024-06-01",
        "last_updated": "2024-07-05",
        "popularity": 95,
        "notes": "x" * 300,
    }]
}


def fake_fred(request: httpx.Request) -> httpx.Response:
    """A tiny stand-in for the FRED endpoints the tools use."""
    path = request.url.path.replace("/fred/", "", 1)
    if path == "series/observations":
        if request.url.params.get("series_id") == "BAD":
            return httpx.Response(400, json={"error_code": 400, "error_message": "Bad Request. Series not found"})
        return httpx.Response(200, json=OBSERVATIONS)
    if path == "series":
        return httpx.Response(200, json=SERIES_INFO)
    if path == "series/search":
        return httpx.Response(200, json={"count": 1, "offset": 0, "limit": 25, **SERIES_INFO})
    if path == "category":
        return httpx.Response(200, json={"categories": [{"id": 0, "name": "Categories", "parent_id": 0}]})
    if path == "category/children":
        return httpx.Response(200, json={"categories": [{"id": 32991, "name": "Money", "parent_id": 0}]})
    if path == "category/series":
        return httpx.Response(200, json={"count": 120, "offset": 0, "limit": 50, **SERIES_INFO})
    if path == "releases":
        return httpx.Response(200, json={"count": 2, "offset": 0, "limit": 50, "releases": [
            {"id": 10, "name": "Consumer Price Index", "press_release": True, "link": "http://bls.gov"},
        ]})
    if path == "sources":
        return httpx.Response(200, json={"count": 1, "offset": 0, "limit": 50, "sources": [
            {"id": 1, "name": "Board of Governors", "link": "http://federalreserve.gov"},
        ]})
    return httpx.Response(404, text="not found")


@pytest.fixture
def toolbox():
    return FredToolbox(FredClient(api_key="test-key", transport=httpx.MockTransport(fake_fred)))


class TestToolDefinitions:
    """Tests for the tools/list surface."""

    def test_tool_names(self, toolbox):
        """Test that the generic and dedicated tools are all listed."""
        names = [tool["name"] for tool in toolbox.list_tools()]

        assert names == ["fred_browse", "fred_search", "fred_get_series", "CPIAUCSL", "RRPONTSYD"]

    def test_input_schema(self, toolbox):
        """Test that input schemas come from the argument models."""
        series = toolbox.get_tool("fred_get_series").definition()

        assert series["inputSchema"]["type"] == "object"
        assert series["inputSchema"]["required"] == ["series_id"]
        assert "observation_start" in series["inputSchema"]["properties"]


class TestArgumentModels:
    """Tests for the per-tool argument models."""

    def test_browse_requires_parent_id(self):
        """Test that category_series needs a category id."""
        with pytest.raises(ValueError):
            BrowseArgs(browse_type="category_series")

        assert BrowseArgs(browse_type="category_series", category_id=32991).category_id == 32991

    def test_series_date_format(self):
        """Test that dates must be YYYY-MM-DD."""
        with pytest.raises(ValueError):
            SeriesArgs(series_id="GDP", observation_start="2024/01/01")

    def test_arguments_drop_unset(self):
        """Test that unset optional fields are not sent."""
        assert SeriesArgs(series_id="GDP", limit=10).arguments() == {"series_id": "GDP", "limit": 10}


class TestToolCalls:
    """Tests for running tools."""

    @pytest.mark.asyncio
    async def test_get_series(self, toolbox):
        """Test that observations are reshaped with metadata and parsed values."""
        payload = await toolbox.run("fred_get_series", {"series_id": "UNRATE"})

        assert payload["title"] == "Unemployment Rate"
        assert payload["units"] == "Percent"
        assert payload["total_observations"] == 3
        assert payload["observation_range"] == "1948-01-01 to 2024-06-01"
        assert payload["data"] == [
            {"date": "2023-06-01", "value": 100.0},
            {"date": "2024-05-01", "value": None},
            {"date": "2024-06-01", "value": 105.0},
        ]

    @pytest.mark.asyncio
    async def test_get_series_upstream_error(self, toolbox):
        """Test that an embedded FRED error becomes a tool error."""
        with pytest.raises(ToolError) as exc_info:
            await toolbox.run("fred_get_series", {"series_id": "BAD"})

        assert "400" in exc_info.value.message
        assert "Bad Request" in exc_info.value.message
        assert exc_info.value.message.startswith("Failed to retrieve series data")

    @pytest.mark.asyncio
    async def test_search(self, toolbox):
        """Test that search results are reshaped and notes truncated."""
        payload = await toolbox.run("fred_search", {"search_text": "unemployment"})

        assert payload["total_results"] == 1
        assert payload["showing"] == "1-1"
        result = payload["results"][0]
        assert result["id"] == "UNRATE"
        assert result["notes"] == "x" * 200 + "..."

    @pytest.mark.asyncio
    async def test_browse_root_category(self, toolbox):
        """Test browsing the category tree root."""
        payload = await toolbox.run("fred_browse", {"browse_type": "categories"})

        assert payload["categories"][0]["name"] == "Categories"

    @pytest.mark.asyncio
    async def test_browse_child_categories(self, toolbox):
        """Test browsing the children of a category."""
        payload = await toolbox.run("fred_browse", {"browse_type": "categories", "category_id": 0})
        children = await toolbox.run("fred_browse", {"browse_type": "categories", "category_id": 32991})

        assert payload["categories"][0]["name"] == "Categories"
        assert children["categories"][0]["name"] == "Money"

    @pytest.mark.asyncio
    async def test_browse_category_series(self, toolbox):
        """Test listing the series in a category."""
        payload = await toolbox.run("fred_browse", {"browse_type": "category_series", "category_id": 32991})

        assert payload["total_series"] == 120
        assert payload["showing"] == "1-50"
        assert payload["series"][0]["id"] == "UNRATE"

    @pytest.mark.asyncio
    async def test_browse_releases_and_sources(self, toolbox):
        """Test browsing releases and sources."""
        releases = await toolbox.run("fred_browse", {"browse_type": "releases"})
        sources = await toolbox.run("fred_browse", {"browse_type": "sources"})

        assert releases["releases"][0]["name"] == "Consumer Price Index"
        assert sources["sources"][0]["name"] == "Board of Governors"

    @pytest.mark.asyncio
    async def test_dedicated_series_tool(self, toolbox):
        """Test that the CPIAUCSL tool labels data with registry metadata."""
        payload = await toolbox.run("CPIAUCSL", {"limit": 3})

        assert payload["series_id"] == "CPIAUCSL"
        assert payload["title"].startswith("Consumer Price Index")
        assert payload["data"][0]["units"] == "Index 1982-1984=100"

    @pytest.mark.asyncio
    async def test_unknown_tool(self, toolbox):
        """Test that an unknown tool is rejected."""
        with pytest.raises(ToolError) as exc_info:
            await toolbox.run("fred_magic", {})

        assert exc_info.value.message == "Unknown tool: fred_magic"

    @pytest.mark.asyncio
    async def test_invalid_arguments(self, toolbox):
        """Test that bad arguments never reach the API."""
        with pytest.raises(ToolError) as exc_info:
            await toolbox.run("fred_browse", {"browse_type": "everything"})

        assert exc_info.value.message.startswith("Invalid arguments for fred_browse")

