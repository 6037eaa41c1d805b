"""Argument models for the FRED MCP tools, one per tool."""

from __future__ import annotations

from typing import Any, ClassVar, Dict, Literal, Optional

from pydantic import BaseModel, Field, model_validator

SortOrder = Literal["asc", "desc"]

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


class ToolArgs(BaseModel):
    """Base for tool arguments. ``tool_name`` is the MCP tool they belong to."""

    tool_name: ClassVar[str] = ""

    def arguments(self) -> Dict[str, Any]:
        """Arguments as sent in a ``tools/call`` request."""
        return self.model_dump(exclude_none=True)


class BrowseArgs(ToolArgs):
    """Arguments for ``fred_browse``."""

    tool_name: ClassVar[str] = "fred_browse"

    browse_type: Literal["categories", "releases", "sources", "category_series", "release_series"] = Field(
        description="Type of browsing to perform"
    )
    category_id: Optional[int] = Field(default=None, description="Category ID (for categories or category_series)")
    release_id: Optional[int] = Field(default=None, description="Release ID (for release_series)")
    limit: int = Field(default=50, ge=1, le=1000, description="Maximum number of results")
    offset: int = Field(default=0, ge=0, description="Number of results to skip")
    order_by: Optional[str] = Field(default=None, description="Field to order by")
    sort_order: Optional[SortOrder] = Field(default=None, description="Sort order")

    @model_validator(mode="after")
    def _require_parent_id(self) -> "BrowseArgs":
        if self.browse_type == "category_series" and self.category_id is None:
            raise ValueError("category_id is required for category_series")
        if self.browse_type == "release_series" and self.release_id is None:
            raise ValueError("release_id is required for release_series")
        return self


class SearchArgs(ToolArgs):
    """Arguments for ``fred_search``."""

    tool_name: ClassVar[str] = "fred_search"

    search_text: Optional[str] = Field(default=None, description="Text to search for in series titles and descriptions")
    search_type: Optional[Literal["full_text", "series_id"]] = Field(default=None, description="Type of search to perform")
    tag_names: Optional[str] = Field(default=None, description="Comma-separated list of tag names to filter by")
    exclude_tag_names: Optional[str] = Field(default=None, description="Comma-separated list of tag names to exclude")
    limit: int = Field(default=25, ge=1, le=1000, description="Maximum number of results to return")
    offset: int = Field(default=0, ge=0, description="Number of results to skip for pagination")
    order_by: Optional[Literal[
        "search_rank", "series_id", "title", "units", "frequency",
        "seasonal_adjustment", "realtime_start", "realtime_end",
        "last_updated", "observation_start", "observation_end", "popularity",
    ]] = Field(default=None, description="Field to order results by")
    sort_order: Optional[SortOrder] = Field(default=None, description="Sort order for results")
    filter_variable: Optional[Literal["frequency", "units", "seasonal_adjustment"]] = Field(
        default=None, description="Variable to filter by"
    )
    filter_value: Optional[str] = Field(default=None, description="Value to filter the variable by")


class SeriesArgs(ToolArgs):
    """Arguments for ``fred_get_series``."""

    tool_name: ClassVar[str] = "fred_get_series"

    series_id: str = Field(min_length=1, description="The FRED series ID (e.g. 'GDP', 'UNRATE', 'CPIAUCSL')")
    observation_start: Optional[str] = Field(default=None, pattern=DATE_PATTERN, description="Start date (YYYY-MM-DD)")
    observation_end: Optional[str] = Field(default=None, pattern=DATE_PATTERN, description="End date (YYYY-MM-DD)")
    limit: Optional[int] = Field(default=None, ge=1, le=100000, description="Maximum number of observations")
    offset: Optional[int] = Field(default=None, ge=0, description="Number of observations to skip")
    sort_order: Optional[SortOrder] = Field(default=None, description="Sort order of observations by date")
    units: Optional[Literal["lin", "chg", "ch1", "pch", "pc1", "pca", "cch", "cca", "log"]] = Field(
        default=None, description="Data transformation: lin=levels, chg=change, pch=percent change, log=natural log"
    )
    frequency: Optional[Literal[
        "d", "w", "bw", "m", "q", "sa", "a",
        "wef", "weth", "wew", "wetu", "wem", "wesu", "wesa", "bwew", "bwem",
    ]] = Field(default=None, description="Frequency aggregation: d=daily, w=weekly, m=monthly, q=quarterly, a=annual")
    aggregation_method: Optional[Literal["avg", "sum", "eop"]] = Field(
        default=None, description="Aggregation method: avg=average, sum=sum, eop=end of period"
    )
    output_type: Optional[int] = Field(
        default=None, ge=1, le=4,
        description="1=observations, 2=by vintage, 3=by release, 4=initial release only",
    )
    vintage_dates: Optional[str] = Field(default=None, description="Vintage date or dates in YYYY-MM-DD format")


class RegisteredSeriesArgs(ToolArgs):
    """Arguments for the dedicated per-series tools (e.g. ``CPIAUCSL``)."""

    start_date: Optional[str] = Field(default=None, pattern=DATE_PATTERN, description="Start date in YYYY-MM-DD format")
    end_date: Optional[str] = Field(default=None, pattern=DATE_PATTERN, description="End date in YYYY-MM-DD format")
    limit: Optional[int] = Field(default=None, ge=1, description="Maximum number of observations to return")
    sort_order: Optional[SortOrder] = Field(default=None, description="Sort order of observations")
