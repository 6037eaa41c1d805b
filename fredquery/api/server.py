"""
HTTP endpoints over the FRED client and the query agent.

    GET  /api/fred/browse               browse categories, releases, sources
    GET  /api/fred/search               search series
    GET  /api/fred/series/{series_id}   series observations
    POST /api/query                     answer a free-text question
    GET  /api/health                    liveness and configuration
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Awaitable, Dict, Optional, Type

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError

from fredquery import __version__
from fredquery.core.agent import QueryError
from fredquery.fred.browse import browse
from fredquery.fred.request import FredAPIError, FredClient
from fredquery.fred.schema import BrowseArgs, SearchArgs, SeriesArgs
from fredquery.fred.search import search_series
from fredquery.fred.series import get_series_data
from fredquery.mcp.errors import MCPError
from fredquery.validation.config import ConfigError

if TYPE_CHECKING:
    from fredquery.core.agent import QueryAgent
    from fredquery.mcp.session import MCPSession

logger = logging.getLogger(__name__)

BROWSE_DEFAULTS = {"browse_type": "categories", "limit": 50, "offset": 0, "sort_order": "asc"}
SEARCH_DEFAULTS = {
    "search_type": "full_text",
    "limit": 25,
    "offset": 0,
    "order_by": "popularity",
    "sort_order": "desc",
}
SERIES_DEFAULTS = {"offset": 0, "sort_order": "asc", "units": "lin", "aggregation_method": "avg"}


class QueryRequest(BaseModel):
    query: Optional[str] = None


def _error(status_code: int, error: str, message: Optional[str] = None) -> JSONResponse:
    content: Dict[str, Any] = {"error": error}
    if message is not None:
        content["message"] = message
    return JSONResponse(status_code=status_code, content=content)


def _parse(model: Type[BaseModel], defaults: Dict[str, Any], params: Dict[str, Any]) -> BaseModel:
    return model.model_validate({**defaults, **{k: v for k, v in params.items() if v != ""}})


async def _proxy(what: str, call: Awaitable[Dict[str, Any]]) -> Any:
    try:
        return await call
    except (FredAPIError, ConfigError) as exc:
        logger.error("%s error: %s", what, exc)
        return _error(500, f"Failed to {what}", str(exc))


def create_app(
    client: FredClient,
    session: Optional["MCPSession"] = None,
    agent: Optional["QueryAgent"] = None,
) -> FastAPI:
    """
    Build the FastAPI app.

    ``client`` serves the ``/api/fred`` routes directly. ``session`` is only
    reported on by ``/api/health``; ``agent`` answers ``/api/query`` and the
    route returns 503 without one.
    """
    app = FastAPI(title="FredQuery", version=__version__)
    app.state.client = client
    app.state.session = session
    app.state.agent = agent

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return _error(400, "Invalid parameters", str(exc))

    @app.get("/api/fred/browse")
    async def fred_browse(request: Request):
        """Browse the FRED catalog."""
        args = _parse(BrowseArgs, BROWSE_DEFAULTS, dict(request.query_params))
        return await _proxy("browse FRED catalog", browse(client, args))

    @app.get("/api/fred/search")
    async def fred_search(request: Request):
        """Search FRED series."""
        args = _parse(SearchArgs, SEARCH_DEFAULTS, dict(request.query_params))
        return await _proxy("search FRED data", search_series(client, args))

    @app.get("/api/fred/series/{series_id}")
    async def fred_series(series_id: str, request: Request):
        """Observations for one series."""
        params = dict(request.query_params)
        params["series_id"] = series_id
        args = _parse(SeriesArgs, SERIES_DEFAULTS, params)
        return await _proxy("get series data", get_series_data(client, args))

    @app.post("/api/query")
    async def query(body: Optional[QueryRequest] = None):
        """Answer a free-text question with the query agent."""
        if body is None or not body.query:
            return _error(400, "Query is required")
        if app.state.agent is None:
            return _error(503, "Query agent not configured", "Configure an LLM provider to enable /api/query")

        logger.info("Processing query: %s", body.query)
        try:
            result = await app.state.agent.run(body.query)
        except (QueryError, MCPError) as exc:
            logger.error("Query processing error: %s", exc)
            return _error(500, "Failed to process query", str(exc))
        return result.to_response()

    @app.get("/api/health")
    async def health():
        """Health check endpoint."""
        mcp_session = app.state.session
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "mcpServerConnected": bool(mcp_session is not None and mcp_session.is_connected),
            "fredApiKeyConfigured": bool(client.api_key),
        }

    return app
