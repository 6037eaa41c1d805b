"""Search FRED series and look up series metadata."""

from __future__ import annotations

from typing import Any, Dict, Optional

from fredquery.fred.browse import showing
from fredquery.fred.request import FredAPIError, FredClient
from fredquery.fred.schema import SearchArgs

NOTES_PREVIEW_CHARS = 200


def _preview(notes: Optional[str]) -> Optional[str]:
    if not notes:
        return notes
    if len(notes) > NOTES_PREVIEW_CHARS:
        return notes[:NOTES_PREVIEW_CHARS] + "..."
    return notes


async def search_series(client: FredClient, args: SearchArgs) -> Dict[str, Any]:
    """Run ``series/search`` and reshape the matches."""
    params = args.model_dump(exclude_none=True)
    try:
        response = await client.request("series/search", params)
    except FredAPIError as exc:
        raise FredAPIError(
            f"Failed to search FRED series: {exc}", status_code=exc.status_code, error_code=exc.error_code
        ) from exc

    count = response.get("count", 0)
    return {
        "total_results": count,
        "showing": showing(response.get("offset", 0), response.get("limit", args.limit), count),
        "results": [
            {
                "id": s.get("id"),
                "title": s.get("title"),
                "units": s.get("units"),
                "frequency": s.get("frequency"),
                "seasonal_adjustment": s.get("seasonal_adjustment"),
                "observation_range": f"{s.get('observation_start')} to {s.get('observation_end')}",
                "last_updated": s.get("last_updated"),
                "popularity": s.get("popularity"),
                "notes": _preview(s.get("notes")),
            }
            for s in response.get("seriess", [])
        ],
    }


async def get_series_info(client: FredClient, series_id: str) -> Dict[str, Any]:
    """Metadata for a single series from the ``series`` endpoint."""
    try:
        response = await client.request("series", {"series_id": series_id})
    except FredAPIError as exc:
        raise FredAPIError(
            f"Failed to get series info: {exc}", status_code=exc.status_code, error_code=exc.error_code
        ) from exc

    seriess = response.get("seriess") or []
    if not seriess:
        raise FredAPIError(f"Failed to get series info: Series {series_id} not found")

    series = seriess[0]
    return {
        "id": series.get("id"),
        "title": series.get("title"),
        "units": series.get("units"),
        "frequency": series.get("frequency"),
        "seasonal_adjustment": series.get("seasonal_adjustment"),
        "observation_range": f"{series.get('observation_start')} to {series.get('observation_end')}",
        "last_updated": series.get("last_updated"),
        "popularity": series.get("popularity"),
        "notes": series.get("notes"),
    }
