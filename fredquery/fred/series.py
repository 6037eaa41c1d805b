"""Fetch FRED series observations."""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

from fredquery.fred.registry import SERIES_REGISTRY, SeriesMetadata
from fredquery.fred.request import FredAPIError, FredClient
from fredquery.fred.schema import RegisteredSeriesArgs, SeriesArgs
from fredquery.fred.search import get_series_info

logger = logging.getLogger(__name__)

SOURCE = "Federal Reserve Economic Data (FRED)"
MISSING = "."


def parse_value(raw: Any) -> Optional[float]:
    """FRED observation value as a float. ``"."`` marks a missing value."""
    if raw is None or raw == MISSING:
        return None
    try:
        return float(raw)
    except (TypeError, ValueError):
        return None


async def get_series_data(client: FredClient, args: SeriesArgs) -> Dict[str, Any]:
    """
    Observations for any series plus whatever metadata FRED has for it.

    The metadata lookup is best effort: if it fails the observations are
    still returned with placeholder labels.
    """
    params = args.model_dump(exclude_none=True)
    try:
        response = await client.request("series/observations", params)
    except FredAPIError as exc:
        raise FredAPIError(
            f"Failed to retrieve series data: {exc}", status_code=exc.status_code, error_code=exc.error_code
        ) from exc

    info: Dict[str, Any] = {}
    try:
        info = await get_series_info(client, args.series_id)
    except FredAPIError as exc:
        logger.warning("Could not fetch series info for %s: %s", args.series_id, exc)

    default_units = f"Transformed ({args.units})" if args.units else "Value"
    return {
        "series_id": args.series_id,
        "title": info.get("title") or f"FRED Series: {args.series_id}",
        "units": info.get("units") or default_units,
        "frequency": info.get("frequency") or "Unknown",
        "seasonal_adjustment": info.get("seasonal_adjustment") or "Unknown",
        "observation_range": info.get("observation_range")
        or f"{response.get('observation_start')} to {response.get('observation_end')}",
        "total_observations": response.get("count", 0),
        "data_offset": response.get("offset", 0),
        "data_limit": response.get("limit"),
        "source": SOURCE,
        "notes": info.get("notes"),
        "data": [
            {"date": obs.get("date"), "value": parse_value(obs.get("value"))}
            for obs in response.get("observations", [])
        ],
    }


async def fetch_registered_series(
    client: FredClient,
    series_id: str,
    args: RegisteredSeriesArgs,
    registry: Mapping[str, SeriesMetadata] = SERIES_REGISTRY,
) -> Dict[str, Any]:
    """Observations for a series labelled with registry metadata."""
    params = {
        "series_id": series_id,
        "observation_start": args.start_date,
        "observation_end": args.end_date,
        "limit": args.limit,
        "sort_order": args.sort_order,
    }
    try:
        response = await client.request("series/observations", params)
    except FredAPIError as exc:
        raise FredAPIError(
            f"Failed to retrieve {series_id} data: {exc}", status_code=exc.status_code, error_code=exc.error_code
        ) from exc

    metadata = registry.get(series_id) or SeriesMetadata(
        title=f"FRED Data Series: {series_id}",
        description=f"Economic data from FRED series {series_id}",
        units="Value",
    )
    return {
        "title": metadata.title,
        "description": metadata.description,
        "source": SOURCE,
        "series_id": series_id,
        "total_observations": response.get("count", 0),
        "data": [
            {"date": obs.get("date"), "value": parse_value(obs.get("value")), "units": metadata.units}
            for obs in response.get("observations", [])
        ],
    }
