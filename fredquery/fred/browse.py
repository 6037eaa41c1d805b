"""Browse FRED categories, releases and sources."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from fredquery.fred.request import FredAPIError, FredClient
from fredquery.fred.schema import BrowseArgs


def showing(offset: int, limit: int, count: int) -> str:
    """Page window label such as ``"1-50"``."""
    return f"{offset + 1}-{min(offset + limit, count)}"


def _paging(args: BrowseArgs) -> Dict[str, Any]:
    return {
        "limit": args.limit,
        "offset": args.offset,
        "order_by": args.order_by,
        "sort_order": args.sort_order,
    }


def _series_rows(seriess: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [
        {
            "id": s.get("id"),
            "title": s.get("title"),
            "units": s.get("units"),
            "frequency": s.get("frequency"),
            "observation_range": f"{s.get('observation_start')} to {s.get('observation_end')}",
            "last_updated": s.get("last_updated"),
        }
        for s in seriess
    ]


def _failed(what: str, exc: FredAPIError) -> FredAPIError:
    return FredAPIError(f"Failed to {what}: {exc}", status_code=exc.status_code, error_code=exc.error_code)


async def browse_categories(client: FredClient, category_id: Optional[int] = None) -> Dict[str, Any]:
    """The root category, or the children of ``category_id``."""
    endpoint = "category/children" if category_id else "category"
    try:
        response = await client.request(endpoint, {"category_id": category_id})
    except FredAPIError as exc:
        raise _failed("browse categories", exc) from exc

    return {
        "categories": [
            {"id": c.get("id"), "name": c.get("name"), "parent_id": c.get("parent_id")}
            for c in response.get("categories", [])
        ]
    }


async def get_category_series(client: FredClient, args: BrowseArgs) -> Dict[str, Any]:
    try:
        response = await client.request("category/series", {"category_id": args.category_id, **_paging(args)})
    except FredAPIError as exc:
        raise _failed("get category series", exc) from exc

    return {
        "category_id": args.category_id,
        "total_series": response.get("count", 0),
        "showing": showing(response.get("offset", 0), response.get("limit", args.limit), response.get("count", 0)),
        "series": _series_rows(response.get("seriess", [])),
    }


async def browse_releases(client: FredClient, args: BrowseArgs) -> Dict[str, Any]:
    try:
        response = await client.request("releases", _paging(args))
    except FredAPIError as exc:
        raise _failed("browse releases", exc) from exc

    return {
        "total_releases": response.get("count", 0),
        "showing": showing(response.get("offset", 0), response.get("limit", args.limit), response.get("count", 0)),
        "releases": [
            {
                "id": r.get("id"),
                "name": r.get("name"),
                "press_release": r.get("press_release"),
                "link": r.get("link"),
            }
            for r in response.get("releases", [])
        ],
    }


async def get_release_series(client: FredClient, args: BrowseArgs) -> Dict[str, Any]:
    try:
        response = await client.request("release/series", {"release_id": args.release_id, **_paging(args)})
    except FredAPIError as exc:
        raise _failed("get release series", exc) from exc

    return {
        "release_id": args.release_id,
        "total_series": response.get("count", 0),
        "showing": showing(response.get("offset", 0), response.get("limit", args.limit), response.get("count", 0)),
        "series": _series_rows(response.get("seriess", [])),
    }


async def browse_sources(client: FredClient, args: BrowseArgs) -> Dict[str, Any]:
    try:
        response = await client.request("sources", _paging(args))
    except FredAPIError as exc:
        raise _failed("browse sources", exc) from exc

    return {
        "total_sources": response.get("count", 0),
        "showing": showing(response.get("offset", 0), response.get("limit", args.limit), response.get("count", 0)),
        "sources": [
            {"id": s.get("id"), "name": s.get("name"), "link": s.get("link")}
            for s in response.get("sources", [])
        ],
    }


async def browse(client: FredClient, args: BrowseArgs) -> Dict[str, Any]:
    """Dispatch on ``args.browse_type``."""
    if args.browse_type == "categories":
        return await browse_categories(client, args.category_id)
    if args.browse_type == "category_series":
        return await get_category_series(client, args)
    if args.browse_type == "releases":
        return await browse_releases(client, args)
    if args.browse_type == "release_series":
        return await get_release_series(client, args)
    return await browse_sources(client, args)
