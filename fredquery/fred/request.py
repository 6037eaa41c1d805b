"""Async client for the FRED REST API."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from fredquery.validation.config import Config, ConfigError

logger = logging.getLogger(__name__)

BASE_URL = "https://api.stlouisfed.org/fred"


class FredAPIError(Exception):
    """Raised when the FRED API rejects a request or cannot be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None, error_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
        self.error_code = error_code


class FredClient:
    """
    Thin wrapper over ``httpx.AsyncClient`` for FRED endpoints.

    Every request carries the API key and ``file_type=json``. A missing key
    is only reported when the first request is made.
    """

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = BASE_URL,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    @classmethod
    def from_config(cls, config: Config) -> "FredClient":
        fred = config.merged.fred
        return cls(api_key=config.get_api_key("fred"), base_url=fred.base_url, timeout=fred.timeout)

    async def request(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """GET ``endpoint`` and return the decoded JSON body."""
        if not self.api_key:
            raise ConfigError("FRED API key is required. Set FRED_API_KEY or fred.api_key in config.yaml")

        query: Dict[str, Any] = {}
        for key, value in (params or {}).items():
            if value is None:
                continue
            query[key] = str(value).lower() if isinstance(value, bool) else value
        query["api_key"] = self.api_key
        query["file_type"] = "json"

        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        logger.debug("Fetching FRED API: %s %s", url, {k: v for k, v in query.items() if k != "api_key"})

        try:
            response = await self._client.get(url, params=query, headers={"Accept": "application/json"})
        except httpx.TimeoutException as exc:
            raise FredAPIError(f"FRED API request timed out: {endpoint}") from exc
        except httpx.HTTPError as exc:
            raise FredAPIError(f"Network error: {exc}") from exc

        try:
            data = response.json()
        except ValueError:
            data = None

        if isinstance(data, dict) and data.get("error_code"):
            raise FredAPIError(
                f"FRED API Error ({data['error_code']}): {data.get('error_message', '')}",
                status_code=response.status_code,
                error_code=data["error_code"],
            )

        if response.status_code != 200:
            raise FredAPIError(
                f"FRED API error ({response.status_code}): {response.text}",
                status_code=response.status_code,
            )

        if not isinstance(data, dict):
            raise FredAPIError(
                f"Invalid JSON response from FRED API: {response.text[:100]}",
                status_code=response.status_code,
            )

        logger.debug("FRED API request successful: %s", endpoint)
        return data

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "FredClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
