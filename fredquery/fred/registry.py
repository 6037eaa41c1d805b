"""Registry of well-known FRED series and their metadata."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Tuple


@dataclass(frozen=True)
class SeriesMetadata:
    """Human-readable metadata for a FRED series."""

    title: str
    description: str
    units: str


SERIES_REGISTRY: Mapping[str, SeriesMetadata] = MappingProxyType({
    "CPIAUCSL": SeriesMetadata(
        title="Consumer Price Index for All Urban Consumers: All Items in U.S. City Average",
        description=(
            "The Consumer Price Index for All Urban Consumers: All Items (CPIAUCSL) is a measure "
            "of the average monthly change in the price for goods and services paid by urban "
            "consumers between any two time periods."
        ),
        units="Index 1982-1984=100",
    ),
    "RRPONTSYD": SeriesMetadata(
        title="Overnight Reverse Repurchase Agreements: Treasury Securities Sold by the Federal Reserve",
        description=(
            "Daily amount value of RRP transactions reported by the New York Fed as part of the "
            "Temporary Open Market Operations."
        ),
        units="Billions of Dollars",
    ),
    "MANEMP": SeriesMetadata(
        title="Manufacturing Employment",
        description="All Employees, Manufacturing.",
        units="Thousands of Persons",
    ),
    "USCONS": SeriesMetadata(
        title="Construction Employment",
        description="All Employees, Construction.",
        units="Thousands of Persons",
    ),
    "USTPU": SeriesMetadata(
        title="Trade, Transportation & Utilities Employment",
        description="All Employees, Trade, Transportation, and Utilities.",
        units="Thousands of Persons",
    ),
    "USPBS": SeriesMetadata(
        title="Professional & Business Services Employment",
        description="All Employees, Professional and Business Services.",
        units="Thousands of Persons",
    ),
    "USLAH": SeriesMetadata(
        title="Leisure & Hospitality Employment",
        description="All Employees, Leisure and Hospitality.",
        units="Thousands of Persons",
    ),
    "USEHS": SeriesMetadata(
        title="Education & Health Services Employment",
        description="All Employees, Private Education and Health Services.",
        units="Thousands of Persons",
    ),
    "USFIRE": SeriesMetadata(
        title="Financial Activities Employment",
        description="All Employees, Financial Activities.",
        units="Thousands of Persons",
    ),
    "USGOV": SeriesMetadata(
        title="Government Employment",
        description="All Employees, Government.",
        units="Thousands of Persons",
    ),
})

# Series that get a dedicated MCP tool of their own.
DEDICATED_SERIES: Tuple[str, ...] = ("CPIAUCSL", "RRPONTSYD")

EMPLOYMENT_SECTORS: Tuple[str, ...] = (
    "MANEMP", "USCONS", "USTPU", "USPBS", "USLAH", "USEHS", "USFIRE", "USGOV",
)


def describe(series_id: str) -> str:
    """Registry title for ``series_id``, or the id itself when unknown."""
    metadata = SERIES_REGISTRY.get(series_id)
    return metadata.title if metadata else series_id
