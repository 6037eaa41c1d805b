"""Year-over-year summaries of retrieved observation series."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

from fredquery.fred.series import parse_value


@dataclass
class SeriesSummary:
    """Latest value of a series and its change over roughly one year."""

    series_id: str
    title: str
    latest_value: float
    latest_date: str
    absolute_change: float
    percent_change: float
    purpose: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def describe(self) -> str:
        """Two-line description used in the summarize prompt."""
        sign = "+" if self.absolute_change > 0 else ""
        return (
            f"{self.series_id} ({self.title}):\n"
            f"  - Latest: {self.latest_value:,} ({self.latest_date})\n"
            f"  - Annual change: {sign}{self.absolute_change:.1f}k ({self.percent_change:.2f}%)"
        )


def valid_observations(observations: Iterable[Dict[str, Any]]) -> List[Tuple[str, float]]:
    """``(date, value)`` pairs in input order, dropping missing values."""
    valid = []
    for obs in observations:
        value = parse_value(obs.get("value"))
        date = obs.get("date")
        if value is None or not date:
            continue
        valid.append((str(date), value))
    return valid


def _year(date: str) -> Optional[int]:
    try:
        return int(date[:4])
    except ValueError:
        return None


def year_over_year(observations: Iterable[Dict[str, Any]]) -> Optional[Tuple[str, float, float, float]]:
    """
    ``(latest_date, latest_value, absolute_change, percent_change)``.

    The latest observation is the last valid one. The comparison point is the
    first valid observation whose year differs from the latest's by exactly
    one; without one, both changes are zero. Returns ``None`` when there are
    no valid observations.

    Example:
        >>> year_over_year([
        ...     {"date": "2023-06-01", "value": "100.0"},
        ...     {"date": "2024-06-01", "value": "105.0"},
        ... ])
        ('2024-06-01', 105.0, 5.0, 5.0)
    """
    valid = valid_observations(observations)
    if not valid:
        return None

    latest_date, latest_value = valid[-1]
    latest_year = _year(latest_date)

    year_ago: Optional[float] = None
    if latest_year is not None:
        for date, value in valid:
            year = _year(date)
            if year is not None and abs(year - latest_year) == 1:
                year_ago = value
                break

    if year_ago is None:
        return latest_date, latest_value, 0.0, 0.0

    change = latest_value - year_ago
    percent = (change / year_ago) * 100 if year_ago else 0.0
    return latest_date, latest_value, change, percent


def summarize_series(
    series_id: str,
    title: str,
    observations: Iterable[Dict[str, Any]],
    purpose: str = "",
) -> Optional[SeriesSummary]:
    """Build a ``SeriesSummary``, or ``None`` when nothing usable was observed."""
    computed = year_over_year(observations)
    if computed is None:
        return None

    latest_date, latest_value, change, percent = computed
    return SeriesSummary(
        series_id=series_id,
        title=title,
        latest_value=latest_value,
        latest_date=latest_date,
        absolute_change=change,
        percent_change=percent,
        purpose=purpose,
    )
