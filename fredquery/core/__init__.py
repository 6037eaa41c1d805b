"""
FredQuery core module.

The query agent and the observation analysis it relies on.
"""

from fredquery.core.agent import (
    ExecutionPlan,
    Interpretation,
    QueryAgent,
    QueryError,
    QueryResult,
    QueryState,
)
from fredquery.core.analysis import SeriesSummary, summarize_series, year_over_year

__all__ = [
    "ExecutionPlan",
    "Interpretation",
    "QueryAgent",
    "QueryError",
    "QueryResult",
    "QueryState",
    "SeriesSummary",
    "summarize_series",
    "year_over_year",
]
