"""
FredQuery Agent - answer free-text questions with FRED data.

Every query runs three steps:
1. Plan: the LLM turns the question into tool calls and target series
2. Execute: the tool calls go through the MCP session
3. Summarize: the LLM ranks the retrieved series and explains the result

The agent keeps no state between queries.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel, Field, ValidationError

from fredquery.core.analysis import SeriesSummary, summarize_series
from fredquery.fred.registry import DEDICATED_SERIES, EMPLOYMENT_SECTORS, SERIES_REGISTRY, SeriesMetadata
from fredquery.mcp.errors import MCPError
from fredquery.providers.base import Provider, ProviderFactory

if TYPE_CHECKING:
    from fredquery.mcp.session import MCPSession
    from fredquery.validation.config import Config

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

SEARCH_TOOL = "fred_search"
SERIES_TOOL = "fred_get_series"
TOOL_ALIASES = {"fred_series": SERIES_TOOL}
FALLBACK_PURPOSE = "Employment sector analysis"

_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)

PLAN_SYSTEM_PROMPT = """You are an economic data analyst creating execution plans for FRED MCP server queries.

The FRED MCP server provides these tools:
- fred_search: Search for FRED series
- fred_get_series: Get time series data
- fred_browse: Browse FRED categories"""

SUMMARY_SYSTEM_PROMPT = (
    "Analyze employment sector data retrieved via FRED MCP server. "
    "Provide specific rankings and insights."
)


class QueryState(str, Enum):
    PLANNING = "planning"
    EXECUTING = "executing"
    SUMMARIZING = "summarizing"
    DONE = "done"
    FAILED = "failed"


class QueryError(Exception):
    """A query failed as a whole. ``stage`` is the step it failed in."""

    def __init__(self, message: str, stage: QueryState = QueryState.FAILED):
        super().__init__(message)
        self.stage = stage


# ── LLM answer models ─────────────────────────────────────────────────────


class PlanStep(BaseModel):
    tool: str
    params: Dict[str, Any] = Field(default_factory=dict)
    purpose: str = ""


class TimeRange(BaseModel):
    start: Optional[str] = None
    end: Optional[str] = None


class ExecutionPlan(BaseModel):
    """The plan the LLM produces for one question."""

    intent: str
    query_type: Optional[str] = None
    mcp_steps: List[PlanStep]
    target_series: List[str]
    time_range: TimeRange


class Ranking(BaseModel):
    rank: int
    sector: str
    series_id: str
    growth_value: float
    growth_percent: float


class Interpretation(BaseModel):
    """The LLM's reading of the retrieved data."""

    answer: str
    rankings: List[Ranking]
    methodology: str


# ── Results ───────────────────────────────────────────────────────────────


@dataclass
class RetrievedSeries:
    """Observations fetched for one series and why they were fetched."""

    series_id: str
    title: str
    purpose: str
    observations: List[Dict[str, Any]] = field(default_factory=list)


@dataclass
class QueryResult:
    """Outcome of one query."""

    query: str
    plan: ExecutionPlan
    interpretation: Interpretation
    summaries: List[SeriesSummary]
    retrieved: Dict[str, RetrievedSeries]
    states: List[QueryState] = field(default_factory=list)

    @property
    def answer(self) -> str:
        return self.interpretation.answer

    @property
    def rankings(self) -> List[Ranking]:
        return self.interpretation.rankings

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": True,
            "query": self.query,
            "answer": self.interpretation.answer,
            "analysis": {
                "method": "llm_agent_mcp",
                "methodology": self.interpretation.methodology,
            },
            "results": [ranking.model_dump() for ranking in self.rankings],
            "raw_data_summary": [summary.to_dict() for summary in self.summaries],
        }

    def to_response(self) -> Dict[str, Any]:
        """Body returned by ``POST /api/query``."""
        return {
            "success": True,
            "analysis": {
                "understanding": self.interpretation.answer,
                "method": "llm_agent_with_mcp",
                "reasoning": "llm_agent_mcp",
            },
            "series": {
                "id": "LLM_AGENT_ANALYSIS",
                "title": self.interpretation.answer,
            },
            "data": [
                {
                    "date": f"Result-{index + 1}",
                    "value": ranking.growth_value,
                    "category": ranking.sector,
                    "metric": f"{ranking.growth_percent:.2f}%",
                    "source": ranking.series_id,
                }
                for index, ranking in enumerate(self.rankings)
            ],
            "metadata": {
                "query_type": self.plan.query_type or "intelligent_analysis",
                "execution_plan": [step.model_dump() for step in self.plan.mcp_steps],
                "data_quality": {
                    "series_retrieved": len(self.retrieved),
                    "series_with_data": len(self.summaries),
                },
                "findings": [summary.to_dict() for summary in self.summaries],
            },
        }


def _strip_fences(text: str) -> str:
    text = text.strip()
    match = _FENCE.match(text)
    return match.group(1) if match else text


def _observations(payload: Any) -> List[Dict[str, Any]]:
    if not isinstance(payload, dict):
        return []
    rows = payload.get("data") or payload.get("observations") or []
    return [row for row in rows if isinstance(row, dict)]


class QueryAgent:
    """
    Plan-execute-summarize loop over an ``MCPSession``.

    Failed tool calls during execution are logged and skipped. The query
    only fails as a whole when an LLM answer cannot be parsed or when no
    series could be retrieved at all.

    Example:
        >>> agent = QueryAgent(session, ProviderFactory.create("openai/gpt-4", config))
        >>> result = await agent.run("Which sectors added the most jobs last year?")
        >>> result.rankings[0].sector
    """

    def __init__(
        self,
        session: "MCPSession",
        provider: Provider,
        registry: Mapping[str, SeriesMetadata] = SERIES_REGISTRY,
        sectors: Sequence[str] = EMPLOYMENT_SECTORS,
        fetch_limit: int = 50,
        search_fanout: int = 5,
        temperature: float = 0.1,
    ):
        self.session = session
        self.provider = provider
        self.registry = registry
        self.sectors = tuple(sectors)
        self.fetch_limit = fetch_limit
        self.search_fanout = search_fanout
        self.temperature = temperature

    @classmethod
    def from_config(cls, config: "Config", session: "MCPSession") -> "QueryAgent":
        agent = config.merged.agent
        return cls(
            session=session,
            provider=ProviderFactory.create(agent.model or "openai/gpt-4", config),
            fetch_limit=agent.fetch_limit,
            search_fanout=agent.search_fanout,
            temperature=agent.temperature,
        )

    async def run(self, query: str) -> QueryResult:
        """Answer ``query``. Raises ``QueryError`` on a hard failure."""
        logger.info("Processing query: %s", query)
        states = [QueryState.PLANNING]
        try:
            plan = await self.plan(query)
            logger.info("Execution plan: %s", plan.intent)

            states.append(QueryState.EXECUTING)
            retrieved = await self.execute(plan)
            logger.info("MCP data retrieved for %d series", len(retrieved))
            if not retrieved:
                raise QueryError("No data retrieved from FRED MCP server")

            states.append(QueryState.SUMMARIZING)
            result = await self.summarize(query, plan, retrieved)
        except QueryError as exc:
            exc.stage = states[-1]
            logger.error("Query failed while %s: %s", exc.stage.value, exc)
            raise

        states.append(QueryState.DONE)
        result.states = states
        logger.info("Analysis complete")
        return result

    # ── Plan ──────────────────────────────────────────────────────────────

    def _plan_prompt(self, query: str) -> str:
        sectors = "\n".join(f"- {sid}: {self._title(sid)}" for sid in self.sectors)
        return f"""Query: "{query}"

For employment sector queries, target these series:
{sectors}

Create an execution plan:

{{
  "intent": "what user wants to know",
  "query_type": "sector_analysis|comparison|trend",
  "mcp_steps": [
    {{
      "tool": "fred_search|fred_get_series",
      "params": {{"search_text": "employment", "limit": 5}},
      "purpose": "why this step"
    }}
  ],
  "target_series": ["MANEMP", "USPBS", "USLAH"],
  "time_range": {{"start": "2024-01-01", "end": "2024-12-31"}}
}}

Respond with the JSON only."""

    async def plan(self, query: str) -> ExecutionPlan:
        return await self._complete_json(self._plan_prompt(query), PLAN_SYSTEM_PROMPT, ExecutionPlan, "plan")

    # ── Execute ───────────────────────────────────────────────────────────

    async def execute(self, plan: ExecutionPlan) -> Dict[str, RetrievedSeries]:
        """Run the planned steps, then fetch any target series still missing."""
        try:
            await self.session.connect()
        except MCPError as exc:
            raise QueryError(f"Could not connect to FRED MCP server: {exc}")

        retrieved: Dict[str, RetrievedSeries] = {}
        for step in plan.mcp_steps:
            await self._run_step(step, plan.time_range, retrieved)

        for series_id in plan.target_series:
            if series_id in retrieved:
                continue
            logger.info("Direct MCP fetch for %s", series_id)
            try:
                payload = await self._fetch_series(series_id, plan.time_range)
            except MCPError as exc:
                logger.error("Direct fetch failed for %s: %s", series_id, exc)
                continue
            title = self._title(series_id) if series_id in self.registry else payload.get("title") or series_id
            retrieved[series_id] = RetrievedSeries(
                series_id=series_id,
                title=title,
                purpose=FALLBACK_PURPOSE,
                observations=_observations(payload),
            )

        return retrieved

    async def _run_step(
        self,
        step: PlanStep,
        time_range: TimeRange,
        retrieved: Dict[str, RetrievedSeries],
    ) -> None:
        tool = TOOL_ALIASES.get(step.tool, step.tool)
        logger.info("Executing MCP step: %s for %s", tool, step.purpose)
        try:
            result = await self.session.call_tool(tool, step.params)
            payload = result.payload()
        except MCPError as exc:
            logger.error("MCP step failed (%s): %s", step.tool, exc)
            return
        if not isinstance(payload, dict):
            logger.warning("MCP step %s returned %s, skipping", tool, type(payload).__name__)
            return

        if tool == SEARCH_TOOL:
            matches = payload.get("results") or payload.get("seriess") or []
            logger.info("Search found %d series", len(matches))
            for match in matches[: self.search_fanout]:
                series_id = match.get("id") if isinstance(match, dict) else None
                if not series_id:
                    continue
                try:
                    series = await self._fetch_series(series_id, time_range)
                except MCPError as exc:
                    logger.error("Fetch failed for search match %s: %s", series_id, exc)
                    continue
                retrieved[series_id] = RetrievedSeries(
                    series_id=series_id,
                    title=match.get("title") or series_id,
                    purpose=step.purpose,
                    observations=_observations(series),
                )

        elif tool == SERIES_TOOL:
            series_id = step.params.get("series_id")
            if series_id:
                retrieved[series_id] = RetrievedSeries(
                    series_id=series_id,
                    title=payload.get("title") or f"Series {series_id}",
                    purpose=step.purpose,
                    observations=_observations(payload),
                )

        elif tool in DEDICATED_SERIES:
            retrieved[tool] = RetrievedSeries(
                series_id=tool,
                title=payload.get("title") or self._title(tool),
                purpose=step.purpose,
                observations=_observations(payload),
            )

    async def _fetch_series(self, series_id: str, time_range: TimeRange) -> Dict[str, Any]:
        arguments: Dict[str, Any] = {"series_id": series_id, "limit": self.fetch_limit}
        if time_range.start:
            arguments["observation_start"] = time_range.start
        if time_range.end:
            arguments["observation_end"] = time_range.end

        result = await self.session.call_tool(SERIES_TOOL, arguments)
        payload = result.payload()
        return payload if isinstance(payload, dict) else {}

    # ── Summarize ─────────────────────────────────────────────────────────

    async def summarize(
        self,
        query: str,
        plan: ExecutionPlan,
        retrieved: Dict[str, RetrievedSeries],
    ) -> QueryResult:
        summaries = []
        for series in retrieved.values():
            summary = summarize_series(series.series_id, series.title, series.observations, series.purpose)
            if summary is not None:
                summaries.append(summary)

        table = "\n\n".join(summary.describe() for summary in summaries)
        prompt = f"""Query: "{query}"

Employment Sector Data from MCP:
{table}

Analyze and rank sectors by employment growth. Provide specific insights.

JSON response:
{{
  "answer": "Direct answer with rankings and numbers",
  "rankings": [
    {{
      "rank": 1,
      "sector": "sector name",
      "series_id": "ID",
      "growth_value": 123.4,
      "growth_percent": 2.5
    }}
  ],
  "methodology": "how analysis was performed using MCP data"
}}"""

        interpretation = await self._complete_json(prompt, SUMMARY_SYSTEM_PROMPT, Interpretation, "interpretation")
        return QueryResult(
            query=query,
            plan=plan,
            interpretation=interpretation,
            summaries=summaries,
            retrieved=retrieved,
        )

    # ── Helpers ───────────────────────────────────────────────────────────

    def _title(self, series_id: str) -> str:
        metadata = self.registry.get(series_id)
        return metadata.title if metadata else series_id

    async def _complete_json(self, prompt: str, system: str, model: Type[ModelT], what: str) -> ModelT:
        """Ask the provider for JSON and validate it into ``model``."""
        try:
            response = await asyncio.to_thread(
                self.provider.complete, prompt, system=system, temperature=self.temperature
            )
        except Exception as exc:
            raise QueryError(f"LLM request for {what} failed: {exc}") from exc

        try:
            data = json.loads(_strip_fences(response.content or ""))
        except json.JSONDecodeError as exc:
            raise QueryError(f"LLM returned an invalid {what}: {exc}") from exc

        try:
            return model.model_validate(data)
        except ValidationError as exc:
            raise QueryError(f"LLM returned an invalid {what}: {exc}") from exc
