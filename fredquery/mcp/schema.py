"""Data models for MCP tool results."""

from __future__ import annotations

import json
from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field

from fredquery.mcp.errors import MCPToolResultError


class ToolContent(BaseModel):
    """One content item of a tool result."""

    model_config = ConfigDict(extra="allow")

    type: str
    text: str = ""


class ToolInvocationResult(BaseModel):
    """Result of a ``tools/call`` request."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    content: List[ToolContent] = Field(default_factory=list)
    is_error: bool = Field(default=False, alias="isError")

    def text(self) -> str:
        """The text of the first ``text`` content item."""
        for item in self.content:
            if item.type == "text":
                return item.text
        raise MCPToolResultError("Tool result has no text content")

    def payload(self) -> Any:
        """Decode the JSON document embedded in the text content."""
        text = self.text()
        if self.is_error:
            raise MCPToolResultError(f"Tool reported an error: {text[:200]}")
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise MCPToolResultError(f"Tool result is not valid JSON: {exc}")
