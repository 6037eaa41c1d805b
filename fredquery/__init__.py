"""
FredQuery - FRED economic data over MCP and HTTP.

A small proxy server exposes FRED (Federal Reserve Economic Data) browsing,
search and series retrieval as MCP tools over stdio. A client session spawns
that server as a child process and speaks newline-delimited JSON-RPC with it.
On top of the session, an LLM-driven agent turns a free-text question into a
plan of tool calls, runs it, and summarizes the numbers it got back.

Architecture:
- fredquery.mcp        JSON-RPC framing, request correlation, child process, session
- fredquery.fred       FRED API client, tool surface, stdio proxy server
- fredquery.core       plan/execute/summarize agent and series analysis
- fredquery.providers  LLM providers
- fredquery.api        HTTP proxy endpoints
"""

__version__ = "1.0.0"
__author__ = "FredQuery Team"
__license__ = "Apache-2.0"

__all__ = ["__version__"]
