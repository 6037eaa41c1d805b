"""
FredQuery CLI.

    fredquery serve                       run the FRED MCP server on stdio
    fredquery tools                       list the server's tools
    fredquery call fred_search '{...}'    call one tool
    fredquery ask "question"              answer a question with FRED data
    fredquery http --port 3000            serve the HTTP API
"""

import asyncio
import json
import logging
import sys
from typing import Any, Dict, Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from fredquery import __version__
from fredquery.validation.config import Config, ConfigError

console = Console()
err_console = Console(stderr=True)

logger = logging.getLogger("fredquery")


def setup_logging(verbose: bool = False) -> None:
    """Send log records to stderr through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=verbose)],
        force=True,
    )
    if not verbose:
        logging.getLogger("httpx").setLevel(logging.WARNING)


def _run(coro) -> int:
    """Run a command coroutine. Ctrl+C counts as a clean exit."""
    try:
        return asyncio.run(coro)
    except KeyboardInterrupt:
        err_console.print("\n[yellow]Interrupted[/yellow]")
        return 0


async def _connect(config: Config):
    from fredquery.mcp import MCPError, MCPSession

    session = MCPSession.from_config(config)
    try:
        with err_console.status("[bold blue]Connecting to FRED MCP server...[/bold blue]"):
            await session.connect()
    except MCPError as exc:
        err_console.print(f"[red]Failed to connect to FRED MCP server: {exc}[/red]")
        return None
    return session


def _build_agent(config: Config, session):
    from fredquery.core.agent import QueryAgent

    try:
        return QueryAgent.from_config(config, session)
    except ValueError as exc:
        err_console.print(f"[yellow]Query agent unavailable: {exc}[/yellow]")
        return None


@click.group(invoke_without_command=True)
@click.option("--version", "-V", is_flag=True, help="Show version")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging")
@click.pass_context
def cli(ctx: click.Context, version: bool, verbose: bool) -> None:
    """
    FredQuery - FRED economic data over MCP.

    \b
    Examples:
        fredquery tools
        fredquery call fred_get_series '{"series_id": "UNRATE", "limit": 12}'
        fredquery ask "Which sectors added the most jobs last year?"
    """
    if version:
        console.print(f"FredQuery v{__version__}")
        ctx.exit(0)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        ctx.exit(0)

    setup_logging(verbose)
    try:
        config = Config.load()
        config.merged  # validate before any command runs
        ctx.obj = config
    except ConfigError as exc:
        err_console.print(f"[red]Error: {exc}[/red]")
        ctx.exit(1)


@cli.command()
@click.pass_obj
def serve(config: Config) -> None:
    """Run the FRED MCP server on stdin/stdout."""
    from fredquery.fred.server import run

    sys.exit(run(config))


@cli.command()
@click.pass_obj
def tools(config: Config) -> None:
    """List the tools the FRED MCP server offers."""

    async def list_tools() -> int:
        session = await _connect(config)
        if session is None:
            return 1
        try:
            listed = await session.list_tools()
        finally:
            await session.disconnect()

        table = Table(title="FRED MCP Tools", show_lines=True, border_style="blue")
        table.add_column("Name", style="cyan")
        table.add_column("Description")
        for tool in listed:
            table.add_row(tool.get("name", ""), tool.get("description", ""))
        console.print(table)
        return 0

    sys.exit(_run(list_tools()))


@cli.command()
@click.argument("name")
@click.argument("arguments", required=False, default="{}")
@click.pass_obj
def call(config: Config, name: str, arguments: str) -> None:
    """Call tool NAME with a JSON object of ARGUMENTS."""
    from fredquery.mcp import MCPError

    try:
        parsed: Dict[str, Any] = json.loads(arguments)
    except json.JSONDecodeError as exc:
        raise click.BadParameter(f"not valid JSON: {exc}", param_hint="ARGUMENTS")
    if not isinstance(parsed, dict):
        raise click.BadParameter("must be a JSON object", param_hint="ARGUMENTS")

    async def call_tool() -> int:
        session = await _connect(config)
        if session is None:
            return 1
        try:
            result = await session.call_tool(name, parsed)
            payload = result.payload()
        except MCPError as exc:
            err_console.print(f"[red]Error: {exc}[/red]")
            return 1
        finally:
            await session.disconnect()

        console.print_json(data=payload)
        return 0

    sys.exit(_run(call_tool()))


@cli.command()
@click.argument("question", nargs=-1, required=True)
@click.pass_obj
def ask(config: Config, question: tuple) -> None:
    """Answer QUESTION with FRED data and an LLM."""
    from fredquery.core.agent import QueryError

    query = " ".join(question)

    async def answer() -> int:
        session = await _connect(config)
        if session is None:
            return 1
        try:
            agent = _build_agent(config, session)
            if agent is None:
                return 1
            with err_console.status("[bold blue]Working...[/bold blue]"):
                result = await agent.run(query)
        except QueryError as exc:
            err_console.print(f"[red]Error: {exc}[/red]")
            return 1
        finally:
            await session.disconnect()

        console.print(result.answer)
        if result.rankings:
            console.print()
            table = Table(show_header=True, header_style="bold")
            table.add_column("#", justify="right")
            table.add_column("Sector")
            table.add_column("Series", style="cyan")
            table.add_column("Change", justify="right")
            table.add_column("Change %", justify="right")
            for ranking in result.rankings:
                table.add_row(
                    str(ranking.rank),
                    ranking.sector,
                    ranking.series_id,
                    f"{ranking.growth_value:,.1f}",
                    f"{ranking.growth_percent:.2f}%",
                )
            console.print(table)
        console.print(f"\n[dim]{result.interpretation.methodology}[/dim]")
        return 0

    sys.exit(_run(answer()))


@cli.command()
@click.option("--host", default=None, help="Bind address (default from config)")
@click.option("--port", type=int, default=None, help="Port (default from config)")
@click.pass_obj
def http(config: Config, host: Optional[str], port: Optional[int]) -> None:
    """Serve the HTTP API."""
    import uvicorn

    from fredquery.api.server import create_app
    from fredquery.fred.request import FredClient

    host = host or config.merged.http.host
    port = port or config.merged.http.port

    async def serve_http() -> int:
        session = await _connect(config)
        if session is None:
            return 1

        client = FredClient.from_config(config)
        app = create_app(client, session=session, agent=_build_agent(config, session))
        server = uvicorn.Server(uvicorn.Config(app, host=host, port=port, log_level="info"))
        console.print(f"[green]✓[/green] API: http://{host}:{port}/ (GET /api/health, POST /api/query, ...)")
        try:
            await server.serve()
        finally:
            await session.disconnect()
            await client.aclose()
        return 0

    sys.exit(_run(serve_http()))


def main() -> None:
    """Entry point."""
    cli()


if __name__ == "__main__":
    main()
