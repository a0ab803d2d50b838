"""MCP Timelog Server - Main entry point."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any

from loguru import logger

# MCP imports are optional - only needed when running the server
try:
    from mcp.server import Server  # pragma: no cover
    from mcp.server.stdio import stdio_server  # pragma: no cover
    from mcp.types import Tool, TextContent  # pragma: no cover
    HAS_MCP = True  # pragma: no cover
except ImportError:
    HAS_MCP = False
    Server = None  # type: ignore
    Tool = None  # type: ignore
    TextContent = None  # type: ignore

from .config import TimelogConfig, load_config
from .engine import TimelogEngine
from .logging import setup_logging
from .tools import execute_tool, make_tools


def create_server(config: TimelogConfig) -> "Server":
    """Create and configure the MCP server.

    Args:
        config: Project configuration

    Returns:
        Configured MCP Server instance

    Raises:
        ImportError: If MCP package is not installed
    """
    if not HAS_MCP:
        raise ImportError(
            "MCP package not installed. Install with: pip install mcp-timelog[mcp]"
        )

    server = Server("mcp-timelog")
    engine = TimelogEngine(config)
    tool_defs = make_tools(engine, config.custom_tools)

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        """Return list of available tools."""
        return [
            Tool(
                name=t["name"],
                description=t["description"],
                inputSchema=t["inputSchema"],
            )
            for t in tool_defs.values()
        ]

    @server.call_tool()
    async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
        """Handle tool invocation."""
        result = await execute_tool(engine, name, arguments, config.custom_tools)
        return [TextContent(type="text", text=json.dumps(result, indent=2, default=str))]

    return server


async def run_server(config: TimelogConfig) -> None:
    """Run the MCP server with stdio transport."""
    if not HAS_MCP:
        raise ImportError(
            "MCP package not installed. Install with: pip install mcp-timelog[mcp]"
        )

    server = create_server(config)  # pragma: no cover

    async with stdio_server() as (read_stream, write_stream):  # pragma: no cover
        await server.run(  # pragma: no cover
            read_stream,
            write_stream,
            server.create_initialization_options(),
        )


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="MCP Timelog Server - append-only activity log with reconstructed timelines"
    )
    parser.add_argument(
        "--project-root",
        "-p",
        type=Path,
        default=Path.cwd(),
        help="Project root directory (default: current directory)",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        help="Path to config file (default: auto-detect in project root)",
    )
    parser.add_argument(
        "--init",
        action="store_true",
        help="Create the log directory in the project root",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level for stderr output (default: from config, INFO)",
    )

    args = parser.parse_args(argv)
    project_root = args.project_root.resolve()

    try:
        config = load_config(project_root, args.config)
    except Exception as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)

    setup_logging(args.log_level or config.log_level)

    if args.init:
        config.get_log_path().mkdir(parents=True, exist_ok=True)
        print(f"Initialized timelog in {project_root}")
        print(f"  - {config.log_dir}/")
        print(f"  - active document: {config.get_active_document().name}")
        return

    if not HAS_MCP:
        print("Error: MCP package not installed.", file=sys.stderr)
        print("Install with: pip install mcp-timelog[mcp]", file=sys.stderr)
        sys.exit(1)

    logger.info("Serving timelog for {} over stdio", project_root)  # pragma: no cover
    asyncio.run(run_server(config))  # pragma: no cover


if __name__ == "__main__":  # pragma: no cover
    main()
