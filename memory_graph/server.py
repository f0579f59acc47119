#!/usr/bin/env python3
"""
Memory Graph MCP Server (stdio)
Serves the JSONL-backed knowledge graph over the MCP stdio transport.
Every tool call reloads the backing file; mutations rewrite it atomically.
"""

import asyncio
import logging
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from .config import MemoryConfig, configure_logging
from .constants import SERVER_NAME
from .manager import KnowledgeGraphManager
from .tools import dispatch, list_tool_specs

logger = logging.getLogger(__name__)


def create_mcp_server(manager: KnowledgeGraphManager) -> Server:
    """Create an MCP server whose tools run against the given manager."""
    server = Server(SERVER_NAME)

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        """List available memory graph tools."""
        return list_tool_specs()

    @server.call_tool()
    async def call_tool(name: str, arguments: Any) -> list[TextContent]:
        """Handle tool calls with uniform error handling."""
        return [TextContent(type="text", text=dispatch(manager, name, arguments))]

    return server


async def run_stdio(config: MemoryConfig):
    manager = KnowledgeGraphManager.from_config(config)
    server = create_mcp_server(manager)

    logger.info("Memory Graph MCP Server running on stdio")
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


def main():
    """Main entry point."""
    config = MemoryConfig.from_env()
    configure_logging(config.log_level)
    asyncio.run(run_stdio(config))


if __name__ == "__main__":
    main()
