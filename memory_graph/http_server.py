#!/usr/bin/env python3
"""
MCP Streamable HTTP Server for the memory graph.

Usage:
    memory-graph-http [--port PORT] [--host HOST] [--log-level LEVEL]

Environment variables:
    MEMORY_HTTP_PORT: Server port (default: 8765)
    MEMORY_HTTP_HOST: Server host (default: 127.0.0.1)
    MEMORY_LOG_LEVEL: Logging level (default: INFO)
    MEMORY_FILE_PATH: Backing JSONL file
"""

import argparse
import contextlib
import dataclasses
import logging

from mcp.server.streamable_http_manager import StreamableHTTPSessionManager
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Mount, Route
from starlette.types import Receive, Scope, Send

from . import __version__
from .config import MemoryConfig, configure_logging
from .manager import KnowledgeGraphManager
from .server import create_mcp_server

logger = logging.getLogger(__name__)


def create_app(manager: KnowledgeGraphManager) -> Starlette:
    """Starlette app serving MCP at /mcp and a health check at /health."""
    mcp_session_manager = StreamableHTTPSessionManager(
        app=create_mcp_server(manager),
        event_store=None,
        json_response=False,
        stateless=False,
    )

    async def handle_mcp(scope: Scope, receive: Receive, send: Send):
        await mcp_session_manager.handle_request(scope, receive, send)

    async def health_check(request: Request) -> JSONResponse:
        graph = manager.read_graph()
        return JSONResponse({
            "status": "ok",
            "version": __version__,
            "transport": "streamable-http",
            "memory_path": str(manager.persistence.path),
            "entities": len(graph["entities"]),
            "relations": len(graph["relations"]),
        })

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette):
        logger.info("Starting MCP Streamable HTTP Server...")
        async with mcp_session_manager.run():
            logger.info("MCP session manager running")
            yield
        logger.info("Server stopped")

    return Starlette(
        routes=[
            Route("/health", health_check, methods=["GET"]),
            Mount("/mcp", app=handle_mcp),
        ],
        lifespan=lifespan,
    )


def main():
    """Start the HTTP server."""
    parser = argparse.ArgumentParser(description="Memory Graph MCP HTTP Server")
    parser.add_argument("--port", type=int, default=None, help="Server port (default: 8765)")
    parser.add_argument("--host", default=None, help="Server host (default: 127.0.0.1)")
    parser.add_argument("--log-level", default=None, help="Log level (default: INFO)")
    args = parser.parse_args()

    config = MemoryConfig.from_env()
    overrides = {
        "http_port": args.port,
        "http_host": args.host,
        "log_level": args.log_level.upper() if args.log_level else None,
    }
    config = dataclasses.replace(config, **{k: v for k, v in overrides.items() if v is not None})
    configure_logging(config.log_level)

    app = create_app(KnowledgeGraphManager.from_config(config))

    logger.info(f"MCP Streamable HTTP endpoint: http://{config.http_host}:{config.http_port}/mcp")
    logger.info(f"Health check: http://{config.http_host}:{config.http_port}/health")

    import uvicorn

    uvicorn.run(app, host=config.http_host, port=config.http_port, log_level=config.log_level.lower())


if __name__ == "__main__":
    main()
