"""MCP stdio server exposing the search_messages tool."""

from __future__ import annotations

from typing import Any

import mcp.server.stdio
import mcp.types as types
from mcp.server.lowlevel import Server

from tgsearch.core.config import config
from tgsearch.core.logger import logger
from tgsearch.orchestrators.search import MessageSearchOrchestrator
from tgsearch.services.telegram_session import NotAuthorizedError, TelegramSession
from tgsearch.tools import SearchMessagesTool, ToolRegistry

SERVER_NAME = "telegram-search"


def build_registry(orchestrator: MessageSearchOrchestrator) -> ToolRegistry:
    registry = ToolRegistry()
    registry.register(SearchMessagesTool(orchestrator))
    return registry


def build_server(registry: ToolRegistry) -> Server:
    server: Server = Server(SERVER_NAME)

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        return [
            types.Tool(
                name=spec.name,
                description=spec.description,
                inputSchema=spec.input_schema,
            )
            for spec in registry.specs()
        ]

    @server.call_tool()
    async def call_tool(name: str, arguments: dict[str, Any] | None) -> list[types.TextContent]:
        result = await registry.call(name, arguments)
        if not result.success:
            logger.warning("%s returned an error: %s", name, result.error)
        return [types.TextContent(type="text", text=result.output)]

    return server


async def run_server() -> int:
    errors = config.validate()
    if errors:
        for err in errors:
            logger.error(err)
        logger.error("Missing required environment variables. Please check your .env file.")
        return 1

    try:
        async with TelegramSession() as session:
            orchestrator = MessageSearchOrchestrator(session.platform())
            server = build_server(build_registry(orchestrator))
            logger.info("Telegram search MCP server started")
            async with mcp.server.stdio.stdio_server() as (read_stream, write_stream):
                await server.run(
                    read_stream,
                    write_stream,
                    server.create_initialization_options(),
                )
    except NotAuthorizedError as e:
        logger.error(str(e))
        return 1
    logger.info("Shutting down")
    return 0
