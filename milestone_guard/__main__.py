# milestone_guard/__main__.py
"""
Entry point for the milestone-guard MCP server.

CRITICAL: Server imports configure_logging() first to prevent stdout pollution.

FastMCP doesn't have built-in lifecycle hooks, so the engine is started
here before the server runs and shut down when it stops.
"""

import asyncio
import logging

# Import server (which configures logging before anything else)
from milestone_guard.server import initialize_engine, mcp, shutdown_engine

logger = logging.getLogger(__name__)


async def main() -> None:
    """Start the engine, then serve MCP over stdio until the client disconnects."""
    await initialize_engine()
    try:
        logger.info("Starting MCP server on stdio transport")
        await mcp.run_stdio_async()
    finally:
        await shutdown_engine()


if __name__ == "__main__":
    asyncio.run(main())
