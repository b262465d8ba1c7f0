# milestone_guard/server.py
"""
FastMCP server instance with tool registration.

CRITICAL: configure_logging() is called first to prevent stdout pollution.
All logging goes to stderr as JSON.
"""

# Configure logging FIRST before any other imports
from milestone_guard.logging_config import configure_logging, level_for

configure_logging()

# Now safe to import everything else
import logging

from fastmcp import FastMCP

from milestone_guard.config.loader import load_config
from milestone_guard.config.schema import MilestoneGuardConfig
from milestone_guard.engine import Engine
from milestone_guard.tools.assess_milestone_risk import (
    assess_milestone_risk as _assess_milestone_risk,
)
from milestone_guard.tools.conduct_risk_assessment import (
    conduct_risk_assessment as _conduct_risk_assessment,
)
from milestone_guard.tools.list_milestones import list_milestones as _list_milestones
from milestone_guard.tools.validate_milestone import validate_milestone as _validate_milestone
from milestone_guard.tools.validate_milestones import validate_milestones as _validate_milestones

logger = logging.getLogger(__name__)

# Create FastMCP instance
mcp = FastMCP("milestone-guard")

# Engine (initialized by __main__.py)
_engine: Engine | None = None


def get_engine() -> Engine:
    """
    Get the running engine.

    Raises:
        RuntimeError: If the engine was not initialized (should never happen)
    """
    if _engine is None:
        raise RuntimeError("Engine not initialized. Call initialize_engine() first.")
    return _engine


async def initialize_engine(config: MilestoneGuardConfig | None = None) -> Engine:
    """
    Build and start the engine (SQLite store + rules + policy).

    Must be called before any tool calls. Called by __main__.py on startup.

    Args:
        config: MilestoneGuardConfig (loaded from the user config dir if None)
    """
    global _engine

    config = config or load_config()
    logging.getLogger().setLevel(level_for(config.output.verbosity))

    _engine = Engine(config)
    await _engine.startup()
    logger.info("Engine initialized: SQLite store + rule catalog + risk policy ready")
    return _engine


async def shutdown_engine() -> None:
    global _engine

    if _engine is not None:
        await _engine.shutdown()
        _engine = None


@mcp.tool()
async def validate_milestone(milestone_id: str) -> dict:
    """Validate a milestone against its quality gates, success criteria and performance thresholds."""
    engine = get_engine()
    return await _validate_milestone(milestone_id, validator=engine.validator)


@mcp.tool()
async def validate_milestones(milestone_ids: list[str], concurrency: int | None = None) -> dict:
    """Validate several milestones concurrently. Failures are reported per milestone."""
    engine = get_engine()
    return await _validate_milestones(milestone_ids, concurrency, validator=engine.validator)


@mcp.tool()
async def assess_milestone_risk(milestone_id: str) -> dict:
    """Assess a milestone's risk level with escalations, mitigation plan and recommendations."""
    engine = get_engine()
    return await _assess_milestone_risk(
        milestone_id, store=engine.store, risk_manager=engine.risk_manager
    )


@mcp.tool()
async def conduct_risk_assessment(scope: str = "all") -> dict:
    """Assess risk across all milestones, or those of one stream type."""
    engine = get_engine()
    return await _conduct_risk_assessment(scope, risk_manager=engine.risk_manager)


@mcp.tool()
async def list_milestones(stream_type: str | None = None) -> dict:
    """List milestones with status, progress and current risk level."""
    engine = get_engine()
    return await _list_milestones(stream_type, store=engine.store)


logger.info("MCP server initialized with 5 tools")
