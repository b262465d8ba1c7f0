# milestone_guard/engine.py
"""
Engine wiring and lifecycle.

Builds the store, rule catalog, risk policy, metrics provider, validator
and risk manager from configuration, and owns their startup/shutdown.
Both the MCP server and the CLI go through this one place.
"""

import logging
from pathlib import Path

from milestone_guard.config.loader import get_config_dir
from milestone_guard.config.schema import MilestoneGuardConfig
from milestone_guard.metrics.provider import HttpMetricsProvider, MetricsProvider
from milestone_guard.models.sqlite_store import SQLiteMilestoneStore
from milestone_guard.models.store import MilestoneStore
from milestone_guard.risk.manager import RiskManager
from milestone_guard.rules.catalog import RuleCatalog, load_rule_catalog
from milestone_guard.rules.policy import RiskPolicy, load_risk_policy
from milestone_guard.validation.validator import MilestoneValidator

logger = logging.getLogger(__name__)


def default_db_path(config: MilestoneGuardConfig) -> Path:
    """SQLite database path inside the user config directory."""
    return get_config_dir() / config.storage.db_filename


def create_metrics_provider(config: MilestoneGuardConfig) -> MetricsProvider | None:
    """HTTP provider when an endpoint is configured, otherwise None (stored metrics only)."""
    if not config.metrics.endpoint:
        return None
    return HttpMetricsProvider(
        endpoint=config.metrics.endpoint,
        timeframe=config.metrics.timeframe,
        timeout=config.batch.metrics_timeout,
    )


class Engine:
    """
    Engine lifecycle coordinator.

    Manages:
        - Store initialization and shutdown
        - Loading the rule catalog and risk policy
        - Construction of the validator and risk manager
    """

    def __init__(
        self,
        config: MilestoneGuardConfig,
        store: MilestoneStore | None = None,
        db_path: str | Path | None = None,
        catalog: RuleCatalog | None = None,
        policy: RiskPolicy | None = None,
        metrics_provider: MetricsProvider | None = None,
    ) -> None:
        """
        Initialize the engine.

        Args:
            config: Loaded configuration
            store: Optional store (defaults to SQLite at db_path)
            db_path: SQLite path (defaults to the user config directory)
            catalog: Optional rule catalog (defaults to the packaged rules)
            policy: Optional risk policy (defaults to the packaged policy)
            metrics_provider: Optional provider (defaults from config.metrics)
        """
        self.config = config
        self._owns_store = store is None
        if store is None:
            store = SQLiteMilestoneStore(str(db_path or default_db_path(config)))
        self._store = store

        self._catalog = catalog or load_rule_catalog()
        self._policy = policy or load_risk_policy()

        provider = metrics_provider or create_metrics_provider(config)
        self._validator = MilestoneValidator(
            store, self._catalog, config=config, metrics_provider=provider
        )
        self._risk_manager = RiskManager(store, self._policy, config=config)

    @property
    def store(self) -> MilestoneStore:
        return self._store

    @property
    def catalog(self) -> RuleCatalog:
        return self._catalog

    @property
    def validator(self) -> MilestoneValidator:
        return self._validator

    @property
    def risk_manager(self) -> RiskManager:
        return self._risk_manager

    async def startup(self) -> None:
        """Initialize the store schema (SQLite only)."""
        if isinstance(self._store, SQLiteMilestoneStore):
            await self._store.initialize()
        logger.info(
            f"Engine started: {len(self._catalog.stream_types)} rule sets, "
            f"store={type(self._store).__name__}"
        )

    async def shutdown(self) -> None:
        """Close the store if this engine created it."""
        if self._owns_store and isinstance(self._store, SQLiteMilestoneStore):
            await self._store.close()
        logger.info("Engine shut down")

    async def __aenter__(self) -> "Engine":
        await self.startup()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.shutdown()
