# tests/unit/test_engine.py
"""
Unit tests for engine wiring and lifecycle.
"""

from datetime import datetime, timezone
from pathlib import Path

import pytest

from milestone_guard.config.schema import MetricsConfig, MilestoneGuardConfig
from milestone_guard.engine import Engine, create_metrics_provider
from milestone_guard.metrics.provider import HttpMetricsProvider, StaticMetricsProvider
from milestone_guard.models.milestone import Milestone, StreamType
from milestone_guard.models.sqlite_store import SQLiteMilestoneStore
from milestone_guard.models.store import InMemoryMilestoneStore


def test_no_endpoint_means_no_provider():
    assert create_metrics_provider(MilestoneGuardConfig()) is None


def test_endpoint_builds_http_provider():
    config = MilestoneGuardConfig(metrics=MetricsConfig(endpoint="http://mon.test/m", timeframe="1h"))

    provider = create_metrics_provider(config)

    assert isinstance(provider, HttpMetricsProvider)
    assert provider.endpoint == "http://mon.test/m"
    assert provider.timeframe == "1h"


@pytest.mark.asyncio
async def test_sqlite_engine_lifecycle(tmp_path: Path):
    milestone = Milestone(
        id="dm-1",
        stream_type=StreamType.DATA_MIGRATION,
        estimated_start_date=datetime(2026, 3, 1, tzinfo=timezone.utc),
        estimated_end_date=datetime(2026, 3, 20, tzinfo=timezone.utc),
        metrics={"migrationTime": 200},
    )

    async with Engine(MilestoneGuardConfig(), db_path=tmp_path / "engine.db") as engine:
        assert isinstance(engine.store, SQLiteMilestoneStore)
        await engine.store.save(milestone)
        result = await engine.validator.validate_milestone("dm-1")

    assert result.milestone_id == "dm-1"
    assert (tmp_path / "engine.db").exists()


@pytest.mark.asyncio
async def test_injected_collaborators_are_used():
    store = InMemoryMilestoneStore()
    provider = StaticMetricsProvider({})

    engine = Engine(MilestoneGuardConfig(), store=store, metrics_provider=provider)
    await engine.startup()
    await engine.shutdown()

    assert engine.store is store
    assert len(engine.catalog.stream_types) == len(StreamType)
