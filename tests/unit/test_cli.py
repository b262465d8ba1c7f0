# tests/unit/test_cli.py
"""
CLI unit tests.

Tests each command via typer's CliRunner, using an engine over an
in-memory milestone store to avoid filesystem side effects.
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import pytest
from rich.console import Console
from typer.testing import CliRunner

from milestone_guard.cli import app
from milestone_guard.config.schema import MilestoneGuardConfig
from milestone_guard.engine import Engine
from milestone_guard.models.milestone import Milestone, MilestoneStatus, StreamType
from milestone_guard.models.store import InMemoryMilestoneStore

runner = CliRunner()

PASSING_SECURITY_METRICS = {
    "gate.security_scan": 95,
    "gate.vulnerability_assessment": 90,
    "gate.compliance_check": 88,
    "criterion.no_critical_vulnerabilities": 0,
    "criterion.all_tests_passed": 97,
    "criterion.documentation_updated": 1,
    "responseTime": 150,
    "memoryUsage": 64,
    "cpuUsage": 40,
}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

def _make_milestone(
    milestone_id="sec-1",
    stream_type=StreamType.SECURITY_REMEDIATION,
    title="Rotate signing keys",
    metrics=None,
):
    return Milestone(
        id=milestone_id,
        stream_type=stream_type,
        title=title,
        description="Rotate every service signing key and revoke the old ones after rollout.",
        status=MilestoneStatus.IN_PROGRESS,
        estimated_start_date=datetime(2026, 1, 1, tzinfo=timezone.utc),
        estimated_end_date=datetime(2026, 2, 1, tzinfo=timezone.utc),
        metrics=dict(PASSING_SECURITY_METRICS) if metrics is None else metrics,
    )


def _engine(milestones=None) -> Engine:
    return Engine(MilestoneGuardConfig(), store=InMemoryMilestoneStore(milestones or []))


@pytest.fixture(autouse=True)
def _quiet_wide_cli():
    """Keep log handlers untouched and render tables without wrapping."""
    with patch("milestone_guard.cli.configure_logging"), patch(
        "milestone_guard.cli.console", Console(width=200)
    ):
        yield


@pytest.fixture
def engine():
    engine = _engine(
        [
            _make_milestone(),
            _make_milestone("rt-1", StreamType.REALTIME_FEATURES, "Live presence", metrics={}),
        ]
    )
    with patch("milestone_guard.cli._get_engine", AsyncMock(return_value=engine)):
        yield engine


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------

class TestHelp:
    def test_no_args_shows_help(self):
        result = runner.invoke(app, [])
        assert "Validate work-stream milestones" in result.output

    def test_help_flag(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("import", "list", "validate", "assess", "portfolio", "serve"):
            assert command in result.output


class TestImport:
    def test_import_yaml(self, engine, tmp_path):
        path = tmp_path / "milestones.yaml"
        path.write_text(
            "milestones:\n"
            "  - id: dm-1\n"
            "    streamType: data_migration\n"
            "    title: Move orders table\n"
            "    estimatedStartDate: '2026-03-01T00:00:00Z'\n"
            "    estimatedEndDate: '2026-03-20T00:00:00Z'\n"
            "    metrics: {migrationTime: 240}\n"
        )

        result = runner.invoke(app, ["import", str(path)])

        assert result.exit_code == 0
        assert "Imported 1 milestone(s)" in result.output
        assert engine.store._milestones["dm-1"].metrics == {"migrationTime": 240.0}

    def test_import_json_list(self, engine, tmp_path):
        path = tmp_path / "milestones.json"
        path.write_text(
            '[{"id": "dm-2", "stream_type": "data_migration",'
            ' "estimated_start_date": "2026-03-01T00:00:00+00:00",'
            ' "estimated_end_date": "2026-03-20T00:00:00+00:00"}]'
        )

        result = runner.invoke(app, ["import", str(path)])

        assert result.exit_code == 0
        assert "dm-2" in engine.store._milestones

    def test_import_invalid_document(self, engine, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("- id: dm-3\n  streamType: not_a_stream\n")

        result = runner.invoke(app, ["import", str(path)])

        assert result.exit_code == 1
        assert "Could not read" in result.output
        assert "dm-3" not in engine.store._milestones

    def test_import_wrong_shape(self, engine, tmp_path):
        path = tmp_path / "scalar.yaml"
        path.write_text("just a string\n")

        result = runner.invoke(app, ["import", str(path)])

        assert result.exit_code == 1


class TestList:
    def test_list_empty(self):
        with patch("milestone_guard.cli._get_engine", AsyncMock(return_value=_engine())):
            result = runner.invoke(app, ["list"])

        assert result.exit_code == 0
        assert "No milestones found" in result.output

    def test_list_with_milestones(self, engine):
        result = runner.invoke(app, ["list"])

        assert result.exit_code == 0
        assert "sec-1" in result.output
        assert "rt-1" in result.output

    def test_list_filtered(self, engine):
        result = runner.invoke(app, ["list", "--stream-type", "realtime_features"])

        assert result.exit_code == 0
        assert "rt-1" in result.output
        assert "sec-1" not in result.output

    def test_list_unknown_stream_type(self, engine):
        result = runner.invoke(app, ["list", "-s", "mobile"])

        assert result.exit_code == 1
        assert "Unknown stream type" in result.output


class TestValidate:
    def test_validate_single(self, engine):
        result = runner.invoke(app, ["validate", "sec-1"])

        assert result.exit_code == 0
        assert "score 100.0" in result.output
        assert "VALIDATED" in result.output

    def test_validate_not_found(self, engine):
        result = runner.invoke(app, ["validate", "ghost"])

        assert result.exit_code == 1
        assert "not found" in result.output

    def test_validate_batch_with_missing_id(self, engine):
        result = runner.invoke(app, ["validate", "sec-1", "ghost", "-c", "2"])

        assert result.exit_code == 1
        assert "MilestoneNotFoundError" in result.output

    def test_strict_fails_when_not_validated(self, engine):
        relaxed = runner.invoke(app, ["validate", "rt-1"])
        strict = runner.invoke(app, ["validate", "rt-1", "--strict"])

        assert relaxed.exit_code == 0
        assert "NOT VALIDATED" in relaxed.output
        assert strict.exit_code == 2


class TestAssess:
    def test_assess(self, engine):
        result = runner.invoke(app, ["assess", "sec-1"])

        assert result.exit_code == 0
        assert "security_vulnerabilities" in result.output
        assert "Escalate to" in result.output

    def test_assess_not_found(self, engine):
        result = runner.invoke(app, ["assess", "ghost"])

        assert result.exit_code == 1


class TestPortfolio:
    def test_portfolio(self, engine):
        result = runner.invoke(app, ["portfolio"])

        assert result.exit_code == 0
        assert "Portfolio (all): 2 milestones" in result.output
        assert "mitigation plan(s)" in result.output

    def test_portfolio_bad_scope(self, engine):
        result = runner.invoke(app, ["portfolio", "--scope", "planets"])

        assert result.exit_code == 1
        assert "Unknown risk assessment scope" in result.output
