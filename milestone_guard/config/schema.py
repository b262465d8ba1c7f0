# milestone_guard/config/schema.py
"""
Pydantic configuration models for milestone-guard.

All models use extra="ignore" to allow unknown YAML keys without crashing.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class ValidationConfig(BaseModel):
    """Composite validation score weights and pass marks."""

    model_config = ConfigDict(extra="ignore")

    pass_score: float = Field(
        default=80.0,
        ge=0.0,
        le=100.0,
        description="Minimum overall score for a milestone to count as validated",
    )
    gate_weight: float = Field(
        default=0.4, ge=0.0, le=1.0, description="Weight of the quality gate pass rate"
    )
    criteria_weight: float = Field(
        default=0.4, ge=0.0, le=1.0, description="Weight of the success criteria pass rate"
    )
    threshold_weight: float = Field(
        default=0.2, ge=0.0, le=1.0, description="Weight of the performance threshold pass rate"
    )
    gate_pass_score: float = Field(
        default=80.0,
        ge=0.0,
        le=100.0,
        description="Recorded gate score (gate.<name> metric) required for a gate to pass",
    )


class RiskConfig(BaseModel):
    """Heuristic inputs for the risk category analyzers and time rules."""

    model_config = ConfigDict(extra="ignore")

    aggressive_timeline_days: float = Field(
        default=14.0, gt=0.0, description="Planned durations shorter than this are aggressive"
    )
    team_capacity_limit: int = Field(
        default=8,
        ge=0,
        description="Active milestone count above which the team counts as overloaded",
    )
    clarity_min_description: int = Field(
        default=50,
        ge=0,
        description="Descriptions at or below this length signal unclear requirements",
    )
    scope_creep_description: int = Field(
        default=200,
        ge=0,
        description="Descriptions longer than this signal scope creep",
    )
    stale_risk_days: float = Field(
        default=7.0,
        gt=0.0,
        description="Active risk factors older than this escalate the milestone one tier",
    )
    available_skills: list[str] = Field(
        default_factory=lambda: [
            "security",
            "authentication",
            "frontend_development",
            "performance_tuning",
            "profiling",
        ],
        description="Skills currently available in the team",
    )


class BatchConfig(BaseModel):
    """Batch validation worker pool configuration."""

    model_config = ConfigDict(extra="ignore")

    concurrency: int = Field(
        default=5, ge=1, le=64, description="Maximum milestones validated at once"
    )
    metrics_timeout: float = Field(
        default=5.0, gt=0.0, description="Seconds to wait for live metrics before falling back"
    )


class MetricsConfig(BaseModel):
    """External monitoring system configuration."""

    model_config = ConfigDict(extra="ignore")

    endpoint: str | None = Field(
        default=None,
        description="Monitoring endpoint for live milestone metrics (None = stored metrics only)",
    )
    timeframe: str = Field(default="24h", description="Metrics aggregation window")


class StorageConfig(BaseModel):
    """Persistence configuration."""

    model_config = ConfigDict(extra="ignore")

    db_filename: str = Field(
        default="milestones.db",
        description="SQLite database file name inside the user config directory",
    )


class OutputConfig(BaseModel):
    """Output configuration."""

    model_config = ConfigDict(extra="ignore")

    verbosity: Literal["quiet", "normal", "verbose"] = Field(
        default="normal", description="Logging verbosity level"
    )


class MilestoneGuardConfig(BaseModel):
    """Root configuration for milestone-guard."""

    model_config = ConfigDict(extra="ignore")

    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    risk: RiskConfig = Field(default_factory=RiskConfig)
    batch: BatchConfig = Field(default_factory=BatchConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
