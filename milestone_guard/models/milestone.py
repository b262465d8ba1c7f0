# milestone_guard/models/milestone.py
"""
Milestone snapshot and risk factor log.

The engine reads Milestone snapshots owned by the calling system. The only
mutations it performs are appending RiskFactor entries and overwriting
risk_level during a risk assessment.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class StreamType(str, Enum):
    """Fixed categories of work; each selects a RuleSet."""

    SECURITY_REMEDIATION = "security_remediation"
    FRONTEND_AUTH_MIGRATION = "frontend_auth_migration"
    DATA_MIGRATION = "data_migration"
    REALTIME_FEATURES = "realtime_features"
    INTEGRATION_TESTING = "integration_testing"
    PERFORMANCE_OPTIMIZATION = "performance_optimization"


class MilestoneStatus(str, Enum):
    """Milestone lifecycle states."""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    IN_REVIEW = "in_review"
    BLOCKED = "blocked"
    COMPLETED = "completed"


# Statuses counted when estimating current team load
ACTIVE_STATUSES = frozenset({MilestoneStatus.IN_PROGRESS, MilestoneStatus.IN_REVIEW})


class RiskLevel(str, Enum):
    """Ordered risk levels (low < medium < high < critical)."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def scale(self) -> int:
        """Numeric scale value: low=1 ... critical=4."""
        return _RISK_SCALE[self]

    def escalate(self) -> "RiskLevel":
        """Return the next tier up, capped at critical."""
        order = list(RiskLevel)
        return order[min(order.index(self) + 1, len(order) - 1)]


_RISK_SCALE: dict[RiskLevel, int] = {
    RiskLevel.LOW: 1,
    RiskLevel.MEDIUM: 2,
    RiskLevel.HIGH: 3,
    RiskLevel.CRITICAL: 4,
}


class RiskCategory(str, Enum):
    """Risk categories analyzed independently for every milestone."""

    TECHNICAL = "technical"
    RESOURCE = "resource"
    SCHEDULE = "schedule"
    QUALITY = "quality"
    EXTERNAL = "external"


class RiskFactorStatus(str, Enum):
    """Lifecycle of a recorded risk factor."""

    ACTIVE = "active"
    MITIGATED = "mitigated"


def _as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes so comparisons never mix the two."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


UtcDatetime = Annotated[datetime, AfterValidator(_as_utc)]


class RiskFactor(BaseModel):
    """A persisted, timestamped record of an identified risk on a milestone."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True, alias_generator=to_camel)

    category: RiskCategory
    factor: str | None = Field(
        default=None, description="Detector that produced this entry (None for manual entries)"
    )
    level: RiskLevel = RiskLevel.MEDIUM
    description: str = ""
    mitigation: str = ""
    status: RiskFactorStatus = RiskFactorStatus.ACTIVE
    created_at: UtcDatetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    mitigated_at: UtcDatetime | None = None

    @property
    def is_active(self) -> bool:
        return self.status == RiskFactorStatus.ACTIVE

    def key(self) -> tuple[str, str | None]:
        """Identity used to avoid recording the same detected risk twice."""
        return (self.category.value, self.factor)


class Milestone(BaseModel):
    """
    Snapshot of a work-stream milestone.

    Accepts both snake_case field names and the camelCase keys used by the
    surrounding system (streamType, progressPercentage, ...).
    """

    model_config = ConfigDict(
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
        validate_assignment=True,
    )

    id: str
    stream_type: StreamType
    title: str = ""
    description: str = ""
    status: MilestoneStatus = MilestoneStatus.NOT_STARTED
    progress_percentage: float = Field(default=0.0, ge=0.0, le=100.0)
    estimated_start_date: UtcDatetime
    estimated_end_date: UtcDatetime
    actual_end_date: UtcDatetime | None = None
    dependencies: list[str] = Field(default_factory=list)
    risk_factors: list[RiskFactor] = Field(default_factory=list)
    risk_level: RiskLevel = RiskLevel.LOW
    metrics: dict[str, float] = Field(default_factory=dict)

    @field_validator("dependencies")
    @classmethod
    def _unique_dependencies(cls, value: list[str]) -> list[str]:
        """Dependencies are a set of milestone ids; keep first occurrence order."""
        return list(dict.fromkeys(value))

    @property
    def planned_duration_days(self) -> float:
        """Planned duration from estimated start to estimated end, in days."""
        delta = self.estimated_end_date - self.estimated_start_date
        return delta.total_seconds() / 86400

    @property
    def active_risk_factors(self) -> list[RiskFactor]:
        return [f for f in self.risk_factors if f.is_active]
