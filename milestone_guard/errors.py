# milestone_guard/errors.py
"""
Error taxonomy for milestone validation and risk assessment.

Caller-facing errors (not found, configuration) propagate out of the engine.
EvaluationError and MetricsUnavailableError are recovered locally and turned
into error/fallback values inside the result structures.
"""


class MilestoneGuardError(Exception):
    """Base class for all milestone-guard errors."""


class MilestoneNotFoundError(MilestoneGuardError, LookupError):
    """Raised when a milestone id is unknown to the store."""

    def __init__(self, milestone_id: str) -> None:
        self.milestone_id = milestone_id
        super().__init__(f"Milestone {milestone_id} not found")


class ConfigurationError(MilestoneGuardError):
    """Raised when rule or policy configuration is missing or malformed."""


class NoRuleSetError(ConfigurationError):
    """Raised when a milestone's stream type has no configured RuleSet."""

    def __init__(self, stream_type: str) -> None:
        self.stream_type = stream_type
        super().__init__(f"No validation rules defined for stream: {stream_type}")


class EvaluationError(MilestoneGuardError):
    """Raised by an evaluator that cannot produce a result for a rule."""


class MetricsUnavailableError(MilestoneGuardError):
    """Raised by a metrics provider when live metrics cannot be fetched."""


class InvalidScopeError(MilestoneGuardError, ValueError):
    """Raised when a portfolio scope names no known stream type."""

    def __init__(self, scope: str) -> None:
        self.scope = scope
        super().__init__(f"Unknown risk assessment scope: {scope}")
