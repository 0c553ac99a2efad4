"""
Pydantic schemas for the overload index and the task records it is built from.

Field names are snake_case; every record also accepts and emits the
camelCase names used by the task provider and the UI payloads.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from aurix.utils.validation import CamelModel


# =============================================================================
# INDEX
# =============================================================================

class OverloadMetrics(CamelModel):
    """Raw workload signals for one day."""
    task_count: int = Field(0, ge=0, description="Tasks scheduled or due for the period")
    meeting_hours: float = Field(0.0, ge=0, description="Total hours in meetings")
    context_switches: int = Field(0, ge=0, description="Project changes across the day's task order")
    recurring_intensity: float = Field(0.0, ge=0, description="Recurring-task load as a 0-1 fraction")
    task_complexity: float = Field(0.0, ge=0, description="Average task complexity as a 0-1 fraction")
    time_fragmentation: float = Field(0.0, ge=0, description="Fragmentation of free time as a 0-1 fraction")


class OverloadFactors(CamelModel):
    """Normalized 0-100 contribution of each factor before weighting."""
    task_load: float = 0.0
    meeting_density: float = 0.0
    context_switching: float = 0.0
    time_pressure: float = 0.0
    complexity: float = 0.0


class OverloadTier(str, Enum):
    NOMINAL = "nominal"
    ELEVATED = "elevated"
    OVERLOADED = "overloaded"
    CRITICAL = "critical"


class OverloadIndex(CamelModel):
    """The computed index with its breakdown."""
    value: float = Field(..., description="Weighted sum of factors")
    timestamp: datetime
    metrics: OverloadMetrics
    factors: OverloadFactors
    confidence: float = Field(..., ge=0, le=1)
    adjusted_value: Optional[float] = Field(None, description="Value scaled by the personal threshold profile")
    recommendation: Optional[str] = None

    @property
    def effective_value(self) -> float:
        return self.adjusted_value if self.adjusted_value is not None else self.value


class HistoryEntry(CamelModel):
    """One stored index value."""
    timestamp: datetime
    index: float
    breakdown: Dict[str, float] = Field(default_factory=dict)


class FeedbackEntry(CamelModel):
    timestamp: datetime
    rating: float = Field(..., ge=0, le=10, description="How overloaded the user felt, 0-10")
    index: float


# =============================================================================
# TASK PROVIDER RECORDS
# =============================================================================

class TaskProject(CamelModel):
    id: Optional[str] = None
    name: Optional[str] = None


class Task(CamelModel):
    """A task as cached from the task provider."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    id: Optional[str] = None
    name: str = ""
    description: Optional[str] = None
    status: Optional[str] = None
    scheduled_start: Optional[datetime] = None
    scheduled_end: Optional[datetime] = None
    due_date: Optional[datetime] = None
    duration: Optional[float] = Field(None, description="Duration in minutes")
    project: Optional[TaskProject] = None

    @field_validator("status", mode="before")
    @classmethod
    def _status_name(cls, value: Any) -> Any:
        # Provider statuses arrive either as a name or as {"name": ...}
        if isinstance(value, dict):
            return value.get("name")
        return value

    @field_validator("duration", mode="before")
    @classmethod
    def _numeric_duration(cls, value: Any) -> Any:
        # Non-numeric durations ("NONE", "REMINDER") carry no time
        if isinstance(value, str):
            try:
                return float(value)
            except ValueError:
                return None
        return value

    @property
    def is_completed(self) -> bool:
        return (self.status or "").lower() == "completed"


class TaskData(CamelModel):
    """Cached provider snapshot. ``tasks`` is required; an empty list is valid."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    tasks: List[Task]
    recurring_tasks: List[Dict[str, Any]] = Field(default_factory=list)
    schedules: List[Dict[str, Any]] = Field(default_factory=list)
    projects: List[Dict[str, Any]] = Field(default_factory=list)


class TaskMetadata(CamelModel):
    """Hints parsed from a task description."""
    effort: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    estimated_hours: Optional[int] = None
    is_urgent: bool = False


# =============================================================================
# SUMMARY
# =============================================================================

class TrendDirection(str, Enum):
    RISING = "rising"
    FALLING = "falling"
    STABLE = "stable"


class DailySummary(CamelModel):
    date: datetime
    average_index: float
    peak_index: float
    peak_time: datetime
    total_tasks: int
    completed_tasks: int
    meeting_hours: float
    focus_time: float
    tier: OverloadTier
    trend: TrendDirection = TrendDirection.STABLE
    history_points: int = 0
    recommendations: List[str] = Field(default_factory=list)
