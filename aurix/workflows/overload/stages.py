"""
Overload workflow stages.

fetch_data -> calculate_index -> analyze_history -> generate_summary
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from aurix.engine import InsufficientDataError
from aurix.logger import get_logger
from aurix.overload.calculator import HISTORY_CONFIDENCE, OverloadIndexCalculator, recommendations_for, tier_for
from aurix.overload.history import HistoryTracker, utc
from aurix.overload.metrics import extract_metrics
from aurix.overload.schemas import (
    DailySummary,
    HistoryEntry,
    OverloadFactors,
    OverloadIndex,
    OverloadMetrics,
    TaskData,
    TrendDirection,
)
from aurix.services.tasks import TaskDataProvider
from aurix.utils.validation import validate_record

logger = get_logger(__name__)

WORKDAY_HOURS = 8
TREND_TOLERANCE = 5


def trend_for(current: float, previous: List[float]) -> TrendDirection:
    """Compare the current value with the mean of earlier values."""
    if not previous:
        return TrendDirection.STABLE
    delta = current - sum(previous) / len(previous)
    if delta > TREND_TOLERANCE:
        return TrendDirection.RISING
    if delta < -TREND_TOLERANCE:
        return TrendDirection.FALLING
    return TrendDirection.STABLE


class OverloadStages:
    """
    Stage functions bound to their collaborators.

    Args:
        calculator: index calculator
        history: history tracker the computed index is appended to
        task_provider: source of the cached task snapshot
        window_days: history window read by analyze_history
    """

    def __init__(
        self,
        calculator: OverloadIndexCalculator,
        history: HistoryTracker,
        task_provider: TaskDataProvider,
        window_days: int = 7,
    ):
        self.calculator = calculator
        self.history = history
        self.task_provider = task_provider
        self.window_days = window_days

    async def fetch_data(self, state: Dict[str, Any]) -> Dict[str, Any]:
        if state.get("metrics") is not None:
            return {"messages": ["Metrics supplied, skipping task fetch"]}
        if state.get("task_data") is not None:
            return {"messages": [f"Using {len(state['task_data'].tasks)} supplied tasks"]}

        logger.info("Fetching task data...")
        payload = await self.task_provider.get_cached_data()
        if not payload:
            return {"messages": ["No task data found"]}

        # A snapshot without a task list still counts as data: zero tasks
        payload = dict(payload)
        if payload.get("tasks") is None:
            payload["tasks"] = []
        task_data = validate_record(TaskData, payload, "task data")
        return {"task_data": task_data, "messages": [f"Fetched {len(task_data.tasks)} tasks"]}

    async def calculate_index(self, state: Dict[str, Any]) -> Dict[str, Any]:
        as_of = state.get("as_of") or datetime.now(timezone.utc)

        if state.get("metrics") is not None:
            metrics = state["metrics"]
        elif state.get("task_data") is not None:
            metrics = extract_metrics(state["task_data"], as_of)
        else:
            raise InsufficientDataError("No task data available. Please sync first.")

        index = self.calculator.calculate(metrics, at=as_of)
        patch = {
            "overload_index": index,
            "messages": [f"Calculated θ = {index.value:.2f}"],
        }

        entry = HistoryEntry(
            timestamp=index.timestamp,
            index=index.effective_value,
            breakdown=index.factors.model_dump(),
        )
        try:
            await self.history.append(entry)
        except Exception as exc:
            # The index is still valid without its history row
            logger.warning("Failed to store overload history: %s", exc)
            patch["warnings"] = [f"History append failed: {exc}"]
        return patch

    async def analyze_history(self, state: Dict[str, Any]) -> Dict[str, Any]:
        entries = await self.history.query(self.window_days)
        if not entries:
            return {"historical_data": [], "messages": ["No historical data available"]}

        historical = [
            OverloadIndex(
                value=entry.index,
                timestamp=entry.timestamp,
                metrics=OverloadMetrics(),  # raw metrics are not stored with history
                factors=OverloadFactors(**{
                    name: entry.breakdown.get(name, 0.0) for name in OverloadFactors.model_fields
                }),
                confidence=HISTORY_CONFIDENCE,
            )
            for entry in entries
        ]
        return {"historical_data": historical, "messages": [f"Analyzed {len(entries)} history entries"]}

    def generate_summary(self, state: Dict[str, Any]) -> Dict[str, Any]:
        index: Optional[OverloadIndex] = state.get("overload_index")
        if index is None:
            raise InsufficientDataError("Cannot generate summary without an overload index")

        current = index.effective_value
        history: List[OverloadIndex] = state.get("historical_data") or []
        points = history or [index.model_copy(update={"value": current})]

        peak = max(points, key=lambda point: point.value)
        average = sum(point.value for point in points) / len(points)
        earlier = [point.value for point in history if utc(point.timestamp) < utc(index.timestamp)]

        task_data: Optional[TaskData] = state.get("task_data")
        if task_data is not None:
            total_tasks = len(task_data.tasks)
            completed_tasks = sum(1 for task in task_data.tasks if task.is_completed)
        else:
            total_tasks = index.metrics.task_count
            completed_tasks = 0

        meeting_hours = index.metrics.meeting_hours
        summary = DailySummary(
            date=index.timestamp,
            average_index=average,
            peak_index=peak.value,
            peak_time=peak.timestamp,
            total_tasks=total_tasks,
            completed_tasks=completed_tasks,
            meeting_hours=meeting_hours,
            focus_time=max(0.0, WORKDAY_HOURS - meeting_hours),
            tier=tier_for(current),
            trend=trend_for(current, earlier),
            history_points=len(history),
            recommendations=recommendations_for(current),
        )
        return {"summary": summary, "messages": ["Generated daily summary"]}
