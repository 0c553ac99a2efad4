from aurix.overload.calculator import (
    CAPS,
    HISTORY_CONFIDENCE,
    LIVE_CONFIDENCE,
    WEIGHTS,
    OverloadIndexCalculator,
    normalize,
    recommendations_for,
    tier_for,
)
from aurix.overload.history import HistoryTracker, InMemoryHistoryStore, TieBreak
from aurix.overload.metrics import extract_metrics, extract_task_metadata
from aurix.overload.schemas import (
    DailySummary,
    FeedbackEntry,
    HistoryEntry,
    OverloadFactors,
    OverloadIndex,
    OverloadMetrics,
    OverloadTier,
    TaskData,
)
from aurix.overload.threshold import ThresholdProfile

__all__ = [
    "CAPS",
    "HISTORY_CONFIDENCE",
    "LIVE_CONFIDENCE",
    "WEIGHTS",
    "DailySummary",
    "FeedbackEntry",
    "HistoryEntry",
    "HistoryTracker",
    "InMemoryHistoryStore",
    "OverloadFactors",
    "OverloadIndex",
    "OverloadIndexCalculator",
    "OverloadMetrics",
    "OverloadTier",
    "TaskData",
    "ThresholdProfile",
    "TieBreak",
    "extract_metrics",
    "extract_task_metadata",
    "normalize",
    "recommendations_for",
    "tier_for",
]
