"""
Overload index calculator.

    value = Σ weight[f] * normalize(signal[f])

Each signal is clamped into [0, cap] and scaled to [0, 100] before
weighting. Weights sum to 1.0 across the five factors, so the value is a
deterministic function of the metrics alone.
"""

from datetime import datetime, timezone
from typing import Callable, Dict, List, Mapping, Optional, Union

from aurix.overload.schemas import (
    OverloadFactors,
    OverloadIndex,
    OverloadMetrics,
    OverloadTier,
)
from aurix.overload.threshold import ThresholdProfile
from aurix.utils.validation import validate_record

WEIGHTS: Dict[str, float] = {
    "task_load": 0.25,
    "meeting_density": 0.20,
    "context_switching": 0.20,
    "time_pressure": 0.25,
    "complexity": 0.10,
}

CAPS: Dict[str, float] = {
    "task_load": 20.0,          # tasks
    "meeting_density": 8.0,     # hours
    "context_switching": 10.0,  # project switches
    "time_pressure": 100.0,     # composite signal, see time_pressure_signal
    "complexity": 1.0,          # fraction
}

LIVE_CONFIDENCE = 1.0
HISTORY_CONFIDENCE = 0.8

# Strict ">" breakpoints, highest first
TIER_BREAKPOINTS = (
    (120.0, OverloadTier.CRITICAL),
    (100.0, OverloadTier.OVERLOADED),
    (80.0, OverloadTier.ELEVATED),
)

TIER_RECOMMENDATIONS: Dict[OverloadTier, List[str]] = {
    OverloadTier.CRITICAL: [
        "Critical overload detected. Consider canceling non-essential meetings.",
        "Defer low-priority tasks to tomorrow.",
    ],
    OverloadTier.OVERLOADED: [
        "You're overloaded. Focus on high-priority tasks only.",
        "Take regular breaks to maintain productivity.",
    ],
    OverloadTier.ELEVATED: [
        "Workload is manageable but high. Stay focused.",
    ],
    OverloadTier.NOMINAL: [
        "Good workload balance. Keep up the great work!",
    ],
}


def normalize(signal: float, cap: float) -> float:
    """Clamp ``signal`` into [0, cap] and scale to [0, 100]."""
    return min(max(signal, 0.0), cap) / cap * 100.0


def time_pressure_signal(metrics: OverloadMetrics) -> float:
    """Deadline pressure from task volume, fragmented time and recurring load."""
    return (
        metrics.task_count * 3
        + metrics.time_fragmentation * 100
        + metrics.recurring_intensity * 100
    ) / 4


def tier_for(value: float) -> OverloadTier:
    for breakpoint, tier in TIER_BREAKPOINTS:
        if value > breakpoint:
            return tier
    return OverloadTier.NOMINAL


def recommendations_for(value: float) -> List[str]:
    return list(TIER_RECOMMENDATIONS[tier_for(value)])


class OverloadIndexCalculator:
    """
    Computes the overload index from workload metrics.

    Args:
        profile: optional personal threshold; when set, ``adjusted_value`` is
            reported next to the pure ``value``
        clock: timestamp source for computed indices
    """

    def __init__(
        self,
        profile: Optional[ThresholdProfile] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.profile = profile
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def factors(self, metrics: OverloadMetrics) -> OverloadFactors:
        signals = {
            "task_load": metrics.task_count,
            "meeting_density": metrics.meeting_hours,
            "context_switching": metrics.context_switches,
            "time_pressure": time_pressure_signal(metrics),
            "complexity": metrics.task_complexity,
        }
        return OverloadFactors(**{name: normalize(signal, CAPS[name]) for name, signal in signals.items()})

    @staticmethod
    def weighted_value(factors: OverloadFactors) -> float:
        values = factors.model_dump()
        return sum(WEIGHTS[name] * values[name] for name in WEIGHTS)

    def calculate(
        self,
        metrics: Union[OverloadMetrics, Mapping],
        at: Optional[datetime] = None,
        confidence: float = LIVE_CONFIDENCE,
    ) -> OverloadIndex:
        metrics = validate_record(OverloadMetrics, metrics, "overload metrics")
        moment = at or self.clock()

        factors = self.factors(metrics)
        value = self.weighted_value(factors)

        adjusted = None
        if self.profile is not None:
            adjusted = value / self.profile.threshold_at(moment) * 100

        effective = adjusted if adjusted is not None else value
        recommendation = self.recommend(metrics, factors) if effective > 100 else None

        return OverloadIndex(
            value=value,
            timestamp=moment,
            metrics=metrics,
            factors=factors,
            confidence=confidence,
            adjusted_value=adjusted,
            recommendation=recommendation,
        )

    @staticmethod
    def recommend(metrics: OverloadMetrics, factors: OverloadFactors) -> str:
        """Advice aimed at the largest contributing factor."""
        ranked = sorted(factors.model_dump().items(), key=lambda item: item[1], reverse=True)
        top_factor, top_value = ranked[0]

        messages = {
            "task_load": f"You have {metrics.task_count} tasks today. Consider deferring non-urgent ones.",
            "meeting_density": f"You have {metrics.meeting_hours} hours of meetings. Try to protect some focus time.",
            "context_switching": (
                f"You're switching between projects {metrics.context_switches} times. Try batching similar tasks."
            ),
            "time_pressure": "Your schedule is highly fragmented. Block out larger chunks for deep work.",
            "complexity": "You have several complex tasks. Consider breaking them into smaller pieces.",
        }
        recommendations = [messages[top_factor]]
        if top_value > 80:
            recommendations.append("Your workload is significantly above normal. Consider postponing or delegating tasks.")
        return " ".join(recommendations)
