from datetime import datetime, timezone

import pytest

from aurix.engine import ValidationError
from aurix.overload import OverloadIndexCalculator, ThresholdProfile
from aurix.overload.calculator import (
    HISTORY_CONFIDENCE,
    LIVE_CONFIDENCE,
    WEIGHTS,
    normalize,
    recommendations_for,
    tier_for,
    time_pressure_signal,
)
from aurix.overload.schemas import OverloadMetrics, OverloadTier
from tests.helpers import NOW

GOLDEN = OverloadMetrics(
    task_count=10,
    meeting_hours=6,
    context_switches=15,
    recurring_intensity=0.3,
    task_complexity=0.6,
    time_fragmentation=0.4,
)


def calculator(profile=None):
    return OverloadIndexCalculator(profile=profile, clock=lambda: NOW)


def test_weights_sum_to_one():
    assert sum(WEIGHTS.values()) == pytest.approx(1.0)


def test_golden_metrics():
    index = calculator().calculate(GOLDEN)

    assert index.factors.task_load == pytest.approx(50)
    assert index.factors.meeting_density == pytest.approx(75)
    assert index.factors.context_switching == pytest.approx(100)
    assert index.factors.time_pressure == pytest.approx(25)
    assert index.factors.complexity == pytest.approx(60)
    assert index.value == pytest.approx(59.75)
    assert index.confidence == LIVE_CONFIDENCE
    assert index.timestamp == NOW
    assert index.adjusted_value is None
    assert index.recommendation is None


def test_calculate_accepts_camel_case_mapping():
    index = calculator().calculate({
        "taskCount": 10, "meetingHours": 6, "contextSwitches": 15,
        "recurringIntensity": 0.3, "taskComplexity": 0.6, "timeFragmentation": 0.4,
    })
    assert index.value == pytest.approx(59.75)


def test_zero_metrics_give_zero():
    assert calculator().calculate(OverloadMetrics()).value == 0


def test_saturated_metrics_cap_at_one_hundred():
    metrics = OverloadMetrics(
        task_count=500, meeting_hours=24, context_switches=100,
        recurring_intensity=5, task_complexity=3, time_fragmentation=5,
    )
    assert calculator().calculate(metrics).value == pytest.approx(100)


def test_calculation_is_pure():
    first = calculator().calculate(GOLDEN, at=NOW)
    second = calculator().calculate(GOLDEN.model_copy(), at=NOW)
    assert first == second


def test_explicit_confidence():
    assert calculator().calculate(GOLDEN, confidence=HISTORY_CONFIDENCE).confidence == 0.8


def test_negative_metrics_are_rejected():
    with pytest.raises(ValidationError, match="overload metrics"):
        calculator().calculate({"task_count": -1})


def test_normalize_clamps():
    assert normalize(-5, 10) == 0
    assert normalize(5, 10) == 50
    assert normalize(50, 10) == 100


def test_time_pressure_signal():
    assert time_pressure_signal(GOLDEN) == pytest.approx(25)


@pytest.mark.parametrize(
    "value, tier",
    [
        (0, OverloadTier.NOMINAL),
        (79.999999, OverloadTier.NOMINAL),
        (80, OverloadTier.NOMINAL),
        (80.000001, OverloadTier.ELEVATED),
        (99.999999, OverloadTier.ELEVATED),
        (100, OverloadTier.ELEVATED),
        (100.000001, OverloadTier.OVERLOADED),
        (119.999999, OverloadTier.OVERLOADED),
        (120, OverloadTier.OVERLOADED),
        (120.000001, OverloadTier.CRITICAL),
    ],
)
def test_tier_boundaries_are_strict(value, tier):
    assert tier_for(value) is tier


def test_tier_recommendations():
    assert recommendations_for(130)[0].startswith("Critical overload detected")
    assert recommendations_for(50) == ["Good workload balance. Keep up the great work!"]


def test_profile_adjusts_value_without_touching_it():
    # Wednesday afternoon: both adjustments are 1.0
    index = calculator(ThresholdProfile(base_value=100)).calculate(GOLDEN, at=NOW)
    assert index.value == pytest.approx(59.75)
    assert index.adjusted_value == pytest.approx(59.75)

    monday_morning = datetime(2025, 3, 10, 9, 0, tzinfo=timezone.utc)
    index = calculator(ThresholdProfile(base_value=100)).calculate(GOLDEN, at=monday_morning)
    assert index.value == pytest.approx(59.75)
    assert index.adjusted_value == pytest.approx(59.75 / 81 * 100)
    assert index.effective_value == index.adjusted_value


def test_recommendation_attached_above_one_hundred():
    index = calculator(ThresholdProfile(base_value=50)).calculate(GOLDEN, at=NOW)

    assert index.adjusted_value == pytest.approx(119.5)
    assert index.recommendation == (
        "You're switching between projects 15 times. Try batching similar tasks. "
        "Your workload is significantly above normal. Consider postponing or delegating tasks."
    )


def test_recommend_targets_top_factor():
    metrics = OverloadMetrics(task_count=12, meeting_hours=1)
    factors = calculator().factors(metrics)
    assert OverloadIndexCalculator.recommend(metrics, factors) == (
        "You have 12 tasks today. Consider deferring non-urgent ones."
    )


class TestThresholdProfile:
    def test_day_and_time_adjustments(self):
        profile = ThresholdProfile(base_value=100)
        saturday_night = datetime(2025, 3, 15, 23, 0)
        assert profile.threshold_at(saturday_night) == pytest.approx(100 * 1.2 * 1.3)

    def test_feeling_more_overloaded_lowers_threshold(self):
        profile = ThresholdProfile(base_value=100)
        assert profile.update_from_feedback(9, 60) == pytest.approx(0.9)
        assert profile.alert_threshold == pytest.approx(90)

    def test_feeling_less_overloaded_raises_threshold(self):
        profile = ThresholdProfile(base_value=100)
        assert profile.update_from_feedback(3, 60) == pytest.approx(1.1)

    def test_small_disagreement_moves_proportionally(self):
        profile = ThresholdProfile(base_value=100)
        assert profile.update_from_feedback(6, 63) == pytest.approx(1.05)

    def test_zero_prediction_is_ignored(self):
        profile = ThresholdProfile()
        assert profile.update_from_feedback(5, 0) == 1.0
