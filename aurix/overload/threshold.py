"""
Personal overload threshold.

The base threshold is scaled by day-of-week and time-of-day adjustments and
by a learned factor that drifts with user feedback.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict

DEFAULT_DAY_OF_WEEK: Dict[str, float] = {
    "monday": 0.9,      # ramping up
    "tuesday": 1.0,
    "wednesday": 1.0,
    "thursday": 1.0,
    "friday": 1.1,      # fatigue
    "saturday": 1.2,    # should be resting
    "sunday": 1.2,
}

DEFAULT_TIME_OF_DAY: Dict[str, float] = {
    "morning": 0.9,     # before 12:00
    "afternoon": 1.0,   # 12:00-18:00
    "evening": 1.1,     # 18:00-22:00
    "night": 1.3,       # 22:00 and later
}

# A single feedback can move the learned factor by at most 10%
FEEDBACK_STEP_MIN = 0.9
FEEDBACK_STEP_MAX = 1.1


def time_of_day(moment: datetime) -> str:
    hour = moment.hour
    if hour < 12:
        return "morning"
    if hour < 18:
        return "afternoon"
    if hour < 22:
        return "evening"
    return "night"


@dataclass
class ThresholdProfile:
    base_value: float = 100.0
    day_of_week: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_DAY_OF_WEEK))
    time_of_day: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_TIME_OF_DAY))
    learned: float = 1.0

    def threshold_at(self, moment: datetime) -> float:
        day = moment.strftime("%A").lower()
        day_adjustment = self.day_of_week.get(day, 1.0)
        time_adjustment = self.time_of_day.get(time_of_day(moment), 1.0)
        return self.base_value * day_adjustment * time_adjustment * self.learned

    @property
    def alert_threshold(self) -> float:
        """Threshold used for overload alerts once feedback has been learned."""
        return self.base_value * self.learned

    def update_from_feedback(self, actual_feeling: float, predicted_index: float) -> float:
        """
        Nudge the learned factor from a 0-10 feeling rating.

        Feeling more overloaded than predicted lowers the threshold; feeling
        less raises it. Returns the new learned factor.
        """
        if predicted_index <= 0:
            return self.learned
        predicted_feeling = predicted_index / 10
        if actual_feeling <= 0:
            step = FEEDBACK_STEP_MAX
        else:
            step = max(FEEDBACK_STEP_MIN, min(FEEDBACK_STEP_MAX, predicted_feeling / actual_feeling))
        self.learned = self.learned * step
        return self.learned
