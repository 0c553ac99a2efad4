"""
Overload notifications.

The service decides *whether* and *what* to notify (threshold, severity,
per-title cooldown); delivery goes through a NotificationSink.
"""

import re
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Protocol

from aurix.events import EventEmitter
from aurix.logger import get_logger
from aurix.overload.schemas import DailySummary
from aurix.settings import settings

logger = get_logger(__name__)


@dataclass
class Notification:
    title: str
    body: str
    urgency: str = "normal"  # low, normal, critical
    silent: bool = False


class NotificationSink(Protocol):
    def notify(self, notification: Notification) -> None: ...


class EventNotificationSink:
    """Logs notifications and mirrors them onto the UI event stream."""

    def __init__(self, emitter: Optional[EventEmitter] = None):
        self.emitter = emitter

    def notify(self, notification: Notification) -> None:
        logger.info("Notification [%s] %s: %s", notification.urgency, notification.title, notification.body)
        if self.emitter is not None:
            self.emitter.publish_notification(notification.title, notification.body, notification.urgency)


def severity_for(index: float, threshold: float) -> str:
    if index > threshold * 1.5:
        return "critical"
    if index > threshold * 1.2:
        return "high"
    return "moderate"


def quick_recommendations(index: float) -> List[str]:
    if index > 150:
        return [
            "Consider canceling non-essential meetings today.",
            "Defer low-priority tasks to tomorrow.",
            "Take a 15-minute break to reset.",
        ]
    if index > 120:
        return [
            "Focus on high-priority tasks only.",
            "Avoid starting new complex tasks.",
            "Schedule breaks between tasks.",
        ]
    return [
        "Stay focused on current priorities.",
        "Take regular short breaks.",
        "Monitor your energy levels.",
    ]


class NotificationService:
    """
    Args:
        sink: delivery target
        threshold: alerts fire only above this index
        cooldown_seconds: minimum gap between two notifications with the same title key
        enabled: master switch
        clock: monotonic seconds source, injectable for tests
    """

    def __init__(
        self,
        sink: NotificationSink,
        threshold: Optional[float] = None,
        cooldown_seconds: Optional[float] = None,
        enabled: Optional[bool] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.sink = sink
        self.threshold = settings.OVERLOAD_THRESHOLD if threshold is None else threshold
        self.cooldown_seconds = settings.NOTIFICATION_COOLDOWN_SECONDS if cooldown_seconds is None else cooldown_seconds
        self.enabled = settings.NOTIFICATIONS_ENABLED if enabled is None else enabled
        self.clock = clock or time.monotonic
        self._last_sent: Dict[str, float] = {}

    @staticmethod
    def _type_key(title: str) -> str:
        # "Overload Alert: 130%" and "Overload Alert: 142%" share one cooldown
        base = title.split(":", 1)[0]
        return re.sub(r"\s+", "-", base.strip().lower())

    def send(self, notification: Notification) -> bool:
        if not self.enabled:
            return False

        key = self._type_key(notification.title)
        now = self.clock()
        last = self._last_sent.get(key)
        if last is not None and now - last < self.cooldown_seconds:
            logger.info("Notification cooldown active for: %s", key)
            return False

        self.sink.notify(notification)
        self._last_sent[key] = now
        return True

    def send_overload_alert(self, current_index: float) -> bool:
        if current_index <= self.threshold:
            return False

        severity = severity_for(current_index, self.threshold)
        recommendation = quick_recommendations(current_index)[0]
        return self.send(Notification(
            title=f"Overload Alert: {round(current_index)}%",
            body=f"Your workload is {severity}. {recommendation}",
            urgency="critical" if severity == "critical" else "normal",
        ))

    def send_daily_summary(self, summary: DailySummary) -> bool:
        if summary.average_index > 100:
            level = "High"
        elif summary.average_index > 80:
            level = "Elevated"
        else:
            level = "Balanced"

        body = "\n".join([
            f"{level} average workload: {round(summary.average_index)}%",
            f"Peak: {round(summary.peak_index)}%",
            f"Tasks: {summary.completed_tasks}/{summary.total_tasks} completed",
            "",
            summary.recommendations[0] if summary.recommendations else "Keep up the great work!",
        ])
        return self.send(Notification(title="Daily Workload Summary", body=body, urgency="low", silent=True))
