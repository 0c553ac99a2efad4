from datetime import datetime, timezone

from aurix.notifications import Notification, NotificationService, quick_recommendations, severity_for
from aurix.overload.schemas import DailySummary, OverloadTier


class RecordingSink:
    def __init__(self):
        self.sent = []

    def notify(self, notification):
        self.sent.append(notification)


class Ticker:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def service(enabled=True, threshold=100, cooldown=60):
    sink, ticker = RecordingSink(), Ticker()
    return NotificationService(sink, threshold=threshold, cooldown_seconds=cooldown,
                               enabled=enabled, clock=ticker), sink, ticker


def test_alert_only_above_threshold():
    notifications, sink, _ = service()
    assert not notifications.send_overload_alert(100)
    assert notifications.send_overload_alert(131)
    assert sink.sent[0].title == "Overload Alert: 131%"
    assert sink.sent[0].body == "Your workload is high. Focus on high-priority tasks only."
    assert sink.sent[0].urgency == "normal"


def test_critical_alert():
    notifications, sink, _ = service()
    notifications.send_overload_alert(160)
    assert sink.sent[0].urgency == "critical"
    assert sink.sent[0].body.startswith("Your workload is critical.")


def test_cooldown_is_shared_per_title_type():
    notifications, sink, ticker = service(cooldown=60)
    assert notifications.send_overload_alert(130)
    ticker.now = 30
    assert not notifications.send_overload_alert(145)
    ticker.now = 61
    assert notifications.send_overload_alert(145)
    assert len(sink.sent) == 2


def test_different_titles_do_not_share_cooldown():
    notifications, sink, _ = service()
    assert notifications.send(Notification("Overload Alert: 130%", "x"))
    assert notifications.send(Notification("Daily Workload Summary", "y"))
    assert len(sink.sent) == 2


def test_disabled_service_sends_nothing():
    notifications, sink, _ = service(enabled=False)
    assert not notifications.send_overload_alert(200)
    assert sink.sent == []


def test_daily_summary_body():
    notifications, sink, _ = service()
    moment = datetime(2025, 3, 12, 15, tzinfo=timezone.utc)
    summary = DailySummary(
        date=moment, average_index=104.4, peak_index=131.2, peak_time=moment,
        total_tasks=9, completed_tasks=4, meeting_hours=3, focus_time=5,
        tier=OverloadTier.OVERLOADED, recommendations=["Take regular breaks."],
    )
    assert notifications.send_daily_summary(summary)
    sent = sink.sent[0]
    assert sent.silent
    assert sent.body.splitlines() == [
        "High average workload: 104%",
        "Peak: 131%",
        "Tasks: 4/9 completed",
        "",
        "Take regular breaks.",
    ]


def test_severity_and_quick_recommendations():
    assert severity_for(110, 100) == "moderate"
    assert severity_for(121, 100) == "high"
    assert severity_for(151, 100) == "critical"
    assert quick_recommendations(151)[0] == "Consider canceling non-essential meetings today."
    assert quick_recommendations(90)[0] == "Stay focused on current priorities."
