import asyncio
import os
import time
from datetime import datetime, timezone

import pytest

from aurix.events import EventEmitter, EventType, UIEvent
from aurix.handlers import handle_overload_result, index_payload, record_feedback
from aurix.overload import OverloadIndexCalculator, ThresholdProfile
from aurix.workflows.overload import run_overload_analysis
from tests.helpers import NOW

MONDAY_MORNING = datetime(2025, 3, 10, 9, 0, tzinfo=timezone.utc)

SATURATED = {
    "taskCount": 100,
    "meetingHours": 8,
    "contextSwitches": 10,
    "recurringIntensity": 1.0,
    "taskComplexity": 1.0,
    "timeFragmentation": 1.0,
}

GOLDEN = {
    "taskCount": 10,
    "meetingHours": 6,
    "contextSwitches": 15,
    "recurringIntensity": 0.3,
    "taskComplexity": 0.6,
    "timeFragmentation": 0.4,
}


def test_event_serialization():
    assert UIEvent(EventType.INDEX_UPDATED, {"index": 1}).to_dict() == {
        "type": "index-updated",
        "payload": {"index": 1},
    }


def test_publish_before_initialize_is_a_no_op():
    emitter = EventEmitter()
    emitter.publish(EventType.INDEX_UPDATED, {})
    assert not emitter.ready
    assert emitter.drain() == []


def test_published_events_are_queued_in_order():
    async def scenario():
        emitter = EventEmitter()
        emitter.initialize()
        emitter.publish("index-updated", {"index": 1})
        emitter.publish_notification("Title", "Body")
        first = await emitter.get()
        second = await emitter.get()
        emitter.close()
        emitter.publish(EventType.INDEX_UPDATED, {"index": 2})
        return first, second, emitter.ready

    first, second, ready = asyncio.run(scenario())
    assert first.payload == {"index": 1}
    assert second.to_dict() == {
        "type": "notification",
        "payload": {"title": "Title", "body": "Body", "urgency": "normal"},
    }
    assert not ready


def test_full_queue_drops_the_oldest_event():
    async def scenario():
        emitter = EventEmitter(maxsize=2)
        emitter.initialize()
        for n in range(3):
            emitter.publish_index({"index": n})
        await asyncio.sleep(0)
        return emitter.drain()

    assert [event.payload["index"] for event in asyncio.run(scenario())] == [1, 2]


def test_publishing_from_a_worker_thread():
    async def scenario():
        emitter = EventEmitter()
        emitter.initialize()
        await asyncio.to_thread(emitter.publish_index, {"index": 3})
        return await asyncio.wait_for(emitter.get(), timeout=1.0)

    assert asyncio.run(scenario()).payload == {"index": 3}


def test_unknown_event_name_is_rejected():
    async def scenario():
        emitter = EventEmitter()
        emitter.initialize()
        emitter.publish("bogus", {})

    with pytest.raises(ValueError):
        asyncio.run(scenario())


def overload_run(context):
    async def scenario():
        await context.start()
        result = await run_overload_analysis(context, metrics=GOLDEN, as_of=NOW)
        payload = await handle_overload_result(context, result)
        await asyncio.sleep(0)
        return result, payload, context.emitter.drain()

    return asyncio.run(scenario())


def test_overload_result_is_published(make_context):
    result, payload, events = overload_run(make_context())

    assert payload == index_payload(result["overload_index"])
    assert payload["index"] == pytest.approx(59.75)
    assert payload["timestamp"] == int(NOW.timestamp() * 1000)
    assert payload["breakdown"]["contextSwitching"] == pytest.approx(100)
    assert [event.type for event in events] == [EventType.INDEX_UPDATED, EventType.DAILY_SUMMARY]
    assert events[1].payload["tier"] == "nominal"


def test_overload_alert_is_mirrored_to_the_ui(make_context):
    context = make_context()
    context.calculator = OverloadIndexCalculator(profile=ThresholdProfile(base_value=50))
    _, payload, events = overload_run(context)

    assert payload["index"] == pytest.approx(119.5)
    assert [event.type for event in events] == [
        EventType.INDEX_UPDATED, EventType.DAILY_SUMMARY, EventType.NOTIFICATION,
    ]
    assert events[2].payload["title"] == "Overload Alert: 120%"


def test_no_index_means_nothing_published(make_context):
    context = make_context()

    async def scenario():
        await context.start()
        result = await run_overload_analysis(context, as_of=NOW)
        payload = await handle_overload_result(context, result)
        await asyncio.sleep(0)
        return payload, context.emitter.drain()

    assert asyncio.run(scenario()) == (None, [])


def test_feedback_retunes_alert_threshold(make_context, history):
    context = make_context()

    async def scenario():
        feedback = await record_feedback(context, 9, 60)
        return feedback, await history.list_feedback()

    feedback, stored = asyncio.run(scenario())
    assert stored == [feedback]
    assert context.profile.learned == pytest.approx(0.9)
    assert context.notifications.threshold == pytest.approx(90)


def test_default_context_alerts_on_a_heavy_monday_morning(make_context):
    context = make_context()

    async def scenario():
        await context.start()
        result = await run_overload_analysis(context, metrics=SATURATED, as_of=MONDAY_MORNING)
        payload = await handle_overload_result(context, result)
        await asyncio.sleep(0)
        return result, payload, context.emitter.drain()

    result, payload, events = asyncio.run(scenario())
    index = result["overload_index"]

    assert context.calculator.profile is context.profile
    assert index.value == pytest.approx(100)
    assert index.adjusted_value == pytest.approx(100 / 0.81)
    assert index.recommendation is not None
    assert result["summary"].tier.value == "critical"
    assert payload["index"] == pytest.approx(100 / 0.81)
    assert events[-1].type is EventType.NOTIFICATION
    assert events[-1].payload["title"] == "Overload Alert: 123%"


def test_learned_threshold_is_restored_on_start(make_context, history):
    async def scenario():
        await history.add_feedback(9, 60)
        context = make_context()
        await context.start()
        return context

    context = asyncio.run(scenario())
    assert context.profile.learned == pytest.approx(0.9)
    assert context.notifications.threshold == pytest.approx(90)


def test_start_without_feedback_keeps_the_profile(make_context):
    context = make_context()
    asyncio.run(context.start())

    assert context.profile.learned == 1.0
    assert context.notifications.threshold == 100


@pytest.fixture
def new_york_time():
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is not available on this platform")
    previous = os.environ.get("TZ")
    os.environ["TZ"] = "America/New_York"
    time.tzset()
    yield
    if previous is None:
        del os.environ["TZ"]
    else:
        os.environ["TZ"] = previous
    time.tzset()


def test_naive_run_time_is_utc_in_payload_and_history(new_york_time, make_context, history):
    context = make_context()

    async def scenario():
        result = await run_overload_analysis(context, metrics=GOLDEN, as_of=NOW.replace(tzinfo=None))
        payload = await handle_overload_result(context, result)
        return payload, await history.query(1)

    payload, stored = asyncio.run(scenario())
    assert payload["timestamp"] == int(NOW.timestamp() * 1000)
    assert stored[0].timestamp == NOW
    assert payload["timestamp"] == int(stored[0].timestamp.timestamp() * 1000)
