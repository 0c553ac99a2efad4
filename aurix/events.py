"""
Event Emitter for pushing workflow results to the UI.
Uses asyncio Queue to decouple workflow execution from whatever consumes the events.
"""
import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from aurix.logger import get_logger
from aurix.settings import settings

logger = get_logger(__name__)


class EventType(Enum):
    INDEX_UPDATED = "index-updated"          # New overload index computed
    DAILY_SUMMARY = "daily-summary"          # Summary produced by the overload workflow
    DOCUMENT_SAVED = "document-saved"        # Document workflow output written to disk
    NOTIFICATION = "notification"            # Mirrors a desktop notification


@dataclass
class UIEvent:
    """Represents a single event for the UI."""
    type: EventType
    payload: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {"type": self.type.value, "payload": self.payload}


class EventEmitter:
    """
    Thread-safe event emitter using asyncio Queue.
    Producers publish synchronously from any thread; consumers read asynchronously.
    When the queue is full the oldest event is dropped.
    """

    def __init__(self, maxsize: Optional[int] = None):
        self._maxsize = settings.EVENT_QUEUE_SIZE if maxsize is None else maxsize
        self._queue: Optional[asyncio.Queue] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._closed: bool = False  # Flag to stop accepting events

    @property
    def ready(self) -> bool:
        return self._queue is not None and not self._closed

    def initialize(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        """Initialize with the event loop (call from async context)."""
        self._loop = loop or asyncio.get_running_loop()
        self._queue = asyncio.Queue(self._maxsize)
        self._closed = False

    def close(self):
        """Mark emitter as closed. Future publish() calls will be no-ops."""
        self._closed = True
        self._queue = None
        self._loop = None

    def publish(self, event_name: Union[str, EventType], payload: Dict[str, Any]):
        """Publish event if emitter is available and not closed."""
        if self._closed or self._queue is None or self._loop is None:
            return

        event = UIEvent(type=EventType(event_name), payload=payload)
        logger.debug("Publishing %s", event.type.value)
        try:
            self._loop.call_soon_threadsafe(self._put, event)
        except RuntimeError:
            # Loop may be closed
            logger.debug("Event loop closed, dropping %s", event.type.value)

    def _put(self, event: UIEvent) -> None:
        if self._queue is None:
            return
        if self._queue.full():
            dropped = self._queue.get_nowait()
            logger.warning("Event queue full, dropping %s", dropped.type.value)
        self._queue.put_nowait(event)

    async def get(self) -> UIEvent:
        """Get next event from queue (async)."""
        if self._queue is None:
            raise RuntimeError("EventEmitter not initialized")
        return await self._queue.get()

    def drain(self) -> List[UIEvent]:
        """Return every event queued so far without waiting."""
        events = []
        if self._queue is None:
            return events
        while not self._queue.empty():
            events.append(self._queue.get_nowait())
        return events

    def publish_index(self, index_payload: Dict[str, Any]):
        """Convenience method for index-updated events."""
        self.publish(EventType.INDEX_UPDATED, index_payload)

    def publish_notification(self, title: str, body: str, urgency: str = "normal"):
        """Convenience method for notification mirror events."""
        self.publish(EventType.NOTIFICATION, {"title": title, "body": body, "urgency": urgency})
