"""
Overload history tracking.

Entries are kept ascending by timestamp. Appends go through a single writer
(an asyncio.Lock), entries older than the retention window are pruned on
every append, and entries with an identical timestamp are resolved by the
configured TieBreak.
"""

import asyncio
import bisect
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, List, Optional, Protocol, runtime_checkable

from aurix.logger import get_logger
from aurix.overload.schemas import FeedbackEntry, HistoryEntry
from aurix.settings import settings

logger = get_logger(__name__)


class TieBreak(str, Enum):
    LATEST = "latest"        # replace the stored entry
    FIRST = "first"          # keep the stored entry, drop the new one
    KEEP_BOTH = "keep_both"  # store both, newest after existing equals


def utc(moment: datetime) -> datetime:
    """Treat naive timestamps as UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@runtime_checkable
class HistoryTracker(Protocol):
    async def append(self, entry: HistoryEntry) -> None: ...

    async def query(self, last_n_days: int) -> List[HistoryEntry]: ...

    async def add_feedback(self, rating: float, index: float) -> FeedbackEntry: ...

    async def list_feedback(self) -> List[FeedbackEntry]: ...


class InMemoryHistoryStore:
    """
    Process-local history tracker.

    Args:
        tie_break: how to resolve two entries with the same timestamp
        retention_days: entries older than this are pruned on append
        clock: current-time source, injectable for tests
    """

    def __init__(
        self,
        tie_break: Optional[TieBreak] = None,
        retention_days: Optional[int] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.tie_break = TieBreak(tie_break or settings.HISTORY_TIE_BREAK)
        self.retention_days = settings.HISTORY_RETENTION_DAYS if retention_days is None else retention_days
        self.clock = clock or utcnow
        self._entries: List[HistoryEntry] = []
        self._feedback: List[FeedbackEntry] = []
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    async def append(self, entry: HistoryEntry) -> None:
        entry = entry.model_copy(update={"timestamp": utc(entry.timestamp)})
        async with self._lock:
            insert_sorted(self._entries, entry, self.tie_break)
            cutoff = utc(self.clock()) - timedelta(days=self.retention_days)
            self._entries = [e for e in self._entries if e.timestamp > cutoff]

    async def query(self, last_n_days: int) -> List[HistoryEntry]:
        cutoff = utc(self.clock()) - timedelta(days=last_n_days)
        return [entry for entry in self._entries if entry.timestamp > cutoff]

    async def add_feedback(self, rating: float, index: float) -> FeedbackEntry:
        feedback = FeedbackEntry(timestamp=utc(self.clock()), rating=rating, index=index)
        async with self._lock:
            self._feedback.append(feedback)
        return feedback

    async def list_feedback(self) -> List[FeedbackEntry]:
        return list(self._feedback)


def insert_sorted(entries: List[HistoryEntry], entry: HistoryEntry, tie_break: TieBreak) -> bool:
    """
    Insert ``entry`` into the ascending list in place.

    Returns False when the entry was dropped by the FIRST tie-break.
    """
    keys = [e.timestamp for e in entries]
    left = bisect.bisect_left(keys, entry.timestamp)
    right = bisect.bisect_right(keys, entry.timestamp)

    if left == right or tie_break is TieBreak.KEEP_BOTH:
        entries.insert(right, entry)
        return True
    if tie_break is TieBreak.FIRST:
        logger.debug("History entry at %s already stored, keeping the first", entry.timestamp.isoformat())
        return False
    entries[left:right] = [entry]
    return True
