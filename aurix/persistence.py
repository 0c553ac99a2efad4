"""
Database Persistence Layer

SQL-backed history tracker. Same contract as the in-memory store:
- appends are serialized through one asyncio.Lock
- rows older than the retention window are pruned on append
- equal timestamps are resolved by the configured TieBreak
"""

import asyncio
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from sqlmodel import func, select

from aurix.database import Database
from aurix.logger import get_logger
from aurix.models import FeedbackRecord, OverloadHistoryRecord
from aurix.overload.history import TieBreak, utc, utcnow
from aurix.overload.schemas import FeedbackEntry, HistoryEntry
from aurix.settings import settings

logger = get_logger(__name__)


def _naive(moment: datetime) -> datetime:
    # Columns are "timestamp without time zone" holding UTC
    return utc(moment).replace(tzinfo=None)


class SqlHistoryStore:
    """
    History tracker over the ``overload_history`` and ``overload_feedback`` tables.

    Args:
        database: owning Database (engine + session factory)
        tie_break: how to resolve two entries with the same timestamp
        retention_days: rows older than this are deleted on append
        clock: current-time source, injectable for tests
    """

    def __init__(
        self,
        database: Database,
        tie_break: Optional[TieBreak] = None,
        retention_days: Optional[int] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.database = database
        self.tie_break = TieBreak(tie_break or settings.HISTORY_TIE_BREAK)
        self.retention_days = settings.HISTORY_RETENTION_DAYS if retention_days is None else retention_days
        self.clock = clock or utcnow
        self._lock = asyncio.Lock()

    async def append(self, entry: HistoryEntry) -> None:
        stamp = _naive(entry.timestamp)
        async with self._lock:
            async with self.database.session() as db:
                existing = (await db.exec(
                    select(OverloadHistoryRecord).where(OverloadHistoryRecord.timestamp == stamp)
                )).all()

                if existing and self.tie_break is TieBreak.FIRST:
                    logger.debug("History entry at %s already stored, keeping the first", stamp.isoformat())
                elif existing and self.tie_break is TieBreak.LATEST:
                    for row in existing:
                        await db.delete(row)
                    db.add(OverloadHistoryRecord(timestamp=stamp, index=entry.index, breakdown=dict(entry.breakdown)))
                else:
                    sequence = max((row.sequence for row in existing), default=-1) + 1
                    db.add(OverloadHistoryRecord(
                        timestamp=stamp,
                        sequence=sequence,
                        index=entry.index,
                        breakdown=dict(entry.breakdown),
                    ))

                await db.flush()
                cutoff = _naive(self.clock()) - timedelta(days=self.retention_days)
                expired = (await db.exec(
                    select(OverloadHistoryRecord).where(OverloadHistoryRecord.timestamp <= cutoff)
                )).all()
                for row in expired:
                    await db.delete(row)
                await db.commit()

    async def query(self, last_n_days: int) -> List[HistoryEntry]:
        cutoff = _naive(self.clock()) - timedelta(days=last_n_days)
        async with self.database.session() as db:
            rows = (await db.exec(
                select(OverloadHistoryRecord)
                .where(OverloadHistoryRecord.timestamp > cutoff)
                .order_by(OverloadHistoryRecord.timestamp, OverloadHistoryRecord.sequence)
            )).all()
        return [
            HistoryEntry(timestamp=utc(row.timestamp), index=row.index, breakdown=row.breakdown or {})
            for row in rows
        ]

    async def count(self) -> int:
        async with self.database.session() as db:
            return (await db.exec(select(func.count()).select_from(OverloadHistoryRecord))).one()

    async def add_feedback(self, rating: float, index: float) -> FeedbackEntry:
        feedback = FeedbackEntry(timestamp=utc(self.clock()), rating=rating, index=index)
        async with self._lock:
            async with self.database.session() as db:
                db.add(FeedbackRecord(timestamp=_naive(feedback.timestamp), rating=rating, index=index))
                await db.commit()
        return feedback

    async def list_feedback(self) -> List[FeedbackEntry]:
        async with self.database.session() as db:
            rows = (await db.exec(select(FeedbackRecord).order_by(FeedbackRecord.timestamp))).all()
        return [FeedbackEntry(timestamp=utc(row.timestamp), rating=row.rating, index=row.index) for row in rows]
