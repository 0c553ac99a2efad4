import asyncio
from datetime import timedelta

import pytest

from aurix.database import Database, get_async_database_url
from aurix.overload.history import HistoryTracker, TieBreak
from aurix.overload.schemas import HistoryEntry
from aurix.persistence import SqlHistoryStore
from tests.helpers import NOW, FrozenClock


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite:///{tmp_path / 'aurix.db'}"


def run_with_store(url, scenario, tie_break=TieBreak.LATEST, clock=None, retention_days=30):
    """Run ``scenario(store)`` against a fresh SQLite database."""

    async def main():
        database = Database(url)
        await database.create_tables()
        store = SqlHistoryStore(
            database, tie_break=tie_break, retention_days=retention_days, clock=clock or FrozenClock(),
        )
        try:
            return await scenario(store)
        finally:
            await database.close()

    return asyncio.run(main())


def entry(offset_hours, index, breakdown=None):
    return HistoryEntry(timestamp=NOW + timedelta(hours=offset_hours), index=index, breakdown=breakdown or {})


@pytest.mark.parametrize(
    "url, expected",
    [
        ("postgresql://u:p@localhost/aurix", "postgresql+asyncpg://u:p@localhost/aurix"),
        ("postgres://u:p@localhost/aurix", "postgresql+asyncpg://u:p@localhost/aurix"),
        ("sqlite:///aurix.db", "sqlite+aiosqlite:///aurix.db"),
        ("postgresql+asyncpg://localhost/aurix", "postgresql+asyncpg://localhost/aurix"),
        ("", ""),
    ],
)
def test_async_database_url(url, expected):
    assert get_async_database_url(url) == expected


def test_database_requires_url():
    with pytest.raises(RuntimeError):
        Database("")


def test_sql_store_satisfies_tracker_protocol(database_url):
    assert isinstance(SqlHistoryStore(Database(database_url)), HistoryTracker)


def test_round_trip_keeps_order_and_breakdown(database_url):
    async def scenario(store):
        await store.append(entry(-1, 70.0, {"task_load": 50.0}))
        await store.append(entry(-3, 30.0))
        return await store.query(7)

    stored = run_with_store(database_url, scenario)
    assert [e.index for e in stored] == [30.0, 70.0]
    assert stored[1].breakdown == {"task_load": 50.0}
    assert stored[1].timestamp == NOW - timedelta(hours=1)


def test_empty_history(database_url):
    async def scenario(store):
        return await store.query(7)

    assert run_with_store(database_url, scenario) == []


@pytest.mark.parametrize(
    "tie_break, expected",
    [
        (TieBreak.LATEST, [2.0]),
        (TieBreak.FIRST, [1.0]),
        (TieBreak.KEEP_BOTH, [1.0, 2.0]),
    ],
)
def test_equal_timestamps_follow_tie_break(database_url, tie_break, expected):
    async def scenario(store):
        await store.append(entry(-1, 1.0))
        await store.append(entry(-1, 2.0))
        return await store.query(7)

    assert [e.index for e in run_with_store(database_url, scenario, tie_break)] == expected


def test_retention_and_window(database_url):
    clock = FrozenClock()

    async def scenario(store):
        await store.append(entry(-31 * 24, 1.0))
        await store.append(entry(-10 * 24, 2.0))
        await store.append(entry(-1, 3.0))
        assert await store.count() == 2
        return await store.query(7)

    assert [e.index for e in run_with_store(database_url, scenario, clock=clock)] == [3.0]


def test_zero_retention_is_honoured(database_url):
    async def scenario(store):
        await store.append(entry(-1, 1.0))
        await store.append(entry(1, 2.0))
        return store.retention_days, await store.count()

    assert run_with_store(database_url, scenario, retention_days=0) == (0, 1)


def test_feedback(database_url):
    async def scenario(store):
        await store.add_feedback(7.5, 110.0)
        return await store.list_feedback()

    feedback = run_with_store(database_url, scenario)
    assert len(feedback) == 1
    assert feedback[0].rating == 7.5
    assert feedback[0].timestamp == NOW
