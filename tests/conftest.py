import pytest

from aurix.context import AppContext
from aurix.events import EventEmitter
from aurix.notifications import EventNotificationSink, NotificationService
from aurix.overload.history import InMemoryHistoryStore, TieBreak
from aurix.services.documents import FileDocumentStore
from aurix.services.llm import DiagramService
from aurix.services.tasks import StaticTaskProvider
from tests.helpers import FrozenClock


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def history(clock):
    return InMemoryHistoryStore(tie_break=TieBreak.LATEST, retention_days=30, clock=clock)


@pytest.fixture
def make_context(tmp_path, history):
    """Build an AppContext wired to in-process collaborators."""

    def factory(task_data=None, llm=None, diagrams=None, notifications=None):
        emitter = EventEmitter()
        notifications = notifications or NotificationService(
            EventNotificationSink(emitter), threshold=100, cooldown_seconds=3600, enabled=True,
        )
        return AppContext(
            history=history,
            task_provider=StaticTaskProvider(task_data),
            emitter=emitter,
            notifications=notifications,
            llm=llm,
            diagrams=diagrams if diagrams is not None else DiagramService(llm, enabled=llm is not None),
            documents=FileDocumentStore(tmp_path / "documents"),
        )

    return factory
