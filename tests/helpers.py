from datetime import datetime, timedelta, timezone

from langchain_core.language_models.fake_chat_models import FakeListChatModel

from aurix.services.llm import LLMService

NOW = datetime(2025, 3, 12, 15, 0, tzinfo=timezone.utc)  # a Wednesday afternoon


class FrozenClock:
    """Settable clock for history retention and window tests."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta) -> None:
        self.now = self.now + timedelta(**delta)


def task(name, start=None, end=None, due=None, project=None, description=None, duration=None, status=None):
    record = {"id": name, "name": name}
    if start is not None:
        record["scheduledStart"] = start.isoformat()
    if end is not None:
        record["scheduledEnd"] = end.isoformat()
    if due is not None:
        record["dueDate"] = due.isoformat()
    if project is not None:
        record["project"] = {"id": project, "name": project.title()}
    if description is not None:
        record["description"] = description
    if duration is not None:
        record["duration"] = duration
    if status is not None:
        record["status"] = {"name": status}
    return record


def fake_llm(*responses: str) -> LLMService:
    return LLMService(model=FakeListChatModel(responses=list(responses)))
