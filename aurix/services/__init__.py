from aurix.services.documents import FileDocumentStore
from aurix.services.llm import DiagramService, LLMService
from aurix.services.tasks import JsonFileTaskProvider, StaticTaskProvider, TaskDataProvider

__all__ = [
    "DiagramService",
    "FileDocumentStore",
    "JsonFileTaskProvider",
    "LLMService",
    "StaticTaskProvider",
    "TaskDataProvider",
]
