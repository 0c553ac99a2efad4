"""
Application context.

Holds every collaborator a workflow run needs, so stages receive their
dependencies explicitly instead of importing module-level singletons.

Usage:
    async with AppContext.from_settings() as context:
        result = await run_overload_analysis(context)
"""

from typing import Optional

from aurix.database import Database
from aurix.events import EventEmitter
from aurix.logger import get_logger
from aurix.notifications import EventNotificationSink, NotificationService
from aurix.overload.calculator import OverloadIndexCalculator
from aurix.overload.history import HistoryTracker, InMemoryHistoryStore
from aurix.overload.threshold import ThresholdProfile
from aurix.persistence import SqlHistoryStore
from aurix.services.documents import FileDocumentStore
from aurix.services.llm import DiagramService, LLMService
from aurix.services.tasks import JsonFileTaskProvider, TaskDataProvider
from aurix.settings import Settings, settings

logger = get_logger(__name__)


class AppContext:
    def __init__(
        self,
        history: HistoryTracker,
        task_provider: TaskDataProvider,
        emitter: Optional[EventEmitter] = None,
        notifications: Optional[NotificationService] = None,
        llm: Optional[LLMService] = None,
        diagrams: Optional[DiagramService] = None,
        documents: Optional[FileDocumentStore] = None,
        profile: Optional[ThresholdProfile] = None,
        calculator: Optional[OverloadIndexCalculator] = None,
        database: Optional[Database] = None,
        config: Settings = settings,
    ):
        self.config = config
        self.history = history
        self.task_provider = task_provider
        self.emitter = emitter or EventEmitter()
        self.notifications = notifications or NotificationService(EventNotificationSink(self.emitter))
        self.llm = llm
        self.diagrams = diagrams
        self.documents = documents
        self.profile = profile or ThresholdProfile(base_value=config.OVERLOAD_THRESHOLD)
        self.calculator = calculator or OverloadIndexCalculator(
            profile=self.profile if config.APPLY_THRESHOLD_ADJUSTMENTS else None
        )
        self.database = database
        self.started = False

    @classmethod
    def from_settings(cls, config: Settings = settings) -> "AppContext":
        config.validate()

        database = None
        if config.DATABASE_URL:
            database = Database(config.DATABASE_URL, echo=config.DEBUG)
            history = SqlHistoryStore(database)
        else:
            logger.warning("DATABASE_URL not set - overload history is kept in memory (lost on restart)")
            history = InMemoryHistoryStore()

        llm = LLMService()
        return cls(
            history=history,
            task_provider=JsonFileTaskProvider(config.TASK_CACHE_PATH),
            llm=llm,
            diagrams=DiagramService(llm),
            documents=FileDocumentStore(config.DOCUMENTS_DIR),
            database=database,
            config=config,
        )

    async def start(self) -> "AppContext":
        if self.started:
            return self
        self.emitter.initialize()
        if self.database is not None:
            logger.info("Initializing database...")
            await self.database.create_tables()
        await self.restore_profile()
        self.started = True
        return self

    async def restore_profile(self) -> None:
        """Replay stored feedback so the learned threshold survives a restart."""
        feedback = await self.history.list_feedback()
        if not feedback:
            return
        self.profile.learned = 1.0
        for entry in feedback:
            self.profile.update_from_feedback(entry.rating, entry.index)
        self.notifications.threshold = self.profile.alert_threshold
        logger.info("Learned threshold factor %.3f restored from %d feedback entries",
                    self.profile.learned, len(feedback))

    async def close(self) -> None:
        self.emitter.close()
        if self.database is not None:
            await self.database.close()
        self.started = False
        logger.info("Application context closed")

    async def __aenter__(self) -> "AppContext":
        return await self.start()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
