"""
Application Settings

This module provides a centralized settings class that loads environment
variables from the .env file and makes them available throughout the application.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load the .env file from the project root
# The project root is one level up from the aurix package
PROJECT_ROOT = Path(__file__).parent.parent
load_dotenv(PROJECT_ROOT / ".env")


def _bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


class Settings:
    """
    Centralized settings class that provides access to all environment variables.
    Usage:
        from aurix.settings import settings
        limit = settings.MAX_ITERATIONS
    """

    # LLM (document pipeline)
    GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
    LLM_MODEL: str = os.getenv("LLM_MODEL", "gemini-2.5-flash")
    LLM_TEMPERATURE: float = float(os.getenv("LLM_TEMPERATURE", "0.5"))

    # Storage
    DATABASE_URL: str = os.getenv("DATABASE_URL", "")
    TASK_CACHE_PATH: str = os.getenv("TASK_CACHE_PATH", str(PROJECT_ROOT / "data" / "tasks.json"))
    DOCUMENTS_DIR: str = os.getenv("DOCUMENTS_DIR", str(PROJECT_ROOT / "data" / "documents"))

    # Executor
    MAX_ITERATIONS: int = int(os.getenv("MAX_ITERATIONS", "25"))

    # Overload history
    HISTORY_TIE_BREAK: str = os.getenv("HISTORY_TIE_BREAK", "latest")  # latest, first, keep_both
    HISTORY_RETENTION_DAYS: int = int(os.getenv("HISTORY_RETENTION_DAYS", "30"))
    HISTORY_WINDOW_DAYS: int = int(os.getenv("HISTORY_WINDOW_DAYS", "7"))

    # Overload alerts
    OVERLOAD_THRESHOLD: float = float(os.getenv("OVERLOAD_THRESHOLD", "100"))
    NOTIFICATIONS_ENABLED: bool = _bool("NOTIFICATIONS_ENABLED", "true")
    NOTIFICATION_COOLDOWN_SECONDS: int = int(os.getenv("NOTIFICATION_COOLDOWN_SECONDS", "3600"))
    APPLY_THRESHOLD_ADJUSTMENTS: bool = _bool("APPLY_THRESHOLD_ADJUSTMENTS", "true")

    # UI events
    EVENT_QUEUE_SIZE: int = int(os.getenv("EVENT_QUEUE_SIZE", "100"))  # 0 = unbounded

    # Logging / debug
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    DEBUG: bool = _bool("DEBUG", "false")

    @classmethod
    def validate(cls) -> None:
        """Validate configuration values that have a closed set of options."""
        errors = []

        if cls.HISTORY_TIE_BREAK not in ("latest", "first", "keep_both"):
            errors.append(f"HISTORY_TIE_BREAK must be latest, first or keep_both (got {cls.HISTORY_TIE_BREAK!r})")
        if cls.MAX_ITERATIONS < 1:
            errors.append("MAX_ITERATIONS must be at least 1")
        if cls.HISTORY_WINDOW_DAYS < 1:
            errors.append("HISTORY_WINDOW_DAYS must be at least 1")
        if cls.EVENT_QUEUE_SIZE < 0:
            errors.append("EVENT_QUEUE_SIZE must not be negative")

        if errors:
            raise ValueError(f"Configuration errors: {', '.join(errors)}")


# Create a singleton instance for easy import
settings = Settings()
