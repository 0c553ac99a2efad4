"""
Task-data providers.

A provider returns the cached task snapshot as an untyped mapping. A missing
or unreadable cache is reported as an empty mapping, never raised: the
overload workflow decides whether that is enough data.
"""

import asyncio
import json
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Protocol, Union

from aurix.logger import get_logger

logger = get_logger(__name__)


class TaskDataProvider(Protocol):
    async def get_cached_data(self) -> Dict[str, Any]: ...


class JsonFileTaskProvider:
    """Reads the task cache written by the task-sync client."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            logger.info("No task cache at %s", self.path)
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Unreadable task cache %s: %s", self.path, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning("Task cache %s does not hold an object", self.path)
            return {}
        return data

    async def get_cached_data(self) -> Dict[str, Any]:
        return await asyncio.to_thread(self._read)


class StaticTaskProvider:
    """In-process provider, used when tasks arrive with the request."""

    def __init__(self, data: Optional[Mapping[str, Any]] = None):
        self.data = dict(data or {})

    async def get_cached_data(self) -> Dict[str, Any]:
        return dict(self.data)
