"""
Document storage.

Generated documents are Markdown files named ``<session>_<timestamp>.md``.
"""

import asyncio
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

from aurix.logger import get_logger

logger = get_logger(__name__)


class FileDocumentStore:
    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)

    @staticmethod
    def filename(session_id: str, at: Optional[datetime] = None) -> str:
        moment = at or datetime.now(timezone.utc)
        safe_session = re.sub(r"[^A-Za-z0-9_-]", "_", session_id)
        return f"{safe_session}_{moment.strftime('%Y%m%dT%H%M%S%f')}.md"

    def _write(self, path: Path, content: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")

    async def save(self, session_id: str, content: str, at: Optional[datetime] = None) -> Path:
        path = self.directory / self.filename(session_id, at)
        await asyncio.to_thread(self._write, path, content)
        logger.info("Document saved: %s", path)
        return path
