import time
from typing import Any, Dict

from aurix.logger import get_logger
from aurix.workflows.document.schemas import StageTiming

logger = get_logger(__name__)


class DocumentNode:
    """
    Base for document workflow nodes.

    Subclasses implement ``invoke``; ``run`` is the stage function handed to
    the graph and records how long the node took.
    """

    name: str = "node"

    async def invoke(self, state: Dict[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError

    async def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        logger.info("%s node started (session %s)", self.name, state.get("session_id"))
        started = time.perf_counter()
        patch = dict(await self.invoke(state) or {})
        elapsed = (time.perf_counter() - started) * 1000
        patch["stage_timings"] = [StageTiming(stage=self.name, milliseconds=elapsed)]
        logger.info("%s node completed in %.1f ms", self.name, elapsed)
        return patch
