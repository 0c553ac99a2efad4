from typing import Any, Dict, Optional

from aurix.logger import get_logger
from aurix.services.llm import DiagramService, LLMService
from aurix.workflows.document.nodes.base import DocumentNode

logger = get_logger(__name__)


class ServiceProbeNode(DocumentNode):
    """Records which collaborators are usable for this run."""

    name = "check_services"

    def __init__(self, llm: Optional[LLMService], diagrams: Optional[DiagramService]):
        self.llm = llm
        self.diagrams = diagrams

    async def invoke(self, state: Dict[str, Any]) -> Dict[str, Any]:
        llm_available = self.llm is not None and self.llm.is_available()
        diagrams_available = self.diagrams is not None and self.diagrams.is_available()
        patch: Dict[str, Any] = {"llm_available": llm_available, "diagrams_available": diagrams_available}
        if not llm_available:
            logger.warning("LLM unavailable, document workflow runs the reduced path")
            patch["warnings"] = ["LLM unavailable: analysis and generated sections were skipped"]
        return patch
