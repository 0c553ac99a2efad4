import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from aurix.logger import get_logger
from aurix.services.llm import DiagramService
from aurix.workflows.document.nodes.base import DocumentNode
from aurix.workflows.document.nodes.transcription import SENTENCE
from aurix.workflows.document.prompts import diagram_prompt
from aurix.workflows.document.schemas import ContentAnalysis, DiagramSpec, DocumentConfig

logger = get_logger(__name__)

MAX_DIAGRAMS = 3

MERMAID_STARTS = (
    "flowchart", "graph", "sequenceDiagram", "stateDiagram",
    "classDiagram", "erDiagram", "mindmap", "gitGraph",
)

TITLES = {
    "flowchart": "Process Flow",
    "sequence": "Interaction Sequence",
    "state": "State Transitions",
    "mindmap": "Concept Map",
    "class": "Class Structure",
    "er": "Entity Relationships",
}

FLOW_WORDS = ("step", "process", "flow", "then", "after", "before", "workflow", "procedure")
SEQUENCE_WORDS = ("request", "response", "send", "receive", "interact", "communication")
STATE_WORDS = ("state", "status", "transition", "change", "mode", "condition")


@dataclass
class DiagramOpportunity:
    type: str
    context: str
    keywords: List[str] = field(default_factory=list)


def _context(text: str, pattern: str) -> str:
    sentences = SENTENCE.findall(text)
    return " ".join([s for s in sentences if re.search(pattern, s, re.IGNORECASE)][:3])


def detect_opportunities(transcript: str, analysis: Optional[ContentAnalysis]) -> List[DiagramOpportunity]:
    lower = transcript.lower()
    found = []
    if any(word in lower for word in FLOW_WORDS):
        found.append(DiagramOpportunity(
            "flowchart", _context(transcript, r"step|process|flow|then"),
            ["process", "flow", "steps", "procedure", "workflow"],
        ))
    if any(word in lower for word in SEQUENCE_WORDS):
        found.append(DiagramOpportunity(
            "sequence", _context(transcript, r"request|response|send|receive"),
            ["interaction", "communication", "sequence", "order"],
        ))
    if any(word in lower for word in STATE_WORDS):
        found.append(DiagramOpportunity(
            "state", _context(transcript, r"state|status|transition"),
            ["state", "transition", "status", "condition"],
        ))
    if analysis is not None and len(analysis.topics) > 3:
        found.append(DiagramOpportunity("mindmap", f"Topics: {', '.join(analysis.topics)}", list(analysis.topics)))
    return found[:MAX_DIAGRAMS]


def extract_mermaid(response: str) -> Optional[str]:
    block = re.search(r"```(?:mermaid)?\s*([\s\S]*?)```", response)
    if block:
        return block.group(1).strip()

    lines = response.split("\n")
    start = re.compile(r"^(flowchart|graph|sequenceDiagram|stateDiagram|classDiagram|erDiagram|mindmap)")
    for position, line in enumerate(lines):
        if start.match(line):
            collected = []
            for candidate in lines[position:]:
                candidate = candidate.strip()
                if candidate and not candidate.startswith("##") and "Generate" not in candidate:
                    collected.append(candidate)
                elif collected:
                    break
            return "\n".join(collected)
    return None


def is_valid_mermaid(code: str) -> bool:
    return code.strip().startswith(MERMAID_STARTS)


def fallback_diagram(opportunity: DiagramOpportunity) -> DiagramSpec:
    root = opportunity.keywords[0] if opportunity.keywords else "Topic"
    branches = "\n".join(f"    {keyword}" for keyword in opportunity.keywords[1:4])
    code = {
        "flowchart": "flowchart TD\n    A[Start] --> B[Process]\n    B --> C{Complete?}\n"
                     "    C -->|Yes| D[End]\n    C -->|No| B",
        "sequence": "sequenceDiagram\n    participant User\n    participant System\n"
                    "    User->>System: Action\n    System-->>User: Response",
        "state": "stateDiagram-v2\n    [*] --> Active\n    Active --> Inactive\n"
                 "    Inactive --> Active\n    Inactive --> [*]",
        "mindmap": f"mindmap\n  root(({root}))\n{branches}",
    }[opportunity.type]
    return DiagramSpec(
        type=opportunity.type,
        title=TITLES[opportunity.type],
        description=f"Basic {opportunity.type} diagram",
        mermaid_code=code,
    )


class DiagramGenerationNode(DocumentNode):
    """Detects diagram opportunities and generates Mermaid code for them."""

    name = "diagram_generation"

    def __init__(self, diagrams: Optional[DiagramService]):
        self.diagrams = diagrams

    async def invoke(self, state: Dict[str, Any]) -> Dict[str, Any]:
        config: DocumentConfig = state.get("config") or DocumentConfig()
        if not config.generate_diagrams:
            logger.info("Diagram generation disabled")
            return {}
        if self.diagrams is None or not state.get("diagrams_available"):
            return {"warnings": ["Diagram generation skipped: diagram service unavailable"]}

        specs = []
        for opportunity in detect_opportunities(state.get("transcript") or "", state.get("analysis")):
            spec = await self._generate(opportunity)
            if spec is not None and is_valid_mermaid(spec.mermaid_code):
                specs.append(spec)
        logger.info("Generated %d diagrams", len(specs))
        return {"diagrams": specs}

    async def _generate(self, opportunity: DiagramOpportunity) -> Optional[DiagramSpec]:
        try:
            response = await self.diagrams.generate(
                diagram_prompt(opportunity.type, opportunity.context, opportunity.keywords)
            )
        except Exception as exc:
            logger.warning("Failed to generate %s diagram: %s", opportunity.type, exc)
            return fallback_diagram(opportunity)

        code = extract_mermaid(response)
        if not code:
            return None
        return DiagramSpec(
            type=opportunity.type,
            title=TITLES[opportunity.type],
            description=f"{opportunity.type} diagram illustrating {', '.join(opportunity.keywords)}",
            mermaid_code=code,
        )
