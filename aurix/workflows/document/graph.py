"""
Document graph.

check_services → transcription ─(full)───→ analysis ─┬→ document_generation ─┬→ assembly → cognitive_load → END
                               │                     └→ diagram_generation ──┘
                               └(reduced)→ document_generation

Document and diagram generation run as one fan-out step; assembly runs
once after both finish.
"""

from typing import Any, Mapping, Optional, Union

from aurix.engine import END, ConditionalEdge, Edge, Executor, FinalState, GraphDefinition, Stage, define_graph
from aurix.logger import get_logger
from aurix.services.llm import DiagramService, LLMService
from aurix.utils.id_generator import generate_document_session_id
from aurix.utils.validation import validate_record
from aurix.workflows.document.nodes import (
    AnalysisNode,
    AssemblyNode,
    CognitiveLoadNode,
    DiagramGenerationNode,
    DocumentGenerationNode,
    ServiceProbeNode,
    TranscriptionNode,
)
from aurix.workflows.document.schemas import DocumentConfig
from aurix.workflows.document.state import DOCUMENT_SCHEMA

logger = get_logger(__name__)


def route_after_transcription(state: Mapping[str, Any]) -> str:
    return "full" if state.get("llm_available") else "reduced"


def build_document_graph(
    llm: Optional[LLMService],
    diagrams: Optional[DiagramService],
    max_iterations: Optional[int] = None,
) -> GraphDefinition:
    probe = ServiceProbeNode(llm, diagrams)
    transcription = TranscriptionNode()
    analysis = AnalysisNode(llm)
    generation = DocumentGenerationNode(llm)
    diagramming = DiagramGenerationNode(diagrams)
    assembly = AssemblyNode()
    cognitive = CognitiveLoadNode()

    return define_graph(
        schema=DOCUMENT_SCHEMA,
        stages=[
            Stage(probe.name, probe.run, writes=("llm_available", "diagrams_available")),
            Stage(transcription.name, transcription.run, reads=("transcript",), writes=("transcript", "segments")),
            Stage(analysis.name, analysis.run, reads=("transcript", "config"), writes=("analysis",)),
            # Fan-out pair: patches merge in this order
            Stage(generation.name, generation.run, reads=("analysis", "transcript", "config"),
                  writes=("document_sections",), precedence=0),
            Stage(diagramming.name, diagramming.run, reads=("analysis", "transcript", "config"),
                  writes=("diagrams",), precedence=1),
            Stage(assembly.name, assembly.run, reads=("document_sections", "diagrams", "analysis"),
                  writes=("final_document",)),
            Stage(cognitive.name, cognitive.run, reads=("final_document", "analysis"),
                  writes=("cognitive_load_index", "cognitive_metrics")),
        ],
        edges=[
            Edge(probe.name, transcription.name),
            ConditionalEdge(
                transcription.name,
                route_after_transcription,
                {"full": analysis.name, "reduced": generation.name},
            ),
            Edge(analysis.name, generation.name),
            Edge(analysis.name, diagramming.name),
            Edge(generation.name, assembly.name),
            Edge(diagramming.name, assembly.name),
            Edge(assembly.name, cognitive.name),
            Edge(cognitive.name, END),
        ],
        entry=probe.name,
        name="document",
        max_iterations=max_iterations,
    )


async def run_document_workflow(
    context,
    transcript: str,
    config: Union[DocumentConfig, Mapping[str, Any], None] = None,
    session_id: Optional[str] = None,
) -> FinalState:
    """
    Turn a transcript into a Markdown document.

    Nothing is written to disk here; ``aurix.handlers`` saves the result.
    """
    config = validate_record(DocumentConfig, config or {}, "document config")
    session_id = session_id or generate_document_session_id()
    logger.info("Starting document workflow %s", session_id)

    graph = build_document_graph(context.llm, context.diagrams)
    result = await Executor(context.config.MAX_ITERATIONS).run(graph, {
        "session_id": session_id,
        "transcript": transcript,
        "config": config,
    })

    logger.info(
        "Document workflow %s completed: document=%s θ=%s errors=%d warnings=%d",
        session_id, bool(result["final_document"]), result["cognitive_load_index"],
        len(result.errors), len(result["warnings"]),
    )
    return result
