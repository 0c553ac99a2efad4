from aurix.workflows.document.nodes.analysis import AnalysisNode
from aurix.workflows.document.nodes.assembly import AssemblyNode
from aurix.workflows.document.nodes.base import DocumentNode
from aurix.workflows.document.nodes.cognitive_load import CognitiveLoadNode
from aurix.workflows.document.nodes.diagram_generation import DiagramGenerationNode
from aurix.workflows.document.nodes.document_generation import DocumentGenerationNode
from aurix.workflows.document.nodes.probe import ServiceProbeNode
from aurix.workflows.document.nodes.transcription import TranscriptionNode

__all__ = [
    "AnalysisNode",
    "AssemblyNode",
    "CognitiveLoadNode",
    "DiagramGenerationNode",
    "DocumentGenerationNode",
    "DocumentNode",
    "ServiceProbeNode",
    "TranscriptionNode",
]
