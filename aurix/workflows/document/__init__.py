from aurix.workflows.document.graph import build_document_graph, run_document_workflow
from aurix.workflows.document.state import DOCUMENT_SCHEMA

__all__ = ["DOCUMENT_SCHEMA", "build_document_graph", "run_document_workflow"]
