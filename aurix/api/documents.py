"""
Documents REST API

Turns a transcript into a saved Markdown document.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import Field

from aurix.api.deps import get_context
from aurix.context import AppContext
from aurix.handlers import handle_document_result
from aurix.utils.validation import CamelModel
from aurix.workflows.document import run_document_workflow
from aurix.workflows.document.schemas import CognitiveLoadMetrics, DocumentConfig
from aurix.workflows.document.state import processing_time_ms

router = APIRouter(prefix="/api/documents", tags=["documents"])


class DocumentRequest(CamelModel):
    transcript: str = Field(..., min_length=1)
    config: Optional[DocumentConfig] = None


class DocumentResponse(CamelModel):
    session_id: str
    completed: bool
    document: Optional[str] = None
    path: Optional[str] = None
    cognitive_load_index: Optional[int] = None
    cognitive_metrics: Optional[CognitiveLoadMetrics] = None
    processing_time_ms: float = 0.0
    warnings: List[str] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)


@router.post("", response_model=DocumentResponse)
async def create_document(request: DocumentRequest, context: AppContext = Depends(get_context)):
    result = await run_document_workflow(context, request.transcript, request.config)
    path = await handle_document_result(context, result)
    return DocumentResponse(
        session_id=result["session_id"],
        completed=result.completed,
        document=result["final_document"],
        path=str(path) if path else None,
        cognitive_load_index=result["cognitive_load_index"],
        cognitive_metrics=result["cognitive_metrics"],
        processing_time_ms=processing_time_ms(result),
        warnings=result["warnings"],
        errors=result.errors,
    )
