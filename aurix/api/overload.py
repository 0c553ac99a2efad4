"""
Overload REST API

Runs the overload workflow and exposes the stored history and feedback.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import Field

from aurix.api.deps import get_context
from aurix.context import AppContext
from aurix.handlers import handle_overload_result, record_feedback
from aurix.overload.schemas import DailySummary, FeedbackEntry, HistoryEntry, OverloadIndex, OverloadMetrics
from aurix.utils.validation import CamelModel
from aurix.workflows.overload import run_overload_analysis

router = APIRouter(prefix="/api/overload", tags=["overload"])


# --- Pydantic Schemas ---

class CalculateRequest(CamelModel):
    metrics: Optional[OverloadMetrics] = Field(None, description="Use these metrics instead of the task cache")
    task_data: Optional[Dict[str, Any]] = Field(None, description="Task snapshot to analyse instead of the cache")
    as_of: Optional[datetime] = None


class OverloadResponse(CamelModel):
    completed: bool
    index: Optional[OverloadIndex] = None
    summary: Optional[DailySummary] = None
    history: List[OverloadIndex] = Field(default_factory=list)
    messages: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)


class FeedbackRequest(CamelModel):
    rating: float = Field(..., ge=0, le=10)
    index: float = Field(..., ge=0)


# --- Endpoints ---

@router.post("/calculate", response_model=OverloadResponse)
async def calculate(request: CalculateRequest, context: AppContext = Depends(get_context)):
    """Run the overload workflow and publish the result."""
    result = await run_overload_analysis(
        context,
        metrics=request.metrics,
        task_data=request.task_data,
        as_of=request.as_of,
    )
    await handle_overload_result(context, result)
    return OverloadResponse(
        completed=result.completed,
        index=result["overload_index"],
        summary=result["summary"],
        history=result["historical_data"],
        messages=result["messages"],
        warnings=result["warnings"],
        errors=result.errors,
    )


@router.get("/history", response_model=List[HistoryEntry])
async def history(
    days: int = Query(7, ge=1, le=365),
    context: AppContext = Depends(get_context),
):
    return await context.history.query(days)


@router.post("/feedback", response_model=FeedbackEntry)
async def feedback(request: FeedbackRequest, context: AppContext = Depends(get_context)):
    return await record_feedback(context, request.rating, request.index)


async def _latest_entry(context: AppContext) -> Optional[HistoryEntry]:
    entries = await context.history.query(1)
    return entries[-1] if entries else None


@router.get("/current", response_model=Optional[HistoryEntry])
async def current(context: AppContext = Depends(get_context)):
    """Latest index from the last day, computing one when there is none."""
    latest = await _latest_entry(context)
    if latest is not None:
        return latest

    result = await run_overload_analysis(context)
    await handle_overload_result(context, result)
    index: Optional[OverloadIndex] = result["overload_index"]
    if index is None:
        return None
    return HistoryEntry(timestamp=index.timestamp, index=index.effective_value, breakdown=index.factors.model_dump())


@router.get("/breakdown", response_model=Optional[Dict[str, float]])
async def breakdown(context: AppContext = Depends(get_context)):
    """Factor breakdown of the latest index from the last day."""
    latest = await _latest_entry(context)
    return latest.breakdown if latest is not None else None
