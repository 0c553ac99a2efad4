"""
Workflow Result Handlers

Applies the side effects of a finished run, outside the engine:
- Overload: publish index-updated to the UI, send the overload alert
- Document: save the Markdown file, publish document-saved
- Feedback: store the rating, retune the personal threshold
"""

from pathlib import Path
from typing import Any, Dict, Optional

from aurix.engine import FinalState
from aurix.events import EventType
from aurix.logger import get_logger
from aurix.overload.history import utc
from aurix.overload.schemas import FeedbackEntry, OverloadIndex

logger = get_logger(__name__)


def index_payload(index: OverloadIndex) -> Dict[str, Any]:
    """UI payload for index-updated: value, epoch-ms timestamp and factor breakdown."""
    return {
        "index": index.effective_value,
        "timestamp": int(utc(index.timestamp).timestamp() * 1000),
        "breakdown": index.factors.model_dump(by_alias=True),
    }


async def handle_overload_result(context, result: FinalState) -> Optional[Dict[str, Any]]:
    """
    Handle overload workflow output.

    Returns the published payload, or None when the run produced no index.
    """
    index: Optional[OverloadIndex] = result.get("overload_index")
    if index is None:
        logger.info("Overload run produced no index; nothing to publish")
        return None

    payload = index_payload(index)
    context.emitter.publish_index(payload)

    summary = result.get("summary")
    if summary is not None:
        context.emitter.publish(EventType.DAILY_SUMMARY, summary.model_dump(mode="json", by_alias=True))

    if context.notifications.send_overload_alert(index.effective_value):
        logger.info("Overload alert sent for θ = %.1f", index.effective_value)
    return payload


async def handle_document_result(context, result: FinalState) -> Optional[Path]:
    """Handle document workflow output - saves the document and announces it."""
    document = result.get("final_document")
    if not document or context.documents is None:
        return None

    session_id = result.get("session_id") or "document"
    path = await context.documents.save(session_id, document)
    context.emitter.publish(EventType.DOCUMENT_SAVED, {
        "sessionId": session_id,
        "path": str(path),
        "cognitiveLoadIndex": result.get("cognitive_load_index"),
    })
    return path


async def record_feedback(context, rating: float, index: float) -> FeedbackEntry:
    """Store how overloaded the user felt and retune the alert threshold from it."""
    feedback = await context.history.add_feedback(rating, index)
    learned = context.profile.update_from_feedback(rating, index)
    context.notifications.threshold = context.profile.alert_threshold
    logger.info("Feedback %.1f at θ = %.1f, learned factor now %.3f", rating, index, learned)
    return feedback
