"""
WebSocket Routes

Streams UI events (index-updated, daily-summary, document-saved,
notification) to a connected renderer as they are published.
"""

import asyncio

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from aurix.context import AppContext
from aurix.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["events"])


@router.websocket("/ws/events")
async def event_stream(websocket: WebSocket):
    await websocket.accept()
    context: AppContext = websocket.app.state.context
    logger.info("UI event stream connected")

    async def forward_events():
        while True:
            event = await context.emitter.get()
            await websocket.send_json(event.to_dict())

    async def wait_for_disconnect():
        try:
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            pass

    forward = asyncio.create_task(forward_events())
    listen = asyncio.create_task(wait_for_disconnect())
    done, pending = await asyncio.wait({forward, listen}, return_when=asyncio.FIRST_COMPLETED)
    for task in pending:
        task.cancel()
    await asyncio.gather(*pending, return_exceptions=True)

    for task in done:
        if task is forward and not task.cancelled() and task.exception() is not None:
            logger.error("UI event stream failed: %s", task.exception())
    logger.info("UI event stream disconnected")
