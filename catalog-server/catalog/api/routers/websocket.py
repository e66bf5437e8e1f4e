"""WebSocket endpoint streaming catalog change notifications."""
import logging
import uuid

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from catalog.api.deps import get_ws_container
from catalog.core.container import CatalogContainer

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/ws/products")
async def product_events_socket(
    websocket: WebSocket,
    container: CatalogContainer = Depends(get_ws_container),
):
    notifier = container.notifier
    subscriber_id = uuid.uuid4().hex
    await notifier.connect(subscriber_id, websocket)
    try:
        # Inbound messages are ignored; reading only detects the disconnect.
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info("Event subscriber %s disconnected", subscriber_id)
    finally:
        await notifier.disconnect(subscriber_id)
