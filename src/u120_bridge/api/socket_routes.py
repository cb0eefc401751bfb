"""WebSocket endpoint for UI clients."""

import asyncio
import logging

from fastapi import APIRouter, Depends, WebSocket

from u120_bridge.api.connections import ClientConnection, ConnectionHub
from u120_bridge.api.dependencies import get_gateway, get_hub
from u120_bridge.api.gateway import BridgeGateway

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/")
async def bridge_socket(
    websocket: WebSocket,
    gateway: BridgeGateway = Depends(get_gateway),
    hub: ConnectionHub = Depends(get_hub),
):
    """Bridge channel: one JSON envelope per message, both directions."""
    await websocket.accept()
    connection = ClientConnection(websocket)
    hub.register(connection)
    writer = asyncio.create_task(connection.run_writer())
    logger.info("UI client %d connected to bridge", connection.id)

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break

            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes") or b""
            await gateway.handle(connection, raw)
    finally:
        hub.unregister(connection)
        connection.close()
        writer.cancel()
        try:
            await writer
        except asyncio.CancelledError:
            pass
        logger.info("UI client %d disconnected from bridge", connection.id)
