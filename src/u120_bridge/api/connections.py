"""Connected bridge clients."""

import asyncio
import itertools
import logging

from fastapi import WebSocket, WebSocketDisconnect

from u120_bridge.core.models import BridgeMessage

logger = logging.getLogger(__name__)

_connection_ids = itertools.count(1)


class ClientConnection:
    """One connected UI.

    ``post()`` never blocks: messages are queued and a writer task sends
    them in the order they were posted, so responses and session events
    for one client cannot overtake each other.
    """

    def __init__(self, websocket: WebSocket) -> None:
        self.id = next(_connection_ids)
        self._websocket = websocket
        self._queue: asyncio.Queue[BridgeMessage] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def post(self, message: BridgeMessage) -> None:
        """Queue a message for this client. Dropped if the client is gone."""
        if self._closed:
            logger.debug("Client %d gone, dropping %s", self.id, message.action)
            return
        self._queue.put_nowait(message)

    async def run_writer(self) -> None:
        """Send queued messages until the socket fails or the task is cancelled."""
        while True:
            message = await self._queue.get()
            try:
                await self._websocket.send_text(message.to_json())
            except (WebSocketDisconnect, RuntimeError) as e:
                logger.debug("Send to client %d failed: %s", self.id, e)
                self._closed = True
                return

    def close(self) -> None:
        self._closed = True


class ConnectionHub:
    """Registry of connected clients."""

    def __init__(self) -> None:
        self._connections: dict[int, ClientConnection] = {}

    def register(self, connection: ClientConnection) -> None:
        self._connections[connection.id] = connection

    def unregister(self, connection: ClientConnection) -> None:
        self._connections.pop(connection.id, None)

    @property
    def count(self) -> int:
        return len(self._connections)

    def broadcast(self, message: BridgeMessage) -> None:
        """Post a message to every connected client."""
        for connection in list(self._connections.values()):
            connection.post(message)
