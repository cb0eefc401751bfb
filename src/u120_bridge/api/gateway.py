"""Bridge gateway: routes client commands to the session manager.

Responses to ``list-ports`` and ``get-status`` go only to the asking
client. Session events go to the client that started the session, or
to every client when broadcast is enabled. Malformed messages are
logged and dropped without closing the connection.
"""

import logging
from collections.abc import Awaitable, Callable

from pydantic import ValidationError

from u120_bridge.api.connections import ClientConnection, ConnectionHub
from u120_bridge.core.exceptions import BridgeError
from u120_bridge.core.models import BridgeMessage, SerialConfig
from u120_bridge.protocol import messages
from u120_bridge.protocol.constants import Action
from u120_bridge.serial.session import SessionManager

logger = logging.getLogger(__name__)

CommandHandler = Callable[[ClientConnection, BridgeMessage], Awaitable[None]]


class BridgeGateway:
    """Dispatches inbound envelopes for all client connections."""

    def __init__(self, manager: SessionManager, hub: ConnectionHub, broadcast_events: bool = False) -> None:
        self.manager = manager
        self.hub = hub
        self.broadcast_events = broadcast_events
        self._handlers: dict[str, CommandHandler] = {
            Action.LIST_PORTS: self._list_ports,
            Action.GET_STATUS: self._get_status,
            Action.START_READING: self._start_reading,
            Action.STOP_READING: self._stop_reading,
        }

    async def handle(self, connection: ClientConnection, raw: str | bytes) -> None:
        """Handle one inbound message from ``connection``."""
        try:
            message = BridgeMessage.model_validate_json(raw)
        except ValidationError as e:
            logger.warning("Ignoring malformed message from client %d: %s", connection.id, e.errors()[0]["msg"])
            return

        handler = self._handlers.get(message.action)
        if handler is None:
            logger.warning("Ignoring unknown action %r from client %d", message.action, connection.id)
            return

        logger.info("Client %d requested %s", connection.id, message.action)
        try:
            await handler(connection, message)
        except BridgeError as e:
            logger.warning("%s rejected for client %d: %s", message.action, connection.id, e)
            connection.post(messages.device_error(str(e)))
        except Exception as e:
            logger.exception("Error handling %s for client %d", message.action, connection.id)
            connection.post(messages.bridge_error(str(e)))

    async def _list_ports(self, connection: ClientConnection, message: BridgeMessage) -> None:
        ports = await self.manager.list_ports()
        logger.debug("Found %d serial ports", len(ports))
        connection.post(messages.ports_list(ports))

    async def _get_status(self, connection: ClientConnection, message: BridgeMessage) -> None:
        connection.post(messages.sync_status(self.manager.snapshot()))

    async def _start_reading(self, connection: ClientConnection, message: BridgeMessage) -> None:
        config = SerialConfig.from_payload(message.data)
        sink = self.hub.broadcast if self.broadcast_events else connection.post
        await self.manager.start_reading(config, sink)

    async def _stop_reading(self, connection: ClientConnection, message: BridgeMessage) -> None:
        await self.manager.stop_reading()
