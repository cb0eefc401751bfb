"""Reconnecting bridge client.

Keeps a DeviceMirror reconciled with the bridge across network
interruptions. After every successful connect it asks for the current
status and port list, then re-asks for status on a fixed interval while
the channel is open. When the channel drops it waits a fixed delay and
tries again, forever.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import replace
from typing import Any

import websockets
from pydantic import ValidationError
from websockets.exceptions import ConnectionClosed, WebSocketException

from u120_bridge.client.state import DeviceMirror, reduce
from u120_bridge.core.models import BridgeMessage, SerialConfig
from u120_bridge.protocol.constants import Action, DeviceStatus

logger = logging.getLogger(__name__)

DEFAULT_BRIDGE_URL = "ws://localhost:8088"
RECONNECT_DELAY = 3.0  # seconds between connect attempts
HEALTH_CHECK_INTERVAL = 5.0  # seconds between get-status probes

MirrorListener = Callable[[DeviceMirror], None]


class BridgeClient:
    """UI-side session adapter for the bridge."""

    def __init__(
        self,
        url: str = DEFAULT_BRIDGE_URL,
        config: SerialConfig | None = None,
        reconnect_delay: float = RECONNECT_DELAY,
        health_check_interval: float = HEALTH_CHECK_INTERVAL,
        on_change: MirrorListener | None = None,
    ):
        """
        Initialize the client. Nothing connects until ``start()``.

        Args:
            url: Bridge WebSocket URL
            config: Initial serial configuration shown to the operator
            reconnect_delay: Fixed delay before each reconnect attempt
            health_check_interval: Interval between get-status probes
            on_change: Called with the new mirror after every change
        """
        self.url = url
        self.reconnect_delay = reconnect_delay
        self.health_check_interval = health_check_interval
        self.on_change = on_change

        self._mirror = DeviceMirror(config=config) if config is not None else DeviceMirror()
        self._ws: Any = None
        self._run_task: asyncio.Task | None = None
        self._health_task: asyncio.Task | None = None
        self._connect_attempts = 0

    @property
    def mirror(self) -> DeviceMirror:
        return self._mirror

    @property
    def connected(self) -> bool:
        """Whether the bridge channel is currently open."""
        return self._ws is not None

    @property
    def connect_attempts(self) -> int:
        return self._connect_attempts

    # -- lifecycle -------------------------------------------------------------

    async def start(self) -> None:
        """Start the connection loop."""
        if self._run_task is not None and not self._run_task.done():
            logger.warning("Bridge client already running")
            return

        self._run_task = asyncio.create_task(self._run())
        logger.info("Bridge client started (%s)", self.url)

    async def stop(self) -> None:
        """Stop probing and reconnecting, and close the channel."""
        await self._cancel_health_check()

        if self._run_task is not None:
            self._run_task.cancel()
            try:
                await self._run_task
            except asyncio.CancelledError:
                pass
            self._run_task = None

        self._ws = None
        logger.info("Bridge client stopped")

    async def _run(self) -> None:
        while True:
            self._connect_attempts += 1
            try:
                async with websockets.connect(self.url) as ws:
                    await self._on_open(ws)
                    async for raw in ws:
                        self._on_message(raw)
                logger.info("Bridge closed the connection")
            except (OSError, WebSocketException) as e:
                logger.warning("Bridge connection failed: %s", e)

            await self._on_lost()
            logger.info("Reconnecting to bridge in %.1fs", self.reconnect_delay)
            await asyncio.sleep(self.reconnect_delay)

    async def _on_open(self, ws: Any) -> None:
        logger.info("Bridge connection established")
        self._ws = ws
        self._set_mirror(replace(self._mirror, bridge_connected=True))

        await self.send(Action.GET_STATUS)
        await self.send(Action.LIST_PORTS)

        await self._cancel_health_check()
        self._health_task = asyncio.create_task(self._health_check(ws))

    async def _on_lost(self) -> None:
        self._ws = None
        await self._cancel_health_check()
        self._set_mirror(
            replace(
                self._mirror,
                status=DeviceStatus.DISCONNECTED,
                last_message="Bridge server offline.",
                bridge_connected=False,
            )
        )

    async def _health_check(self, ws: Any) -> None:
        while self._ws is ws:
            await asyncio.sleep(self.health_check_interval)
            if self._ws is not ws:
                return
            logger.debug("Health check: pinging bridge for status")
            await self.send(Action.GET_STATUS)

    async def _cancel_health_check(self) -> None:
        if self._health_task is not None:
            self._health_task.cancel()
            try:
                await self._health_task
            except asyncio.CancelledError:
                pass
            self._health_task = None

    # -- inbound ---------------------------------------------------------------

    def _on_message(self, raw: str | bytes) -> None:
        try:
            message = BridgeMessage.model_validate_json(raw)
            mirror = reduce(self._mirror, message)
        except ValidationError as e:
            logger.warning("Ignoring malformed bridge message: %s", e.errors()[0]["msg"])
            return
        self._set_mirror(mirror)

    def _set_mirror(self, mirror: DeviceMirror) -> None:
        if mirror == self._mirror:
            return
        self._mirror = mirror
        if self.on_change is not None:
            self.on_change(mirror)

    # -- commands --------------------------------------------------------------

    async def send(self, action: str, data: Any = None) -> None:
        """Send a command. Silently dropped while the bridge is offline."""
        ws = self._ws
        if ws is None:
            logger.debug("Bridge offline, dropping %s", action)
            return

        try:
            await ws.send(BridgeMessage(action=action, data=data).to_json())
        except ConnectionClosed as e:
            logger.debug("Bridge closed while sending %s: %s", action, e)

    async def start_reading(self) -> None:
        """Ask the bridge to open the configured port."""
        self._set_mirror(
            replace(
                self._mirror,
                status=DeviceStatus.CONNECTING,
                last_message="Initializing...",
                test_record=None,
            )
        )
        await self.send(Action.START_READING, self._mirror.config.to_wire())

    async def stop_reading(self) -> None:
        await self.send(Action.STOP_READING)

    async def scan_ports(self) -> None:
        self._set_mirror(replace(self._mirror, scanning=True))
        await self.send(Action.LIST_PORTS)

    def update_config(self, **changes: Any) -> SerialConfig:
        """Change serial parameters used by the next ``start_reading()``.

        Raises:
            pydantic.ValidationError: If a value is out of range.
        """
        config = SerialConfig.model_validate({**self._mirror.config.model_dump(), **changes})
        self._set_mirror(replace(self._mirror, config=config))
        return config
