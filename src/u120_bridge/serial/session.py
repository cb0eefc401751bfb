"""Exclusive serial session management.

The manager owns the single physical port. A start request always
preempts the current session: the old port is closed and its close
confirmed before the new one is opened, so at most one port is open at
any instant. Session events go to the sink supplied with the start
request that created the session.
"""

import asyncio
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from functools import partial

from u120_bridge.core.exceptions import PortOpenError, RuntimeIOError
from u120_bridge.core.models import BridgeMessage, PortInfo, SerialConfig, SyncStatus, TestRecord
from u120_bridge.protocol import messages
from u120_bridge.protocol.constants import KNOWN_UNITS, MAX_FRAME_SIZE, DeviceStatus
from u120_bridge.protocol.parser import parse_frame
from u120_bridge.serial.connection import U120SerialTransport, list_ports

logger = logging.getLogger(__name__)

EventSink = Callable[[BridgeMessage], None]


class SessionState(StrEnum):
    IDLE = "idle"
    OPENING = "opening"
    OPEN = "open"
    CLOSED = "closed"
    ERRORED = "errored"


@dataclass
class DeviceSession:
    """The period during which one port is open with one configuration."""

    config: SerialConfig
    sink: EventSink
    transport: U120SerialTransport | None = None
    status: SessionState = SessionState.OPENING
    opened_at: datetime | None = None

    @property
    def ended(self) -> bool:
        return self.status in (SessionState.CLOSED, SessionState.ERRORED)


class SessionManager:
    """Owns the serial device and the state derived from it.

    ``active_config`` and ``last_record`` are only ever changed here;
    callers read them through properties or ``snapshot()``.
    """

    def __init__(
        self,
        close_timeout: float = 5.0,
        max_frame_size: int = MAX_FRAME_SIZE,
        known_units: Sequence[str] = KNOWN_UNITS,
    ) -> None:
        self.close_timeout = close_timeout
        self.max_frame_size = max_frame_size
        self.known_units = tuple(known_units)

        self._lock = asyncio.Lock()
        self._session: DeviceSession | None = None
        self._last_record: TestRecord | None = None

    @property
    def state(self) -> SessionState:
        return self._session.status if self._session is not None else SessionState.IDLE

    @property
    def session(self) -> DeviceSession | None:
        return self._session

    @property
    def active_config(self) -> SerialConfig | None:
        return self._session.config if self._session is not None else None

    @property
    def last_record(self) -> TestRecord | None:
        return self._last_record

    @property
    def is_open(self) -> bool:
        return self.state == SessionState.OPEN

    # -- commands --------------------------------------------------------------

    async def start_reading(self, config: SerialConfig, sink: EventSink) -> bool:
        """Open a session with ``config``, preempting any current one.

        Args:
            config: Serial parameters for the new session
            sink: Receives every event of the new session

        Returns:
            True if the port opened, False if opening failed (the failure
            has already been reported to ``sink``).
        """
        async with self._lock:
            await self._close_active()
            return await self._open(config, sink)

    async def stop_reading(self) -> None:
        """Close the active session, if any."""
        async with self._lock:
            await self._close_active()

    async def list_ports(self) -> list[PortInfo]:
        """Enumerate host serial devices. Never cached."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, list_ports)

    def snapshot(self) -> SyncStatus:
        """Current session view for late-joining clients."""
        session = self._session
        if session is None:
            return SyncStatus(status=DeviceStatus.DISCONNECTED, message="No active session.")

        if session.status == SessionState.OPENING:
            return SyncStatus(
                status=DeviceStatus.CONNECTING,
                message=f"Opening {session.config.port}...",
                config=session.config,
            )

        return SyncStatus(
            status=DeviceStatus.CONNECTED,
            message=f"Resumed session on {session.config.port}",
            config=session.config,
            last_record=self._last_record,
            opened_at=session.opened_at,
        )

    # -- lifecycle -------------------------------------------------------------

    async def _close_active(self) -> None:
        session = self._session
        if session is None:
            return

        logger.info("Closing active session on %s", session.config.port)
        if session.transport is not None:
            await session.transport.disconnect()

        if not session.ended:
            # Driver never confirmed the close; finish it ourselves.
            self._on_lost(session, None)

    async def _open(self, config: SerialConfig, sink: EventSink) -> bool:
        session = DeviceSession(config=config, sink=sink)
        session.transport = U120SerialTransport(
            config,
            on_frame=partial(self._on_frame, session),
            on_lost=partial(self._on_lost, session),
            close_timeout=self.close_timeout,
            max_frame_size=self.max_frame_size,
        )
        self._session = session

        try:
            await session.transport.connect()
        except PortOpenError as e:
            self._end(session, SessionState.ERRORED)
            sink(messages.device_status(DeviceStatus.ERROR, str(e)))
            return False

        session.status = SessionState.OPEN
        session.opened_at = datetime.now()
        logger.info("Listening on %s", config.port)
        sink(messages.device_status(DeviceStatus.CONNECTED, f"Listening on {config.port}. Please perform a test."))
        return True

    def _end(self, session: DeviceSession, state: SessionState) -> None:
        session.status = state
        if self._session is session:
            self._session = None
            self._last_record = None

    # -- driver callbacks ------------------------------------------------------

    def _on_frame(self, session: DeviceSession, frame: bytes) -> None:
        if self._session is not session:
            logger.debug("Dropping frame from stale session on %s", session.config.port)
            return

        logger.debug("Frame from %s: %r", session.config.port, frame)
        record = parse_frame(frame, self.known_units)
        self._last_record = record

        if not record.results:
            logger.warning("Frame from %s yielded no results; retained, not forwarded", session.config.port)
            return

        logger.info(
            "Test record No.%s with %d results from %s",
            record.sequence_number or "?",
            len(record.results),
            session.config.port,
        )
        session.sink(messages.record_update(record))

    def _on_lost(self, session: DeviceSession, exc: Exception | None) -> None:
        if session.ended:
            return

        if exc is None:
            logger.info("Port %s closed", session.config.port)
            self._end(session, SessionState.CLOSED)
            session.sink(messages.device_status(DeviceStatus.DISCONNECTED, "Connection closed."))
        else:
            error = RuntimeIOError(session.config.port, exc)
            logger.error("Port %s failed: %s", session.config.port, error)
            self._end(session, SessionState.ERRORED)
            session.sink(messages.device_error(str(error)))
