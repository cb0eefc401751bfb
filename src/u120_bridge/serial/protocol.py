"""asyncio.Protocol implementation for U120 serial framing."""

import asyncio
import logging
from collections.abc import Callable

from u120_bridge.protocol.constants import ETX, MAX_FRAME_SIZE

logger = logging.getLogger(__name__)

FrameCallback = Callable[[bytes], None]
LostCallback = Callable[[Exception | None], None]


class U120Protocol(asyncio.Protocol):
    """Event-driven ETX frame reassembler.

    Receives raw bytes via ``data_received()``, buffers them until an ETX
    delimiter arrives and hands each complete frame (delimiter removed)
    to ``on_frame``. ``on_lost`` is called exactly once when the driver
    reports the port closed; ``exc`` is None for a clean close.
    """

    def __init__(
        self,
        on_frame: FrameCallback,
        on_lost: LostCallback,
        max_frame_size: int = MAX_FRAME_SIZE,
    ) -> None:
        self._on_frame = on_frame
        self._on_lost = on_lost
        self._max_frame_size = max_frame_size
        self._transport: asyncio.BaseTransport | None = None
        self._rx_buffer = bytearray()
        self._closed: asyncio.Future[Exception | None] = asyncio.get_running_loop().create_future()
        self._stats = {
            "frames_read": 0,
            "frames_empty": 0,
            "frames_discarded": 0,
            "bytes_read": 0,
        }

    # -- asyncio.Protocol callbacks ------------------------------------------

    def connection_made(self, transport: asyncio.BaseTransport) -> None:
        self._transport = transport
        logger.debug("U120Protocol: connection made")

    def connection_lost(self, exc: Exception | None) -> None:
        self._transport = None
        self._rx_buffer.clear()
        logger.debug("U120Protocol: connection lost (exc=%s)", exc)
        try:
            self._on_lost(exc)
        finally:
            if not self._closed.done():
                self._closed.set_result(exc)

    def data_received(self, data: bytes) -> None:
        self._rx_buffer.extend(data)
        self._stats["bytes_read"] += len(data)

        while True:
            etx_idx = self._rx_buffer.find(ETX)
            if etx_idx == -1:
                break

            frame = bytes(self._rx_buffer[:etx_idx])
            del self._rx_buffer[: etx_idx + 1]

            if not frame.strip():
                self._stats["frames_empty"] += 1
                continue

            self._stats["frames_read"] += 1
            logger.debug("Frame received (%d bytes)", len(frame))
            self._on_frame(frame)

        if len(self._rx_buffer) > self._max_frame_size:
            logger.warning("No ETX within %d bytes, discarding buffer", self._max_frame_size)
            self._rx_buffer.clear()
            self._stats["frames_discarded"] += 1

    # -- public API ----------------------------------------------------------

    @property
    def connected(self) -> bool:
        return self._transport is not None

    @property
    def stats(self) -> dict:
        return self._stats.copy()

    async def wait_closed(self) -> Exception | None:
        """Wait until the driver reports the port closed.

        Returns the exception passed to ``connection_lost``, if any.
        """
        return await asyncio.shield(self._closed)

    def reset_buffer(self) -> None:
        """Drop any partially received frame."""
        self._rx_buffer.clear()
