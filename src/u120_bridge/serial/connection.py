"""Serial port access using pyserial-asyncio."""

import asyncio
import logging

import serial
import serial_asyncio
from serial import SerialException
from serial.tools import list_ports as serial_list_ports

from u120_bridge.core.exceptions import PortOpenError
from u120_bridge.core.models import FlowControl, Parity, PortInfo, SerialConfig
from u120_bridge.protocol.constants import MAX_FRAME_SIZE
from u120_bridge.serial.protocol import FrameCallback, LostCallback, U120Protocol

logger = logging.getLogger(__name__)

PARITY_MAP = {
    Parity.NONE: serial.PARITY_NONE,
    Parity.ODD: serial.PARITY_ODD,
    Parity.EVEN: serial.PARITY_EVEN,
    Parity.MARK: serial.PARITY_MARK,
    Parity.SPACE: serial.PARITY_SPACE,
}

STOPBITS_MAP = {
    1: serial.STOPBITS_ONE,
    1.5: serial.STOPBITS_ONE_POINT_FIVE,
    2: serial.STOPBITS_TWO,
}


def serial_kwargs(config: SerialConfig) -> dict:
    """Translate a SerialConfig into pyserial keyword arguments."""
    return {
        "baudrate": config.baud_rate,
        "bytesize": config.data_bits,
        "parity": PARITY_MAP[config.parity],
        "stopbits": STOPBITS_MAP[config.stop_bits],
        "xonxoff": config.flow_control == FlowControl.XON_XOFF,
        "rtscts": config.flow_control == FlowControl.RTS_CTS,
    }


def list_ports() -> list[PortInfo]:
    """Enumerate serial devices currently present on the host."""
    ports = []
    for info in sorted(serial_list_ports.comports(), key=lambda p: p.device):
        ports.append(
            PortInfo(
                path=info.device,
                manufacturer=info.manufacturer,
                description=info.description if info.description not in (None, "n/a") else None,
                serial_number=info.serial_number,
                vendor_id=f"{info.vid:04x}" if info.vid is not None else None,
                product_id=f"{info.pid:04x}" if info.pid is not None else None,
                location=info.location,
            )
        )
    return ports


class U120SerialTransport:
    """One open serial port bound to one SerialConfig.

    Frames and the close notification are delivered through the
    callbacks given at construction; see U120Protocol.
    """

    def __init__(
        self,
        config: SerialConfig,
        on_frame: FrameCallback,
        on_lost: LostCallback,
        close_timeout: float = 5.0,
        max_frame_size: int = MAX_FRAME_SIZE,
    ):
        """
        Initialize the transport.

        Args:
            config: Serial parameters for this port
            on_frame: Called with each complete frame (ETX removed)
            on_lost: Called once when the port closes or fails
            close_timeout: Seconds to wait for the driver to confirm a close
            max_frame_size: Bytes buffered without ETX before discarding
        """
        self.config = config
        self.close_timeout = close_timeout
        self._on_frame = on_frame
        self._on_lost = on_lost
        self._max_frame_size = max_frame_size

        self._transport: asyncio.BaseTransport | None = None
        self._protocol: U120Protocol | None = None

    @property
    def port(self) -> str:
        return self.config.port

    @property
    def connected(self) -> bool:
        """Check if the port is open."""
        return self._protocol is not None and self._protocol.connected

    @property
    def protocol(self) -> U120Protocol | None:
        return self._protocol

    def _make_protocol(self) -> U120Protocol:
        return U120Protocol(self._on_frame, self._on_lost, max_frame_size=self._max_frame_size)

    async def connect(self) -> None:
        """
        Open the serial port.

        Raises:
            PortOpenError: If the driver cannot open the port
        """
        cfg = self.config
        logger.info(
            "Opening %s at %d baud (%d data bits, parity %s, %s stop bits, flow %s)",
            cfg.port,
            cfg.baud_rate,
            cfg.data_bits,
            cfg.parity,
            cfg.stop_bits,
            cfg.flow_control,
        )

        loop = asyncio.get_running_loop()
        try:
            self._transport, self._protocol = await serial_asyncio.create_serial_connection(
                loop,
                self._make_protocol,
                cfg.port,
                **serial_kwargs(cfg),
            )
        except (OSError, SerialException, ValueError) as e:
            logger.error("Failed to open %s: %s", cfg.port, e)
            raise PortOpenError(cfg.port, e) from e

        logger.info("Port %s opened", cfg.port)

    async def disconnect(self) -> None:
        """Close the port and wait for the driver to confirm."""
        transport, protocol = self._transport, self._protocol
        if transport is None or protocol is None:
            return

        self._transport = None
        logger.info("Closing port %s", self.port)
        transport.close()

        try:
            await asyncio.wait_for(protocol.wait_closed(), timeout=self.close_timeout)
        except TimeoutError:
            logger.warning("Port %s did not confirm close within %.1fs", self.port, self.close_timeout)

    async def __aenter__(self):
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.disconnect()
