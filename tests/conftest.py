"""Shared test fixtures."""

import asyncio
import itertools
from unittest.mock import patch

import pytest

from u120_bridge.core.models import BridgeMessage

SAMPLE_FRAME = (
    b"\x02U120 Smart\r\n"
    b"No. 42\r\n"
    b"Date: 01/01/24\r\n"
    b"Operator: Jane\r\n"
    b"\r\n"
    b"*LEU 2+\r\n"
    b" GLU 120mg/dL\r\n"
    b" PH  6.0\r\n"
)

EMPTY_FRAME = b"U120 Smart\r\nNo. 43\r\nDate: 01/01/24\r\n"


class FakeSerialTransport:
    """Stands in for a pyserial-asyncio SerialTransport."""

    def __init__(self, protocol, url: str, kwargs: dict, confirm_close: bool = True):
        self.protocol = protocol
        self.url = url
        self.kwargs = kwargs
        self.confirm_close = confirm_close
        self.closed = False

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        if self.confirm_close:
            asyncio.get_running_loop().call_soon(self.protocol.connection_lost, None)

    def feed(self, data: bytes) -> None:
        self.protocol.data_received(data)

    def fail(self, exc: Exception) -> None:
        self.closed = True
        self.protocol.connection_lost(exc)


class FakeSerialDriver:
    """Replacement for serial_asyncio.create_serial_connection."""

    def __init__(self) -> None:
        self.transports: list[FakeSerialTransport] = []
        self.fail_ports: dict[str, Exception] = {}
        self.confirm_close = True

    async def create_serial_connection(self, loop, protocol_factory, url, **kwargs):
        if url in self.fail_ports:
            raise self.fail_ports[url]
        protocol = protocol_factory()
        transport = FakeSerialTransport(protocol, url, kwargs, confirm_close=self.confirm_close)
        protocol.connection_made(transport)
        self.transports.append(transport)
        return transport, protocol

    @property
    def open_transports(self) -> list[FakeSerialTransport]:
        return [t for t in self.transports if not t.closed]

    @property
    def last(self) -> FakeSerialTransport:
        return self.transports[-1]


class EventCollector:
    """Event sink that records every message."""

    def __init__(self) -> None:
        self.messages: list[BridgeMessage] = []

    def __call__(self, message: BridgeMessage) -> None:
        self.messages.append(message)

    @property
    def actions(self) -> list[str]:
        return [m.action for m in self.messages]

    def last(self, action: str) -> BridgeMessage:
        return [m for m in self.messages if m.action == action][-1]


_fake_ids = itertools.count(1000)


class FakeConnection(EventCollector):
    """Client connection that records posted messages."""

    def __init__(self) -> None:
        super().__init__()
        self.id = next(_fake_ids)

    def post(self, message: BridgeMessage) -> None:
        self.messages.append(message)


@pytest.fixture
def serial_driver():
    """Patch pyserial-asyncio with an in-memory driver."""
    driver = FakeSerialDriver()
    with patch("serial_asyncio.create_serial_connection", new=driver.create_serial_connection):
        yield driver


@pytest.fixture
def sample_frame() -> bytes:
    return SAMPLE_FRAME


@pytest.fixture
def empty_frame() -> bytes:
    return EMPTY_FRAME
