"""Serial communication layer."""

from u120_bridge.serial.connection import U120SerialTransport, list_ports
from u120_bridge.serial.protocol import U120Protocol
from u120_bridge.serial.session import DeviceSession, SessionManager, SessionState

__all__ = [
    "DeviceSession",
    "SessionManager",
    "SessionState",
    "U120Protocol",
    "U120SerialTransport",
    "list_ports",
]
