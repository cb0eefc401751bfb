"""U120 report protocol implementation."""

from u120_bridge.protocol.constants import ETX, KNOWN_UNITS, Action, DeviceStatus
from u120_bridge.protocol.parser import classify_line, parse_frame

__all__ = [
    "ETX",
    "KNOWN_UNITS",
    "Action",
    "DeviceStatus",
    "classify_line",
    "parse_frame",
]
