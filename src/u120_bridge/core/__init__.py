"""Core application functionality."""

from u120_bridge.core.config import Settings, setup_logging
from u120_bridge.core.exceptions import BridgeError, ConfigurationError, PortOpenError, RuntimeIOError
from u120_bridge.core.models import BridgeMessage, ResultLine, SerialConfig, TestRecord

__all__ = [
    "BridgeError",
    "BridgeMessage",
    "ConfigurationError",
    "PortOpenError",
    "ResultLine",
    "RuntimeIOError",
    "SerialConfig",
    "Settings",
    "TestRecord",
    "setup_logging",
]
