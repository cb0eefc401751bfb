"""Bridge error hierarchy.

Every error carries a message meant to be shown to the operator verbatim.
"""


class BridgeError(Exception):
    """Base class for errors reported to bridge clients."""


class ConfigurationError(BridgeError):
    """Serial parameters are missing or invalid. Raised before any I/O."""


class PortOpenError(BridgeError):
    """The driver failed to open the serial port."""

    def __init__(self, port: str, cause: BaseException):
        super().__init__(f"Failed to open port: {cause}")
        self.port = port
        self.cause = cause


class RuntimeIOError(BridgeError):
    """The port failed after it was opened (e.g. device unplugged)."""

    def __init__(self, port: str, cause: BaseException):
        super().__init__(str(cause) or f"I/O error on {port}")
        self.port = port
        self.cause = cause
