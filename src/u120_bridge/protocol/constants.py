"""Protocol constants for U120 communication."""

from enum import StrEnum

# ============================================================================
# Serial Framing
# ============================================================================

STX = 0x02
ETX = 0x03  # end of one instrument transmission
MAX_FRAME_SIZE = 65536  # bytes buffered without an ETX before discarding

# ============================================================================
# Report Content
# ============================================================================

SERIAL_NOT_AVAILABLE = "N/A (Not Available in Result)"

# Unit suffixes printed after result values. Matched longest first.
KNOWN_UNITS = (
    "mg/dL",
    "Leu/uL",
    "Ery/uL",
    "mmol/L",
    "umol/L",
    "mg/L",
    "g/L",
)

OUT_OF_RANGE_FLAG = "*"

# ============================================================================
# Bridge Messages
# ============================================================================


class Action(StrEnum):
    """Envelope actions exchanged between bridge and UI."""

    # Client -> bridge
    LIST_PORTS = "list-ports"
    GET_STATUS = "get-status"
    START_READING = "start-reading"
    STOP_READING = "stop-reading"

    # Bridge -> client
    PORTS_LIST = "ports-list"
    SYNC_STATUS = "sync-status"
    DEVICE_STATUS = "device-status"
    TEST_DATA_UPDATE = "test-data-update"
    DEVICE_ERROR = "device-error"
    ERROR = "error"


COMMANDS = frozenset({Action.LIST_PORTS, Action.GET_STATUS, Action.START_READING, Action.STOP_READING})


class DeviceStatus(StrEnum):
    """Device status as shown to the operator."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"
