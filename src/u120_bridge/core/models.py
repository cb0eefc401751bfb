"""Data models for the U120 bridge.

Wire names are camelCase to match what the UI and the results layer
consume; Python attributes stay snake_case.
"""

from datetime import datetime
from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from u120_bridge.core.exceptions import ConfigurationError
from u120_bridge.protocol.constants import SERIAL_NOT_AVAILABLE, DeviceStatus


class Parity(StrEnum):
    NONE = "none"
    ODD = "odd"
    EVEN = "even"
    MARK = "mark"
    SPACE = "space"


class FlowControl(StrEnum):
    NONE = "none"
    XON_XOFF = "xon/xoff"
    RTS_CTS = "rts/cts"


class WireModel(BaseModel):
    """Immutable model serialised with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    def to_wire(self) -> dict[str, Any]:
        """Dump to a JSON-ready dict using wire names, omitting unset optionals."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class SerialConfig(WireModel):
    """Serial parameters for one session. Supplied on every start request."""

    port: str = Field(..., min_length=1, description="Port path, e.g. /dev/ttyUSB0 or COM3")
    baud_rate: int = Field(9600, gt=0, description="Line speed")
    data_bits: Literal[5, 6, 7, 8] = Field(8, description="Data bits per character")
    parity: Parity = Field(Parity.NONE, description="Parity mode")
    stop_bits: Literal[1, 1.5, 2] = Field(1, description="Stop bits")
    flow_control: FlowControl = Field(FlowControl.NONE, description="Flow control mode")

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: str) -> str:
        """Ensure the port is not blank after stripping."""
        v = v.strip()
        if not v:
            raise ValueError("Port cannot be empty")
        return v

    @classmethod
    def from_payload(cls, payload: Any) -> "SerialConfig":
        """Build a config from a start-reading payload.

        Raises:
            ConfigurationError: If the payload is missing, has no port,
                or carries an invalid parameter.
        """
        if not isinstance(payload, dict) or not payload.get("port"):
            raise ConfigurationError("Port configuration is missing.")
        try:
            return cls.model_validate(payload)
        except ValidationError as e:
            details = "; ".join(
                f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in e.errors()
            )
            raise ConfigurationError(f"Invalid serial configuration: {details}") from None


class ResultLine(WireModel):
    """One analyte result from a report."""

    test_code: str = Field(..., alias="test", description="Analyte code, e.g. GLU")
    value: str = Field(..., description="Reported value including any flag prefix")
    unit: str = Field("", description="Unit suffix stripped from the value")
    flag: str | None = Field(None, description="Out-of-range marker")


class TestRecord(WireModel):
    """A parsed instrument transmission."""

    __test__ = False

    serial_number: str = SERIAL_NOT_AVAILABLE
    date: str = ""
    operator: str = ""
    sequence_number: str = ""
    results: tuple[ResultLine, ...] = ()


class PortInfo(WireModel):
    """A serial device found on the host."""

    path: str
    manufacturer: str | None = None
    description: str | None = None
    serial_number: str | None = None
    vendor_id: str | None = None
    product_id: str | None = None
    location: str | None = None


class SyncStatus(WireModel):
    """Current session view sent to a (re)connecting client."""

    status: DeviceStatus
    message: str
    config: SerialConfig | None = None
    last_record: TestRecord | None = None
    opened_at: datetime | None = None


class BridgeMessage(BaseModel):
    """Wire envelope. One message is one protocol event."""

    action: str = Field(..., min_length=1)
    data: Any = None
    status: DeviceStatus | None = None
    message: str | None = None

    model_config = ConfigDict(frozen=True)

    def to_json(self) -> str:
        """Serialise for the wire."""
        return self.model_dump_json(exclude_none=True)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="healthy when a port is open, idle otherwise")
    session_state: str = Field(..., description="Session manager state")
    port: str | None = Field(None, description="Port of the active session")
    clients: int = Field(..., ge=0, description="Connected bridge clients")
    last_record_available: bool = Field(..., description="Whether a test record is retained")
