"""Unit tests for data models."""

import pytest
from pydantic import ValidationError

from u120_bridge.core.exceptions import ConfigurationError
from u120_bridge.core.models import (
    BridgeMessage,
    FlowControl,
    Parity,
    ResultLine,
    SerialConfig,
    SyncStatus,
    TestRecord,
)
from u120_bridge.protocol.constants import DeviceStatus


class TestSerialConfig:
    """Tests for SerialConfig model."""

    def test_defaults(self):
        config = SerialConfig(port="/dev/ttyUSB0")

        assert config.baud_rate == 9600
        assert config.data_bits == 8
        assert config.parity == Parity.NONE
        assert config.stop_bits == 1
        assert config.flow_control == FlowControl.NONE

    def test_from_wire_names(self):
        config = SerialConfig.model_validate(
            {
                "port": "COM3",
                "baudRate": 19200,
                "dataBits": 7,
                "parity": "even",
                "stopBits": 2,
                "flowControl": "rts/cts",
            }
        )

        assert config.baud_rate == 19200
        assert config.data_bits == 7
        assert config.parity == Parity.EVEN
        assert config.stop_bits == 2
        assert config.flow_control == FlowControl.RTS_CTS

    def test_to_wire_uses_camel_case(self):
        wire = SerialConfig(port="COM3").to_wire()

        assert wire == {
            "port": "COM3",
            "baudRate": 9600,
            "dataBits": 8,
            "parity": "none",
            "stopBits": 1,
            "flowControl": "none",
        }

    def test_one_and_half_stop_bits(self):
        assert SerialConfig(port="COM3", stop_bits=1.5).stop_bits == 1.5

    @pytest.mark.parametrize(
        "field,value",
        [
            ("data_bits", 9),
            ("parity", "sometimes"),
            ("stop_bits", 3),
            ("flow_control", "dtr"),
            ("baud_rate", 0),
        ],
    )
    def test_invalid_values(self, field, value):
        with pytest.raises(ValidationError):
            SerialConfig(port="COM3", **{field: value})

    def test_blank_port_rejected(self):
        with pytest.raises(ValidationError):
            SerialConfig(port="   ")

    def test_frozen(self):
        config = SerialConfig(port="COM3")

        with pytest.raises(ValidationError):
            config.port = "COM4"


class TestSerialConfigFromPayload:
    """Tests for start-reading payload validation."""

    @pytest.mark.parametrize("payload", [None, {}, {"port": ""}, "COM3", []])
    def test_missing_port(self, payload):
        with pytest.raises(ConfigurationError, match="Port configuration is missing"):
            SerialConfig.from_payload(payload)

    def test_invalid_parameter(self):
        with pytest.raises(ConfigurationError, match="Invalid serial configuration: dataBits"):
            SerialConfig.from_payload({"port": "COM3", "dataBits": 4})

    def test_valid(self):
        config = SerialConfig.from_payload({"port": "COM3", "baudRate": 115200})

        assert config.port == "COM3"
        assert config.baud_rate == 115200


class TestTestRecord:
    """Tests for TestRecord model."""

    def test_round_trip_from_wire(self):
        record = TestRecord(
            date="01/01/24",
            sequence_number="42",
            results=(ResultLine(test_code="GLU", value="120", unit="mg/dL"),),
        )

        assert TestRecord.model_validate(record.to_wire()) == record

    def test_immutable(self):
        record = TestRecord()

        with pytest.raises(ValidationError):
            record.date = "today"


class TestSyncStatus:
    """Tests for SyncStatus wire shape."""

    def test_idle_omits_config_and_record(self):
        wire = SyncStatus(status=DeviceStatus.DISCONNECTED, message="No active session.").to_wire()

        assert wire == {"status": "disconnected", "message": "No active session."}

    def test_last_record_key(self):
        wire = SyncStatus(
            status=DeviceStatus.CONNECTED,
            message="Resumed session on COM3",
            config=SerialConfig(port="COM3"),
            last_record=TestRecord(),
        ).to_wire()

        assert "lastRecord" in wire
        assert wire["config"]["port"] == "COM3"


class TestBridgeMessage:
    """Tests for the wire envelope."""

    def test_to_json_omits_none(self):
        assert BridgeMessage(action="get-status").to_json() == '{"action":"get-status"}'

    def test_parse_with_data(self):
        message = BridgeMessage.model_validate_json('{"action": "start-reading", "data": {"port": "COM3"}}')

        assert message.action == "start-reading"
        assert message.data == {"port": "COM3"}

    def test_status_enum(self):
        message = BridgeMessage(action="device-status", status="connected", message="ok")

        assert message.status == DeviceStatus.CONNECTED
        assert '"status":"connected"' in message.to_json()

    @pytest.mark.parametrize("raw", ["not json", "[]", "42", '{"data": 1}', '{"action": ""}'])
    def test_malformed(self, raw):
        with pytest.raises(ValidationError):
            BridgeMessage.model_validate_json(raw)
