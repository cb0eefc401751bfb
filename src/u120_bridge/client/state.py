"""Client-side mirror of bridge device state.

``reduce()`` is pure: it takes the current mirror and one inbound
envelope and returns the next mirror. Unknown actions leave the mirror
unchanged.
"""

from collections.abc import Callable
from dataclasses import dataclass, replace

from u120_bridge.core.models import BridgeMessage, PortInfo, SerialConfig, SyncStatus, TestRecord
from u120_bridge.protocol.constants import Action, DeviceStatus

DEFAULT_CONFIG = SerialConfig(port="/dev/ttyUSB0")


@dataclass(frozen=True)
class PortChoice:
    """A port as offered to the operator."""

    port: str
    description: str


@dataclass(frozen=True)
class DeviceMirror:
    """What the UI shows about the analyzer."""

    config: SerialConfig = DEFAULT_CONFIG
    status: DeviceStatus = DeviceStatus.DISCONNECTED
    last_message: str = "Ready to connect."
    test_record: TestRecord | None = None
    ports: tuple[PortChoice, ...] = ()
    scanning: bool = False
    bridge_connected: bool = False


def _ports_list(mirror: DeviceMirror, message: BridgeMessage) -> DeviceMirror:
    if not isinstance(message.data, list):
        return mirror
    ports = tuple(
        PortChoice(port=info.path, description=info.manufacturer or "Serial Device")
        for info in (PortInfo.model_validate(item) for item in message.data)
    )
    return replace(mirror, ports=ports, scanning=False)


def _sync_status(mirror: DeviceMirror, message: BridgeMessage) -> DeviceMirror:
    sync = SyncStatus.model_validate(message.data)

    if sync.config is None:
        # Bridge is idle; only correct a mirror that still believes it is connected.
        if mirror.status == DeviceStatus.CONNECTED:
            return replace(mirror, status=DeviceStatus.DISCONNECTED, last_message=sync.message)
        return mirror

    if sync.config.port != mirror.config.port:
        return mirror

    return replace(mirror, status=sync.status, last_message=sync.message, test_record=sync.last_record)


def _device_status(mirror: DeviceMirror, message: BridgeMessage) -> DeviceMirror:
    return replace(mirror, status=message.status or mirror.status, last_message=message.message or "")


def _record_update(mirror: DeviceMirror, message: BridgeMessage) -> DeviceMirror:
    return replace(mirror, test_record=TestRecord.model_validate(message.data))


def _device_error(mirror: DeviceMirror, message: BridgeMessage) -> DeviceMirror:
    return replace(mirror, status=DeviceStatus.ERROR, last_message=message.message or "Unknown error")


REDUCERS: dict[str, Callable[[DeviceMirror, BridgeMessage], DeviceMirror]] = {
    Action.PORTS_LIST: _ports_list,
    Action.SYNC_STATUS: _sync_status,
    Action.DEVICE_STATUS: _device_status,
    Action.TEST_DATA_UPDATE: _record_update,
    Action.DEVICE_ERROR: _device_error,
}


def reduce(mirror: DeviceMirror, message: BridgeMessage) -> DeviceMirror:
    """Apply one inbound bridge message to the mirror.

    Raises:
        pydantic.ValidationError: If a known action carries a malformed payload.
    """
    reducer = REDUCERS.get(message.action)
    if reducer is None:
        return mirror
    return reducer(mirror, message)
