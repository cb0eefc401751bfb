"""Builders for outbound bridge messages."""

from collections.abc import Iterable

from u120_bridge.core.models import BridgeMessage, PortInfo, SyncStatus, TestRecord
from u120_bridge.protocol.constants import Action, DeviceStatus


def device_status(status: DeviceStatus, message: str) -> BridgeMessage:
    return BridgeMessage(action=Action.DEVICE_STATUS, status=status, message=message)


def device_error(message: str) -> BridgeMessage:
    return BridgeMessage(action=Action.DEVICE_ERROR, message=message)


def bridge_error(message: str) -> BridgeMessage:
    return BridgeMessage(action=Action.ERROR, message=f"Bridge error: {message}")


def record_update(record: TestRecord) -> BridgeMessage:
    return BridgeMessage(action=Action.TEST_DATA_UPDATE, data=record.to_wire())


def ports_list(ports: Iterable[PortInfo]) -> BridgeMessage:
    return BridgeMessage(action=Action.PORTS_LIST, data=[port.to_wire() for port in ports])


def sync_status(snapshot: SyncStatus) -> BridgeMessage:
    return BridgeMessage(action=Action.SYNC_STATUS, data=snapshot.to_wire())
