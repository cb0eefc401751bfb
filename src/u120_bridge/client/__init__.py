"""Bridge client used by UI processes."""

from u120_bridge.client.adapter import BridgeClient
from u120_bridge.client.state import DeviceMirror, PortChoice, reduce

__all__ = ["BridgeClient", "DeviceMirror", "PortChoice", "reduce"]
