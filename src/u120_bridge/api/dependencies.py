"""FastAPI dependency injection for shared application state."""

from u120_bridge.api.connections import ConnectionHub
from u120_bridge.api.gateway import BridgeGateway
from u120_bridge.core.config import Settings
from u120_bridge.serial.session import SessionManager


class AppState:
    """Holds shared application state instances.

    Created during app startup and accessed via FastAPI dependencies.
    """

    def __init__(self) -> None:
        self.settings: Settings | None = None
        self.manager: SessionManager | None = None
        self.hub: ConnectionHub | None = None
        self.gateway: BridgeGateway | None = None


# Global app state singleton
app_state = AppState()


def get_manager() -> SessionManager:
    """Get the session manager instance."""
    assert app_state.manager is not None, "App not initialized"
    return app_state.manager


def get_hub() -> ConnectionHub:
    """Get the connection hub instance."""
    assert app_state.hub is not None, "App not initialized"
    return app_state.hub


def get_gateway() -> BridgeGateway:
    """Get the bridge gateway instance."""
    assert app_state.gateway is not None, "App not initialized"
    return app_state.gateway
