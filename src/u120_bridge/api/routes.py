"""HTTP route handlers."""

from fastapi import APIRouter, Depends

from u120_bridge.api.dependencies import get_manager
from u120_bridge.serial.session import SessionManager

router = APIRouter(prefix="/api")


@router.get("/ports")
async def get_ports(manager: SessionManager = Depends(get_manager)):
    """List serial devices present on the host."""
    ports = await manager.list_ports()
    return [port.to_wire() for port in ports]


@router.get("/status")
async def get_status(manager: SessionManager = Depends(get_manager)):
    """Current session view, same payload as the sync-status event."""
    return manager.snapshot().to_wire()
