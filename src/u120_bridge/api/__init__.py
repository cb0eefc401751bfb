"""Bridge API: WebSocket gateway and HTTP routes."""
