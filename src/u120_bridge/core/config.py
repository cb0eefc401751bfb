"""Application configuration using pydantic-settings."""

import logging
import sys

from pydantic_settings import BaseSettings, SettingsConfigDict

from u120_bridge.protocol.constants import KNOWN_UNITS, MAX_FRAME_SIZE


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be overridden via environment variables
    prefixed with U120_ (e.g., U120_API_PORT). List values are
    given as JSON (e.g., U120_KNOWN_UNITS='["mg/dL", "g/L"]').
    """

    api_host: str = "127.0.0.1"
    api_port: int = 8088
    log_level: str = "INFO"
    close_timeout: float = 5.0
    max_frame_size: int = MAX_FRAME_SIZE
    known_units: list[str] = list(KNOWN_UNITS)
    broadcast_events: bool = False

    model_config = SettingsConfigDict(env_prefix="U120_")


def setup_logging(level: str = "INFO") -> None:
    """Configure application logging.

    Args:
        level: Log level string (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )
