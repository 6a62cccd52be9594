"""Core utilities and configuration."""

from app.core.config import Settings, get_settings
from app.core.logging import get_logger, setup_logging, text_generation_logger

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Logging
    "get_logger",
    "setup_logging",
    "text_generation_logger",
]
