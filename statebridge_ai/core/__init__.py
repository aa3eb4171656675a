"""Cross-cutting configuration and logging for statebridge_ai."""

from .config import Settings, settings
from .logging_config import get_logger, setup_logging

__all__ = [
    "Settings",
    "settings",
    "get_logger",
    "setup_logging",
]
