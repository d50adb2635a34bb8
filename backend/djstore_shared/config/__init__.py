"""
Configuration module: settings and logging.
"""

from djstore_shared.config.settings import settings, get_settings, SQL_CONNECTION
from djstore_shared.config.logging import get_logger, setup_logging

__all__ = [
    # settings
    "settings",
    "get_settings",
    "SQL_CONNECTION",
    # logging
    "get_logger",
    "setup_logging",
]
