"""
Core application modules.
"""

from .config import settings
from .database import get_db
from .logger import get_logger, log_function_call

__all__ = [
    "get_db",
    "get_logger",
    "log_function_call",
    "settings",
]
