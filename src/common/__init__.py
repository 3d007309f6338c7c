# Common utilities and shared modules
"""
Shared components used by every engine module:
- Data models (Pydantic schemas)
- Logging configuration
- Project configuration
"""

from .config import settings, Settings, PROJECT_ROOT, DATA_DIR
from .logging import setup_logging

__all__ = [
    "settings",
    "Settings",
    "PROJECT_ROOT",
    "DATA_DIR",
    "setup_logging",
]
