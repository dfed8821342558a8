"""veryfiable.core

Core primitives: configuration, errors, logging, time.

The database pool lives in `veryfiable.core.database` and is imported on demand.
"""

from .config import Config
from .exceptions import VeryfiableError
from .time import utc_now, utc_now_iso

__all__ = [
    "Config",
    "VeryfiableError",
    "utc_now",
    "utc_now_iso",
]
