"""
Logging for the storefront cart.

Every module logs through `get_logger(__name__)`. The stdout handler is
installed once, when this module is first imported. Text that comes from
the cart service or from callers (ids, error bodies) goes through the
sanitizers before it is interpolated into a log line.

Environment:
    LOG_LEVEL       - DEBUG, INFO (default), WARNING, ...
    STOREFRONT_ENV  - "production" drops timestamps (the platform adds them)
"""

import logging
import os
import sys
from functools import cache

_DETAILED_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
_COMPACT_FORMAT = "%(levelname)s [%(name)s] %(message)s"

# The cart client sits on httpx; one INFO line per request drowns the drain logs
_NOISY_LOGGERS = ("httpx", "httpcore")

# CWE-117: control characters would let service text forge log entries
_LOG_ESCAPES = str.maketrans({"\n": "\\n", "\r": "\\r", "\t": "\\t", "\x00": None})

ID_SUFFIX_LENGTH = 8


def _resolve_level(level: str | None) -> int:
    name = (level or os.environ.get("LOG_LEVEL") or "INFO").upper()
    value = logging.getLevelName(name)
    return value if isinstance(value, int) else logging.INFO


def configure_logging(level: str | None = None, *, compact: bool | None = None) -> bool:
    """
    Install a stdout handler on the root logger.

    Does nothing when the root logger already has handlers (uvicorn,
    pytest or an embedding application configured logging first).

    Args:
        level: Level name; defaults to LOG_LEVEL
        compact: Drop timestamps; defaults to STOREFRONT_ENV == "production"

    Returns:
        True if a handler was installed
    """
    root = logging.getLogger()
    if root.handlers:
        return False

    if compact is None:
        compact = os.environ.get("STOREFRONT_ENV") == "production"

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(_COMPACT_FORMAT if compact else _DETAILED_FORMAT))
    root.addHandler(handler)
    root.setLevel(_resolve_level(level))

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return True


configure_logging()


@cache
def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def _escape(value: object) -> str:
    return str(value).translate(_LOG_ESCAPES)


def sanitize_id_for_logging(id_value: str | None) -> str:
    """
    Shorten an opaque cart or line item id for logging.

    Ids are long and mostly share a prefix, so the tail is what tells two
    line items apart in a drain log. Returns "N/A" for empty ids.
    """
    if not id_value:
        return "N/A"
    return _escape(id_value)[-ID_SUFFIX_LENGTH:]


def sanitize_string_for_logging(value: str | None, max_length: int = 50) -> str:
    """Escape service supplied text and cut it to `max_length` characters."""
    if not value:
        return "N/A"
    safe_value = _escape(value)
    if len(safe_value) <= max_length:
        return safe_value
    return safe_value[:max_length] + "..."
