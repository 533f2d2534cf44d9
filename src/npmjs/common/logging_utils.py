"""Structured logging helpers shared by the transport, executor and facades.

Log records carry their structured fields through ``extra=`` so handlers can
render them; the helpers here build that payload consistently and keep
secrets out of logged URLs.
"""
from __future__ import annotations

import logging
import os
import re
import time
import urllib.parse
from typing import Any, Dict, Optional

from npmjs.constants import Constants

_SENSITIVE_QUERY_KEYS = {"token", "access_token", "password", "auth", "key", "secret"}
_AUTH_HEADER_RE = re.compile(r"(?i)\b(basic|bearer)\s+[A-Za-z0-9._~+/=-]+")


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging for applications embedding the client.

    The level comes from ``level``, then the ``NPMJS_LOG_LEVEL`` environment
    variable, then INFO. Unknown level names fall back to INFO.
    """
    level_name = (level or os.environ.get(Constants.ENV_LOG_LEVEL) or "INFO").upper()
    numeric = getattr(logging, level_name, None)
    if not isinstance(numeric, int):
        numeric = logging.INFO
    logging.basicConfig(level=numeric, format=Constants.LOG_FORMAT)
    logging.getLogger("npmjs").setLevel(numeric)


def is_debug_enabled(logger: logging.Logger) -> bool:
    """Return True when ``logger`` would emit DEBUG records."""
    return logger.isEnabledFor(logging.DEBUG)


def extra_context(**fields: Any) -> Dict[str, Any]:
    """Build the ``extra=`` payload for a structured log record.

    ``None`` values are dropped so records only carry what is known.
    """
    return {key: value for key, value in fields.items() if value is not None}


def redact(value: str) -> str:
    """Mask Basic/Bearer credentials embedded in a string."""
    if not value:
        return value
    return _AUTH_HEADER_RE.sub(lambda m: f"{m.group(1)} [REDACTED]", value)


def safe_url(url: str) -> str:
    """Return ``url`` with userinfo and sensitive query values redacted."""
    if not url:
        return url
    try:
        parts = urllib.parse.urlsplit(url)
    except ValueError:
        return redact(url)

    netloc = parts.netloc
    if "@" in netloc:
        netloc = "[REDACTED]@" + netloc.rsplit("@", 1)[1]

    query = parts.query
    if query:
        pairs = urllib.parse.parse_qsl(query, keep_blank_values=True)
        query = urllib.parse.urlencode(
            [
                (k, "[REDACTED]" if k.lower() in _SENSITIVE_QUERY_KEYS else v)
                for k, v in pairs
            ],
            safe="[]{}\",:",
        )
    return urllib.parse.urlunsplit((parts.scheme, netloc, parts.path, query, parts.fragment))


class Timer:
    """Context manager measuring wall-clock duration in milliseconds."""

    def __init__(self):
        self._start: Optional[float] = None
        self._end: Optional[float] = None

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self._end = time.perf_counter()

    def duration_ms(self) -> float:
        """Elapsed milliseconds; measured up to now while still running."""
        if self._start is None:
            return 0.0
        end = self._end if self._end is not None else time.perf_counter()
        return round((end - self._start) * 1000, 2)
