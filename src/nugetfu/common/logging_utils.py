"""Logging helpers shared by the source strategies and the CLI.

Provides structured ``extra`` payloads for debug events, URL sanitizing so
feed credentials never reach log output, and a small timer used to report
request durations.
"""
from __future__ import annotations

import logging
import re
import time
from typing import Any, Dict, Optional
from urllib.parse import urlsplit, urlunsplit

from ..constants import Constants

_SENSITIVE_KEYS = ("password", "token", "apikey", "api_key", "secret")
_SENSITIVE_PARAM_RE = re.compile(
    r"(?i)\b(" + "|".join(_SENSITIVE_KEYS) + r")=([^&\s]+)"
)


def configure_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """Configure the root logger with the project format.

    Args:
        level: Level name such as ``DEBUG`` or ``INFO``.
        log_file: Optional path; when given, logs go to the file instead of stderr.
    """
    handlers = []
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    else:
        handlers.append(logging.StreamHandler())
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format=Constants.LOG_FORMAT,
        handlers=handlers,
        force=True,
    )


def is_debug_enabled(logger: logging.Logger) -> bool:
    """Return True when ``logger`` would emit DEBUG records."""
    return logger.isEnabledFor(logging.DEBUG)


def extra_context(**fields: Any) -> Dict[str, Any]:
    """Build an ``extra`` mapping for structured log records, dropping None values."""
    return {key: value for key, value in fields.items() if value is not None}


def redact(text: str) -> str:
    """Mask values of sensitive ``key=value`` pairs in free text."""
    if not text:
        return text
    return _SENSITIVE_PARAM_RE.sub(lambda m: f"{m.group(1)}=***", text)


def safe_url(url: str) -> str:
    """Strip user info from a URL and mask sensitive query values."""
    if not url:
        return url
    try:
        parts = urlsplit(url)
    except ValueError:
        return redact(url)
    netloc = parts.netloc
    if "@" in netloc:
        netloc = "***@" + netloc.rsplit("@", 1)[1]
    return redact(urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment)))


class Timer:
    """Context manager measuring elapsed wall time."""

    def __init__(self):
        self._start = 0.0
        self._end: Optional[float] = None

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        self._end = None
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self._end = time.perf_counter()

    def duration_ms(self) -> int:
        """Elapsed milliseconds, up to now if the block is still running."""
        end = self._end if self._end is not None else time.perf_counter()
        return int((end - self._start) * 1000)
