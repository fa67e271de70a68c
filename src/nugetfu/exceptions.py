"""Error taxonomy for package resolution.

Only ``MalformedVersionError`` and ``ConfigError`` are meant to reach callers;
the rest are raised by the strategies and handled at the source boundary so
that one failing source or archive never aborts the others.
"""
from __future__ import annotations

from typing import Optional


class NugetfuError(Exception):
    """Base class for all errors raised by this package."""


class MalformedVersionError(NugetfuError, ValueError):
    """A version or version range token could not be parsed."""

    def __init__(self, token: object, reason: str = "invalid version"):
        self.token = token
        self.reason = reason
        super().__init__(f"{reason}: {token!r}")


class NetworkError(NugetfuError):
    """HTTP transport failure: connectivity, timeout, or non-2xx status."""

    def __init__(self, message: str, status: Optional[int] = None):
        self.status = status
        self.message = message
        super().__init__(message if status is None else f"HTTP {status}: {message}")


class UnsupportedApiError(NetworkError):
    """The server does not implement the requested operation (HTTP 404)."""


class ArchiveReadError(NugetfuError):
    """A local package archive is corrupt, unreadable, or lacks a manifest."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")


class DirectoryNotFoundError(NugetfuError):
    """A local source points at a directory that does not exist."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Local folder not found: {path}")


class ConfigError(NugetfuError):
    """The source configuration file is missing or invalid."""
