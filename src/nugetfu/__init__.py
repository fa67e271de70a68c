"""nugetfu - resolve NuGet package metadata from local folders and OData feeds."""

from .exceptions import (
    ArchiveReadError,
    ConfigError,
    DirectoryNotFoundError,
    MalformedVersionError,
    NetworkError,
    NugetfuError,
    UnsupportedApiError,
)
from .package import Package, PackageIdentifier
from .source import LocalLocation, PackageSource, RemoteLocation, SourceRegistry

__all__ = [
    "ArchiveReadError",
    "ConfigError",
    "DirectoryNotFoundError",
    "MalformedVersionError",
    "NetworkError",
    "NugetfuError",
    "UnsupportedApiError",
    "Package",
    "PackageIdentifier",
    "LocalLocation",
    "PackageSource",
    "RemoteLocation",
    "SourceRegistry",
]
