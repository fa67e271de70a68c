"""Package sources: a configured origin answering find, search and update queries.

A source's location is a tagged variant, ``LocalLocation`` for a directory of
archives or ``RemoteLocation`` for an OData feed, decided once from the
expanded path. Every operation dispatches on it and stamps the returned
packages with the answering source.
"""
from __future__ import annotations

import logging
import os
import re
import threading
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from .constants import Constants
from .package import Package, PackageIdentifier
from .registry.client import FeedClient, VersionConstraints
from .registry.scan import find_local_packages_by_id, get_local_updates, list_local_packages
from .registry.updates import get_remote_updates, sort_updates

logger = logging.getLogger(__name__)

_WINDOWS_VAR_RE = re.compile(r"%([A-Za-z_][A-Za-z0-9_]*)%")


def expand_env(value: Optional[str]) -> Optional[str]:
    """Expand ``$VAR``, ``${VAR}`` and ``%VAR%`` placeholders; unknown names are left as-is."""
    if value is None:
        return None
    expanded = os.path.expandvars(value)
    return _WINDOWS_VAR_RE.sub(lambda m: os.environ.get(m.group(1), m.group(0)), expanded)


@dataclass(frozen=True)
class LocalLocation:
    """A directory of ``.nupkg`` archives."""
    saved_path: str

    @property
    def directory(self) -> str:
        """The directory with environment placeholders expanded."""
        return expand_env(self.saved_path) or ""


@dataclass(frozen=True)
class RemoteLocation:
    """An OData feed endpoint."""
    saved_path: str

    @property
    def endpoint(self) -> str:
        """The feed URL with environment placeholders expanded."""
        return expand_env(self.saved_path) or ""


Location = Union[LocalLocation, RemoteLocation]


def location_for(path: str) -> Location:
    """Classify ``path``: anything whose expansion starts with ``http`` is remote."""
    expanded = expand_env(path) or ""
    if expanded.startswith(Constants.HTTP_SCHEME_PREFIX):
        return RemoteLocation(path)
    return LocalLocation(path)


def _unsupported(location: object) -> TypeError:
    return TypeError(f"Unsupported source location: {location!r}")


class PackageSource:
    """One configured package source (a "server" or a local folder)."""

    def __init__(
        self,
        name: str,
        path: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        enabled: bool = True,
    ):
        """Initialize a package source.

        Args:
            name: Display name of the source.
            path: Directory or feed URL; may contain environment placeholders.
            username: Optional user for feed authentication.
            password: Optional password; may contain environment placeholders.
                None means no password is used.
            enabled: Whether the aggregator should query this source.
        """
        self.name = name
        self._saved_path = path
        self.username = username
        self.saved_password = password
        self.enabled = enabled
        self._location = location_for(path)

    @property
    def saved_path(self) -> str:
        """The path as configured, placeholders unexpanded."""
        return self._saved_path

    @property
    def path(self) -> str:
        """The path with environment placeholders expanded."""
        return expand_env(self._saved_path) or ""

    @property
    def password(self) -> Optional[str]:
        """The password with environment placeholders expanded, or None."""
        return expand_env(self.saved_password)

    @property
    def has_password(self) -> bool:
        """True when a password (possibly empty) is configured."""
        return self.saved_password is not None

    @property
    def location(self) -> Location:
        """Local or remote location, fixed at construction."""
        return self._location

    @property
    def is_local(self) -> bool:
        """True for a directory source."""
        return isinstance(self._location, LocalLocation)

    def _client(self, location: RemoteLocation) -> FeedClient:
        return FeedClient(location.endpoint, self.username, self.password, context=self.name)

    def _claim(self, packages: Iterable[Package]) -> List[Package]:
        claimed = list(packages)
        for package in claimed:
            package.attach_source(self)
        return claimed

    def find_packages_by_id(self, identifier: PackageIdentifier) -> List[Package]:
        """Packages matching ``identifier``'s id and range, ascending by version.

        If nothing lies within the range, the closest newer version is returned
        instead.

        Raises:
            MalformedVersionError: If the identifier's version cannot be parsed.
        """
        location = self._location
        if isinstance(location, LocalLocation):
            found = find_local_packages_by_id(location.directory, identifier)
        elif isinstance(location, RemoteLocation):
            found = self._client(location).find_packages_by_id(identifier)
        else:
            raise _unsupported(location)
        return self._claim(found)

    def get_specific_package(self, identifier: PackageIdentifier) -> Optional[Package]:
        """The newest package returned by ``find_packages_by_id``, or None."""
        found = self.find_packages_by_id(identifier)
        return found[-1] if found else None

    def search(
        self,
        search_term: str = "",
        include_all_versions: bool = False,
        include_prerelease: bool = False,
        take: int = Constants.DEFAULT_SEARCH_TAKE,
        skip: int = 0,
    ) -> List[Package]:
        """List packages whose id matches ``search_term``; an empty term lists everything.

        Args:
            search_term: Term to filter by.
            include_all_versions: Include older versions, not just the latest.
            include_prerelease: Include prerelease packages.
            take: Number of packages to fetch (remote only).
            skip: Number of packages to skip.
        """
        location = self._location
        if isinstance(location, LocalLocation):
            found = list_local_packages(
                location.directory, search_term, include_all_versions, include_prerelease, skip
            )
        elif isinstance(location, RemoteLocation):
            found = self._client(location).search(
                search_term, include_all_versions, include_prerelease, take, skip
            )
        else:
            raise _unsupported(location)
        return self._claim(found)

    def get_updates(
        self,
        installed_packages: Iterable[PackageIdentifier],
        include_prerelease: bool = False,
        include_all_versions: bool = False,
        target_frameworks: str = "",
        version_constraints: VersionConstraints = "",
    ) -> List[Package]:
        """Available updates for ``installed_packages``, sorted by id then version text."""
        installed = list(installed_packages)
        location = self._location
        if isinstance(location, LocalLocation):
            found = sort_updates(
                get_local_updates(location.directory, installed, include_prerelease, include_all_versions)
            )
        elif isinstance(location, RemoteLocation):
            found = get_remote_updates(
                self._client(location),
                self.find_packages_by_id,
                installed,
                include_prerelease,
                include_all_versions,
                target_frameworks,
                version_constraints,
            )
        else:
            raise _unsupported(location)
        return self._claim(found)

    def __repr__(self) -> str:
        kind = "local" if self.is_local else "remote"
        return f"PackageSource(name={self.name!r}, path={self._saved_path!r}, {kind}, enabled={self.enabled})"


class SourceRegistry:
    """The live, ordered list of sources.

    Reloading swaps the whole list at once; sources are never edited in
    place, so a query running against the old list finishes undisturbed.
    """

    def __init__(self, sources: Sequence[PackageSource] = ()):
        self._lock = threading.Lock()
        self._sources: Tuple[PackageSource, ...] = tuple(sources)

    @property
    def sources(self) -> Tuple[PackageSource, ...]:
        """Snapshot of all configured sources."""
        with self._lock:
            return self._sources

    def enabled_sources(self) -> List[PackageSource]:
        """Sources that should be queried."""
        return [source for source in self.sources if source.enabled]

    def get(self, name: str) -> Optional[PackageSource]:
        """Look a source up by name (case-insensitive)."""
        wanted = (name or "").lower()
        for source in self.sources:
            if source.name.lower() == wanted:
                return source
        return None

    def reload(self, sources: Sequence[PackageSource]) -> None:
        """Replace every source with ``sources``."""
        replacement = tuple(sources)
        with self._lock:
            self._sources = replacement
        logger.debug("Loaded %d package sources", len(replacement))
