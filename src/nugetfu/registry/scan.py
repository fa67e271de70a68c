"""Local source strategy: resolve packages from a directory of ``.nupkg`` archives."""
from __future__ import annotations

import logging
import os
from glob import escape, glob
from typing import Dict, Iterable, List

from ..common.logging_utils import extra_context, is_debug_enabled, Timer
from ..constants import Constants
from ..exceptions import ArchiveReadError, DirectoryNotFoundError, MalformedVersionError
from ..package import Package, PackageIdentifier
from ..versioning import parse_version
from .matching import select_matches
from .nuspec import read_nupkg

logger = logging.getLogger(__name__)


def _package_paths(directory: str, search_term: str) -> List[str]:
    """Archive paths in ``directory`` whose file name contains ``search_term``.

    Raises:
        DirectoryNotFoundError: If ``directory`` does not exist.
    """
    if not os.path.isdir(directory):
        raise DirectoryNotFoundError(directory)
    term = (search_term or "").lower()
    pattern = os.path.join(escape(directory), "*" + Constants.PACKAGE_EXTENSION)
    return sorted(
        path for path in glob(pattern)
        if term in os.path.basename(path).lower()
    )


def _read_archive(path: str):
    """Read one archive, returning None (and logging) when it is unusable."""
    try:
        package = read_nupkg(path)
        parse_version(package.version)
    except ArchiveReadError as e:
        logger.warning("Couldn't read package archive %s: %s", path, e.reason)
        return None
    except MalformedVersionError as e:
        logger.warning("Couldn't read package archive %s: %s", path, e)
        return None
    return package


def list_local_packages(
    directory: str,
    search_term: str = "",
    include_all_versions: bool = False,
    include_prerelease: bool = False,
    skip: int = 0,
) -> List[Package]:
    """List the packages in a local source directory.

    Args:
        directory: Expanded directory path.
        search_term: Case-insensitive substring matched against package ids.
        include_all_versions: Keep every archive instead of the newest per id.
        include_prerelease: Keep prerelease packages.
        skip: Paging offset; the whole list is returned on the first page, so
            any later page is empty.

    Returns:
        Packages in scan order. A missing directory is logged and yields [].
    """
    if skip:
        return []
    try:
        paths = _package_paths(directory, search_term)
    except DirectoryNotFoundError as e:
        logger.error("%s", e)
        return []

    term = (search_term or "").lower()
    kept: Dict[str, Package] = {}
    every: List[Package] = []
    with Timer() as t:
        for path in paths:
            package = _read_archive(path)
            if package is None:
                continue
            if term and term not in package.id.lower():
                continue
            if package.is_prerelease and not include_prerelease:
                continue
            if include_all_versions:
                every.append(package)
                continue
            key = package.id.lower()
            existing = kept.get(key)
            if existing is None:
                kept[key] = package
            elif existing < package:
                del kept[key]
                kept[key] = package

    result = every if include_all_versions else list(kept.values())
    if is_debug_enabled(logger):
        logger.debug(
            "Scanned local packages",
            extra=extra_context(
                event="scan",
                component="scan",
                action="list_local_packages",
                target=directory,
                count=len(result),
                duration_ms=t.duration_ms(),
            ),
        )
    return result


def find_local_packages_by_id(directory: str, identifier: PackageIdentifier) -> List[Package]:
    """Resolve ``identifier`` against a local directory.

    A literal ``<id>.<version>.nupkg`` file short-circuits the scan.
    """
    version_range = identifier.version_range
    if not identifier.is_range:
        exact_path = os.path.join(
            directory, f"{identifier.id}.{identifier.version}{Constants.PACKAGE_EXTENSION}"
        )
        if os.path.isfile(exact_path):
            package = _read_archive(exact_path)
            if package is not None:
                return [package]

    candidates = list_local_packages(
        directory, identifier.id, include_all_versions=True, include_prerelease=True
    )
    return select_matches(identifier.id, version_range, candidates)


def get_local_updates(
    directory: str,
    installed_packages: Iterable[PackageIdentifier],
    include_prerelease: bool = False,
    include_all_versions: bool = False,
) -> List[Package]:
    """Collect local packages newer than the installed version of the same id."""
    available = list_local_packages(directory, "", include_all_versions, include_prerelease)
    updates: List[Package] = []
    for installed in installed_packages:
        wanted = (installed.id or "").lower()
        installed_version = parse_version(installed.version)
        for candidate in available:
            if candidate.id.lower() == wanted and parse_version(candidate.version) > installed_version:
                updates.append(candidate)
    return updates
