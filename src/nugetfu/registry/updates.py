"""Update discovery: batched ``GetUpdates`` with a per-package fallback.

Some feeds (Azure DevOps / VSTS among them) do not implement ``GetUpdates``
and answer 404. For those, updates are found one package at a time through
find-by-id with the open-ended range ``(installedVersion,)``.
"""
from __future__ import annotations

import functools
import logging
from typing import Callable, Iterable, List, Optional, Sequence

from ..exceptions import UnsupportedApiError
from ..package import Package, PackageIdentifier
from .client import FeedClient, VersionConstraints

logger = logging.getLogger(__name__)

FindById = Callable[[PackageIdentifier], List[Package]]


def _ordinal(a: str, b: str) -> int:
    if a == b:
        return 0
    return -1 if a < b else 1


def compare_updates(x: PackageIdentifier, y: PackageIdentifier) -> int:
    """Order updates by id, then by raw version text, both compared ordinally.

    A missing id sorts first. Versions are compared as plain strings, not
    numerically, so ``10.0.0`` sorts before ``9.0.0``.
    """
    if x.id is None and y.id is None:
        return 0
    if x.id is None:
        return -1
    if y.id is None:
        return 1
    if x.id == y.id:
        return _ordinal(x.version or "", y.version or "")
    return _ordinal(x.id, y.id)


update_sort_key = functools.cmp_to_key(compare_updates)


def sort_updates(updates: Iterable[Package]) -> List[Package]:
    """Return ``updates`` sorted with ``compare_updates``."""
    return sorted(updates, key=update_sort_key)


def get_updates_fallback(
    find_packages_by_id: FindById,
    installed_packages: Iterable[PackageIdentifier],
    include_prerelease: bool = False,
    include_all_versions: bool = False,
    target_frameworks: str = "",
    version_constraints: VersionConstraints = "",
) -> List[Package]:
    """Discover updates with one find-by-id query per installed package.

    When ``include_prerelease`` is set only the most recent prerelease match is
    kept; otherwise prerelease matches are dropped. Without
    ``include_all_versions`` only the newest remaining match is kept.
    """
    if target_frameworks or version_constraints:
        logger.debug("Target frameworks and version constraints are ignored by the update fallback")

    updates: List[Package] = []
    for installed in installed_packages:
        # Minimum of the installed version (exclusive) with no maximum.
        newer = PackageIdentifier(installed.id, f"({installed.version},)")
        package_updates = find_packages_by_id(newer)

        most_recent_prerelease: Optional[Package] = None
        if include_prerelease:
            prereleases = [p for p in package_updates if p.is_prerelease]
            most_recent_prerelease = prereleases[-1] if prereleases else None
        package_updates = [
            p for p in package_updates if not p.is_prerelease or p is most_recent_prerelease
        ]

        if not include_all_versions and package_updates:
            package_updates = package_updates[-1:]
        updates.extend(package_updates)

    return sort_updates(updates)


def get_remote_updates(
    client: FeedClient,
    find_packages_by_id: FindById,
    installed_packages: Sequence[PackageIdentifier],
    include_prerelease: bool = False,
    include_all_versions: bool = False,
    target_frameworks: str = "",
    version_constraints: VersionConstraints = "",
) -> List[Package]:
    """Query updates in batches, switching to the fallback when the API is missing."""
    try:
        updates = client.get_updates(
            installed_packages,
            include_prerelease,
            include_all_versions,
            target_frameworks,
            version_constraints,
        )
    except UnsupportedApiError:
        return get_updates_fallback(
            find_packages_by_id,
            installed_packages,
            include_prerelease,
            include_all_versions,
            target_frameworks,
            version_constraints,
        )
    return sort_updates(updates)
