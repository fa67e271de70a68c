"""Candidate selection for find-by-id queries, shared by local and remote sources."""
from __future__ import annotations

import logging
from typing import Iterable, List

from ..exceptions import MalformedVersionError
from ..package import Package
from ..versioning import VersionRange, parse_version

logger = logging.getLogger(__name__)


def sort_by_version(packages: Iterable[Package]) -> List[Package]:
    """Sort ascending by numeric version, dropping packages whose version does not parse."""
    keyed = []
    for package in packages:
        try:
            keyed.append((parse_version(package.version), package))
        except MalformedVersionError:
            logger.debug("Ignoring %s: unparsable version %r", package.id, package.version)
    keyed.sort(key=lambda pair: pair[0].sort_key())
    return [package for _, package in keyed]


def select_matches(package_id: str, version_range: VersionRange, candidates: Iterable[Package]) -> List[Package]:
    """Pick the candidates that answer a find-by-id query.

    Candidates of another id are ignored. If any candidate lies within
    ``version_range``, every in-range candidate is returned in ascending
    order. Otherwise the single smallest version above the range's lower
    bound is returned, so feeds missing a pinned version still resolve to the
    closest newer one.
    """
    wanted_id = (package_id or "").lower()
    ordered = sort_by_version(p for p in candidates if (p.id or "").lower() == wanted_id)

    in_range = [p for p in ordered if version_range.contains(parse_version(p.version))]
    if in_range:
        return in_range
    newer = [p for p in ordered if parse_version(p.version) > version_range.minimum]
    return newer[:1]
