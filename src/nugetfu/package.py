"""Package identifiers and resolved package records.

A ``Package`` carries a back reference to the source that resolved it. The
reference is weak: a package never keeps its source alive, and once attached
it cannot be moved to another source.
"""
from __future__ import annotations

import functools
import weakref
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

from .exceptions import MalformedVersionError
from .versioning import NuGetVersion, VersionRange, compare, is_prerelease, is_range_spec, parse_range, parse_version

if TYPE_CHECKING:  # pragma: no cover
    from .source import PackageSource


@functools.total_ordering
@dataclass(eq=False)
class PackageIdentifier:
    """A package id plus an exact version or a version range."""
    id: str
    version: str

    @property
    def is_range(self) -> bool:
        """True when ``version`` is bracket notation rather than a bare version."""
        return is_range_spec(self.version)

    @property
    def is_prerelease(self) -> bool:
        """True when the version carries a prerelease label."""
        return is_prerelease(self.version)

    @property
    def version_range(self) -> VersionRange:
        """The parsed range; an exact version becomes ``[v,v]``.

        Raises:
            MalformedVersionError: If the version cannot be parsed.
        """
        return parse_range(self.version)

    def in_range(self, other: "PackageIdentifier") -> bool:
        """True if ``other``'s exact version satisfies this identifier's range."""
        return self.version_range.contains(parse_version(other.version))

    def _ordering_version(self) -> NuGetVersion:
        if self.is_range:
            return self.version_range.minimum
        return parse_version(self.version)

    def _identity(self) -> Tuple[str, object]:
        lowered_id = (self.id or "").lower()
        if not self.is_range:
            try:
                return (lowered_id, parse_version(self.version).sort_key())
            except MalformedVersionError:
                pass
        # ranges and unparsable versions compare by their text
        return (lowered_id, (self.version or "").strip().lower())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PackageIdentifier):
            return NotImplemented
        return self._identity() == other._identity()

    def __hash__(self) -> int:
        return hash(self._identity())

    def __lt__(self, other: "PackageIdentifier") -> bool:
        if not isinstance(other, PackageIdentifier):
            return NotImplemented
        left_id = (self.id or "").lower()
        right_id = (other.id or "").lower()
        if left_id != right_id:
            return left_id < right_id
        return compare(self._ordering_version(), other._ordering_version()) < 0

    def __str__(self) -> str:
        return f"{self.id} {self.version}"


@dataclass(eq=False)
class Package(PackageIdentifier):
    """Metadata for one resolved package version."""
    title: str = ""
    description: str = ""
    summary: str = ""
    authors: str = ""
    release_notes: str = ""
    project_url: str = ""
    license_url: str = ""
    icon_url: str = ""
    download_url: str = ""
    download_count: int = 0
    repository_url: str = ""
    repository_type: str = ""
    repository_commit: str = ""
    dependencies: List[PackageIdentifier] = field(default_factory=list)
    dependency_groups: Dict[str, List[PackageIdentifier]] = field(default_factory=dict)
    _source_ref: Optional["weakref.ReferenceType[PackageSource]"] = field(
        default=None, init=False, repr=False
    )

    def __post_init__(self) -> None:
        if not self.title:
            self.title = self.id

    @property
    def source(self) -> Optional["PackageSource"]:
        """The source that resolved this package, if it is still alive."""
        if self._source_ref is None:
            return None
        return self._source_ref()

    def attach_source(self, source: "PackageSource") -> None:
        """Record the resolving source.

        Raises:
            ValueError: If the package is already attached to a different live source.
        """
        current = self.source
        if current is source:
            return
        if current is not None:
            raise ValueError(
                f"{self} already belongs to source {current.name!r}, not {source.name!r}"
            )
        self._source_ref = weakref.ref(source)
