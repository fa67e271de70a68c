"""Data models for NuGet versions and version ranges."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass(frozen=True)
class NuGetVersion:
    """A parsed version: up to four numeric parts plus an optional prerelease label.

    Missing numeric parts are zero. Build metadata (``+...``) is kept for
    display but never takes part in comparisons.
    """
    major: int
    minor: int = 0
    patch: int = 0
    revision: int = 0
    prerelease: str = ""
    metadata: str = ""
    original: str = field(default="", compare=False)

    @property
    def is_prerelease(self) -> bool:
        """True when the version carries a prerelease label."""
        return bool(self.prerelease)

    @property
    def release(self) -> Tuple[int, int, int, int]:
        """The numeric components."""
        return (self.major, self.minor, self.patch, self.revision)

    def sort_key(self) -> Tuple[int, int, int, int, int, str]:
        """Key ordering versions numerically, releases after their prereleases."""
        return (
            self.major,
            self.minor,
            self.patch,
            self.revision,
            0 if self.prerelease else 1,
            self.prerelease.lower(),
        )

    def __lt__(self, other: "NuGetVersion") -> bool:
        if not isinstance(other, NuGetVersion):
            return NotImplemented
        return self.sort_key() < other.sort_key()

    def __le__(self, other: "NuGetVersion") -> bool:
        if not isinstance(other, NuGetVersion):
            return NotImplemented
        return self.sort_key() <= other.sort_key()

    def __gt__(self, other: "NuGetVersion") -> bool:
        if not isinstance(other, NuGetVersion):
            return NotImplemented
        return self.sort_key() > other.sort_key()

    def __ge__(self, other: "NuGetVersion") -> bool:
        if not isinstance(other, NuGetVersion):
            return NotImplemented
        return self.sort_key() >= other.sort_key()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NuGetVersion):
            return NotImplemented
        return self.sort_key() == other.sort_key()

    def __hash__(self) -> int:
        return hash(self.sort_key())

    def __str__(self) -> str:
        if self.original:
            return self.original
        text = ".".join(str(part) for part in self.release)
        if self.prerelease:
            text += f"-{self.prerelease}"
        if self.metadata:
            text += f"+{self.metadata}"
        return text


@dataclass(frozen=True)
class VersionRange:
    """A version constraint with a lower bound and an optional upper bound.

    An exact version is represented as ``[v,v]``.
    """
    minimum: NuGetVersion
    maximum: Optional[NuGetVersion]
    min_inclusive: bool = True
    max_inclusive: bool = False
    original: str = field(default="", compare=False)

    @property
    def is_exact(self) -> bool:
        """True when the range admits exactly one version."""
        return (
            self.maximum is not None
            and self.min_inclusive
            and self.max_inclusive
            and self.minimum == self.maximum
        )

    def contains(self, version: NuGetVersion) -> bool:
        """True if ``version`` satisfies both bounds."""
        if self.min_inclusive:
            if version < self.minimum:
                return False
        elif version <= self.minimum:
            return False
        if self.maximum is None:
            return True
        if self.max_inclusive:
            return version <= self.maximum
        return version < self.maximum

    def __str__(self) -> str:
        if self.original:
            return self.original
        left = "[" if self.min_inclusive else "("
        right = "]" if self.max_inclusive else ")"
        upper = "" if self.maximum is None else str(self.maximum)
        return f"{left}{self.minimum},{upper}{right}"
