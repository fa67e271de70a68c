"""Version model: parsing, comparison and range checks."""

from .models import NuGetVersion, VersionRange
from .parser import (
    compare,
    in_range,
    is_prerelease,
    is_range_spec,
    parse_range,
    parse_version,
)

__all__ = [
    "NuGetVersion",
    "VersionRange",
    "compare",
    "in_range",
    "is_prerelease",
    "is_range_spec",
    "parse_range",
    "parse_version",
]
