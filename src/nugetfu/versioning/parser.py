"""Version and version-range parsing, comparison, and range checks.

Numeric components are always compared as integers; sorting raw version
strings would rank ``10.0.0`` below ``9.0.0``.
"""

import re
from typing import Union

from ..exceptions import MalformedVersionError
from .models import NuGetVersion, VersionRange

VersionLike = Union[str, NuGetVersion]
RangeLike = Union[str, VersionRange]

_VERSION_RE = re.compile(
    r"^(\d+)(?:\.(\d+))?(?:\.(\d+))?(?:\.(\d+))?"
    r"(?:-([0-9A-Za-z][0-9A-Za-z.\-]*))?"
    r"(?:\+([0-9A-Za-z][0-9A-Za-z.\-]*))?$"
)
_OPENERS = "[("
_CLOSERS = "])"


def parse_version(token: VersionLike) -> NuGetVersion:
    """Parse a single version token such as ``1.2``, ``1.2.3.4`` or ``2.0.0-beta.1``.

    Raises:
        MalformedVersionError: If the token is not a version.
    """
    if isinstance(token, NuGetVersion):
        return token
    if not isinstance(token, str):
        raise MalformedVersionError(token, "version must be a string")
    text = token.strip()
    m = _VERSION_RE.match(text)
    if not m:
        raise MalformedVersionError(token)
    major, minor, patch, revision, prerelease, metadata = m.groups()
    return NuGetVersion(
        major=int(major),
        minor=int(minor or 0),
        patch=int(patch or 0),
        revision=int(revision or 0),
        prerelease=prerelease or "",
        metadata=metadata or "",
        original=text,
    )


def is_range_spec(spec: str) -> bool:
    """True when ``spec`` uses bracket notation rather than a bare version."""
    text = (spec or "").strip()
    return bool(text) and (text[0] in _OPENERS or text[-1] in _CLOSERS)


def parse_range(spec: RangeLike) -> VersionRange:
    """Parse a bare version or a bracketed NuGet range.

    Accepted forms: ``1.0`` (exact), ``[1.0]`` (exact), ``[1.0,2.0]``,
    ``(1.0,2.0)``, mixed inclusivity, and open-ended ``(1.0,)`` / ``[1.0,)``.

    Raises:
        MalformedVersionError: For unbalanced brackets, a missing lower bound,
            more than two bounds, or bounds that are not versions.
    """
    if isinstance(spec, VersionRange):
        return spec
    if not isinstance(spec, str):
        raise MalformedVersionError(spec, "version range must be a string")
    text = spec.strip()
    if not text:
        raise MalformedVersionError(spec, "empty version")

    if not is_range_spec(text):
        exact = parse_version(text)
        return VersionRange(exact, exact, True, True, original=text)

    if len(text) < 2 or text[0] not in _OPENERS or text[-1] not in _CLOSERS:
        raise MalformedVersionError(spec, "unbalanced brackets")
    min_inclusive = text[0] == "["
    max_inclusive = text[-1] == "]"
    inner = text[1:-1]
    if any(ch in inner for ch in _OPENERS + _CLOSERS):
        raise MalformedVersionError(spec, "unbalanced brackets")

    bounds = [part.strip() for part in inner.split(",")]
    if len(bounds) == 1:
        # "[1.0]" pins a single version; "(1.0)" admits nothing.
        if not (min_inclusive and max_inclusive) or not bounds[0]:
            raise MalformedVersionError(spec, "invalid exact range")
        exact = parse_version(bounds[0])
        return VersionRange(exact, exact, True, True, original=text)
    if len(bounds) != 2:
        raise MalformedVersionError(spec, "too many bounds")

    lower, upper = bounds
    if not lower:
        raise MalformedVersionError(spec, "missing lower bound")
    minimum = parse_version(lower)
    maximum = parse_version(upper) if upper else None
    if maximum is not None and maximum < minimum:
        raise MalformedVersionError(spec, "upper bound below lower bound")
    return VersionRange(minimum, maximum, min_inclusive, max_inclusive, original=text)


def compare(a: VersionLike, b: VersionLike) -> int:
    """Return -1, 0 or 1 as ``a`` is older than, equal to, or newer than ``b``."""
    left = parse_version(a).sort_key()
    right = parse_version(b).sort_key()
    if left < right:
        return -1
    if left > right:
        return 1
    return 0


def in_range(version_range: RangeLike, version: VersionLike) -> bool:
    """True if ``version`` satisfies ``version_range``."""
    return parse_range(version_range).contains(parse_version(version))


def is_prerelease(version: str) -> bool:
    """True for a version string with a prerelease label.

    Tokens that do not parse fall back to a plain hyphen check, so feeds with
    odd versions still get a sensible answer.
    """
    try:
        return parse_version(version).is_prerelease
    except MalformedVersionError:
        return "-" in (version or "")
