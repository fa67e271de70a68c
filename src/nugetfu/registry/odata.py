"""OData (Atom) feed parsing for NuGet v2 catalogs.

Each ``<entry>`` becomes one ``Package``. The dependency property is a
``|``-separated list of ``id:version[:targetFramework]`` entries.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple
from xml.etree import ElementTree as ET

from ..common.logging_utils import extra_context, is_debug_enabled
from ..constants import Namespaces
from ..package import Package, PackageIdentifier

logger = logging.getLogger(__name__)

_ATOM = f"{{{Namespaces.ATOM}}}"
_D = f"{{{Namespaces.DATASERVICES}}}"
_M = f"{{{Namespaces.METADATA}}}"


@dataclass
class FeedPage:
    """Packages parsed from one feed document plus the link to the next page."""
    packages: List[Package] = field(default_factory=list)
    next_link: Optional[str] = None


def parse_dependencies(raw: Optional[str]) -> Tuple[List[PackageIdentifier], Dict[str, List[PackageIdentifier]]]:
    """Decode a feed ``Dependencies`` property.

    Returns:
        Tuple of (flat ordered dependency list, dependencies grouped by target framework).
        Entries with an empty id such as ``::net40`` only declare a framework and
        contribute an empty group.
    """
    flat: List[PackageIdentifier] = []
    groups: Dict[str, List[PackageIdentifier]] = {}
    if not raw:
        return flat, groups

    for chunk in raw.split("|"):
        details = chunk.split(":")
        dep_id = details[0].strip()
        dep_version = details[1].strip() if len(details) > 1 else ""
        framework = details[2].strip() if len(details) > 2 else ""
        group = groups.setdefault(framework, [])
        if not dep_id:
            continue
        dependency = PackageIdentifier(dep_id, dep_version)
        group.append(dependency)
        if dependency not in flat:
            flat.append(dependency)
    return flat, groups


def format_dependencies(dependencies: Iterable[PackageIdentifier], target_framework: str = "") -> str:
    """Encode dependencies the way a feed's ``Dependencies`` property carries them."""
    suffix = f":{target_framework}" if target_framework else ""
    return "|".join(f"{dep.id}:{dep.version}{suffix}" for dep in dependencies)


def _text(parent: Optional[ET.Element], tag: str) -> str:
    if parent is None:
        return ""
    elem = parent.find(tag)
    if elem is None or elem.text is None:
        return ""
    return elem.text.strip()


def _parse_int(value: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def parse_entry(entry: ET.Element) -> Optional[Package]:
    """Build a Package from one Atom ``<entry>``; None if it has no id or version."""
    props = entry.find(f".//{_M}properties")
    pkg_id = _text(entry, f"{_ATOM}title") or _text(props, f"{_D}Id")
    version = _text(props, f"{_D}Version")
    if not pkg_id or not version:
        if is_debug_enabled(logger):
            logger.debug(
                "Skipping feed entry without id or version",
                extra=extra_context(event="parse", component="odata", action="parse_entry", outcome="skipped"),
            )
        return None

    content = entry.find(f"{_ATOM}content")
    download_url = content.get("src", "") if content is not None else ""
    dependencies, groups = parse_dependencies(_text(props, f"{_D}Dependencies"))

    return Package(
        id=pkg_id,
        version=version,
        title=_text(props, f"{_D}Title"),
        description=_text(props, f"{_D}Description"),
        summary=_text(props, f"{_D}Summary") or _text(entry, f"{_ATOM}summary"),
        authors=_text(props, f"{_D}Authors") or _text(entry.find(f"{_ATOM}author"), f"{_ATOM}name"),
        release_notes=_text(props, f"{_D}ReleaseNotes"),
        project_url=_text(props, f"{_D}ProjectUrl"),
        license_url=_text(props, f"{_D}LicenseUrl"),
        icon_url=_text(props, f"{_D}IconUrl"),
        download_url=download_url,
        download_count=_parse_int(_text(props, f"{_D}DownloadCount")),
        dependencies=dependencies,
        dependency_groups=groups,
    )


def parse_feed_document(text: str) -> FeedPage:
    """Parse an OData feed body.

    Raises:
        xml.etree.ElementTree.ParseError: If the body is not XML.
    """
    root = ET.fromstring(text)
    page = FeedPage()
    # A single-entry response may come back as a bare <entry>.
    entries = [root] if root.tag == f"{_ATOM}entry" else root.findall(f"{_ATOM}entry")
    for entry in entries:
        package = parse_entry(entry)
        if package is not None:
            page.packages.append(package)
    for link in root.findall(f"{_ATOM}link"):
        if link.get("rel") == "next" and link.get("href"):
            page.next_link = link.get("href")
            break
    return page


def parse_feed(text: str) -> List[Package]:
    """Parse an OData feed body into packages, ignoring paging links."""
    return parse_feed_document(text).packages
