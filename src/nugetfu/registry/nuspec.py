"""Read package metadata from a local ``.nupkg`` archive.

A ``.nupkg`` is a zip file with a ``<id>.nuspec`` manifest at its root. Nuspec
files come with several schema namespaces, so tags are stripped of their
namespace before lookup.
"""
from __future__ import annotations

import zipfile
import zlib
import xml.etree.ElementTree as ET
from typing import Dict, List, Optional, Union

from ..constants import Constants
from ..exceptions import ArchiveReadError
from ..package import Package, PackageIdentifier


def _strip_namespaces(root: ET.Element) -> None:
    for elem in root.iter():
        if isinstance(elem.tag, str) and '}' in elem.tag:
            elem.tag = elem.tag.split('}', 1)[1]


def _child_text(parent: ET.Element, tag: str) -> str:
    elem = parent.find(tag)
    if elem is None or elem.text is None:
        return ""
    return elem.text.strip()


def _dependency_from(elem: ET.Element) -> Optional[PackageIdentifier]:
    dep_id = (elem.get("id") or "").strip()
    if not dep_id:
        return None
    return PackageIdentifier(dep_id, (elem.get("version") or "").strip())


def _read_dependencies(metadata: ET.Element):
    flat: List[PackageIdentifier] = []
    groups: Dict[str, List[PackageIdentifier]] = {}
    deps_elem = metadata.find("dependencies")
    if deps_elem is None:
        return flat, groups

    # Either flat <dependency> children or <group targetFramework="..."> blocks.
    for dep_elem in deps_elem.findall("dependency"):
        dep = _dependency_from(dep_elem)
        if dep is not None:
            groups.setdefault("", []).append(dep)
            if dep not in flat:
                flat.append(dep)
    for group_elem in deps_elem.findall("group"):
        framework = (group_elem.get("targetFramework") or "").strip()
        group = groups.setdefault(framework, [])
        for dep_elem in group_elem.findall("dependency"):
            dep = _dependency_from(dep_elem)
            if dep is None:
                continue
            group.append(dep)
            if dep not in flat:
                flat.append(dep)
    return flat, groups


def parse_nuspec(text: Union[str, bytes], origin: str = "<nuspec>") -> Package:
    """Build a Package from nuspec XML.

    Raises:
        ArchiveReadError: If the XML is invalid or lacks an id or version.
    """
    try:
        root = ET.fromstring(text)
    except ET.ParseError as e:
        raise ArchiveReadError(origin, f"invalid nuspec: {e}") from e
    _strip_namespaces(root)
    metadata = root.find("metadata")
    if metadata is None:
        raise ArchiveReadError(origin, "nuspec has no metadata element")

    pkg_id = _child_text(metadata, "id")
    version = _child_text(metadata, "version")
    if not pkg_id or not version:
        raise ArchiveReadError(origin, "nuspec is missing id or version")

    repository = metadata.find("repository")
    dependencies, groups = _read_dependencies(metadata)
    return Package(
        id=pkg_id,
        version=version,
        title=_child_text(metadata, "title"),
        description=_child_text(metadata, "description"),
        summary=_child_text(metadata, "summary"),
        authors=_child_text(metadata, "authors"),
        release_notes=_child_text(metadata, "releaseNotes"),
        project_url=_child_text(metadata, "projectUrl"),
        license_url=_child_text(metadata, "licenseUrl"),
        icon_url=_child_text(metadata, "iconUrl"),
        repository_url=repository.get("url", "") if repository is not None else "",
        repository_type=repository.get("type", "") if repository is not None else "",
        repository_commit=repository.get("commit", "") if repository is not None else "",
        dependencies=dependencies,
        dependency_groups=groups,
    )


def read_nupkg(path: str) -> Package:
    """Read the manifest of the archive at ``path``.

    Raises:
        ArchiveReadError: If the archive is unreadable or has no valid nuspec.
    """
    try:
        with zipfile.ZipFile(path) as archive:
            manifests = [
                name for name in archive.namelist()
                if '/' not in name and name.lower().endswith(Constants.NUSPEC_EXTENSION)
            ]
            if not manifests:
                raise ArchiveReadError(path, "no .nuspec manifest at archive root")
            raw = archive.read(manifests[0])
    except (zipfile.BadZipFile, zlib.error, EOFError, OSError, KeyError, RuntimeError) as e:
        # zlib.error: corrupt deflate data; RuntimeError: encrypted entry or unsupported compression
        raise ArchiveReadError(path, str(e)) from e

    package = parse_nuspec(raw, origin=path)
    package.download_url = path
    return package
