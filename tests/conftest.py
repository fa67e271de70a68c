"""Shared fixtures: on-disk .nupkg archives and OData feed documents."""

import os
import struct
import zipfile
from typing import Iterable, Optional, Tuple

import pytest

NUSPEC_TEMPLATE = """<?xml version="1.0" encoding="utf-8"?>
<package xmlns="http://schemas.microsoft.com/packaging/2013/05/nuspec.xsd">
  <metadata>
    <id>{id}</id>
    <version>{version}</version>
    <title>{title}</title>
    <description>{id} package</description>
    <authors>Test Author</authors>
    <projectUrl>https://example.com/{id}</projectUrl>
    <repository type="git" url="https://github.com/example/{id}.git" commit="abc123" />
    <dependencies>{dependencies}</dependencies>
  </metadata>
</package>
"""


def write_nupkg(directory: str, pkg_id: str, version: str, dependencies: Iterable[Tuple[str, str]] = (),
                file_name: Optional[str] = None) -> str:
    """Write a minimal .nupkg archive and return its path."""
    deps_xml = "".join(f'<dependency id="{d}" version="{v}" />' for d, v in dependencies)
    nuspec = NUSPEC_TEMPLATE.format(id=pkg_id, version=version, title=pkg_id, dependencies=deps_xml)
    path = os.path.join(directory, file_name or f"{pkg_id}.{version}.nupkg")
    with zipfile.ZipFile(path, "w") as archive:
        archive.writestr(f"{pkg_id}.nuspec", nuspec)
        archive.writestr("lib/net45/placeholder.txt", "")
    return path


def write_corrupt_deflated_nupkg(directory: str, pkg_id: str, version: str) -> str:
    """Write a deflated archive whose zip directory is intact but whose data stream is not."""
    path = write_nupkg(directory, pkg_id, version)
    nuspec_name = f"{pkg_id}.nuspec"
    with zipfile.ZipFile(path) as archive:
        raw = archive.read(nuspec_name)
    with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        archive.writestr(nuspec_name, raw * 4)
        header_offset = archive.getinfo(nuspec_name).header_offset
    with open(path, "r+b") as f:
        f.seek(header_offset + 26)
        name_len, extra_len = struct.unpack("<HH", f.read(4))
        # 0xff opens a deflate block of the reserved type 3
        f.seek(header_offset + 30 + name_len + extra_len)
        f.write(b"\xff" * 20)
    return path


ENTRY_TEMPLATE = """
  <entry>
    <id>https://feed.example/api/v2/Packages(Id='{id}',Version='{version}')</id>
    <title type="text">{id}</title>
    <summary type="text">Summary of {id}</summary>
    <author><name>Test Author</name></author>
    <content type="application/zip" src="https://feed.example/api/v2/package/{id}/{version}" />
    <m:properties>
      <d:Id>{id}</d:Id>
      <d:Version>{version}</d:Version>
      <d:Title>{title}</d:Title>
      <d:Description>{id} description</d:Description>
      <d:Dependencies>{dependencies}</d:Dependencies>
      <d:DownloadCount m:type="Edm.Int32">{downloads}</d:DownloadCount>
      <d:ProjectUrl>https://example.com/{id}</d:ProjectUrl>
      <d:LicenseUrl>https://example.com/{id}/license</d:LicenseUrl>
      <d:ReleaseNotes>Notes for {version}</d:ReleaseNotes>
    </m:properties>
  </entry>"""


def feed_xml(entries: Iterable[Tuple[str, str]], next_link: Optional[str] = None, dependencies: str = "",
             downloads: int = 10) -> str:
    """Build an OData feed document with one entry per (id, version)."""
    body = "".join(
        ENTRY_TEMPLATE.format(id=i, version=v, title=i, dependencies=dependencies, downloads=downloads)
        for i, v in entries
    )
    link = f'<link rel="next" href="{next_link}" />' if next_link else ""
    return (
        '<?xml version="1.0" encoding="utf-8"?>'
        '<feed xml:base="https://feed.example/api/v2" xmlns="http://www.w3.org/2005/Atom" '
        'xmlns:d="http://schemas.microsoft.com/ado/2007/08/dataservices" '
        'xmlns:m="http://schemas.microsoft.com/ado/2007/08/dataservices/metadata">'
        '<title type="text">Packages</title>'
        f"{body}{link}</feed>"
    )


@pytest.fixture
def local_feed(tmp_path):
    """A directory with a handful of packages."""
    directory = str(tmp_path)
    write_nupkg(directory, "Foo", "1.0.0")
    write_nupkg(directory, "Foo", "2.0.0")
    write_nupkg(directory, "Foo", "3.0.0")
    write_nupkg(directory, "Foo", "4.0.0-beta")
    write_nupkg(directory, "Foo.Extras", "1.5.0")
    write_nupkg(directory, "Bar", "0.9.0", dependencies=[("Foo", "[1.0.0,)")])
    return directory
