"""Remote source strategy: query a NuGet v2 OData feed.

URLs are built by plain concatenation of the feed endpoint, the operation
name and ``&``-joined clauses. Values are interpolated as-is; ids or terms
containing quotes or ``&`` produce a broken query rather than being escaped.
See http://www.odata.org/documentation/odata-version-2-0/uri-conventions/
"""
from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence, Union
from xml.etree import ElementTree as ET

from ..common.http_client import fetch_text
from ..common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer
from ..constants import Constants
from ..exceptions import NetworkError, UnsupportedApiError
from ..package import Package, PackageIdentifier
from .matching import select_matches
from .odata import FeedPage, parse_feed_document

logger = logging.getLogger(__name__)

VersionConstraints = Union[str, Sequence[str], None]


def _bool(value: bool) -> str:
    return "true" if value else "false"


def build_find_packages_by_id_url(endpoint: str, package_id: str) -> str:
    """URL listing every version of ``package_id``.

    Range filters such as ``Version ge '9.0.1'`` are not used: servers compare
    them alphabetically, so all versions are requested and filtered locally.
    """
    return f"{endpoint}FindPackagesById()?$orderby=Version asc&id='{package_id}'"


def build_search_url(
    endpoint: str,
    search_term: str = "",
    include_all_versions: bool = False,
    include_prerelease: bool = False,
    take: int = Constants.DEFAULT_SEARCH_TAKE,
    skip: int = 0,
) -> str:
    """URL for the ``Search()`` operation.

    Example: ``https://www.nuget.org/api/v2/Search()?$filter=IsLatestVersion&
    $orderby=DownloadCount desc&$skip=0&$top=30&searchTerm='newtonsoft'&
    targetFramework=''&includePrerelease=false``
    """
    clauses = []
    if not include_all_versions:
        clauses.append("$filter=IsAbsoluteLatestVersion" if include_prerelease else "$filter=IsLatestVersion")
    clauses.append(f"$orderby={Constants.SEARCH_ORDER_BY}")
    clauses.append(f"$skip={skip}")
    clauses.append(f"$top={take}")
    clauses.append(f"searchTerm='{search_term or ''}'")
    clauses.append("targetFramework=''")
    clauses.append(f"includePrerelease={_bool(include_prerelease)}")
    return f"{endpoint}Search()?" + "&".join(clauses)


def format_version_constraints(version_constraints: VersionConstraints) -> str:
    """Join per-package range specs with ``|``; strings pass through unchanged."""
    if not version_constraints:
        return ""
    if isinstance(version_constraints, str):
        return version_constraints
    return "|".join(version_constraints)


def build_get_updates_url(
    endpoint: str,
    packages: Iterable[PackageIdentifier],
    include_prerelease: bool = False,
    include_all_versions: bool = False,
    target_frameworks: str = "",
    version_constraints: VersionConstraints = "",
) -> str:
    """URL for a batched ``GetUpdates()`` query over ``packages``."""
    packages = list(packages)
    package_ids = "|".join(p.id for p in packages)
    versions = "|".join(p.version for p in packages)
    return (
        f"{endpoint}GetUpdates()?packageIds='{package_ids}'&versions='{versions}'"
        f"&includePrerelease={_bool(include_prerelease)}"
        f"&includeAllVersions={_bool(include_all_versions)}"
        f"&targetFrameworks='{target_frameworks or ''}'"
        f"&versionConstraints='{format_version_constraints(version_constraints)}'"
    )


class FeedClient:
    """Lightweight client for one OData package feed.

    Failures never propagate out of ``find_packages_by_id`` or ``search``:
    they are logged and the call returns an empty list.
    """

    def __init__(
        self,
        endpoint: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        context: str = "nuget",
    ):
        """Initialize the feed client.

        Args:
            endpoint: Expanded feed URL, e.g. ``https://www.nuget.org/api/v2/``.
            username: Optional user for basic authentication.
            password: Optional password for basic authentication.
            context: Source name used in log messages.
        """
        self.endpoint = endpoint
        self.username = username
        self.password = password
        self.context = context

    def _fetch_page(self, url: str) -> FeedPage:
        logger.debug("Getting packages from: %s", safe_url(url))
        text = fetch_text(url, context=self.context, username=self.username, password=self.password)
        try:
            return parse_feed_document(text)
        except ET.ParseError as e:
            raise NetworkError(f"{self.context} returned an invalid feed: {e}") from e

    def get_packages_from_url(self, url: str, follow_next: bool = False) -> List[Package]:
        """Fetch and parse the feed at ``url``.

        Args:
            url: Fully built query URL.
            follow_next: Also fetch pages linked with ``rel="next"``.

        Raises:
            NetworkError: If the first page fails on transport, status, or an
                unparsable body. A failure on a later page is logged and the
                pages already fetched are returned.
        """
        packages: List[Package] = []
        next_url: Optional[str] = url
        pages = 0
        with Timer() as t:
            while next_url and pages < Constants.MAX_FEED_PAGES:
                try:
                    page = self._fetch_page(next_url)
                except NetworkError as e:
                    if not pages:
                        raise
                    logger.error("Unable to retrieve next page from %s: %s", safe_url(next_url), e)
                    break
                packages.extend(page.packages)
                pages += 1
                next_url = page.next_link if follow_next else None
        if is_debug_enabled(logger):
            logger.debug(
                "Retrieved packages",
                extra=extra_context(
                    event="feed_parsed",
                    component="client",
                    action="get_packages_from_url",
                    target=safe_url(url),
                    count=len(packages),
                    pages=pages,
                    duration_ms=t.duration_ms(),
                ),
            )
        return packages

    def find_packages_by_id(self, identifier: PackageIdentifier) -> List[Package]:
        """Resolve ``identifier`` with client-side version filtering.

        Raises:
            MalformedVersionError: If the identifier's version cannot be parsed.
        """
        version_range = identifier.version_range
        url = build_find_packages_by_id_url(self.endpoint, identifier.id)
        try:
            found = self.get_packages_from_url(url, follow_next=True)
        except NetworkError as e:
            logger.error("Unable to retrieve package list from %s: %s", safe_url(url), e)
            return []
        return select_matches(identifier.id, version_range, found)

    def search(
        self,
        search_term: str = "",
        include_all_versions: bool = False,
        include_prerelease: bool = False,
        take: int = Constants.DEFAULT_SEARCH_TAKE,
        skip: int = 0,
    ) -> List[Package]:
        """Run a server-side search, ordered by descending download count."""
        url = build_search_url(
            self.endpoint, search_term, include_all_versions, include_prerelease, take, skip
        )
        try:
            return self.get_packages_from_url(url)
        except NetworkError as e:
            logger.error("Unable to retrieve package list from %s: %s", safe_url(url), e)
            return []

    def get_updates(
        self,
        installed_packages: Sequence[PackageIdentifier],
        include_prerelease: bool = False,
        include_all_versions: bool = False,
        target_frameworks: str = "",
        version_constraints: VersionConstraints = "",
    ) -> List[Package]:
        """Ask the server for updates in sequential batches.

        Groups are limited to ``Constants.UPDATE_BATCH_SIZE`` packages because
        servers reject overly long queries. A failing group is logged and
        skipped; groups already fetched are kept.

        Raises:
            UnsupportedApiError: If the server answers 404, i.e. it does not
                implement ``GetUpdates``.
        """
        installed = list(installed_packages)
        updates: List[Package] = []
        size = Constants.UPDATE_BATCH_SIZE
        for start in range(0, len(installed), size):
            group = installed[start:start + size]
            url = build_get_updates_url(
                self.endpoint,
                group,
                include_prerelease,
                include_all_versions,
                target_frameworks,
                version_constraints,
            )
            try:
                updates.extend(self.get_packages_from_url(url))
            except NetworkError as e:
                if e.status == 404:
                    logger.debug("%s not found. Falling back to FindPackagesById.", safe_url(url))
                    raise UnsupportedApiError(e.message, status=e.status) from e
                logger.error("Unable to retrieve package list from %s: %s", safe_url(url), e)
        return updates
