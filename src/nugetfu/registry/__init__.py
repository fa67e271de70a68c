"""NuGet source strategies.

This package provides the two ways a source can be answered:
- scan.py: local directory of .nupkg archives
- nuspec.py: manifest reader for a single archive
- client.py: HTTP interactions with an OData v2 feed (query building and fetch)
- odata.py: Atom/OData feed parsing
- matching.py: find-by-id selection with the closest-newer fallback
- updates.py: update discovery, batched with a per-package fallback
"""

from .client import (
    FeedClient,
    build_find_packages_by_id_url,
    build_get_updates_url,
    build_search_url,
    format_version_constraints,
)
from .nuspec import parse_nuspec, read_nupkg
from .odata import format_dependencies, parse_dependencies, parse_feed
from .scan import find_local_packages_by_id, get_local_updates, list_local_packages
from .updates import compare_updates, get_updates_fallback, sort_updates, update_sort_key

__all__ = [
    "FeedClient",
    "build_find_packages_by_id_url",
    "build_get_updates_url",
    "build_search_url",
    "format_version_constraints",
    "parse_nuspec",
    "read_nupkg",
    "format_dependencies",
    "parse_dependencies",
    "parse_feed",
    "find_local_packages_by_id",
    "get_local_updates",
    "list_local_packages",
    "compare_updates",
    "get_updates_fallback",
    "sort_updates",
    "update_sort_key",
]
