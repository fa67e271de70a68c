"""Command-line entry point.

Queries each selected source in turn and prints one ``source<TAB>id version``
line per package. Results are not merged across sources.
"""
import logging
import sys
from typing import List, Optional, Tuple

from .args import parse_args
from .common.logging_utils import configure_logging
from .config import build_sources, load_config
from .constants import ExitCodes
from .exceptions import ConfigError, MalformedVersionError
from .package import Package, PackageIdentifier
from .source import PackageSource, SourceRegistry

logger = logging.getLogger(__name__)

ALL_VERSIONS_RANGE = "[0.0.0-0,)"


def tokenize_rightmost_colon(s: str) -> Tuple[str, Optional[str]]:
    """Return (identifier, version or None) using the rightmost-colon rule."""
    s = s.strip()
    if ':' not in s:
        return s, None
    identifier, spec = s.rsplit(':', 1)
    return identifier.strip(), spec.strip() or None


def _select_sources(registry: SourceRegistry, name: Optional[str]) -> List[PackageSource]:
    if not name:
        return registry.enabled_sources()
    source = registry.get(name)
    if source is None:
        raise ConfigError(f"Unknown source: {name}")
    return [source]


def _print_packages(source: PackageSource, packages: List[Package]) -> None:
    for package in packages:
        print(f"{source.name}\t{package.id} {package.version}")


def _installed_from_tokens(tokens: List[str]) -> List[PackageIdentifier]:
    installed = []
    for token in tokens:
        pkg_id, version = tokenize_rightmost_colon(token)
        if not pkg_id or not version:
            raise MalformedVersionError(token, "expected ID:VERSION")
        installed.append(PackageIdentifier(pkg_id, version))
    return installed


def run(args) -> int:
    """Execute the parsed command and return an exit code."""
    try:
        registry = SourceRegistry(build_sources(load_config(args.CONFIG)))
        sources = _select_sources(registry, args.SOURCE)
        if args.COMMAND == "updates":
            installed = _installed_from_tokens(args.PACKAGES)
        for source in sources:
            if args.COMMAND == "search":
                found = source.search(args.TERM, args.ALL_VERSIONS, args.PRERELEASE, args.TAKE, args.SKIP)
            elif args.COMMAND == "find":
                found = source.find_packages_by_id(
                    PackageIdentifier(args.ID, args.VERSION or ALL_VERSIONS_RANGE)
                )
            else:
                found = source.get_updates(installed, args.PRERELEASE, args.ALL_VERSIONS)
            _print_packages(source, found)
    except ConfigError as e:
        logger.error("%s", e)
        return ExitCodes.FILE_ERROR.value
    except MalformedVersionError as e:
        logger.error("%s", e)
        return ExitCodes.USAGE_ERROR.value
    return ExitCodes.SUCCESS.value


def main(argv=None) -> None:
    """Main function of the program."""
    args = parse_args(argv)
    configure_logging(args.LOG_LEVEL, args.LOG_FILE)
    sys.exit(run(args))


if __name__ == "__main__":
    main()
