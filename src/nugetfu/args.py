"""Argument parsing functionality for nugetfu."""

import argparse

from .constants import Constants


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    parser = argparse.ArgumentParser(
        prog="nugetfu",
        description="nugetfu - resolve NuGet packages and updates from local folders and OData feeds",
        add_help=True,
    )

    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help=f"Source configuration (NuGet.config or YAML). Defaults to ${Constants.ENV_CONFIG_PATH} "
                             f"or ./{Constants.DEFAULT_CONFIG_FILE}",
                        action="store",
                        type=str)
    parser.add_argument("-s", "--source",
                        dest="SOURCE",
                        help="Only query the named source (default: every enabled source)",
                        action="store",
                        type=str)
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        default='WARNING')
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)

    sub = parser.add_subparsers(dest="COMMAND", required=True)

    search = sub.add_parser("search", help="Search packages by id")
    search.add_argument("TERM", nargs="?", default="", help="Search term (empty lists everything)")
    search.add_argument("--all-versions", dest="ALL_VERSIONS", action="store_true",
                        help="Include older versions, not only the latest")
    search.add_argument("--prerelease", dest="PRERELEASE", action="store_true",
                        help="Include prerelease packages")
    search.add_argument("--take", dest="TAKE", type=int, default=Constants.DEFAULT_SEARCH_TAKE,
                        help="Number of packages to fetch")
    search.add_argument("--skip", dest="SKIP", type=int, default=0,
                        help="Number of packages to skip")

    find = sub.add_parser("find", help="Find the versions of a package matching a version or range")
    find.add_argument("ID", help="Package id")
    find.add_argument("VERSION", nargs="?", default=None,
                      help="Exact version or range such as [1.0,2.0); default: every version")

    updates = sub.add_parser("updates", help="List updates for installed packages")
    updates.add_argument("PACKAGES", nargs="+", metavar="ID:VERSION",
                         help="Installed packages, e.g. Newtonsoft.Json:12.0.1")
    updates.add_argument("--all-versions", dest="ALL_VERSIONS", action="store_true",
                         help="Include every newer version, not only the newest")
    updates.add_argument("--prerelease", dest="PRERELEASE", action="store_true",
                         help="Include prerelease updates")

    return parser.parse_args(argv)
