"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    USAGE_ERROR = 2


class Namespaces:  # pylint: disable=too-few-public-methods
    """XML namespaces used by OData feeds."""

    ATOM = "http://www.w3.org/2005/Atom"
    DATASERVICES = "http://schemas.microsoft.com/ado/2007/08/dataservices"
    METADATA = "http://schemas.microsoft.com/ado/2007/08/dataservices/metadata"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    PACKAGE_EXTENSION = ".nupkg"
    NUSPEC_EXTENSION = ".nuspec"
    HTTP_SCHEME_PREFIX = "http"
    LOG_FORMAT = "[%(levelname)s] %(message)s"
    REQUEST_TIMEOUT = 5  # Timeout in seconds for all HTTP requests

    # Feed query tunables
    UPDATE_BATCH_SIZE = 10
    DEFAULT_SEARCH_TAKE = 15
    MAX_FEED_PAGES = 20
    SEARCH_ORDER_BY = "DownloadCount desc"

    # Configuration
    ENV_CONFIG_PATH = "NUGETFU_CONFIG"
    DEFAULT_CONFIG_FILE = "NuGet.config"
    DEFAULT_SOURCE_NAME = "nuget.org"
    DEFAULT_SOURCE_URL = "https://www.nuget.org/api/v2/"
