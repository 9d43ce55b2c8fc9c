"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    CONNECTION_ERROR = 2
    INTEGRITY_ERROR = 3
    RESOLUTION_ERROR = 4
    EXTRACTION_ERROR = 5


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration defaults; not intended to provide behavior.
    """

    REGISTRY_URL_NPM = "https://registry.npmjs.org"
    PACKAGE_JSON_FILE = "package.json"
    NODE_MODULES_DIR = "node_modules"
    BIN_DIR = ".bin"
    CACHE_DIR = ".gpm/cache"
    CONFIG_FILE = ".gpmrc.yml"
    LOG_FORMAT = "[%(levelname)s] %(message)s"
    LOG_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
    HTTP_RETRY_MAX = 3
    HTTP_RETRY_BASE_DELAY_SEC = 0.3
    DOWNLOAD_CHUNK_SIZE = 64 * 1024
    HASH_CHUNK_SIZE = 64 * 1024
    SHASUM_ALGORITHM = "sha1"
    USER_AGENT = "gpm/0.1.0"

    ENV_REGISTRY_URL = "GPM_REGISTRY_URL"
    ENV_REQUEST_TIMEOUT = "GPM_REQUEST_TIMEOUT"
    ENV_NO_CACHE = "GPM_NO_CACHE"
    ENV_LOG_LEVEL = "GPM_LOG_LEVEL"
