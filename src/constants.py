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
    RESOLUTION_ERROR = 3


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    REGISTRY_URL_NPM = "https://registry.npmjs.org/"
    ECOSYSTEMS_API_BASE = "https://packages.ecosyste.ms/api/v1"
    ECOSYSTEMS_REGISTRY = "npmjs.org"
    DEFAULT_VERSION = "latest"
    LOG_FORMAT = "[%(levelname)s] %(message)s"
    LOG_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
    LOG_LEVEL_ENV = "DEPTRACE_LOG_LEVEL"
    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
    USER_AGENT = "deptrace/0.1"

    HTTP_RETRY_MAX = 3
    HTTP_RETRY_BASE_DELAY_SEC = 0.3

    # Popularity API
    POPULARITY_CACHE_TTL_SEC = 3 * 60 * 60
    POPULARITY_MAX_RESULTS = 1000

    # Cache and config
    CACHE_DIR = None  # resolved lazily by common.config.get_cache_dir
    ENV_CACHE_DIR = "DEPTRACE_CACHE_DIR"
    ENV_CACHE_DIR_LEGACY = "CACHE_DIR"
    ENV_REGISTRY_URL = "DEPTRACE_REGISTRY_URL"

    # Resolution
    NPM_MAX_CONCURRENCY = None  # None means unbounded
    REGISTRY_CACHE_TTL_SEC = 60 * 60
    RENDER_MAX_VISITS = 5
