"""Runtime configuration assembly for the CLI.

Applies, in increasing precedence, the config file given with ``-c``, the
environment (including ``.env``) and explicit CLI flags onto ``Constants``.
"""

from __future__ import annotations

import logging
import sys

from common.config import ConfigError, load_config_file, load_environment
from common.logging_utils import add_file_handler, configure_logging
from constants import Constants, ExitCodes

logger = logging.getLogger(__name__)


def setup_logging(args) -> None:
    """Configure logging from ``--loglevel`` and ``--logfile``."""
    configure_logging(getattr(args, "LOG_LEVEL", None))
    log_file = getattr(args, "LOG_FILE", None)
    if log_file:
        try:
            add_file_handler(log_file)
        except OSError as exc:
            logger.error("Couldn't open log file %s: %s", log_file, exc)
            sys.exit(ExitCodes.FILE_ERROR.value)
        logger.info("Logging to file: %s", log_file)


def apply_cli_overrides(args) -> None:
    """Apply CLI flags onto Constants; they take precedence over everything else."""
    if getattr(args, "CACHE_DIR", None):
        Constants.CACHE_DIR = args.CACHE_DIR
    if getattr(args, "REGISTRY_URL", None):
        Constants.REGISTRY_URL_NPM = args.REGISTRY_URL
    if getattr(args, "MAX_CONCURRENCY", None) is not None:
        Constants.NPM_MAX_CONCURRENCY = args.MAX_CONCURRENCY or None


def load_runtime_config(args) -> None:
    """Config file, then environment, then CLI flags.

    Exits with FILE_ERROR when the config file can't be used.
    """
    config_path = getattr(args, "CONFIG", None)
    if config_path:
        try:
            load_config_file(config_path)
        except ConfigError as exc:
            logger.error("%s", exc)
            sys.exit(ExitCodes.FILE_ERROR.value)
        logger.info("Loaded config from: %s", config_path)
    load_environment()
    apply_cli_overrides(args)
