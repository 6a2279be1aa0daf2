"""deptrace - transitive npm dependency tracer.

    Returns:
        int: Exit code
"""
import json
import logging
import sys

from args import parse_args
from cli_commands import COMMAND_HANDLERS, InvalidPackageRefError
from cli_config import load_runtime_config, setup_logging
from common.logging_utils import extra_context, is_debug_enabled
from constants import ExitCodes
from depgraph import UnresolvableRootError
from popularity import PopularityApiError
from registry import RegistryError, PackageNotFoundError, NoMatchingVersionError, InvalidVersionSpecError

logger = logging.getLogger(__name__)


def export_json(result, path):
    """Exports a command result to a JSON file.

    Args:
        result (dict): JSON-serializable command result.
        path (str): File path to export the JSON.
    """
    try:
        with open(path, 'w', encoding='utf-8') as file:
            json.dump(result, file, ensure_ascii=False, indent=4)
        logging.info("JSON file has been successfully exported at: %s", path)
    except OSError as e:
        logging.error("JSON file couldn't be written to disk: %s", e)
        sys.exit(ExitCodes.FILE_ERROR.value)


def _exit_code_for(exc):
    """Map a library failure onto a process exit code."""
    if isinstance(exc, (PackageNotFoundError, NoMatchingVersionError,
                        InvalidVersionSpecError, UnresolvableRootError)):
        return ExitCodes.RESOLUTION_ERROR
    return ExitCodes.CONNECTION_ERROR


def main(argv=None):
    """Main function of the program."""
    args = parse_args(argv)
    setup_logging(args)
    load_runtime_config(args)

    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(event="function_entry", component="cli", action=args.COMMAND)
        )

    handler = COMMAND_HANDLERS[args.COMMAND]
    try:
        result = handler(args)
    except InvalidPackageRefError as exc:
        logging.error("%s", exc)
        sys.exit(ExitCodes.RESOLUTION_ERROR.value)
    except (RegistryError, UnresolvableRootError, PopularityApiError) as exc:
        logging.error("%s", exc)
        sys.exit(_exit_code_for(exc).value)

    if getattr(args, "OUTPUT", None):
        export_json(result, args.OUTPUT)

    sys.exit(ExitCodes.SUCCESS.value)


if __name__ == "__main__":
    main()
