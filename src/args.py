"""Argument parsing functionality for deptrace."""

import argparse

from constants import Constants
from popularity.filters import parse_int_arg, parse_recency

COMMANDS = (
    "depsearch",
    "tree",
    "popular-reverse-deps",
    "popular-packages-containing",
    "popular-packages-maintained-by",
)


def _common_parser():
    """Options shared by every sub-command."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str.upper,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        default='INFO')
    common.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)
    common.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to configuration file (YAML or JSON)",
                        action="store",
                        type=str)
    common.add_argument("--cache-dir",
                        dest="CACHE_DIR",
                        help="Directory for cached API responses (default: ~/.cache/deptrace)",
                        action="store",
                        type=str)
    common.add_argument("--registry",
                        dest="REGISTRY_URL",
                        help=f"npm registry base URL (default: {Constants.REGISTRY_URL_NPM})",
                        action="store",
                        type=str)
    common.add_argument("--max-concurrency",
                        dest="MAX_CONCURRENCY",
                        help="Limit concurrent registry requests (default: unbounded)",
                        action="store",
                        type=parse_int_arg)
    common.add_argument("-o", "--output",
                        dest="OUTPUT",
                        help="Write the command result as JSON to this path",
                        action="store",
                        type=str)
    common.add_argument("-q", "--quiet",
                        dest="QUIET",
                        help="Do not print results or progress to the console.",
                        action="store_true")
    return common


def _add_popularity_filters(parser):
    parser.add_argument("--recent-update",
                        dest="RECENT_UPDATE",
                        metavar="PERIOD",
                        help='Only show packages updated this recently (can be specified in '
                             '"y"ears, "m"onths, "w"eeks, and "d"ays)',
                        action="store",
                        type=parse_recency)
    parser.add_argument("--downloads",
                        dest="DOWNLOADS",
                        metavar="THRESHOLD",
                        help="Only show packages with at least this many downloads",
                        action="store",
                        type=parse_int_arg)
    parser.add_argument("--max-results",
                        dest="MAX_RESULTS",
                        metavar="MAXIMUM",
                        help="Only fetch this many packages from the popularity API",
                        action="store",
                        type=parse_int_arg,
                        default=Constants.POPULARITY_MAX_RESULTS)


def build_parser():
    """Build the top-level parser with one sub-parser per command."""
    parser = argparse.ArgumentParser(
        prog="deptrace",
        description="deptrace - trace transitive npm dependencies and their popular dependents",
        add_help=True,
    )
    common = _common_parser()
    subparsers = parser.add_subparsers(dest="COMMAND", metavar="COMMAND", required=True)

    depsearch = subparsers.add_parser(
        "depsearch",
        parents=[common],
        help="Search for a certain (possibly nested) dependency in a given package",
    )
    depsearch.add_argument("NEEDLE",
                           help="The dependency to search for (all versions will be searched for)")
    depsearch.add_argument("HAYSTACK",
                           help="The package to search within, optionally with a given version")

    tree = subparsers.add_parser(
        "tree",
        parents=[common],
        help="Print the resolved dependency tree of a package",
    )
    tree.add_argument("PACKAGE",
                      help="The package to resolve, optionally with a given version")
    tree.add_argument("--max-visits",
                      dest="MAX_VISITS",
                      help="Print any package's subtree at most this many times",
                      action="store",
                      type=parse_int_arg,
                      default=Constants.RENDER_MAX_VISITS)

    reverse = subparsers.add_parser(
        "popular-reverse-deps",
        parents=[common],
        help="Search for the most popular reverse dependencies of a given package",
    )
    reverse.add_argument("PACKAGE",
                         help="The package to search the reverse dependencies of")
    _add_popularity_filters(reverse)

    containing = subparsers.add_parser(
        "popular-packages-containing",
        parents=[common],
        help="Search for popular packages depending on a given package",
    )
    containing.add_argument("PACKAGE", help="The package to search for")
    _add_popularity_filters(containing)

    maintained = subparsers.add_parser(
        "popular-packages-maintained-by",
        parents=[common],
        help="Search for popular packages containing a dependency published by a given maintainer",
    )
    maintained.add_argument("MAINTAINER", help="Maintainer name or email")
    _add_popularity_filters(maintained)

    return parser


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    return build_parser().parse_args(argv)
