"""Argument parsing functionality for gpm."""

import argparse


def build_parser():
    """Build the CLI parser with its ``init`` and ``install`` commands."""
    parser = argparse.ArgumentParser(
        prog="gpm",
        usage="%(prog)s <command> [options]",
        description="gpm - minimal npm-compatible package installer",
        add_help=True,
    )

    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str.upper,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        default=None)
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to configuration file (YAML)",
                        action="store",
                        type=str)
    parser.add_argument("-C", "--cwd",
                        dest="WORKING_DIR",
                        help="Project directory (default: current directory)",
                        action="store",
                        type=str)

    subparsers = parser.add_subparsers(dest="COMMAND", metavar="<command>")
    subparsers.required = True

    subparsers.add_parser("init", help="Initialize a new project")

    install = subparsers.add_parser("install", help="Install the project's dependencies")
    install.add_argument("--prod",
                         dest="PROD",
                         help="Install production dependencies only",
                         action="store_true")
    install.add_argument("--registry",
                         dest="REGISTRY",
                         help="Registry base URL",
                         action="store",
                         type=str)
    install.add_argument("--no-cache",
                         dest="NO_CACHE",
                         help="Do not read or write the metadata cache",
                         action="store_true")

    return parser


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    return build_parser().parse_args(argv)
