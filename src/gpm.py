"""gpm - minimal npm-compatible package installer.

Entry point for the ``gpm init`` and ``gpm install`` commands.
"""
import logging
import sys

from constants import ExitCodes, Constants
from common.errors import GpmError
from common.logging_utils import configure_logging, extra_context, is_debug_enabled
from args import parse_args
from cli_config import build_config
from manifest import get_package_dependencies, initialize_project

logger = logging.getLogger(__name__)


def _setup_logging(args) -> None:
    """Configure logging based on CLI arguments."""
    configure_logging(getattr(args, "LOG_LEVEL", None))

    log_file = getattr(args, "LOG_FILE", None)
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(Constants.LOG_FILE_FORMAT))
        logging.getLogger().addHandler(file_handler)
        logger.info("Logging to file: %s", log_file)


def run_init(args) -> None:
    config = build_config(args)
    initialize_project(config.working_dir)


def run_install(args) -> None:
    # Lazy import keeps "gpm init" free of the network stack
    from registry.npm.client import NpmClient  # pylint: disable=import-outside-toplevel
    from installer import DependencyInstaller  # pylint: disable=import-outside-toplevel

    config = build_config(args)
    requirements = get_package_dependencies(config.package_json_path, prod=getattr(args, "PROD", False))
    if not requirements:
        logger.info("No dependencies declared in %s", config.package_json_path)

    client = NpmClient(config)
    installer = DependencyInstaller(client, config.modules_dir, config.bin_dir)
    outcomes = installer.install_all(requirements)

    if is_debug_enabled(logger):
        logger.debug(
            "Install finished",
            extra=extra_context(
                event="function_exit",
                component="cli",
                action="install",
                outcome="success",
                count=len(outcomes),
            ),
        )
    logger.info("Installed %d packages into %s", len(outcomes), config.modules_dir)


COMMANDS = {
    "init": run_init,
    "install": run_install,
}


def main(argv=None):
    """Main function of the program."""
    args = parse_args(argv)
    _setup_logging(args)
    logger.info("Starting gpm")

    try:
        COMMANDS[args.COMMAND](args)
    except GpmError as exc:
        logger.error("%s", exc)
        sys.exit(exc.exit_code.value)

    logger.debug("Finished gpm")
    sys.exit(ExitCodes.SUCCESS.value)


if __name__ == "__main__":
    main()
